"""Reader interfaces for ISO 14443-A and ISO-DEP, with shared error and frame types."""

from __future__ import annotations

import enum
from abc import ABC, abstractmethod
from dataclasses import dataclass

UID_MAX_LEN = 10
"""Longest UID an ISO 14443-A card can have, in bytes."""


class ErrorKind(enum.Enum):
    """Broad classification of a reader failure."""

    OTHER = "other"
    TIMEOUT = "timeout"
    CORRUPTION = "corruption"


class ReaderError(Exception):
    """Failure reported by a reader, classified by an :class:`ErrorKind`."""

    def __init__(self, kind, *args):
        self.kind = ErrorKind(kind)
        super().__init__(*(args or (self.kind.value,)))


class Frame:
    """Base class for the ways a low-level reader can frame a transmission."""

    __slots__ = ()


@dataclass(frozen=True)
class StandardFrame(Frame):
    """A normal frame with CRC, waiting up to ``timeout_1fc`` carrier cycles."""

    timeout_1fc: int


@dataclass(frozen=True)
class WupAFrame(Frame):
    """The 7-bit WUPA short frame."""


@dataclass(frozen=True)
class ReqAFrame(Frame):
    """The 7-bit REQA short frame."""


@dataclass(frozen=True)
class AnticollFrame(Frame):
    """An anticollision frame of which only the first ``bits`` bits are sent."""

    bits: int


class LowLevelReader(ABC):
    """A reader that exchanges raw ISO 14443-A frames, counted in bits."""

    @abstractmethod
    async def transceive(self, tx, frame):
        """Send ``tx`` framed as ``frame``.

        Returns ``(data, bits)``: the received bytes and how many bits of them
        are valid. Raises :class:`ReaderError` on failure.
        """


class Iso14443aReader(ABC):
    """A selected ISO 14443-A card that exchanges whole bytes."""

    @abstractmethod
    async def transceive(self, tx, timeout_1fc):
        """Send ``tx`` and return the bytes received within ``timeout_1fc``."""

    @abstractmethod
    def uid(self):
        """The card's UID."""

    @abstractmethod
    def atqa(self):
        """The two ATQA bytes the card answered with."""

    @abstractmethod
    def sak(self):
        """The SAK byte of the final cascade level."""


class IsoDepReader(ABC):
    """An ISO-DEP (ISO 14443-4) connection exchanging application data."""

    @abstractmethod
    async def transceive(self, tx, max_len):
        """Send ``tx`` and return the response, at most ``max_len`` bytes long."""