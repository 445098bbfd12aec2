"""ISO 14443-A card activation: wake-up, anticollision, selection and search."""

from __future__ import annotations

import logging
import operator
from functools import partial, reduce

from .traits import (
    AnticollFrame,
    ErrorKind,
    Iso14443aReader,
    ReaderError,
    ReqAFrame,
    StandardFrame,
    WupAFrame,
)

log = logging.getLogger(__name__)

_RETRIES = 4
_SELECT_TIMEOUT_1FC = 65536
_CASCADE_TAG = 0x88
_MAX_CASCADE_LEVELS = 3


def format_bytes(data):
    """Render bytes as a multi-line list of hex values, for log messages."""
    if not data:
        return "[]"
    body = "".join(f"    {byte:#x},\n" for byte in data)
    return f"[\n{body}]"


class Iso14443aProtocolError(Exception):
    """The card answered in a way the ISO 14443-A protocol does not allow."""


class _FieldEmpty(Exception):
    """A soft failure while searching: no further card answers."""


def _is_soft(exc):
    if isinstance(exc, Iso14443aProtocolError):
        return True
    return isinstance(exc, ReaderError) and exc.kind is ErrorKind.TIMEOUT


def _bcc(part):
    return reduce(operator.xor, part, 0)


def _padded(data, size):
    return bytes(data[:size]).ljust(size, b"\0")


async def _retry(op):
    last = None
    for _ in range(_RETRIES):
        try:
            return await op()
        except (ReaderError, Iso14443aProtocolError) as exc:
            last = exc
    raise last


async def _retry_until_empty(op):
    try:
        return await _retry(op)
    except (ReaderError, Iso14443aProtocolError) as exc:
        if _is_soft(exc):
            raise _FieldEmpty from exc
        raise


class Poller:
    """Finds and selects ISO 14443-A cards through a low-level reader."""

    def __init__(self, reader):
        self._reader = reader

    async def _request(self, frame, name):
        data, bits = await self._reader.transceive(b"", frame)
        if bits != 16:
            log.debug("%s response wrong length: %d bits", name, bits)
            raise Iso14443aProtocolError(f"{name} response wrong length: {bits} bits")
        return _padded(data, 2)

    async def _anticoll(self, cl, uid_part, uid_bits):
        bits = 16 + uid_bits
        tx = bytes([0x93 + cl * 2, ((bits // 8) << 4) | (bits % 8)]) + bytes(uid_part)
        data, got_bits = await self._reader.transceive(tx, AnticollFrame(bits=bits))
        rx = _padded(data, 8)

        # A collision on the first bit teaches nothing; failing avoids looping forever.
        if got_bits & 0xFF == bits:
            log.debug("anticoll: got zero new bits")
            raise Iso14443aProtocolError("anticoll: got zero new bits")
        if got_bits < 16:
            log.debug("collision too early?")
            raise Iso14443aProtocolError("collision too early")

        new_uid_bits = got_bits - 16
        uid_part[:] = rx[2:6]
        if new_uid_bits < 32:
            return new_uid_bits

        if new_uid_bits != 40:
            log.debug("anticoll: got bad new_uid_bits %d", new_uid_bits)
            raise Iso14443aProtocolError(f"anticoll: got bad new_uid_bits {new_uid_bits}")
        if _bcc(uid_part) != rx[6]:
            log.debug("bad BCC")
            raise Iso14443aProtocolError("bad BCC")
        return 32

    async def _select(self, cl, uid_part):
        tx = bytes([0x93 + cl * 2, 0x70]) + bytes(uid_part) + bytes([_bcc(uid_part)])
        data, bits = await self._reader.transceive(tx, StandardFrame(_SELECT_TIMEOUT_1FC))
        if bits != 8:
            log.debug("SELECT response wrong length: %d bits", bits)
            raise Iso14443aProtocolError(f"SELECT response wrong length: {bits} bits")
        return _padded(data, 1)[0]

    async def _hlta(self):
        await self._reader.transceive(b"\x50\x00", StandardFrame(_SELECT_TIMEOUT_1FC))

    async def _resolve_uid(self, attempt):
        uid = bytearray()
        sak = 0
        for cl in range(_MAX_CASCADE_LEVELS + 1):
            if cl == _MAX_CASCADE_LEVELS:
                log.debug("too many cascade levels")
                raise Iso14443aProtocolError("too many cascade levels")

            part = bytearray(4)
            uid_bits = 0
            while True:
                uid_bits = await attempt(partial(self._anticoll, cl, part, uid_bits))
                if uid_bits == 32:
                    break
                uid_bits += 1

            sak = await attempt(partial(self._select, cl, bytes(part)))

            if part[0] == _CASCADE_TAG:
                uid += part[1:]
            else:
                uid += part
                break
        return bytes(uid), sak

    async def select_any(self):
        """Wake up and select whichever card wins anticollision."""
        atqa = await _retry(partial(self._request, WupAFrame(), "WUPA"))
        uid, sak = await self._resolve_uid(_retry)
        log.debug("Got card! uid=%s atqa=%s sak=%02d", format_bytes(uid), format_bytes(atqa), sak)
        return Card(self._reader, uid, atqa, sak)

    async def select_by_id(self, uid):
        """Wake up and select the card with the given 4, 7 or 10 byte UID."""
        atqa = await _retry(partial(self._request, WupAFrame(), "WUPA"))

        uid = bytes(uid)
        levels = {4: 1, 7: 2, 10: 3}.get(len(uid))
        if levels is None:
            log.debug("Invalid UID length %d", len(uid))
            raise Iso14443aProtocolError(f"invalid UID length {len(uid)}")

        sak = 0
        for cl in range(levels):
            start = cl * 3
            if cl == levels - 1:
                part = uid[start:start + 4]
            else:
                part = bytes([_CASCADE_TAG]) + uid[start:start + 3]
            sak = await _retry(partial(self._select, cl, part))

        log.debug("Got card! uid=%s atqa=%s sak=%02d", format_bytes(uid), format_bytes(atqa), sak)
        return Card(self._reader, uid, atqa, sak)

    async def search(self, max_cards):
        """Return the UIDs of up to ``max_cards`` distinct cards in the field.

        Connect to one of them afterwards with :meth:`select_by_id`.
        """
        found = []
        for _ in range(max_cards * 4):
            try:
                atqa = await _retry_until_empty(partial(self._request, ReqAFrame(), "REQA"))
                uid, sak = await self._resolve_uid(_retry_until_empty)
            except _FieldEmpty:
                break

            log.debug("Got card! uid=%s atqa=%s sak=%02d", format_bytes(uid), format_bytes(atqa), sak)
            try:
                await self._hlta()
            except ReaderError:
                pass

            if uid not in found:
                found.append(uid)
                if len(found) >= max_cards:
                    break
        return found


class Card(Iso14443aReader):
    """A selected card, exchanging whole-byte standard frames."""

    def __init__(self, reader, uid, atqa, sak):
        self._reader = reader
        self._uid = bytes(uid)
        self._atqa = bytes(atqa)
        self._sak = sak

    async def transceive(self, tx, timeout_1fc):
        data, bits = await self._reader.transceive(tx, StandardFrame(timeout_1fc))
        if bits % 8:
            raise RuntimeError("last byte was not complete!")
        return bytes(data[:bits // 8])

    def uid(self):
        return self._uid

    def atqa(self):
        return self._atqa

    def sak(self):
        return self._sak