"""ISO-DEP (ISO 14443-4) block transmission over a selected ISO 14443-A card."""

from __future__ import annotations

import enum
import logging

from .traits import ErrorKind, IsoDepReader, ReaderError

log = logging.getLogger(__name__)

ATS_MAX_LEN = 32
"""Largest ATS accepted in answer to RATS, in bytes."""

RATS_TIMEOUT_1FC = 65536

# Frame sizes selectable by FSCI, including header and CRC.
_FS_TABLE = (16, 24, 32, 40, 48, 64, 96, 128, 256)

_DEFAULT_FSCI = 2
_DEFAULT_SFGI = 0
_DEFAULT_FWI = 4
_MAX_RETRIES = 10

_RATS = b"\xe0\x80"
_DESELECT = b"\xc2"
_WTX = 0xF2


class IsoDepError(Exception):
    """Base class for ISO-DEP failures."""


class IsoDepProtocolError(IsoDepError):
    """The card broke the ISO-DEP protocol."""


class CommunicationError(IsoDepError):
    """Transmission kept failing after every allowed retry."""


class TxFrameTooBigError(IsoDepError):
    """The frame to send does not fit the card's frame size."""


class RxFrameTooBigError(IsoDepError):
    """The card sent more data than the caller allowed for."""


class _Send(enum.Enum):
    DATA = enum.auto()
    ACK = enum.auto()
    NAK = enum.auto()
    WTX = enum.auto()


def _time_1fc(exponent):
    # (256 x 16 / fc) x 2^exponent
    return (256 * 16) << exponent


class IsoDepA(IsoDepReader):
    """An ISO-DEP connection to a type A card, opened with :meth:`connect`."""

    def __init__(self, card, fsc, sfgt_1fc, fwt_1fc):
        self.card = card
        # Largest frame the card accepts, header and CRC included.
        self.fsc = fsc
        # Start-up frame guard time; kept for lower layers that support it.
        self.sfgt_1fc = sfgt_1fc
        self.fwt_1fc = fwt_1fc
        self.block_num = 0

    @classmethod
    async def connect(cls, card):
        """Send RATS to ``card`` and build a connection from its ATS."""
        try:
            ats = await card.transceive(_RATS, RATS_TIMEOUT_1FC)
        except ReaderError as exc:
            log.warning("Trx RATS failed: %r", exc)
            raise

        fsci, sfgi, fwi = _DEFAULT_FSCI, _DEFAULT_SFGI, _DEFAULT_FWI
        if len(ats) >= 2:
            t0 = ats[1]
            fsci = t0 & 0x0F
            if t0 & 0x20:
                tb_idx = 3 if t0 & 0x10 else 2
                if tb_idx < len(ats):
                    tb = ats[tb_idx]
                    sfgi = tb & 0x0F
                    fwi = tb >> 4

        if fsci >= len(_FS_TABLE):
            log.warning("FSCI too high")
            raise IsoDepProtocolError(f"FSCI too high: {fsci}")

        fsc = _FS_TABLE[fsci]
        sfgt_1fc = _time_1fc(sfgi)
        fwt_1fc = _time_1fc(fwi)
        log.debug("fsc= %d, sfgt=%d/fc, fwt=%d/fc", fsc, sfgt_1fc, fwt_1fc)
        return cls(card, fsc, sfgt_1fc, fwt_1fc)

    def inner(self):
        """The underlying ISO 14443-A card."""
        return self.card

    async def deselect(self):
        """Send S(DESELECT) and check that the card acknowledges it."""
        response = await self.card.transceive(_DESELECT, self.fwt_1fc)
        if bytes(response) != _DESELECT:
            raise IsoDepProtocolError("bad DESELECT response")

    async def transceive(self, tx, max_len):
        """Send ``tx`` as I-blocks and return the reassembled response."""
        tx = bytes(tx)
        max_n = self.fsc - 3
        received = bytearray()
        rx_chaining = False
        retries = 0
        send = _Send.DATA
        wtx_mul = 0

        while True:
            fwt = self.fwt_1fc
            if send is _Send.DATA:
                chunk = tx[:max_n]
                more_blocks = len(chunk) != len(tx)
                frame = bytes([0x02 | self.block_num | (more_blocks << 4)]) + chunk
            elif send is _Send.WTX:
                fwt *= wtx_mul
                frame = bytes([_WTX, wtx_mul])
            elif send is _Send.ACK:
                frame = bytes([0xA2 | self.block_num])
            else:
                frame = bytes([0xB2 | self.block_num])

            try:
                response = bytes(await self.card.transceive(frame, fwt))
            except ReaderError as exc:
                log.warning("isodep: got error %r", exc)
                if exc.kind not in (ErrorKind.TIMEOUT, ErrorKind.CORRUPTION):
                    raise
                retries += 1
                if retries >= _MAX_RETRIES:
                    raise CommunicationError("too many failed transmissions") from exc
                send = _Send.ACK if rx_chaining else _Send.NAK
                continue

            if not response:
                log.warning("isodep: received zero len data")
                raise IsoDepProtocolError("received zero length data")

            retries = 0
            pcb = response[0]

            if pcb in (0x02, 0x03, 0x12, 0x13):
                inf = response[1:]
                if len(inf) > max_len - len(received):
                    raise RxFrameTooBigError(
                        f"response exceeds {max_len} bytes"
                    )
                received += inf
                self.block_num ^= 1
                if not pcb & 0x10:
                    return bytes(received)
                rx_chaining = True
                send = _Send.ACK
            elif pcb in (0xA2, 0xA3):
                if pcb & 1 == self.block_num:
                    if len(tx) <= max_n:
                        log.warning("isodep: got ack on last chaining block")
                        raise IsoDepProtocolError("ack on last chaining block")
                    tx = tx[max_n:]
                    self.block_num ^= 1
                send = _Send.DATA
            elif pcb == _WTX:
                if len(response) != 2:
                    log.warning("isodep: invalid S(WTX) len %d", len(response))
                    raise IsoDepProtocolError(
                        f"invalid S(WTX) length {len(response)}"
                    )
                wtx_mul = response[1] & 0x3F
                send = _Send.WTX
            else:
                log.warning("unknown rx pcb %02x", pcb)
                raise IsoDepProtocolError(f"unknown rx pcb {pcb:02x}")