# rnfc

Asynchronous protocol layers for talking to NFC cards over ISO 14443-A.

rnfc builds the card-level protocols on top of a reader object that you
supply. That object implements `LowLevelReader` from `rnfc.traits`: an async
`transceive(tx, frame)` that sends `tx` framed as one of `StandardFrame`,
`WupAFrame`, `ReqAFrame` or `AnticollFrame`, and returns a pair
`(data, bits)` — the received bytes and how many bits of them are valid.
On failure it raises `ReaderError` with an `ErrorKind` (`OTHER`, `TIMEOUT`
or `CORRUPTION`).

On top of that:

- `rnfc.iso14443a` — card detection and selection through `Poller`:
  `select_any()` wakes the field (WUPA) and runs cascade-level anticollision
  and SELECT; `select_by_id(uid)` selects a card with a known 4, 7 or 10 byte
  UID; `search(max_cards)` collects the UIDs of distinct cards using REQA and
  HLTA. Each step is retried up to four times. A selected card is a `Card`,
  with `uid()`, `atqa()`, `sak()` and a byte-level `transceive(tx, timeout_1fc)`.
  `format_bytes(data)` renders bytes as a list of hex values for log output.
- `rnfc.iso_dep` — the ISO-DEP (ISO 14443-4) block protocol through
  `IsoDepA`: `IsoDepA.connect(card)` sends RATS and reads the frame size and
  waiting time from the ATS; `transceive(tx, max_len)` handles I-block
  chaining in both directions, waiting-time extensions, and recovery from
  timeouts and corrupted frames with R(NAK)/R(ACK), giving up after ten
  failed attempts in a row; `deselect()` sends S(DESELECT).

## Installation

```
pip install .
```

## Usage

```python
from rnfc.iso14443a import Poller, format_bytes
from rnfc.iso_dep import IsoDepA, IsoDepError

async def read_card(reader):
    poller = Poller(reader)            # reader: a LowLevelReader
    card = await poller.select_any()
    print("uid", format_bytes(card.uid()), "sak", card.sak())

    dep = await IsoDepA.connect(card)  # sends RATS, parses the ATS
    try:
        response = await dep.transceive(bytes.fromhex("00a4040000"), 256)
    except IsoDepError as exc:
        print("exchange failed:", exc)
    else:
        print(response.hex())
    await dep.deselect()
```

To find every card in the field, `await poller.search(max_cards)` returns a
list of UIDs; connect to one of them with `await poller.select_by_id(uid)`.

## Errors

- `rnfc.traits.ReaderError` comes from the reader itself. `IsoDepA` retries
  on `TIMEOUT` and `CORRUPTION` and passes any other kind straight on, as it
  does a failed RATS.
- `rnfc.iso14443a.Iso14443aProtocolError` is raised when a card answers
  wrongly during activation (wrong response length, bad BCC, too many
  cascade levels, an invalid UID length).
- `rnfc.iso_dep.IsoDepError` is the base of `IsoDepProtocolError`,
  `CommunicationError` (retries exhausted), `TxFrameTooBigError` and
  `RxFrameTooBigError` (the response is longer than `max_len`).

## What it does not do

- It contains no reader drivers: talking to an actual reader chip is up to
  the `LowLevelReader` you provide.
- It covers type A cards only; there is no ISO 14443-B or other NFC
  technology.
- The start-up frame guard time from the ATS is stored on `IsoDepA`
  (`sfgt_1fc`) but not applied.
- There is no command-line tool.

## Running the tests

```
pip install ".[test]"
pytest
```