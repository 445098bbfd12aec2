import pytest

from rnfc.traits import (
    AnticollFrame,
    ErrorKind,
    Frame,
    Iso14443aReader,
    IsoDepReader,
    LowLevelReader,
    ReaderError,
    ReqAFrame,
    StandardFrame,
    WupAFrame,
)


def test_reader_error_keeps_kind():
    err = ReaderError(ErrorKind.TIMEOUT)
    assert err.kind is ErrorKind.TIMEOUT


def test_reader_error_accepts_kind_value():
    err = ReaderError("corruption", "bad crc")
    assert err.kind is ErrorKind.CORRUPTION
    assert str(err) == "bad crc"


def test_reader_error_rejects_unknown_kind():
    with pytest.raises(ValueError):
        ReaderError("nonsense")


def test_reader_error_default_message_is_kind():
    assert str(ReaderError(ErrorKind.OTHER)) == ErrorKind.OTHER.value


def test_frames_compare_by_value():
    assert StandardFrame(65536) == StandardFrame(timeout_1fc=65536)
    assert AnticollFrame(bits=16) != AnticollFrame(bits=17)
    assert len({WupAFrame(), WupAFrame(), ReqAFrame()}) == 2


def test_frames_keep_their_fields():
    standard = StandardFrame(1234)
    anticoll = AnticollFrame(21)
    assert standard.timeout_1fc == 1234
    assert anticoll.bits == 21
    assert all(isinstance(f, Frame) for f in (standard, anticoll, WupAFrame(), ReqAFrame()))


def test_frames_are_immutable():
    frame = AnticollFrame(bits=16)
    with pytest.raises(AttributeError):
        frame.bits = 20
    assert frame.bits == 16


@pytest.mark.parametrize("cls", [LowLevelReader, Iso14443aReader, IsoDepReader])
def test_interfaces_are_abstract(cls):
    with pytest.raises(TypeError):
        cls()