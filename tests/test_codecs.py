from dataclasses import dataclass

import pytest

from belindexer.codecs import (
    BytesCodec,
    CodecError,
    ConsensusCodec,
    FixedBytesCodec,
    IntCodec,
    JsonCodec,
    MappedCodec,
    StrCodec,
    UnitCodec,
)


@dataclass(frozen=True)
class Point:
    x: int
    y: int

    def consensus_encode(self) -> bytes:
        return self.x.to_bytes(2, "little") + self.y.to_bytes(2, "little")

    @classmethod
    def consensus_decode(cls, data: bytes) -> "Point":
        if len(data) != 4:
            raise ValueError("bad length")
        return cls(int.from_bytes(data[:2], "little"), int.from_bytes(data[2:], "little"))


def test_unit_codec_is_empty():
    codec = UnitCodec()
    assert codec.encode(None) == b""
    assert codec.decode(b"") is None
    assert codec.fixed_size == 0


def test_bytes_round_trip():
    codec = BytesCodec()
    assert codec.decode(codec.encode(b"\x00abc\xff")) == b"\x00abc\xff"


def test_str_round_trip_and_bad_utf8():
    codec = StrCodec()
    assert codec.decode(codec.encode("héllo")) == "héllo"
    with pytest.raises(CodecError):
        codec.decode(b"\xff\xfe")


def test_str_rejects_non_text():
    with pytest.raises(CodecError):
        StrCodec().encode(5)


def test_fixed_bytes_length_checked():
    codec = FixedBytesCodec(4)
    assert codec.decode(codec.encode(b"abcd")) == b"abcd"
    with pytest.raises(CodecError):
        codec.decode(b"abc")
    with pytest.raises(CodecError):
        codec.encode(b"abcde")


def test_int_is_big_endian():
    codec = IntCodec(4, False)
    assert codec.encode(1) == b"\x00\x00\x00\x01"


@pytest.mark.parametrize(
    "size,signed,value",
    [(1, False, 255), (2, True, -300), (4, False, 26371), (8, True, -1), (16, False, 2**127)],
)
def test_int_round_trip(size, signed, value):
    codec = IntCodec(size, signed)
    data = codec.encode(value)
    assert len(data) == size
    assert codec.decode(data) == value


def test_unsigned_int_order_matches_byte_order():
    codec = IntCodec(4, False)
    values = [70000, 3, 256, 0, 65535]
    assert sorted(values, key=codec.encode) == sorted(values)


def test_int_overflow_and_wrong_length():
    codec = IntCodec(2, False)
    with pytest.raises(CodecError):
        codec.encode(70000)
    with pytest.raises(CodecError):
        codec.encode(-1)
    with pytest.raises(CodecError):
        codec.decode(b"\x00")


def test_int_unsupported_width():
    with pytest.raises(ValueError):
        IntCodec(3, False)


def test_int_type_name():
    assert IntCodec(4, False).type_name == "u32"
    assert IntCodec(8, True).type_name == "i64"


def test_json_round_trip_with_converters():
    codec = JsonCodec(lambda p: {"x": p.x, "y": p.y}, lambda o: Point(**o))
    assert codec.decode(codec.encode(Point(3, -4))) == Point(3, -4)


def test_json_default_identity():
    codec = JsonCodec()
    value = {"a": [1, 2, None], "b": "text"}
    assert codec.decode(codec.encode(value)) == value


def test_json_decode_error():
    with pytest.raises(CodecError):
        JsonCodec().decode(b"{not json")


def test_json_encode_error():
    with pytest.raises(CodecError):
        JsonCodec().encode(object())


def test_consensus_round_trip_and_error():
    codec = ConsensusCodec(Point)
    assert codec.decode(codec.encode(Point(10, 20))) == Point(10, 20)
    with pytest.raises(CodecError):
        codec.decode(b"\x01")


def test_mapped_codec_wraps_inner():
    codec = MappedCodec(StrCodec(), lambda s: s.lower(), lambda s: s.upper())
    assert codec.encode("AbCd") == StrCodec().encode("abcd")
    assert codec.decode(codec.encode("AbCd")) == "ABCD"
    assert MappedCodec(IntCodec(8, False), int, int).fixed_size == 8