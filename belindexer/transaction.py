"""Transactions, outpoints and inscription locations."""

from __future__ import annotations

import hashlib
import re
import struct
from dataclasses import dataclass, field
from typing import Optional, Sequence, Tuple

TAPROOT_ANNEX_PREFIX = 0x50
NULL_TXID = bytes(32)
_UINT_RE = re.compile(r"\+?[0-9]+")


def txid_to_hex(txid: bytes) -> str:
    """Render a txid in its usual byte-reversed hex form."""
    return bytes(txid)[::-1].hex()


def txid_from_hex(text: str) -> bytes:
    """Parse a byte-reversed hex txid into its internal bytes."""
    if len(text) != 64:
        raise ValueError("txid must have 64 hex digits")
    try:
        raw = bytes.fromhex(text)
    except ValueError as exc:
        raise ValueError(f"invalid txid: {text!r}") from exc
    if len(raw) != 32:
        raise ValueError(f"invalid txid: {text!r}")
    return raw[::-1]


def encode_varint(n: int) -> bytes:
    """Encode a compact size integer."""
    if n < 0xFD:
        return bytes([n])
    if n <= 0xFFFF:
        return b"\xfd" + n.to_bytes(2, "little")
    if n <= 0xFFFFFFFF:
        return b"\xfe" + n.to_bytes(4, "little")
    return b"\xff" + n.to_bytes(8, "little")


class _Reader:
    def __init__(self, data: bytes) -> None:
        self.data = bytes(data)
        self.pos = 0

    def take(self, n: int) -> bytes:
        if self.pos + n > len(self.data):
            raise ValueError("unexpected end of data")
        chunk = self.data[self.pos:self.pos + n]
        self.pos += n
        return chunk

    def uint(self, n: int) -> int:
        return int.from_bytes(self.take(n), "little")

    def varint(self) -> int:
        first = self.uint(1)
        for marker, width, minimum in ((0xFD, 2, 0xFD), (0xFE, 4, 0x10000), (0xFF, 8, 0x100000000)):
            if first == marker:
                value = self.uint(width)
                if value < minimum:
                    raise ValueError("non-minimal varint")
                return value
        return first


@dataclass(frozen=True, order=True)
class OutPoint:
    """A reference to one output of a transaction."""

    txid: bytes
    vout: int

    def __post_init__(self) -> None:
        if len(self.txid) != 32:
            raise ValueError("txid must be 32 bytes")

    @classmethod
    def null(cls) -> "OutPoint":
        return cls(NULL_TXID, 0xFFFFFFFF)

    @property
    def is_null(self) -> bool:
        return self.txid == NULL_TXID and self.vout == 0xFFFFFFFF

    def __str__(self) -> str:
        return f"{txid_to_hex(self.txid)}:{self.vout}"

    def consensus_encode(self) -> bytes:
        return bytes(self.txid) + struct.pack("<I", self.vout)

    @classmethod
    def _read(cls, reader: _Reader) -> "OutPoint":
        return cls(reader.take(32), reader.uint(4))

    @classmethod
    def consensus_decode(cls, data: bytes) -> "OutPoint":
        return cls._read(_Reader(data))


@dataclass(frozen=True)
class TxOut:
    """An output: an amount and the script that locks it."""

    value: int
    script_pubkey: bytes = b""

    def consensus_encode(self) -> bytes:
        script = bytes(self.script_pubkey)
        return struct.pack("<Q", self.value) + encode_varint(len(script)) + script

    @classmethod
    def _read(cls, reader: _Reader) -> "TxOut":
        value = reader.uint(8)
        script = reader.take(reader.varint())
        return cls(value, script)

    @classmethod
    def consensus_decode(cls, data: bytes) -> "TxOut":
        return cls._read(_Reader(data))


@dataclass(frozen=True)
class TxIn:
    """An input spending a previous output."""

    previous_output: OutPoint
    script_sig: bytes = b""
    sequence: int = 0xFFFFFFFF
    witness: Tuple[bytes, ...] = ()

    def tapscript(self) -> Optional[bytes]:
        """Return the script of a script-path spend, if the witness has one."""
        count = len(self.witness)
        if count == 0:
            return None
        last = self.witness[-1]
        has_annex = count >= 2 and len(last) > 0 and last[0] == TAPROOT_ANNEX_PREFIX
        pos_from_last = 3 if has_annex else 2
        if count < pos_from_last:
            return None
        return bytes(self.witness[count - pos_from_last])

    def consensus_encode(self) -> bytes:
        script = bytes(self.script_sig)
        return (
            self.previous_output.consensus_encode()
            + encode_varint(len(script))
            + script
            + struct.pack("<I", self.sequence)
        )


@dataclass
class Transaction:
    """A transaction with its inputs and outputs."""

    inputs: Sequence[TxIn] = field(default_factory=tuple)
    outputs: Sequence[TxOut] = field(default_factory=tuple)
    version: int = 1
    lock_time: int = 0

    def is_coinbase(self) -> bool:
        """Whether this is the coinbase transaction of a block."""
        return len(self.inputs) == 1 and self.inputs[0].previous_output.is_null

    def encode_legacy(self) -> bytes:
        """Serialize without witness data."""
        parts = [struct.pack("<i", self.version), encode_varint(len(self.inputs))]
        parts.extend(txin.consensus_encode() for txin in self.inputs)
        parts.append(encode_varint(len(self.outputs)))
        parts.extend(txout.consensus_encode() for txout in self.outputs)
        parts.append(struct.pack("<I", self.lock_time))
        return b"".join(parts)

    def txid(self) -> bytes:
        """The transaction id in internal byte order."""
        return hashlib.sha256(hashlib.sha256(self.encode_legacy()).digest()).digest()


def _parse_uint(text: str, bits: int, message: str) -> int:
    if not _UINT_RE.fullmatch(text):
        raise ValueError(message)
    value = int(text)
    if value >= 1 << bits:
        raise ValueError(message)
    return value


@dataclass(frozen=True, order=True)
class Location:
    """A position inside an output: an outpoint and an offset into its value."""

    outpoint: OutPoint
    offset: int

    @classmethod
    def zero(cls) -> "Location":
        return cls(OutPoint(NULL_TXID, 0), 0)

    @classmethod
    def parse(cls, text: str) -> "Location":
        """Parse ``txid:vout:offset``."""
        items = text.split(":")
        if len(items) < 1:
            raise ValueError("Invalid location")
        try:
            txid = txid_from_hex(items[0])
        except ValueError:
            raise ValueError("Invalid txid") from None
        if len(items) < 2:
            raise ValueError("Invalid location")
        vout = _parse_uint(items[1], 32, "Invalid vout")
        if len(items) < 3:
            raise ValueError("Invalid location")
        offset = _parse_uint(items[2], 64, "Invalid offset")
        return cls(OutPoint(txid, vout), offset)

    def __str__(self) -> str:
        return f"{txid_to_hex(self.outpoint.txid)}i{self.outpoint.vout}i{self.offset}"