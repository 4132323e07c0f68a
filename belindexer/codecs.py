"""Byte codecs that turn table keys and values into bytes and back."""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from typing import Any, Callable, Optional


class CodecError(ValueError):
    """Raised when a value cannot be encoded or a byte string cannot be decoded."""


class Codec(ABC):
    """Converts values of one kind to bytes and back."""

    @property
    def type_name(self) -> str:
        """A short description of the values this codec handles."""
        return type(self).__name__

    @property
    def fixed_size(self) -> Optional[int]:
        """Width in bytes of every encoded value, or None if it varies."""
        return None

    @abstractmethod
    def encode(self, value: Any) -> bytes:
        """Return the byte form of ``value``."""

    @abstractmethod
    def decode(self, data: bytes) -> Any:
        """Rebuild a value from its byte form."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.type_name})"


class UnitCodec(Codec):
    """The empty key: every value is None and encodes to no bytes."""

    @property
    def type_name(self) -> str:
        return "()"

    @property
    def fixed_size(self) -> int:
        return 0

    def encode(self, value: Any) -> bytes:
        return b""

    def decode(self, data: bytes) -> None:
        return None


class BytesCodec(Codec):
    """Raw bytes, stored as they are."""

    @property
    def type_name(self) -> str:
        return "bytes"

    def encode(self, value: Any) -> bytes:
        try:
            return bytes(value)
        except TypeError as exc:
            raise CodecError(f"cannot encode {type(value).__name__} as bytes") from exc

    def decode(self, data: bytes) -> bytes:
        return bytes(data)


class StrCodec(Codec):
    """Text stored as UTF-8."""

    @property
    def type_name(self) -> str:
        return "str"

    def encode(self, value: Any) -> bytes:
        if not isinstance(value, str):
            raise CodecError(f"expected str, got {type(value).__name__}")
        return value.encode("utf-8")

    def decode(self, data: bytes) -> str:
        try:
            return bytes(data).decode("utf-8")
        except UnicodeDecodeError as exc:
            raise CodecError(f"invalid utf-8: {exc}") from exc


class FixedBytesCodec(Codec):
    """Byte strings of one exact length."""

    def __init__(self, size: int) -> None:
        if size < 0:
            raise ValueError("size must not be negative")
        self.size = size

    @property
    def type_name(self) -> str:
        return f"bytes[{self.size}]"

    @property
    def fixed_size(self) -> int:
        return self.size

    def _check(self, data: bytes) -> bytes:
        if len(data) != self.size:
            raise CodecError(f"expected {self.size} bytes, got {len(data)}")
        return data

    def encode(self, value: Any) -> bytes:
        try:
            data = bytes(value)
        except TypeError as exc:
            raise CodecError(f"cannot encode {type(value).__name__} as bytes") from exc
        return self._check(data)

    def decode(self, data: bytes) -> bytes:
        return self._check(bytes(data))


class IntCodec(Codec):
    """Integers stored big-endian in a fixed number of bytes."""

    _SIZES = (1, 2, 4, 8, 16)

    def __init__(self, size: int, signed: bool) -> None:
        if size not in self._SIZES:
            raise ValueError(f"unsupported integer width: {size}")
        self.size = size
        self.signed = signed

    @property
    def type_name(self) -> str:
        return f"{'i' if self.signed else 'u'}{self.size * 8}"

    @property
    def fixed_size(self) -> int:
        return self.size

    def encode(self, value: Any) -> bytes:
        if not isinstance(value, int) or isinstance(value, bool):
            raise CodecError(f"expected int, got {type(value).__name__}")
        try:
            return value.to_bytes(self.size, "big", signed=self.signed)
        except OverflowError as exc:
            raise CodecError(f"{value} does not fit in {self.type_name}") from exc

    def decode(self, data: bytes) -> int:
        if len(data) != self.size:
            raise CodecError(f"expected {self.size} bytes for {self.type_name}, got {len(data)}")
        return int.from_bytes(data, "big", signed=self.signed)


class JsonCodec(Codec):
    """Structured values stored as compact JSON.

    ``to_obj`` turns a value into plain JSON data and ``from_obj`` turns
    the data back into a value; when left out, values are stored as given.
    """

    def __init__(
        self,
        to_obj: Optional[Callable[[Any], Any]] = None,
        from_obj: Optional[Callable[[Any], Any]] = None,
    ) -> None:
        self.to_obj = to_obj
        self.from_obj = from_obj

    @property
    def type_name(self) -> str:
        if self.from_obj is None:
            return "json<object>"
        name = getattr(self.from_obj, "__qualname__", type(self.from_obj).__name__)
        return f"json<{name}>"

    def encode(self, value: Any) -> bytes:
        obj = value if self.to_obj is None else self.to_obj(value)
        try:
            text = json.dumps(obj, separators=(",", ":"), sort_keys=True)
        except (TypeError, ValueError) as exc:
            raise CodecError(f"cannot encode value as json: {exc}") from exc
        return text.encode("utf-8")

    def decode(self, data: bytes) -> Any:
        try:
            obj = json.loads(bytes(data).decode("utf-8"))
            return obj if self.from_obj is None else self.from_obj(obj)
        except (UnicodeDecodeError, json.JSONDecodeError, TypeError, KeyError, ValueError) as exc:
            raise CodecError(f"cannot decode json value: {exc}") from exc


class ConsensusCodec(Codec):
    """Values of a class that knows its own wire encoding.

    The class provides ``consensus_encode(self) -> bytes`` and the class
    method ``consensus_decode(data) -> instance``.
    """

    def __init__(self, cls: type) -> None:
        self.cls = cls

    @property
    def type_name(self) -> str:
        return f"consensus<{self.cls.__qualname__}>"

    def encode(self, value: Any) -> bytes:
        try:
            return bytes(value.consensus_encode())
        except AttributeError as exc:
            raise CodecError(f"{type(value).__name__} has no consensus encoding") from exc

    def decode(self, data: bytes) -> Any:
        try:
            return self.cls.consensus_decode(bytes(data))
        except CodecError:
            raise
        except (ValueError, IndexError, EOFError) as exc:
            raise CodecError(f"cannot decode {self.cls.__qualname__}: {exc}") from exc


class MappedCodec(Codec):
    """A codec for a wrapper type, stored through another codec."""

    def __init__(
        self,
        inner: Codec,
        to_inner: Callable[[Any], Any],
        from_inner: Callable[[Any], Any],
    ) -> None:
        self.inner = inner
        self.to_inner = to_inner
        self.from_inner = from_inner

    @property
    def type_name(self) -> str:
        return f"mapped<{self.inner.type_name}>"

    @property
    def fixed_size(self) -> Optional[int]:
        return self.inner.fixed_size

    def encode(self, value: Any) -> bytes:
        return self.inner.encode(self.to_inner(value))

    def decode(self, data: bytes) -> Any:
        return self.from_inner(self.inner.decode(data))