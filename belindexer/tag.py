"""Envelope field tags and the rules for taking their values."""

from __future__ import annotations

import enum
from typing import Dict, List, Optional


class Tag(enum.IntEnum):
    """Field tags of an inscription envelope."""

    CONTENT_TYPE = 1
    POINTER = 2
    PARENT = 3
    METADATA = 5
    METAPROTOCOL = 7
    CONTENT_ENCODING = 9
    DELEGATE = 11
    RUNE = 13
    NOTE = 15
    UNBOUND = 66
    NOP = 255

    @property
    def key(self) -> bytes:
        """The one-byte field key of this tag."""
        return bytes([self.value])

    def chunked(self) -> bool:
        """Whether the value of this tag may be split over several fields."""
        return self is Tag.METADATA

    def take(self, fields: Dict[bytes, List[bytes]]) -> Optional[bytes]:
        """Remove and return this tag's value from ``fields``.

        Chunked tags take all their values, joined together. Other tags
        take only the first value and leave the rest in place.
        """
        if self.chunked():
            values = fields.pop(self.key, None)
            if not values:
                return None
            return b"".join(bytes(v) for v in values)

        values = fields.get(self.key)
        if not values:
            return None
        value = bytes(values.pop(0))
        if not values:
            del fields[self.key]
        return value

    def take_array(self, fields: Dict[bytes, List[bytes]]) -> List[bytes]:
        """Remove and return every value of this tag from ``fields``."""
        return [bytes(v) for v in fields.pop(self.key, [])]