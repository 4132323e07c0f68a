"""Reading scripts as a sequence of pushes and opcodes."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Optional

OP_0 = 0x00
OP_PUSHBYTES_75 = 0x4B
OP_PUSHDATA1 = 0x4C
OP_PUSHDATA2 = 0x4D
OP_PUSHDATA4 = 0x4E
OP_PUSHNUM_NEG1 = 0x4F
OP_PUSHNUM_1 = 0x51
OP_PUSHNUM_16 = 0x60
OP_IF = 0x63
OP_ENDIF = 0x68
OP_RETURN = 0x6A


class ScriptError(ValueError):
    """Raised when a script ends in the middle of a push."""


@dataclass(frozen=True)
class Instruction:
    """One step of a script: either pushed bytes or a bare opcode."""

    data: Optional[bytes] = None
    op: Optional[int] = None

    @classmethod
    def push(cls, data: bytes) -> "Instruction":
        return cls(data=bytes(data))

    @classmethod
    def opcode(cls, op: int) -> "Instruction":
        return cls(op=op)

    @property
    def is_push(self) -> bool:
        return self.data is not None


_PUSHDATA_WIDTH = {OP_PUSHDATA1: 1, OP_PUSHDATA2: 2, OP_PUSHDATA4: 4}


def iter_instructions(script: bytes) -> Iterator[Instruction]:
    """Yield the instructions of ``script`` in order.

    Raises ScriptError if a push runs past the end of the script.
    """
    data = bytes(script)
    pos = 0
    end = len(data)
    while pos < end:
        op = data[pos]
        pos += 1
        if op <= OP_PUSHBYTES_75:
            length = op
        elif op in _PUSHDATA_WIDTH:
            width = _PUSHDATA_WIDTH[op]
            if pos + width > end:
                raise ScriptError("early end of script")
            length = int.from_bytes(data[pos:pos + width], "little")
            pos += width
        else:
            yield Instruction.opcode(op)
            continue
        if pos + length > end:
            raise ScriptError("early end of script")
        yield Instruction.push(data[pos:pos + length])
        pos += length


def is_op_return(script: bytes) -> bool:
    """Whether ``script`` starts with OP_RETURN."""
    return len(script) > 0 and script[0] == OP_RETURN