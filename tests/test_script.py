import pytest

from belindexer.script import (
    OP_ENDIF,
    OP_IF,
    OP_RETURN,
    Instruction,
    ScriptError,
    is_op_return,
    iter_instructions,
)


def test_envelope_shape():
    script = bytes([0x00, OP_IF, 0x03]) + b"ord" + bytes([OP_ENDIF])
    assert list(iter_instructions(script)) == [
        Instruction.push(b""),
        Instruction.opcode(OP_IF),
        Instruction.push(b"ord"),
        Instruction.opcode(OP_ENDIF),
    ]


def test_pushnum_is_opcode():
    result = list(iter_instructions(bytes([0x51, 0x60, 0x4F])))
    assert [i.op for i in result] == [0x51, 0x60, 0x4F]
    assert not any(i.is_push for i in result)


def test_pushdata1():
    payload = b"x" * 100
    script = bytes([0x4C, len(payload)]) + payload
    assert list(iter_instructions(script)) == [Instruction.push(payload)]


def test_pushdata2_little_endian():
    payload = bytes(range(256)) + b"ab"
    script = bytes([0x4D]) + len(payload).to_bytes(2, "little") + payload
    assert list(iter_instructions(script)) == [Instruction.push(payload)]


def test_pushdata4():
    payload = b"hello"
    script = bytes([0x4E]) + len(payload).to_bytes(4, "little") + payload
    assert list(iter_instructions(script)) == [Instruction.push(payload)]


def test_empty_pushdata_equals_op_0():
    assert list(iter_instructions(bytes([0x4C, 0x00]))) == [Instruction.push(b"")]


def test_truncated_push_raises():
    with pytest.raises(ScriptError):
        list(iter_instructions(bytes([0x05, 0x01, 0x02])))


def test_truncated_pushdata_length_raises():
    with pytest.raises(ScriptError):
        list(iter_instructions(bytes([0x4D, 0x01])))


def test_empty_script():
    assert list(iter_instructions(b"")) == []


def test_is_op_return():
    assert is_op_return(bytes([OP_RETURN, 0x01, 0x00]))
    assert not is_op_return(bytes([0x00, OP_RETURN]))
    assert not is_op_return(b"")