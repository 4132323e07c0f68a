"""Finding inscriptions in transaction inputs."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Dict, Generic, Iterator, List, Optional, Sequence, Tuple, TypeVar

from .script import (
    OP_ENDIF,
    OP_IF,
    OP_PUSHNUM_1,
    OP_PUSHNUM_16,
    OP_PUSHNUM_NEG1,
    Instruction,
    ScriptError,
    iter_instructions,
)
from .tag import Tag
from .transaction import Transaction

PROTOCOL_ID = b"ord"

T = TypeVar("T")

_EMPTY_PUSH = Instruction.push(b"")


@dataclass
class Inscription:
    """The fields and body carried by one inscription."""

    body: Optional[bytes] = None
    content_type: Optional[bytes] = None
    content_encoding: Optional[bytes] = None
    delegate: Optional[bytes] = None
    duplicate_field: bool = False
    incomplete_field: bool = False
    metadata: Optional[bytes] = None
    metaprotocol: Optional[bytes] = None
    parents: List[bytes] = field(default_factory=list)
    pointer: Optional[bytes] = None
    rune: Optional[bytes] = None
    unrecognized_even_field: bool = False

    def content_type_str(self) -> Optional[str]:
        """The content type as text, or None if absent or not UTF-8."""
        if self.content_type is None:
            return None
        try:
            return self.content_type.decode("utf-8")
        except UnicodeDecodeError:
            return None

    def pointer_value(self) -> Optional[int]:
        """The pointer as a little-endian 64-bit number, if it fits."""
        if self.pointer is None:
            return None
        if any(self.pointer[8:]):
            return None
        return int.from_bytes(self.pointer[:8], "little")


@dataclass
class Envelope(Generic[T]):
    """An inscription envelope found in a script, raw or parsed."""

    input: int = 0
    offset: int = 0
    payload: T = None  # type: ignore[assignment]
    pushnum: bool = False
    stutter: bool = False


class ParseStatus(enum.Enum):
    """How far an inscription could be read."""

    NONE = "none"
    PARTIAL = "partial"
    COMPLETE = "complete"


@dataclass
class ParsedInscription:
    """The outcome of reading an inscription from one input."""

    status: ParseStatus
    inscription: Optional[Inscription] = None

    @classmethod
    def none(cls) -> "ParsedInscription":
        return cls(ParseStatus.NONE)

    @classmethod
    def partial(cls) -> "ParsedInscription":
        return cls(ParseStatus.PARTIAL)

    @classmethod
    def complete(cls, inscription: Inscription) -> "ParsedInscription":
        return cls(ParseStatus.COMPLETE, inscription)


def parse_envelope(raw: Envelope) -> Envelope:
    """Turn an envelope of raw pushes into one holding an Inscription."""
    payload: List[bytes] = [bytes(p) for p in raw.payload]

    body_index = next(
        (i for i, push in enumerate(payload) if i % 2 == 0 and not push), None
    )
    head = payload if body_index is None else payload[:body_index]

    fields: Dict[bytes, List[bytes]] = {}
    incomplete_field = False
    for start in range(0, len(head), 2):
        pair = head[start:start + 2]
        if len(pair) == 2:
            fields.setdefault(pair[0], []).append(pair[1])
        else:
            incomplete_field = True

    duplicate_field = any(len(values) > 1 for values in fields.values())

    content_encoding = Tag.CONTENT_ENCODING.take(fields)
    content_type = Tag.CONTENT_TYPE.take(fields)
    delegate = Tag.DELEGATE.take(fields)
    metadata = Tag.METADATA.take(fields)
    metaprotocol = Tag.METAPROTOCOL.take(fields)
    parents = Tag.PARENT.take_array(fields)
    pointer = Tag.POINTER.take(fields)
    rune = Tag.RUNE.take(fields)

    unrecognized_even_field = any(key and key[0] % 2 == 0 for key in fields)

    body = None if body_index is None else b"".join(payload[body_index + 1:])

    return Envelope(
        input=raw.input,
        offset=raw.offset,
        payload=Inscription(
            body=body,
            content_type=content_type,
            content_encoding=content_encoding,
            delegate=delegate,
            duplicate_field=duplicate_field,
            incomplete_field=incomplete_field,
            metadata=metadata,
            metaprotocol=metaprotocol,
            parents=parents,
            pointer=pointer,
            rune=rune,
            unrecognized_even_field=unrecognized_even_field,
        ),
        pushnum=raw.pushnum,
        stutter=raw.stutter,
    )


class _Cursor:
    """A peekable view of a script's instructions that defers errors."""

    def __init__(self, instructions: Iterator[Instruction]) -> None:
        self._it = instructions
        self._peeked: Optional[Instruction] = None
        self._error: Optional[ScriptError] = None
        self._has_peeked = False

    def _fetch(self) -> None:
        if self._has_peeked:
            return
        self._has_peeked = True
        try:
            self._peeked = next(self._it, None)
        except ScriptError as exc:
            self._peeked = None
            self._error = exc
            self._it = iter(())

    def peek(self) -> Optional[Instruction]:
        self._fetch()
        return self._peeked

    def next(self) -> Optional[Instruction]:
        self._fetch()
        self._has_peeked = False
        if self._error is not None:
            error, self._error = self._error, None
            raise error
        item, self._peeked = self._peeked, None
        return item

    def accept(self, instruction: Instruction) -> bool:
        if self.peek() == instruction:
            self.next()
            return True
        return False


def _envelope_from_instructions(
    cursor: _Cursor, input_index: int, offset: int, stutter: bool
) -> Tuple[bool, Optional[Envelope]]:
    if not cursor.accept(Instruction.opcode(OP_IF)):
        return cursor.peek() == _EMPTY_PUSH, None
    if not cursor.accept(Instruction.push(PROTOCOL_ID)):
        return cursor.peek() == _EMPTY_PUSH, None

    pushnum = False
    payload: List[bytes] = []
    while True:
        instruction = cursor.next()
        if instruction is None:
            return False, None
        if instruction.is_push:
            payload.append(bytes(instruction.data))
            continue
        op = instruction.op
        if op == OP_ENDIF:
            return False, Envelope(
                input=input_index,
                offset=offset,
                payload=payload,
                pushnum=pushnum,
                stutter=stutter,
            )
        if op == OP_PUSHNUM_NEG1:
            pushnum = True
            payload.append(b"\x81")
        elif OP_PUSHNUM_1 <= op <= OP_PUSHNUM_16:
            pushnum = True
            payload.append(bytes([op - OP_PUSHNUM_1 + 1]))
        else:
            return False, None


def envelopes_from_tapscript(tapscript: bytes, input_index: int) -> List[Envelope]:
    """Return the raw envelopes found in a tapscript.

    Raises ScriptError if the script is malformed.
    """
    cursor = _Cursor(iter_instructions(tapscript))
    envelopes: List[Envelope] = []
    stuttered = False
    while True:
        instruction = cursor.next()
        if instruction is None:
            break
        if instruction == _EMPTY_PUSH:
            stutter, envelope = _envelope_from_instructions(
                cursor, input_index, len(envelopes), stuttered
            )
            if envelope is not None:
                envelopes.append(envelope)
            else:
                stuttered = stutter
    return envelopes


def inscriptions_from_transaction(tx: Transaction, input_index: int) -> List[ParsedInscription]:
    """Read the inscriptions carried by one input of ``tx``."""
    if not tx.inputs:
        return [ParsedInscription.none()]

    txin = tx.inputs[input_index]
    tapscript = txin.tapscript()
    if tapscript is not None:
        try:
            envelopes = envelopes_from_tapscript(tapscript, input_index)
        except ScriptError:
            return [ParsedInscription.none()]
        return [ParsedInscription.complete(parse_envelope(env).payload) for env in envelopes]

    return [parse_legacy([txin.script_sig])]


def parse_legacy(sig_scripts: Sequence[bytes]) -> ParsedInscription:
    """Read a legacy inscription spread in numbered pieces over signature scripts."""
    scripts = list(sig_scripts)
    push_datas = decode_push_datas(scripts[0])
    if push_datas is None or len(push_datas) < 3:
        return ParsedInscription.none()
    if push_datas[0] != PROTOCOL_ID:
        return ParsedInscription.none()

    npieces = push_data_to_number(push_datas[1])
    if not npieces:
        return ParsedInscription.none()

    content_type = push_datas[2]
    pending = push_datas[3:]
    body = bytearray()
    script_index = 0

    while True:
        while True:
            if npieces == 0:
                return ParsedInscription.complete(
                    Inscription(content_type=content_type, body=bytes(body))
                )
            if len(pending) < 2:
                break
            piece = push_data_to_number(pending[0])
            if piece is None or piece != npieces - 1:
                break
            body.extend(pending[1])
            pending = pending[2:]
            npieces -= 1

        if script_index + 1 >= len(scripts):
            return ParsedInscription.partial()
        script_index += 1

        decoded = decode_push_datas(scripts[script_index])
        if decoded is None or len(decoded) < 2:
            return ParsedInscription.none()
        piece = push_data_to_number(decoded[0])
        if piece is None or piece != npieces - 1:
            return ParsedInscription.none()
        pending = decoded


def decode_push_datas(script: bytes) -> Optional[List[bytes]]:
    """Split a script made only of pushes into their data, or None."""
    data = bytes(script)
    pushes: List[bytes] = []
    pos = 0
    end = len(data)
    while pos < end:
        op = data[pos]
        if op == 0:
            pushes.append(b"")
            pos += 1
        elif 81 <= op <= 96:
            pushes.append(bytes([op - 80]))
            pos += 1
        elif 1 <= op <= 75:
            if end - pos < 1 + op:
                return None
            pushes.append(data[pos + 1:pos + 1 + op])
            pos += 1 + op
        elif op == 76:
            if end - pos < 2:
                return None
            length = data[pos + 1]
            if end - pos < 2 + length:
                return None
            pushes.append(data[pos + 2:pos + 2 + length])
            pos += 2 + length
        elif op == 77:
            if end - pos < 3:
                return None
            # The length counts the opcode byte itself as its low byte.
            length = (data[pos + 1] << 8) + data[pos]
            if end - pos < 3 + length:
                return None
            pushes.append(data[pos + 3:pos + 3 + length])
            pos += 3 + length
        elif op == 78:
            if end - pos < 5:
                return None
            length = (
                (data[pos + 3] << 24)
                + (data[pos + 2] << 16)
                + (data[pos + 1] << 8)
                + data[pos]
            )
            if end - pos < 5 + length:
                return None
            pushes.append(data[pos + 5:pos + 5 + length])
            pos += 5 + length
        else:
            return None
    return pushes


def push_data_to_number(data: bytes) -> Optional[int]:
    """Read pushed bytes as a little-endian number of at most 8 bytes."""
    if len(data) > 8:
        return None
    return int.from_bytes(bytes(data), "little")