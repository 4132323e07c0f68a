"""Tracking satoshi offsets from inputs into outputs."""

from __future__ import annotations

import itertools
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from .storage import Table
from .transaction import OutPoint, Transaction, TxOut


class LeakedError(ValueError):
    """Raised when an offset falls outside every output of a transaction."""


def calc_offsets(tx: Transaction, prevouts: Mapping[OutPoint, TxOut]) -> Optional[List[int]]:
    """Return the starting offset of each input within the outputs.

    The fee is taken from the last inputs first; inputs fully spent on
    the fee get no offset. Returns None if any spent output is unknown.
    """
    values = []
    for txin in tx.inputs:
        prevout = prevouts.get(txin.previous_output)
        if prevout is None:
            return None
        values.append(prevout.value)

    fee = sum(values) - sum(out.value for out in tx.outputs)
    if fee < 0:
        raise ValueError("transaction outputs exceed its inputs")

    while values:
        last = values.pop()
        if last > fee:
            values.append(last - fee)
            break
        fee -= last

    if not values:
        return []
    return list(itertools.accumulate(values[:-1], initial=0))


def output_index_for_offset(offset: Optional[int], outputs: Sequence[TxOut]) -> Tuple[int, int]:
    """Return the output holding ``offset`` and the offset within it."""
    if offset is None:
        raise LeakedError("leaked")
    for index, out in enumerate(outputs):
        if offset < out.value:
            return index, offset
        offset -= out.value
    raise LeakedError("leaked")


def load_prevouts_for_block(prevouts_table: Table, txs: Iterable[Transaction]) -> Dict[OutPoint, TxOut]:
    """Load and delete the outputs spent by a block's non-coinbase transactions."""
    keys = list(
        dict.fromkeys(
            txin.previous_output
            for tx in itertools.islice(txs, 1, None)
            for txin in tx.inputs
        )
    )
    if not keys:
        return {}

    values = prevouts_table.multi_get(keys)
    if any(value is None for value in values):
        raise LookupError("Some prevouts are missing")

    prevouts_table.remove_batch(keys)
    return dict(zip(keys, values))