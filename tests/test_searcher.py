import pytest

from belindexer.codecs import ConsensusCodec
from belindexer.searcher import (
    LeakedError,
    calc_offsets,
    load_prevouts_for_block,
    output_index_for_offset,
)
from belindexer.storage import KeyValueStore
from belindexer.transaction import OutPoint, Transaction, TxIn, TxOut

A = OutPoint(b"\x01" * 32, 0)
B = OutPoint(b"\x02" * 32, 1)
C = OutPoint(b"\x03" * 32, 2)


def _tx(inputs, outputs):
    return Transaction([TxIn(op) for op in inputs], [TxOut(v) for v in outputs])


def test_offsets_without_fee():
    prevouts = {A: TxOut(100), B: TxOut(50)}
    assert calc_offsets(_tx([A, B], [150]), prevouts) == [0, 100]


def test_fee_taken_from_last_input():
    prevouts = {A: TxOut(100), B: TxOut(50)}
    assert calc_offsets(_tx([A, B], [120]), prevouts) == [0, 100]


def test_input_consumed_by_fee_is_dropped():
    prevouts = {A: TxOut(100), B: TxOut(50)}
    assert calc_offsets(_tx([A, B], [90]), prevouts) == [0]


def test_all_inputs_consumed_by_fee():
    prevouts = {A: TxOut(100)}
    assert calc_offsets(_tx([A], []), prevouts) == []


def test_missing_prevout_returns_none():
    assert calc_offsets(_tx([A, C], [10]), {A: TxOut(100)}) is None


def test_outputs_exceeding_inputs():
    with pytest.raises(ValueError):
        calc_offsets(_tx([A], [200]), {A: TxOut(100)})


def test_output_index_first_output():
    outputs = [TxOut(10), TxOut(20)]
    assert output_index_for_offset(5, outputs) == (0, 5)


def test_output_index_second_output():
    outputs = [TxOut(10), TxOut(20)]
    index, inner = output_index_for_offset(15, outputs)
    assert index == 1
    assert inner + outputs[0].value == 15


@pytest.mark.parametrize("offset", [None, 30, 1000])
def test_output_index_leaked(offset):
    with pytest.raises(LeakedError, match="leaked"):
        output_index_for_offset(offset, [TxOut(10), TxOut(20)])


@pytest.fixture
def prevouts_table(tmp_path):
    store = KeyValueStore.open_db(tmp_path / "db.sqlite", ["PREVOUTS"])
    table = store.table("PREVOUTS", ConsensusCodec(OutPoint), ConsensusCodec(TxOut))
    yield table
    store.close()


def test_load_prevouts_removes_them(prevouts_table):
    prevouts_table.extend([(A, TxOut(100, b"\x51")), (B, TxOut(50)), (C, TxOut(7))])
    coinbase = Transaction([TxIn(OutPoint.null())], [TxOut(1)])
    txs = [coinbase, _tx([A, B], [140]), _tx([A], [1])]
    loaded = load_prevouts_for_block(prevouts_table, txs)
    assert loaded == {A: TxOut(100, b"\x51"), B: TxOut(50)}
    assert [k for k, _ in prevouts_table.iter()] == [C]


def test_load_prevouts_skips_coinbase_only(prevouts_table):
    coinbase = Transaction([TxIn(OutPoint.null())], [TxOut(1)])
    assert load_prevouts_for_block(prevouts_table, [coinbase]) == {}


def test_load_prevouts_missing(prevouts_table):
    prevouts_table.set(A, TxOut(100))
    coinbase = Transaction([TxIn(OutPoint.null())], [TxOut(1)])
    with pytest.raises(LookupError, match="missing"):
        load_prevouts_for_block(prevouts_table, [coinbase, _tx([A, B], [1])])
    assert prevouts_table.get(A) == TxOut(100)