# belindexer

This package gives you the building blocks for an inscription indexer on a
Bellscoin-style chain. It has no runtime dependencies and uses only the
standard library.

## Modules

- `belindexer.codecs` turns keys and values into bytes and back.
  - `UnitCodec` handles the empty key.
  - `BytesCodec` and `StrCodec` (UTF-8) handle raw bytes and text.
  - `FixedBytesCodec(size)` handles byte strings of one exact length.
  - `IntCodec(size, signed)` stores integers big-endian in 1, 2, 4, 8 or 16
    bytes.
  - `JsonCodec(to_obj, from_obj)` stores values as compact JSON.
  - `ConsensusCodec(cls)` uses a class's own `consensus_encode` and
    `consensus_decode`.
  - `MappedCodec(inner, to_inner, from_inner)` stores a wrapper type through
    another codec.

  When a value cannot be encoded, or bytes cannot be decoded, a `CodecError`
  is raised.

- `belindexer.storage` provides `KeyValueStore`, which keeps named tables in
  one SQLite file. Rows are ordered by the bytes of their keys.
  - `KeyValueStore.open_db(path, tables)` creates any tables that are
    missing.
  - `store.table(name, key_codec, value_codec)` returns a typed `Table`. It
    raises `StorageError` for an unknown table.
  - A `Table` has `get`, `multi_get`, `set`, `remove`, `iter`, `extend`,
    `remove_batch`, `flush` and `table_info`.
  - `range(start, end, reversed, start_inclusive, end_inclusive)` takes
    bounds that are open when `None`. By default it includes the start and
    excludes the end.
  - `retain(predicate)` deletes the pairs for which the predicate is false.
  - If stored bytes fail to decode while reading, `StorageError` is raised.

- `belindexer.schema` provides `TablesDefinition`, a versioned set of tables.
  - In a subclass, fill `TABLES` with attribute names mapped to
    `(key codec, value codec)` pairs, and set `VERSION`. Each table is stored
    under its upper-cased name and is available as that attribute.
  - `open(path)` reads the stored `DbInfo`. If the stored version is older,
    it calls `migrate`, which raises `DatabaseVersionError` unless you
    override it. If the stored version is newer, it raises
    `DatabaseVersionError`. It then records the current version.
  - `table_info(name)` returns a `TableInfo`.
  - `flush_all()` flushes every table.
  - `close()` closes the store, and the set can be used as a context manager.

- `belindexer.script` reads scripts.
  - `iter_instructions(script)` yields `Instruction`s, each either a push or
    an opcode. It raises `ScriptError` when a push runs past the end of the
    script.
  - `is_op_return(script)` tells whether a script starts with OP_RETURN.

- `belindexer.transaction` provides `OutPoint`, `TxOut`, `TxIn`,
  `Transaction` and `Location`.
  - `OutPoint` and `TxOut` have consensus encoding and decoding.
  - `TxIn.tapscript()` returns the script of a script-path witness.
  - `Transaction` has `is_coinbase()`, `encode_legacy()` and `txid()`. The
    txid is a double SHA-256 of the encoding without witness data.
  - A `Location` prints as `<txid>i<vout>i<offset>`.
    `Location.parse("<txid>:<vout>:<offset>")` reads one. `Location.zero()`
    is the all-zero location.

- `belindexer.tag` provides `Tag`, the envelope field tags, with `take` and
  `take_array` for pulling values out of a field map.

- `belindexer.media` provides `Media` and `media_from_content_type`, which
  matches content types exactly. `content_type_extensions` gives the file
  extensions for a content type. Both raise `ValueError` for an unknown
  type.

- `belindexer.searcher` tracks where values go.
  - `calc_offsets(tx, prevouts)` gives where each input's value starts once
    the fee is taken from the last inputs. It returns `None` if a spent
    output is unknown.
  - `output_index_for_offset(offset, outputs)` maps an offset to
    `(output index, offset within it)`. It raises `LeakedError` when the
    offset falls past every output.
  - `load_prevouts_for_block(prevouts_table, txs)` loads the outputs spent by
    a block's non-coinbase transactions and deletes them from the table. It
    raises `LookupError` if any are missing.

- `belindexer.inscription` finds inscriptions.
  - `envelopes_from_tapscript` finds raw `Envelope`s in a tapscript.
  - `parse_envelope` turns a raw envelope into an `Inscription`.
  - `parse_legacy` reads numbered-piece inscriptions from signature scripts,
    using `decode_push_datas` and `push_data_to_number`.
  - `inscriptions_from_transaction(tx, input_index)` picks the right reader
    for one input and returns `ParsedInscription`s. Each has a `ParseStatus`
    of `NONE`, `PARTIAL` or `COMPLETE`.

## Example

```python
from belindexer.codecs import IntCodec, StrCodec
from belindexer.storage import KeyValueStore

store = KeyValueStore.open_db("data.sqlite", ["BLOCK_HASHES"])
hashes = store.table("BLOCK_HASHES", IntCodec(4, False), StrCodec())
hashes.set(1, "aa")
hashes.set(2, "bb")
assert list(hashes.range(1, 2, reversed=True, end_inclusive=True)) == [(2, "bb"), (1, "aa")]
store.close()
```

## What it does not do

This package is a set of parts, not a running indexer. It does not include:

- a node RPC client or block syncing;
- token deploy, mint or transfer accounting;
- balance or holder tracking;
- reorganisation rollback;
- an HTTP API.

You put those together from the parts above.

## Running the tests

```
pip install -e .[test]
pytest
```