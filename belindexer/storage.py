"""An ordered key/value store of named tables kept in one SQLite file."""

from __future__ import annotations

import os
import sqlite3
import threading
from typing import Any, Callable, Iterable, Iterator, Optional, Tuple, Union

from .codecs import Codec, CodecError


class StorageError(RuntimeError):
    """Raised when a table is missing or stored bytes cannot be decoded."""


def _quote(name: str) -> str:
    return '"' + name.replace('"', '""') + '"'


class KeyValueStore:
    """A set of named tables whose keys are kept in byte order."""

    def __init__(self, connection: sqlite3.Connection, path: str) -> None:
        self._conn = connection
        self._lock = threading.RLock()
        self.path = path
        self._tables = {
            row[0]
            for row in connection.execute("SELECT name FROM sqlite_master WHERE type = 'table'")
        }

    @classmethod
    def open_db(cls, path: Union[str, os.PathLike], tables: Iterable[str]) -> "KeyValueStore":
        """Open or create the store at ``path``, creating any missing tables."""
        path_str = os.fspath(path)
        conn = sqlite3.connect(path_str, check_same_thread=False)
        store = cls(conn, path_str)
        with store._lock:
            for name in tables:
                if name in store._tables:
                    continue
                conn.execute(
                    f"CREATE TABLE IF NOT EXISTS {_quote(name)} "
                    "(key BLOB PRIMARY KEY NOT NULL, value BLOB NOT NULL) WITHOUT ROWID"
                )
                store._tables.add(name)
            conn.commit()
        return store

    def table(self, name: str, key_codec: Codec, value_codec: Codec) -> "Table":
        """Return a typed view of the table ``name``."""
        if name not in self._tables:
            raise StorageError(f"table '{name}' does not exist")
        return Table(self, name, key_codec, value_codec)

    def close(self) -> None:
        """Commit pending writes and close the store."""
        with self._lock:
            self._conn.commit()
            self._conn.close()

    def __enter__(self) -> "KeyValueStore":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()


class Table:
    """A typed view of one table in a :class:`KeyValueStore`."""

    def __init__(self, store: KeyValueStore, name: str, key_codec: Codec, value_codec: Codec) -> None:
        self.store = store
        self.name = name
        self.key_codec = key_codec
        self.value_codec = value_codec
        self._sql_name = _quote(name)

    def __repr__(self) -> str:
        return f"Table({self.name!r}, {self.key_codec.type_name} => {self.value_codec.type_name})"

    def _fail(self, op: str, exc: Exception) -> StorageError:
        return StorageError(f"{op} '{self.name}': {exc}")

    def _decode_key(self, data: bytes, op: str) -> Any:
        try:
            return self.key_codec.decode(data)
        except CodecError as exc:
            raise self._fail(f"{op} key", exc) from exc

    def _decode_value(self, data: bytes, op: str) -> Any:
        try:
            return self.value_codec.decode(data)
        except CodecError as exc:
            raise self._fail(f"{op} val", exc) from exc

    def table_info(self):
        """Describe the key and value types of this table."""
        from .schema import TableInfo

        return TableInfo.for_codecs(self.key_codec, self.value_codec)

    def get(self, key: Any) -> Any:
        """Return the value stored under ``key``, or None."""
        raw = self.key_codec.encode(key)
        with self.store._lock:
            row = self.store._conn.execute(
                f"SELECT value FROM {self._sql_name} WHERE key = ?", (raw,)
            ).fetchone()
        if row is None:
            return None
        return self._decode_value(row[0], "get")

    def multi_get(self, keys: Iterable[Any]) -> list:
        """Return the values for ``keys`` in order, None where missing."""
        return [self.get(key) for key in keys]

    def set(self, key: Any, value: Any) -> None:
        """Store ``value`` under ``key``."""
        raw_key = self.key_codec.encode(key)
        raw_value = self.value_codec.encode(value)
        with self.store._lock:
            self.store._conn.execute(
                f"INSERT OR REPLACE INTO {self._sql_name} (key, value) VALUES (?, ?)",
                (raw_key, raw_value),
            )
            self.store._conn.commit()

    def remove(self, key: Any) -> None:
        """Delete ``key`` if present."""
        raw = self.key_codec.encode(key)
        with self.store._lock:
            self.store._conn.execute(f"DELETE FROM {self._sql_name} WHERE key = ?", (raw,))
            self.store._conn.commit()

    def _rows(self, sql: str, params: Tuple = ()) -> list:
        with self.store._lock:
            return self.store._conn.execute(sql, params).fetchall()

    def iter(self) -> Iterator[Tuple[Any, Any]]:
        """Yield every (key, value) pair in ascending key byte order."""
        for raw_key, raw_value in self._rows(
            f"SELECT key, value FROM {self._sql_name} ORDER BY key ASC"
        ):
            yield self._decode_key(raw_key, "iter"), self._decode_value(raw_value, "iter")

    def __iter__(self) -> Iterator[Tuple[Any, Any]]:
        return self.iter()

    def range(
        self,
        start: Optional[Any] = None,
        end: Optional[Any] = None,
        reversed: bool = False,
        start_inclusive: bool = True,
        end_inclusive: bool = False,
    ) -> Iterator[Tuple[Any, Any]]:
        """Yield pairs whose keys lie between ``start`` and ``end``.

        A bound of None leaves that side open.  By default the range holds
        ``start`` and stops before ``end``; with ``reversed`` the pairs come
        in descending key order.
        """
        clauses = []
        params = []
        if start is not None:
            clauses.append("key >= ?" if start_inclusive else "key > ?")
            params.append(self.key_codec.encode(start))
        if end is not None:
            clauses.append("key <= ?" if end_inclusive else "key < ?")
            params.append(self.key_codec.encode(end))
        where = f" WHERE {' AND '.join(clauses)}" if clauses else ""
        order = "DESC" if reversed else "ASC"
        rows = self._rows(
            f"SELECT key, value FROM {self._sql_name}{where} ORDER BY key {order}", tuple(params)
        )
        for raw_key, raw_value in rows:
            yield self._decode_key(raw_key, "range"), self._decode_value(raw_value, "range")

    def retain(self, predicate: Callable[[Any, Any], bool]) -> None:
        """Delete every pair for which ``predicate(key, value)`` is false.

        Entries whose bytes cannot be decoded are left in place.
        """
        doomed = []
        for raw_key, raw_value in self._rows(f"SELECT key, value FROM {self._sql_name}"):
            try:
                key = self.key_codec.decode(raw_key)
                value = self.value_codec.decode(raw_value)
            except CodecError:
                continue
            if not predicate(key, value):
                doomed.append((raw_key,))
        with self.store._lock:
            self.store._conn.executemany(f"DELETE FROM {self._sql_name} WHERE key = ?", doomed)
            self.store._conn.commit()

    def flush(self) -> None:
        """Make all writes to the store durable."""
        with self.store._lock:
            self.store._conn.commit()

    def extend(self, items: Iterable[Tuple[Any, Any]]) -> None:
        """Store many (key, value) pairs in one batch."""
        rows = [(self.key_codec.encode(k), self.value_codec.encode(v)) for k, v in items]
        with self.store._lock:
            self.store._conn.executemany(
                f"INSERT OR REPLACE INTO {self._sql_name} (key, value) VALUES (?, ?)", rows
            )
            self.store._conn.commit()

    def remove_batch(self, keys: Iterable[Any]) -> None:
        """Delete many keys in one batch."""
        rows = [(self.key_codec.encode(k),) for k in keys]
        with self.store._lock:
            self.store._conn.executemany(f"DELETE FROM {self._sql_name} WHERE key = ?", rows)
            self.store._conn.commit()