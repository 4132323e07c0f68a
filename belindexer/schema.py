"""Typed table sets with a stored schema version."""

from __future__ import annotations

import logging
import os
from dataclasses import asdict, dataclass
from typing import Any, ClassVar, Dict, Mapping, Optional, Tuple, Union

from .codecs import Codec, JsonCodec, UnitCodec
from .storage import KeyValueStore, Table

log = logging.getLogger(__name__)

TABLE_INFO_TABLE = "__TABLE_INFO_CF"
DB_INFO_TABLE = "__DB_INFO_CF"


@dataclass(frozen=True)
class TableInfo:
    """Description of the key and value types of a table."""

    key_ty_name: str
    val_ty_name: str
    key_struct_size: Optional[int]
    val_struct_size: Optional[int]

    @classmethod
    def for_codecs(cls, key_codec: Codec, value_codec: Codec) -> "TableInfo":
        return cls(
            key_ty_name=key_codec.type_name,
            val_ty_name=value_codec.type_name,
            key_struct_size=key_codec.fixed_size,
            val_struct_size=value_codec.fixed_size,
        )


@dataclass(frozen=True)
class DbInfo:
    """Metadata stored alongside the tables."""

    version: int


class DatabaseVersionError(RuntimeError):
    """Raised when the stored schema version cannot be used."""


_DB_INFO_CODEC = JsonCodec(asdict, lambda obj: DbInfo(**obj))


class TablesDefinition:
    """A set of typed tables opened together.

    Subclasses fill ``TABLES`` with attribute names mapped to a pair of
    (key codec, value codec) and set ``VERSION``.  Each table is stored
    under the upper-cased attribute name and exposed as that attribute.
    """

    TABLES: ClassVar[Mapping[str, Tuple[Codec, Codec]]] = {}
    VERSION: ClassVar[int] = 0

    def __init__(self, db: KeyValueStore) -> None:
        self.db = db
        self._tables: Dict[str, Table] = {}
        for attr, (key_codec, value_codec) in self.TABLES.items():
            table = db.table(attr.upper(), key_codec, value_codec)
            self._tables[attr] = table
            setattr(self, attr, table)

    @classmethod
    def make_tables(cls, db: KeyValueStore) -> "TablesDefinition":
        """Build the table set on an opened store."""
        return cls(db)

    @classmethod
    def open(cls, path: Union[str, os.PathLike]) -> "TablesDefinition":
        """Open the store at ``path``, checking and recording the schema version."""
        names = [TABLE_INFO_TABLE, DB_INFO_TABLE, *(attr.upper() for attr in cls.TABLES)]
        db = KeyValueStore.open_db(path, names)
        try:
            tables = cls.make_tables(db)
            db_info = db.table(DB_INFO_TABLE, UnitCodec(), _DB_INFO_CODEC)
            stored = db_info.get(None)
            if stored is not None:
                if stored.version > cls.VERSION:
                    raise DatabaseVersionError(
                        f"Version of DB '{cls.__qualname__}' is not supported: {stored.version}"
                    )
                if stored.version < cls.VERSION:
                    log.warning(
                        "Db '%s' version is outdated. Trying to upgrade from %s to %s",
                        cls.__qualname__,
                        stored.version,
                        cls.VERSION,
                    )
                    tables.migrate(stored.version)
            db_info.set(None, DbInfo(version=cls.VERSION))
        except BaseException:
            db.close()
            raise
        return tables

    def table_info(self, name: str) -> TableInfo:
        """Describe the table exposed as attribute ``name``."""
        try:
            return self._tables[name].table_info()
        except KeyError:
            raise KeyError(f"no table named {name!r}") from None

    def migrate(self, version: int) -> None:
        """Upgrade stored data from ``version``; unsupported unless overridden."""
        raise DatabaseVersionError(f"Migration from version {version} is not supported")

    def flush_all(self) -> None:
        """Flush every table."""
        for table in self._tables.values():
            table.flush()

    def close(self) -> None:
        self.db.close()

    def __enter__(self) -> "TablesDefinition":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()