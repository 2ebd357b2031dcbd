from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, FrozenSet, Iterable, List, Mapping, Optional, Tuple


@dataclass(frozen=True)
class ForeignKey:
    """column -> referenced_table.referenced_column"""
    column: str
    referenced_table: str
    referenced_column: str


@dataclass(frozen=True)
class SchemaTable:
    """
    Reference definition of one relational table.

    What it contains:
        name         -> Table name as declared
        columns      -> Ordered (column name, declared type) pairs
        primary_key  -> Primary key column names
        foreign_keys -> Outgoing foreign keys
    """
    name: str
    columns: Tuple[Tuple[str, str], ...]
    primary_key: FrozenSet[str] = frozenset()
    foreign_keys: Tuple[ForeignKey, ...] = ()

    @property
    def column_names(self) -> List[str]:
        return [name for name, _ in self.columns]

    def has_column(self, column: str) -> bool:
        wanted = column.lower()
        return any(name.lower() == wanted for name, _ in self.columns)

    def column_type(self, column: str) -> Optional[str]:
        wanted = column.lower()
        for name, declared_type in self.columns:
            if name.lower() == wanted:
                return declared_type
        return None

    def references(self, other_table: str) -> List[ForeignKey]:
        """Foreign keys of this table pointing at `other_table`."""
        target = other_table.lower()
        return [fk for fk in self.foreign_keys if fk.referenced_table.lower() == target]


@dataclass(frozen=True)
class CollectionSeed:
    """
    Reference definition of one document-store collection.

    fields holds every field name observed across the seed documents,
    nested fields included as dotted paths ("address.city").
    """
    name: str
    fields: FrozenSet[str] = frozenset()

    def has_field(self, name: str) -> bool:
        return name in self.fields or name.split(".")[0] in self.fields


class SchemaRegistry:
    """
    Read-only lookup of reference tables and collections.

    Names are matched case-insensitively, the way MySQL treats table
    names on the course's reference setup. There is no mutation API;
    with_tables() and with_collections() return new overlay registries.
    """

    def __init__(
        self,
        tables: Iterable[SchemaTable],
        collections: Iterable[CollectionSeed] = (),
    ):
        self._tables: Mapping[str, SchemaTable] = MappingProxyType(
            {t.name.lower(): t for t in tables}
        )
        self._collections: Mapping[str, CollectionSeed] = MappingProxyType(
            {c.name: c for c in collections}
        )

    @property
    def tables(self) -> Mapping[str, SchemaTable]:
        return self._tables

    @property
    def collections(self) -> Mapping[str, CollectionSeed]:
        return self._collections

    def lookup_table(self, name: str) -> Optional[SchemaTable]:
        """Find a table by name. Qualified names (db.table) use the last part."""
        return self._tables.get(name.split(".")[-1].lower())

    def has_table(self, name: str) -> bool:
        return self.lookup_table(name) is not None

    def lookup_column(self, table: str, column: str) -> bool:
        table_info = self.lookup_table(table)
        return table_info is not None and table_info.has_column(column)

    def tables_with_column(self, column: str, candidates: Iterable[str]) -> List[str]:
        """Names among `candidates` whose table defines `column`."""
        found = []
        for name in candidates:
            table_info = self.lookup_table(name)
            if table_info and table_info.has_column(column) and table_info.name not in found:
                found.append(table_info.name)
        return found

    def lookup_collection(self, name: str) -> Optional[CollectionSeed]:
        """Collections are case-sensitive, as in the document store."""
        return self._collections.get(name)

    def with_tables(self, tables: Iterable[SchemaTable]) -> "SchemaRegistry":
        """A new registry that also knows `tables` (later definitions win)."""
        merged: Dict[str, SchemaTable] = dict(self._tables)
        merged.update({t.name.lower(): t for t in tables})
        return SchemaRegistry(merged.values(), self._collections.values())

    def with_collections(self, collections: Iterable[CollectionSeed]) -> "SchemaRegistry":
        merged: Dict[str, CollectionSeed] = dict(self._collections)
        merged.update({c.name: c for c in collections})
        return SchemaRegistry(self._tables.values(), merged.values())


def seed_fields(documents: Iterable[Mapping], prefix: str = "") -> FrozenSet[str]:
    """Collect field names, nested documents as dotted paths."""
    names = set()
    for doc in documents:
        for key, value in doc.items():
            path = f"{prefix}{key}"
            names.add(path)
            if isinstance(value, Mapping):
                names.update(seed_fields([value], prefix=f"{path}."))
            elif isinstance(value, list):
                nested = [item for item in value if isinstance(item, Mapping)]
                if nested:
                    names.update(seed_fields(nested, prefix=f"{path}."))
    return frozenset(names)
