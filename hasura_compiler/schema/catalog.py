# Copyright 2019-present Kensho Technologies, LLC.
from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Iterator, Mapping, Optional, Tuple

from ..exceptions import CatalogNotInitializedError, NotFoundError


# Native (udt) column types whose GraphQL scalar name differs from the native type name.
# Every other native type is exposed by the endpoint as a scalar of the same name, e.g. "uuid".
NATIVE_TYPE_TO_GRAPHQL_SCALAR = {
    "bool": "Boolean",
    "bpchar": "String",
    "float4": "Float",
    "int2": "smallint",
    "int4": "Int",
    "int8": "bigint",
    "text": "String",
    "varchar": "String",
}

VIEW_TABLE_TYPE = "VIEW"

# Tables of this schema are exposed under their own names. Tables of any other schema are exposed
# under "<schema>_<table>".
DEFAULT_SCHEMA_NAME = "public"


def get_graphql_scalar_name(native_type: str) -> str:
    """Return the name of the GraphQL scalar type the endpoint uses for the native column type."""
    return NATIVE_TYPE_TO_GRAPHQL_SCALAR.get(native_type, native_type)


@dataclass(frozen=True)
class Field:
    """A column of a table, as reported by introspection."""

    name: str
    logical_type: str  # information_schema data_type, e.g. "integer" or "USER-DEFINED"
    native_type: str  # information_schema udt_name, e.g. "int4"

    @property
    def graphql_type_name(self) -> str:
        """Return the name of the GraphQL scalar type of this column."""
        return get_graphql_scalar_name(self.native_type)


@dataclass(frozen=True)
class TableTypeNames:
    """The GraphQL type and root field names the endpoint generates for a table."""

    bool_exp: str
    order_by: str
    select_column: str
    insert_input: str
    on_conflict: str
    set_input: str
    inc_input: str
    by_pk_field: str

    @classmethod
    def for_table(cls, table_name: str) -> "TableTypeNames":
        """Derive the generated names for the table with the given name."""
        return cls(
            bool_exp=f"{table_name}_bool_exp",
            order_by=f"{table_name}_order_by",
            select_column=f"{table_name}_select_column",
            insert_input=f"{table_name}_insert_input",
            on_conflict=f"{table_name}_on_conflict",
            set_input=f"{table_name}_set_input",
            inc_input=f"{table_name}_inc_input",
            by_pk_field=f"{table_name}_by_pk",
        )


class Table:
    """A table or view of the database, with its columns and primary key.

    Columns and primary key entries are added while introspection rows are processed. After
    finalize() is called, the table is read-only.
    """

    def __init__(
        self, name: str, table_type: str, schema_name: str = DEFAULT_SCHEMA_NAME
    ) -> None:
        """Create a new empty table with the given name and information_schema table_type."""
        self.name = name
        self.table_type = table_type
        self.schema_name = schema_name
        self._fields: Dict[str, Field] = {}
        self._primary_key_positions: Dict[str, int] = {}

        # Set by finalize().
        self._primary_key: Optional[Tuple[str, ...]] = None
        self._type_names: Optional[TableTypeNames] = None

    def __repr__(self) -> str:
        """Return a human-readable representation of the table."""
        return (
            "Table(name={!r}, table_type={!r}, schema_name={!r}, fields={}, primary_key={})".format(
                self.name, self.table_type, self.schema_name, list(self._fields), self.primary_key
            )
        )

    @property
    def is_finalized(self) -> bool:
        """Return True if the table has been finalized and may no longer be modified."""
        return self._type_names is not None

    @property
    def graphql_name(self) -> str:
        """Return the name of the GraphQL type of the table, which is also its root field name."""
        if self.schema_name == DEFAULT_SCHEMA_NAME:
            return self.name
        return "{}_{}".format(self.schema_name, self.name)

    @property
    def is_view(self) -> bool:
        """Return True if the table is a view rather than a base table."""
        return self.table_type == VIEW_TABLE_TYPE

    @property
    def fields(self) -> Mapping[str, Field]:
        """Return a read-only mapping of column name to Field."""
        return MappingProxyType(self._fields)

    @property
    def field_names(self) -> Tuple[str, ...]:
        """Return the column names of the table, in introspection order."""
        return tuple(self._fields)

    @property
    def primary_key(self) -> Tuple[str, ...]:
        """Return the primary key column names, ordered by their position within the key."""
        if self._primary_key is not None:
            return self._primary_key
        return tuple(
            sorted(self._primary_key_positions, key=self._primary_key_positions.__getitem__)
        )

    @property
    def type_names(self) -> TableTypeNames:
        """Return the GraphQL names the endpoint generates for this table."""
        if self._type_names is None:
            raise CatalogNotInitializedError(
                "The generated names of table {} are not available before it is "
                "finalized.".format(self.name)
            )
        return self._type_names

    def _check_not_finalized(self) -> None:
        if self.is_finalized:
            raise AssertionError(
                "Attempted to modify table {} after it was finalized.".format(self.name)
            )

    def set_field(self, field: Field) -> None:
        """Add the column to the table. A repeated column name replaces the earlier one."""
        self._check_not_finalized()
        self._fields[field.name] = field

    def set_primary_key_column(self, column_name: str, position: int) -> None:
        """Record that the column is part of the primary key, at the given 1-based position."""
        self._check_not_finalized()
        self._primary_key_positions[column_name] = position

    def finalize(self) -> None:
        """Derive the table's generated names and make it read-only."""
        self._check_not_finalized()
        self._primary_key = self.primary_key
        self._type_names = TableTypeNames.for_table(self.graphql_name)


class Catalog:
    """The in-memory model of the database tables exposed by the GraphQL endpoint.

    The catalog is populated in three passes (tables, then columns, then primary keys), since
    column and primary key information refers to tables that must already be registered. Once
    finalize_all() has been called the catalog is read-only, and only then may tables be looked up.
    """

    def __init__(self) -> None:
        """Create a new empty catalog."""
        self._tables: Dict[str, Table] = {}
        self._ready = False

    def __contains__(self, table_name: object) -> bool:
        """Return True if a table with the given name is registered."""
        return table_name in self._tables

    def __iter__(self) -> Iterator[Table]:
        """Iterate over the tables of the catalog, in registration order."""
        return iter(self._tables.values())

    def __len__(self) -> int:
        """Return the number of registered tables."""
        return len(self._tables)

    @property
    def is_ready(self) -> bool:
        """Return True if the catalog has been finalized."""
        return self._ready

    @property
    def table_names(self) -> Tuple[str, ...]:
        """Return the names of all registered tables, in registration order."""
        return tuple(self._tables)

    def _get_table(self, table_name: str) -> Table:
        try:
            return self._tables[table_name]
        except KeyError:
            raise NotFoundError("Table {} not found.".format(table_name)) from None

    def _check_not_ready(self) -> None:
        if self._ready:
            raise AssertionError("Attempted to modify the catalog after it was finalized.")

    def register_table(
        self, table_name: str, table_type: str, schema_name: str = DEFAULT_SCHEMA_NAME
    ) -> Table:
        """Register a table with the given name, unless it is already registered, and return it."""
        self._check_not_ready()
        if table_name not in self._tables:
            self._tables[table_name] = Table(table_name, table_type, schema_name)
        return self._tables[table_name]

    def set_field(self, table_name: str, field: Field) -> None:
        """Add the column to the named table, raising NotFoundError if it is not registered."""
        self._check_not_ready()
        self._get_table(table_name).set_field(field)

    def set_primary_key_column(self, table_name: str, column_name: str, position: int) -> None:
        """Add the primary key column to the named table, raising NotFoundError if it is absent."""
        self._check_not_ready()
        self._get_table(table_name).set_primary_key_column(column_name, position)

    def finalize_all(self) -> None:
        """Finalize every registered table and mark the catalog as ready for lookups."""
        self._check_not_ready()
        for table in self._tables.values():
            table.finalize()
        self._ready = True

    def lookup(self, table_name: str) -> Table:
        """Return the table with the given name, raising NotFoundError if there is no such table."""
        if not self._ready:
            raise CatalogNotInitializedError(
                "The catalog must be finalized before tables are looked up. Was the client "
                "initialized?"
            )
        return self._get_table(table_name)
