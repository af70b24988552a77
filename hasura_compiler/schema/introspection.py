# Copyright 2019-present Kensho Technologies, LLC.
import logging
import re
from typing import Any, List, Mapping

from .catalog import DEFAULT_SCHEMA_NAME, Catalog, Field
from ..exceptions import HasuraCompilerError, TransportError
from ..typedefs import IntrospectionFunc


logger = logging.getLogger(__name__)

_SCHEMA_NAME_PATTERN = re.compile(r"^[a-zA-Z_][_a-zA-Z0-9]*$")

TABLES_QUERY = """
    SELECT table_name, table_type
    FROM information_schema.tables
    WHERE table_schema = '{schema}';
"""

COLUMNS_QUERY = """
    SELECT table_name, column_name, data_type, udt_name
    FROM information_schema.columns
    WHERE table_schema = '{schema}'
    ORDER BY table_name, ordinal_position;
"""

PRIMARY_KEYS_QUERY = """
    SELECT
        kcu.table_name,
        tco.constraint_name,
        kcu.ordinal_position AS position,
        kcu.column_name AS key_column
    FROM information_schema.table_constraints tco
    JOIN information_schema.key_column_usage kcu
        ON kcu.constraint_name = tco.constraint_name
        AND kcu.constraint_schema = tco.constraint_schema
    WHERE tco.constraint_type = 'PRIMARY KEY' AND kcu.table_schema = '{schema}'
    ORDER BY kcu.table_schema, kcu.table_name, position;
"""


def _format_introspection_query(query_template: str, schema_name: str) -> str:
    """Return the introspection query for the given schema."""
    # Check to prevent against SQL injection.
    if not _SCHEMA_NAME_PATTERN.match(schema_name):
        raise AssertionError("Invalid schema name {}".format(schema_name))
    return query_template.format(schema=schema_name)  # nosec


def _run_introspection_query(
    introspect_func: IntrospectionFunc, query_template: str, schema_name: str
) -> List[Mapping[str, Any]]:
    """Run one introspection query and return its rows.

    Raises:
        TransportError if the query fails, wrapping failures not reported as a TransportError
    """
    sql_text = _format_introspection_query(query_template, schema_name)
    try:
        return list(introspect_func(sql_text))
    except HasuraCompilerError:
        raise
    except Exception as e:
        raise TransportError("Introspection query failed: {!r}".format(e)) from e


def apply_table_rows(
    catalog: Catalog, rows: List[Mapping[str, Any]], schema_name: str = DEFAULT_SCHEMA_NAME
) -> None:
    """Register a table of the given schema for every row of the tables query."""
    for row in rows:
        catalog.register_table(row["table_name"], row["table_type"], schema_name)


def apply_column_rows(catalog: Catalog, rows: List[Mapping[str, Any]]) -> None:
    """Add a column for every row of the columns query, to its already-registered table."""
    for row in rows:
        catalog.set_field(
            row["table_name"],
            Field(
                name=row["column_name"],
                logical_type=row["data_type"],
                native_type=row["udt_name"],
            ),
        )


def apply_primary_key_rows(catalog: Catalog, rows: List[Mapping[str, Any]]) -> None:
    """Add a primary key column for every row of the primary keys query.

    Positions are coerced to int, since some transports (e.g. run_sql) report every value as text.
    """
    for row in rows:
        catalog.set_primary_key_column(row["table_name"], row["key_column"], int(row["position"]))


def populate_catalog(
    catalog: Catalog, introspect_func: IntrospectionFunc, schema_name: str = DEFAULT_SCHEMA_NAME
) -> Catalog:
    """Populate the catalog from the three introspection queries, then finalize it.

    The queries run strictly in order: tables, columns, primary keys. The latter two reference
    tables that the first one must have registered.

    Args:
        catalog: empty Catalog to populate. It is finalized when this function returns.
        introspect_func: function running one SQL query and returning its rows as dicts.
        schema_name: name of the database schema whose tables are exposed by the endpoint.

    Returns:
        the populated and finalized catalog

    Raises:
        - TransportError if any introspection query fails
        - NotFoundError if a column or primary key row references a table that was not registered
    """
    table_rows = _run_introspection_query(introspect_func, TABLES_QUERY, schema_name)
    apply_table_rows(catalog, table_rows, schema_name)

    column_rows = _run_introspection_query(introspect_func, COLUMNS_QUERY, schema_name)
    apply_column_rows(catalog, column_rows)

    primary_key_rows = _run_introspection_query(introspect_func, PRIMARY_KEYS_QUERY, schema_name)
    apply_primary_key_rows(catalog, primary_key_rows)

    catalog.finalize_all()
    logger.info(
        "Introspected %d tables and %d columns in schema %s.",
        len(catalog),
        len(column_rows),
        schema_name,
    )
    return catalog
