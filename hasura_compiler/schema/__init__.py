# Copyright 2017-present Kensho Technologies, LLC.
from .catalog import (  # noqa
    DEFAULT_SCHEMA_NAME,
    Catalog,
    Field,
    Table,
    TableTypeNames,
    get_graphql_scalar_name,
)
from .introspection import populate_catalog  # noqa
