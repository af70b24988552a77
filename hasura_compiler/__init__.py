# Copyright 2017-present Kensho Technologies, LLC.
"""Commonly-used functions and data types from this package."""
from .client import HasuraClient  # noqa
from .compiler import (  # noqa
    CompiledDocument,
    FlatPathMapping,
    OperationBuildResult,
    compile_read_document,
    compile_write_document,
    remap_response,
)
from .exceptions import (  # noqa
    BuildError,
    CatalogNotInitializedError,
    ConfigurationError,
    HasuraCompilerError,
    MalformedResponseError,
    NotFoundError,
    TransportError,
    UnknownTableError,
)
from .query_formatting.graphql_formatting import pretty_print_graphql  # noqa
from .schema import Catalog, Field, Table, populate_catalog  # noqa
from .settings import ClientSettings  # noqa
from .subscriptions import Subscription, SubscriptionManager  # noqa
from .typedefs import OperationResult  # noqa


__package_name__ = "hasura-compiler"
__version__ = "1.0.0"
