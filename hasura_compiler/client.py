# Copyright 2021-present Kensho Technologies, LLC.
import logging
from typing import Any, Mapping, Optional

from graphql.language.ast import OperationType

from .compiler.document_composer import (
    CompiledDocument,
    compile_read_document,
    compile_write_document,
)
from .compiler.response_remapping import flatten_single_result, remap_response
from .exceptions import (
    CatalogNotInitializedError,
    ConfigurationError,
    HasuraCompilerError,
    TransportError,
)
from .schema.catalog import Catalog
from .schema.introspection import populate_catalog
from .settings import ClientSettings
from .subscriptions import SubscriptionManager
from .transports.http import HasuraSqlTransport, HttpGraphQLTransport
from .typedefs import (
    ExecutionFunc,
    IntrospectionFunc,
    MessageCallback,
    OperationResult,
    SubscriptionFunc,
)


logger = logging.getLogger(__name__)


class HasuraClient:
    """Compiles per-table requests into batched GraphQL documents, and runs them.

    Example:
        client = HasuraClient(ClientSettings(graphql_url=..., admin_secret=...))
        client.initialize()
        error, users = client.query({"user": {"where": {"id": {"_eq": 1}}, "fields": ["id"]}})
        error, result = client.mutate({"user": {"insert": {"objects": [{"name": "Ann"}]}}})
        # result == {"user": {"insert": [...]}}
    """

    def __init__(
        self,
        settings: ClientSettings,
        introspect_func: Optional[IntrospectionFunc] = None,
        execute_func: Optional[ExecutionFunc] = None,
        open_subscription_func: Optional[SubscriptionFunc] = None,
    ) -> None:
        """Create a client. Transports not given explicitly talk to the endpoints of the settings.

        Args:
            settings: ClientSettings of the endpoint
            introspect_func: function running introspection SQL and returning rows as dicts.
                             Defaults to the run_sql API of the query endpoint.
            execute_func: function executing a GraphQL document with variables and returning the
                          "data" of the response. Defaults to HTTP requests to the GraphQL endpoint.
            open_subscription_func: function opening a live subscription. Subscriptions are
                                    unavailable unless it is given.

        Raises:
            ConfigurationError if the settings are not a ClientSettings object
        """
        if not isinstance(settings, ClientSettings):
            raise ConfigurationError(
                "Expected a ClientSettings object, got {!r}.".format(settings)
            )
        self.settings = settings
        self._introspect_func = (
            introspect_func if introspect_func is not None else HasuraSqlTransport(settings)
        )
        self._execute_func = (
            execute_func if execute_func is not None else HttpGraphQLTransport(settings)
        )
        self._subscription_manager = (
            SubscriptionManager(open_subscription_func)
            if open_subscription_func is not None
            else None
        )
        self._catalog: Optional[Catalog] = None

    @property
    def is_initialized(self) -> bool:
        """Return True if the catalog has been introspected."""
        return self._catalog is not None

    @property
    def catalog(self) -> Catalog:
        """Return the catalog of the tables exposed by the endpoint."""
        if self._catalog is None:
            raise CatalogNotInitializedError(
                "The client must be initialized before it is used. Call initialize() first."
            )
        return self._catalog

    def initialize(self) -> None:
        """Introspect the tables, columns and primary keys of the database.

        The client only starts using the new catalog once it is complete. Calling this again
        replaces the catalog with a freshly introspected one.

        Raises:
            - TransportError if an introspection query fails
            - NotFoundError if introspection reports columns or keys of an unknown table
        """
        self._catalog = populate_catalog(
            Catalog(), self._introspect_func, schema_name=self.settings.schema_name
        )

    def compile_query(
        self,
        params_by_table: Mapping[str, Any],
        operation_type: OperationType = OperationType.QUERY,
    ) -> CompiledDocument:
        """Compile the reads of several tables into one document, without running it.

        Raises:
            - CatalogNotInitializedError if the client has not been initialized
            - UnknownTableError if a requested table is not in the catalog
            - BuildError if the params are malformed
        """
        return compile_read_document(self.catalog, params_by_table, operation_type)

    def compile_mutation(self, params_by_table: Mapping[str, Any]) -> CompiledDocument:
        """Compile the mutations of several tables into one document, without running it.

        Raises:
            - CatalogNotInitializedError if the client has not been initialized
            - UnknownTableError if a requested table is not in the catalog
            - BuildError if the params are malformed
        """
        return compile_write_document(self.catalog, params_by_table)

    def _execute(self, compiled: CompiledDocument) -> Mapping[str, Any]:
        """Run the compiled document through the execution transport.

        Raises:
            TransportError if the transport fails. Failures the transport did not report as a
            TransportError are wrapped into one, with the original exception as its cause.
        """
        try:
            return self._execute_func(compiled.text, compiled.variables)
        except HasuraCompilerError as e:
            logger.warning("Executing %s failed: %s", compiled.operation_name, e)
            raise
        except Exception as e:
            logger.warning("Executing %s failed: %r", compiled.operation_name, e)
            raise TransportError(
                "Executing {} failed: {!r}".format(compiled.operation_name, e)
            ) from e

    def query(
        self, params_by_table: Mapping[str, Any], flatten_single: bool = True
    ) -> OperationResult:
        """Query several tables in a single request.

        Args:
            params_by_table: dict of result key -> read parameters, where the parameters may
                             contain where, order_by, limit, offset, distinct_on, pk, fields,
                             fragment and table (the queried table, defaulting to the key).
            flatten_single: if True and exactly one table is queried, return its result directly
                            rather than a dict keyed by the result key.

        Returns:
            OperationResult (error, data). Nothing is sent to the endpoint if compiling fails.
        """
        try:
            compiled = self.compile_query(params_by_table)
            response = self._execute(compiled)
            data = flatten_single_result(compiled.result_keys, response, flatten_single)
        except HasuraCompilerError as e:
            return OperationResult(e, None)
        return OperationResult(None, data)

    def mutate(self, params_by_table: Mapping[str, Any]) -> OperationResult:
        """Run the inserts, updates and deletes of several tables in a single request.

        Args:
            params_by_table: dict of result key -> mutation parameters, where the parameters may
                             contain insert, update, delete and table (defaulting to the key).

        Returns:
            OperationResult (error, data), where data maps each result key to a dict of
            action -> returned rows, e.g. {"user": {"insert": [...], "delete": [...]}}.
            The result is never flattened, even when a single table is mutated.
        """
        try:
            compiled = self.compile_mutation(params_by_table)
            response = self._execute(compiled)
            data = remap_response(compiled.flat_paths, response)
        except HasuraCompilerError as e:
            return OperationResult(e, None)
        return OperationResult(None, data)

    def subscribe(
        self,
        params_by_table: Mapping[str, Any],
        on_message: MessageCallback,
        flatten_single: bool = True,
    ) -> OperationResult:
        """Subscribe to the results of reading several tables.

        Every message is flattened like a query result and passed to on_message(error, data).

        Returns:
            OperationResult (error, subscription). Calling the subscription cancels it.
        """
        if self._subscription_manager is None:
            return OperationResult(
                ConfigurationError("No subscription transport was configured for this client."),
                None,
            )

        try:
            compiled = self.compile_query(params_by_table, OperationType.SUBSCRIPTION)
            subscription = self._subscription_manager.subscribe(
                compiled, on_message, flatten_single=flatten_single
            )
        except HasuraCompilerError as e:
            return OperationResult(e, None)
        return OperationResult(None, subscription)
