# Copyright 2017-present Kensho Technologies, LLC.
"""Common test data and helper functions."""
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple
from unittest import TestCase

from ..exceptions import TransportError
from ..query_formatting.graphql_formatting import pretty_print_graphql
from ..schema.catalog import Catalog
from ..schema.introspection import populate_catalog
from ..settings import ClientSettings
from ..typedefs import MessageCallback


TABLE_ROWS = [
    {"table_name": "user", "table_type": "BASE TABLE"},
    {"table_name": "post", "table_type": "BASE TABLE"},
    {"table_name": "post_tag", "table_type": "BASE TABLE"},
    {"table_name": "active_user", "table_type": "VIEW"},
]

COLUMN_ROWS = [
    {"table_name": "user", "column_name": "id", "data_type": "integer", "udt_name": "int4"},
    {"table_name": "user", "column_name": "name", "data_type": "text", "udt_name": "text"},
    {
        "table_name": "user",
        "column_name": "email",
        "data_type": "character varying",
        "udt_name": "varchar",
    },
    {"table_name": "post", "column_name": "id", "data_type": "uuid", "udt_name": "uuid"},
    {"table_name": "post", "column_name": "user_id", "data_type": "integer", "udt_name": "int4"},
    {"table_name": "post", "column_name": "title", "data_type": "text", "udt_name": "text"},
    {"table_name": "post_tag", "column_name": "post_id", "data_type": "uuid", "udt_name": "uuid"},
    {"table_name": "post_tag", "column_name": "tag", "data_type": "text", "udt_name": "text"},
    {"table_name": "active_user", "column_name": "id", "data_type": "integer", "udt_name": "int4"},
]

# Composite key columns are deliberately listed out of position order.
PRIMARY_KEY_ROWS = [
    {"table_name": "user", "constraint_name": "user_pkey", "position": 1, "key_column": "id"},
    {"table_name": "post", "constraint_name": "post_pkey", "position": 1, "key_column": "id"},
    {
        "table_name": "post_tag",
        "constraint_name": "post_tag_pkey",
        "position": 2,
        "key_column": "tag",
    },
    {
        "table_name": "post_tag",
        "constraint_name": "post_tag_pkey",
        "position": 1,
        "key_column": "post_id",
    },
]

TEST_GRAPHQL_URL = "http://localhost:8080/v1/graphql"
TEST_ADMIN_SECRET = "test-secret"  # nosec


def get_test_settings(**overrides: Any) -> ClientSettings:
    """Return ClientSettings for a local test endpoint."""
    kwargs: Dict[str, Any] = {"graphql_url": TEST_GRAPHQL_URL, "admin_secret": TEST_ADMIN_SECRET}
    kwargs.update(overrides)
    return ClientSettings(**kwargs)


class FakeIntrospection:
    """Introspection function answering the three introspection queries from canned rows."""

    def __init__(
        self,
        table_rows: Optional[List[Dict[str, Any]]] = None,
        column_rows: Optional[List[Dict[str, Any]]] = None,
        primary_key_rows: Optional[List[Dict[str, Any]]] = None,
        fail_on_call: Optional[int] = None,
        error: Optional[Exception] = None,
    ) -> None:
        """Create a fake answering with the given rows, or the default test rows.

        If fail_on_call is set, that call raises the error, or a TransportError if none is given.
        """
        self.table_rows = TABLE_ROWS if table_rows is None else table_rows
        self.column_rows = COLUMN_ROWS if column_rows is None else column_rows
        self.primary_key_rows = PRIMARY_KEY_ROWS if primary_key_rows is None else primary_key_rows
        self.fail_on_call = fail_on_call
        self.error = error
        self.queries: List[str] = []

    def __call__(self, sql_text: str) -> List[Dict[str, Any]]:
        """Return the canned rows for the introspection query."""
        self.queries.append(sql_text)
        if self.fail_on_call is not None and len(self.queries) == self.fail_on_call:
            if self.error is not None:
                raise self.error
            raise TransportError("Introspection is unavailable.")

        if "information_schema.tables" in sql_text:
            return list(self.table_rows)
        elif "information_schema.columns" in sql_text:
            return list(self.column_rows)
        elif "PRIMARY KEY" in sql_text:
            return list(self.primary_key_rows)
        raise AssertionError("Unexpected introspection query: {}".format(sql_text))


class RecordingExecutor:
    """Execution function recording its calls, and answering with a canned response."""

    def __init__(
        self,
        response: Optional[Mapping[str, Any]] = None,
        error: Optional[Exception] = None,
    ) -> None:
        """Create an executor returning the response, or raising the error."""
        self.response = response if response is not None else {}
        self.error = error
        self.calls: List[Tuple[str, Dict[str, Any]]] = []

    def __call__(self, document: str, variables: Dict[str, Any]) -> Mapping[str, Any]:
        """Record the call, then return the canned response or raise the canned error."""
        self.calls.append((document, variables))
        if self.error is not None:
            raise self.error
        return self.response


class FakeSubscriptionTransport:
    """Subscription function that lets tests push messages to the subscribers."""

    def __init__(self) -> None:
        """Create a transport without any open sessions."""
        self.sessions: List[Tuple[str, Dict[str, Any], MessageCallback]] = []
        self.cancel_count = 0

    def __call__(
        self, document: str, variables: Dict[str, Any], on_message: MessageCallback
    ) -> Callable[[], None]:
        """Open a session, returning its cancel function."""
        self.sessions.append((document, variables, on_message))
        return self._cancel

    def _cancel(self) -> None:
        self.cancel_count += 1

    def push(self, data: Any, session_index: int = -1) -> None:
        """Deliver a data message, even to a cancelled session, like a buffered transport."""
        self.sessions[session_index][2](None, data)

    def push_error(self, error: Exception, session_index: int = -1) -> None:
        """Deliver an error message."""
        self.sessions[session_index][2](error, None)


def get_test_catalog() -> Catalog:
    """Return a finalized catalog built from the canned introspection rows."""
    return populate_catalog(Catalog(), FakeIntrospection())


def compare_graphql(test_case: TestCase, expected: str, received: str) -> None:
    """Compare the expected and received GraphQL documents, ignoring whitespace."""
    test_case.assertEqual(pretty_print_graphql(expected), pretty_print_graphql(received))
