# Copyright 2021-present Kensho Technologies, LLC.
import json
import unittest

import httpx
from sqlalchemy import create_engine

from ..exceptions import TransportError
from ..schema.catalog import Catalog
from ..schema.introspection import populate_catalog
from ..transports.http import HasuraSqlTransport, HttpGraphQLTransport, rows_from_run_sql_result
from ..transports.sqlalchemy_introspection import SQLAlchemyIntrospectionTransport
from .test_helpers import TEST_ADMIN_SECRET, get_test_settings


class _RecordingHandler:
    """httpx.MockTransport handler recording requests, and answering with a canned response."""

    def __init__(self, response: httpx.Response) -> None:
        self.response = response
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.response


def _make_http_client(handler) -> httpx.Client:
    return httpx.Client(transport=httpx.MockTransport(handler))


class HttpGraphQLTransportTests(unittest.TestCase):
    def test_execute(self) -> None:
        handler = _RecordingHandler(httpx.Response(200, json={"data": {"user": [{"id": 1}]}}))
        transport = HttpGraphQLTransport(get_test_settings(), client=_make_http_client(handler))

        data = transport("query user { user { id } }", {"user_limit_0": 1})
        self.assertEqual({"user": [{"id": 1}]}, data)

        self.assertEqual(1, len(handler.requests))
        request = handler.requests[0]
        self.assertEqual("POST", request.method)
        self.assertEqual("http://localhost:8080/v1/graphql", str(request.url))
        self.assertEqual(TEST_ADMIN_SECRET, request.headers["x-hasura-admin-secret"])
        self.assertEqual(
            {"query": "query user { user { id } }", "variables": {"user_limit_0": 1}},
            json.loads(request.content),
        )

    def test_graphql_errors(self) -> None:
        errors = [
            {"message": "field \"age\" not found in type: 'user'"},
            {"message": "check constraint violated"},
        ]
        handler = _RecordingHandler(httpx.Response(200, json={"errors": errors}))
        transport = HttpGraphQLTransport(get_test_settings(), client=_make_http_client(handler))

        with self.assertRaises(TransportError) as context:
            transport("query user { user { age } }", {})
        self.assertEqual(errors, context.exception.errors)
        self.assertIn("check constraint violated", str(context.exception))

    def test_graphql_errors_that_are_not_objects(self) -> None:
        for errors, expected_errors in (
            (["boom", {"message": "conflict"}], ["boom", {"message": "conflict"}]),
            ("boom", ["boom"]),
        ):
            handler = _RecordingHandler(httpx.Response(200, json={"errors": errors}))
            transport = HttpGraphQLTransport(
                get_test_settings(), client=_make_http_client(handler)
            )

            with self.assertRaises(TransportError) as context:
                transport("query user { user { id } }", {})
            self.assertEqual(expected_errors, context.exception.errors)
            self.assertIn("boom", str(context.exception))

    def test_missing_data(self) -> None:
        handler = _RecordingHandler(httpx.Response(200, json={}))
        transport = HttpGraphQLTransport(get_test_settings(), client=_make_http_client(handler))

        with self.assertRaises(TransportError) as context:
            transport("query user { user { id } }", {})
        self.assertEqual([], context.exception.errors)

    def test_http_error_status(self) -> None:
        handler = _RecordingHandler(httpx.Response(500, text="Internal Server Error"))
        transport = HttpGraphQLTransport(get_test_settings(), client=_make_http_client(handler))

        with self.assertRaises(TransportError) as context:
            transport("query user { user { id } }", {})
        self.assertIsInstance(context.exception.__cause__, httpx.HTTPStatusError)

    def test_invalid_json(self) -> None:
        handler = _RecordingHandler(httpx.Response(200, text="<html>gateway</html>"))
        transport = HttpGraphQLTransport(get_test_settings(), client=_make_http_client(handler))

        with self.assertRaises(TransportError):
            transport("query user { user { id } }", {})

    def test_connection_error(self) -> None:
        def refuse_connection(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("Connection refused", request=request)

        transport = HttpGraphQLTransport(
            get_test_settings(), client=_make_http_client(refuse_connection)
        )
        with self.assertRaises(TransportError) as context:
            transport("query user { user { id } }", {})
        self.assertIsInstance(context.exception.__cause__, httpx.ConnectError)

    def test_close(self) -> None:
        injected_client = _make_http_client(_RecordingHandler(httpx.Response(200, json={})))
        with HttpGraphQLTransport(get_test_settings(), client=injected_client):
            pass
        self.assertFalse(injected_client.is_closed)

        transport = HttpGraphQLTransport(get_test_settings())
        transport.close()
        self.assertTrue(transport._client.is_closed)  # pylint: disable=protected-access


class HasuraSqlTransportTests(unittest.TestCase):
    def test_run_sql(self) -> None:
        result = [["table_name", "table_type"], ["user", "BASE TABLE"], ["active_user", "VIEW"]]
        handler = _RecordingHandler(
            httpx.Response(200, json={"result_type": "TuplesOk", "result": result})
        )
        transport = HasuraSqlTransport(get_test_settings(), client=_make_http_client(handler))

        rows = transport("SELECT table_name, table_type FROM information_schema.tables")
        self.assertEqual(
            [
                {"table_name": "user", "table_type": "BASE TABLE"},
                {"table_name": "active_user", "table_type": "VIEW"},
            ],
            rows,
        )

        request = handler.requests[0]
        self.assertEqual("http://localhost:8080/v1/query", str(request.url))
        self.assertEqual(TEST_ADMIN_SECRET, request.headers["x-hasura-admin-secret"])
        self.assertEqual(
            {
                "type": "run_sql",
                "args": {"sql": "SELECT table_name, table_type FROM information_schema.tables"},
            },
            json.loads(request.content),
        )

    def test_unexpected_response(self) -> None:
        handler = _RecordingHandler(httpx.Response(200, json={"result_type": "CommandOk"}))
        transport = HasuraSqlTransport(get_test_settings(), client=_make_http_client(handler))

        with self.assertRaises(TransportError):
            transport("SELECT 1")

    def test_populate_catalog_over_run_sql(self) -> None:
        responses = {
            "information_schema.tables": [
                ["table_name", "table_type"],
                ["user", "BASE TABLE"],
            ],
            "information_schema.columns": [
                ["table_name", "column_name", "data_type", "udt_name"],
                ["user", "id", "integer", "int4"],
                ["user", "name", "text", "text"],
            ],
            "PRIMARY KEY": [
                ["table_name", "constraint_name", "position", "key_column"],
                ["user", "user_pkey", "1", "id"],
            ],
        }

        def answer_introspection(request: httpx.Request) -> httpx.Response:
            sql_text = json.loads(request.content)["args"]["sql"]
            for marker, result in responses.items():
                if marker in sql_text:
                    return httpx.Response(200, json={"result_type": "TuplesOk", "result": result})
            return httpx.Response(400, json={"error": "unexpected query"})

        transport = HasuraSqlTransport(
            get_test_settings(), client=_make_http_client(answer_introspection)
        )
        catalog = populate_catalog(Catalog(), transport)

        user_table = catalog.lookup("user")
        self.assertEqual(("id", "name"), user_table.field_names)
        self.assertEqual(("id",), user_table.primary_key)

    def test_rows_from_run_sql_result(self) -> None:
        self.assertEqual([], rows_from_run_sql_result([]))
        self.assertEqual([], rows_from_run_sql_result([["id"]]))
        self.assertEqual(
            [{"id": "1", "name": "Ann"}], rows_from_run_sql_result([["id", "name"], ["1", "Ann"]])
        )


class SQLAlchemyIntrospectionTransportTests(unittest.TestCase):
    def setUp(self) -> None:
        """Initialize an in-memory SQLite engine."""
        self.engine = create_engine("sqlite://")
        self.transport = SQLAlchemyIntrospectionTransport(self.engine)

    def tearDown(self) -> None:
        """Dispose of the engine."""
        self.engine.dispose()

    def test_rows_are_dicts(self) -> None:
        rows = self.transport(
            "SELECT 'user' AS table_name, 'BASE TABLE' AS table_type "
            "UNION ALL SELECT 'active_user', 'VIEW'"
        )
        self.assertEqual(
            [
                {"table_name": "user", "table_type": "BASE TABLE"},
                {"table_name": "active_user", "table_type": "VIEW"},
            ],
            rows,
        )

    def test_failed_query(self) -> None:
        with self.assertRaises(TransportError):
            self.transport("SELECT table_name FROM missing_table")
