# Copyright 2021-present Kensho Technologies, LLC.
import unittest

from ..exceptions import ConfigurationError
from ..settings import ClientSettings
from .test_helpers import TEST_ADMIN_SECRET, TEST_GRAPHQL_URL, get_test_settings


class ClientSettingsTests(unittest.TestCase):
    def test_defaults(self) -> None:
        settings = get_test_settings()

        self.assertEqual(TEST_GRAPHQL_URL, settings.graphql_url)
        self.assertEqual("http://localhost:8080/v1/query", settings.query_url)
        self.assertEqual("ws://localhost:8080/v1/graphql", settings.ws_url)
        self.assertEqual("public", settings.schema_name)
        self.assertEqual(30.0, settings.timeout)
        self.assertEqual({"x-hasura-admin-secret": TEST_ADMIN_SECRET}, settings.request_headers)

    def test_secure_websocket_url(self) -> None:
        settings = get_test_settings(graphql_url="https://hasura.example.com/v1/graphql")
        self.assertEqual("wss://hasura.example.com/v1/graphql", settings.ws_url)
        self.assertEqual("https://hasura.example.com/v1/query", settings.query_url)

    def test_explicit_urls(self) -> None:
        settings = get_test_settings(
            query_url="http://sql.example.com/v2/query", ws_url="ws://live.example.com/graphql"
        )
        self.assertEqual("http://sql.example.com/v2/query", settings.query_url)
        self.assertEqual("ws://live.example.com/graphql", settings.ws_url)

    def test_admin_secret_is_not_in_repr(self) -> None:
        self.assertNotIn(TEST_ADMIN_SECRET, repr(get_test_settings()))

    def test_invalid_settings(self) -> None:
        invalid_overrides = [
            {"graphql_url": ""},
            {"graphql_url": "localhost:8080/v1/graphql"},
            {"admin_secret": ""},
            {"schema_name": ""},
            {"timeout": 0},
            {"timeout": -1.5},
            {"timeout": "soon"},
        ]
        for overrides in invalid_overrides:
            with self.assertRaises(ConfigurationError):
                get_test_settings(**overrides)

    def test_timeout_is_coerced(self) -> None:
        self.assertEqual(2.5, get_test_settings(timeout="2.5").timeout)

    def test_from_environment(self) -> None:
        environ = {
            "HASURA_GRAPHQL_URL": "https://hasura.example.com/v1/graphql",
            "HASURA_ADMIN_SECRET": "secret",
            "HASURA_SCHEMA_NAME": "analytics",
            "HASURA_TIMEOUT": "5",
            "HASURA_WS_URL": "",
            "UNRELATED": "value",
        }
        settings = ClientSettings.from_environment(environ)

        self.assertEqual("https://hasura.example.com/v1/graphql", settings.graphql_url)
        self.assertEqual("secret", settings.admin_secret)
        self.assertEqual("analytics", settings.schema_name)
        self.assertEqual(5.0, settings.timeout)
        self.assertEqual("wss://hasura.example.com/v1/graphql", settings.ws_url)

    def test_from_environment_missing_variables(self) -> None:
        for environ in (
            {},
            {"HASURA_GRAPHQL_URL": TEST_GRAPHQL_URL},
            {"HASURA_ADMIN_SECRET": "secret"},
            {"HASURA_GRAPHQL_URL": TEST_GRAPHQL_URL, "HASURA_ADMIN_SECRET": ""},
        ):
            with self.assertRaises(ConfigurationError):
                ClientSettings.from_environment(environ)
