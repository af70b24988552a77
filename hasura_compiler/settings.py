# Copyright 2018-present Kensho Technologies, LLC.
from dataclasses import dataclass, field
import os
from typing import Dict, Mapping, Optional

from .exceptions import ConfigurationError
from .schema.catalog import DEFAULT_SCHEMA_NAME


GRAPHQL_ENDPOINT_SUFFIX = "/v1/graphql"
QUERY_ENDPOINT_SUFFIX = "/v1/query"

ADMIN_SECRET_HEADER = "x-hasura-admin-secret"

DEFAULT_TIMEOUT_SECONDS = 30.0

# Environment variable name -> ClientSettings attribute name.
ENVIRONMENT_VARIABLES = {
    "HASURA_GRAPHQL_URL": "graphql_url",
    "HASURA_ADMIN_SECRET": "admin_secret",
    "HASURA_QUERY_URL": "query_url",
    "HASURA_WS_URL": "ws_url",
    "HASURA_SCHEMA_NAME": "schema_name",
    "HASURA_TIMEOUT": "timeout",
}


def _derive_query_url(graphql_url: str) -> str:
    """Return the URL of the query (run_sql) endpoint served next to the GraphQL endpoint."""
    return graphql_url.replace(GRAPHQL_ENDPOINT_SUFFIX, QUERY_ENDPOINT_SUFFIX)


def _derive_ws_url(graphql_url: str) -> str:
    """Return the websocket URL of the GraphQL endpoint."""
    if graphql_url.startswith("https://"):
        return "wss://" + graphql_url[len("https://") :]
    return "ws://" + graphql_url[len("http://") :]


@dataclass(frozen=True)
class ClientSettings:
    """Where the GraphQL endpoint lives, and how to authenticate with it."""

    graphql_url: str
    admin_secret: str = field(repr=False)

    # Derived from graphql_url when not given.
    query_url: Optional[str] = None
    ws_url: Optional[str] = None

    # Database schema whose tables are exposed by the endpoint.
    schema_name: str = DEFAULT_SCHEMA_NAME

    # Timeout for HTTP requests, in seconds.
    timeout: float = DEFAULT_TIMEOUT_SECONDS

    def __post_init__(self) -> None:
        """Validate the settings, and fill in the derived URLs."""
        if not self.graphql_url:
            raise ConfigurationError("graphql_url is required.")
        if not isinstance(self.graphql_url, str) or not self.graphql_url.startswith(
            ("http://", "https://")
        ):
            raise ConfigurationError(
                "graphql_url must be an http:// or https:// URL, got {!r}.".format(
                    self.graphql_url
                )
            )
        if not self.admin_secret:
            raise ConfigurationError("admin_secret is required.")
        if not self.schema_name:
            raise ConfigurationError("schema_name must not be empty.")
        try:
            timeout = float(self.timeout)
        except (TypeError, ValueError) as e:
            raise ConfigurationError(
                "timeout must be a number, got {!r}.".format(self.timeout)
            ) from e
        if timeout <= 0:
            raise ConfigurationError("timeout must be positive, got {!r}.".format(self.timeout))

        # The dataclass is frozen, so derived values are set through object.__setattr__.
        object.__setattr__(self, "timeout", timeout)
        if not self.query_url:
            object.__setattr__(self, "query_url", _derive_query_url(self.graphql_url))
        if not self.ws_url:
            object.__setattr__(self, "ws_url", _derive_ws_url(self.graphql_url))

    @property
    def request_headers(self) -> Dict[str, str]:
        """Return the headers authenticating requests to the endpoint."""
        return {ADMIN_SECRET_HEADER: self.admin_secret}

    @classmethod
    def from_environment(cls, environ: Optional[Mapping[str, str]] = None) -> "ClientSettings":
        """Create settings from HASURA_* environment variables.

        Raises:
            ConfigurationError if a required variable is missing or a value is malformed
        """
        if environ is None:
            environ = os.environ

        kwargs = {
            attribute_name: environ[variable_name]
            for variable_name, attribute_name in ENVIRONMENT_VARIABLES.items()
            if environ.get(variable_name)
        }
        for required_attribute in ("graphql_url", "admin_secret"):
            if required_attribute not in kwargs:
                raise ConfigurationError(
                    "Missing required environment variable for {}. Expected one of: {}.".format(
                        required_attribute, sorted(ENVIRONMENT_VARIABLES)
                    )
                )
        return cls(**kwargs)
