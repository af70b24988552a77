# Copyright 2021-present Kensho Technologies, LLC.
import logging
from typing import Any, Dict, List, Mapping, Optional

import httpx

from ..exceptions import TransportError
from ..settings import ClientSettings


logger = logging.getLogger(__name__)


class _HttpTransport:
    """Shared plumbing for transports posting JSON to one endpoint URL."""

    def __init__(
        self, settings: ClientSettings, url: str, client: Optional[httpx.Client] = None
    ) -> None:
        """Create a transport posting to the URL, with its own httpx.Client unless given one."""
        self.settings = settings
        self.url = url
        self._owns_client = client is None
        self._client = client if client is not None else httpx.Client(timeout=settings.timeout)

    def __enter__(self):
        """Enter a context in which the transport is closed on exit."""
        return self

    def __exit__(self, *exc_info) -> None:
        """Close the transport."""
        self.close()

    def close(self) -> None:
        """Close the underlying httpx.Client, if this transport created it."""
        if self._owns_client:
            self._client.close()

    def _post_json(self, body: Mapping[str, Any]) -> Any:
        """Post the JSON body to the endpoint and return the decoded JSON response.

        Raises:
            TransportError if the request fails, the status is not 2xx or the body is not JSON
        """
        try:
            response = self._client.post(
                self.url,
                json=body,
                headers=self.settings.request_headers,
                timeout=self.settings.timeout,
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise TransportError("Request to {} failed: {}".format(self.url, e)) from e

        try:
            return response.json()
        except ValueError as e:
            raise TransportError(
                "Response from {} is not valid JSON: {!r}".format(self.url, response.text)
            ) from e


def _get_error_message(error: Any) -> str:
    """Return the message of an error reported by the GraphQL endpoint."""
    if isinstance(error, Mapping):
        return str(error.get("message", error))
    return str(error)


class HttpGraphQLTransport(_HttpTransport):
    """Executes GraphQL documents over HTTP, returning the "data" object of the response."""

    def __init__(self, settings: ClientSettings, client: Optional[httpx.Client] = None) -> None:
        """Create a transport for the GraphQL endpoint of the settings."""
        super().__init__(settings, settings.graphql_url, client=client)

    def __call__(self, document: str, variables: Dict[str, Any]) -> Mapping[str, Any]:
        """Execute the document with its variables.

        Raises:
            TransportError if the request fails or the endpoint reports errors
        """
        payload = self._post_json({"query": document, "variables": variables})
        if not isinstance(payload, Mapping):
            raise TransportError("Unexpected response from {}: {!r}".format(self.url, payload))

        errors = payload.get("errors")
        if errors:
            if not isinstance(errors, list):
                errors = [errors]
            logger.warning("GraphQL endpoint %s reported errors: %s", self.url, errors)
            raise TransportError(
                "GraphQL endpoint reported {} error(s): {}".format(
                    len(errors), "; ".join(_get_error_message(error) for error in errors)
                ),
                errors=errors,
            )
        data = payload.get("data")
        if data is None:
            raise TransportError("Response from {} has no data: {!r}".format(self.url, payload))
        return data


def rows_from_run_sql_result(result: List[List[Any]]) -> List[Dict[str, Any]]:
    """Convert a run_sql result table, a header row followed by data rows, to a list of dicts."""
    if not result:
        return []
    header, data_rows = result[0], result[1:]
    return [dict(zip(header, row)) for row in data_rows]


class HasuraSqlTransport(_HttpTransport):
    """Runs introspection SQL through the run_sql API of the query endpoint."""

    def __init__(self, settings: ClientSettings, client: Optional[httpx.Client] = None) -> None:
        """Create a transport for the query endpoint of the settings."""
        super().__init__(settings, settings.query_url, client=client)

    def __call__(self, sql_text: str) -> List[Dict[str, Any]]:
        """Run the SQL, returning its rows as dicts. Values are reported as text.

        Raises:
            TransportError if the request fails or the response has no result table
        """
        payload = self._post_json({"type": "run_sql", "args": {"sql": sql_text}})
        if not isinstance(payload, Mapping) or "result" not in payload:
            raise TransportError(
                "Unexpected run_sql response from {}: {!r}".format(self.url, payload)
            )
        return rows_from_run_sql_result(payload["result"])
