"""Linear GraphQL API client.

Linear API Reference:
    https://developers.linear.app/docs/graphql/working-with-the-graphql-api

Authentication:
    Linear accepts the API key directly in the Authorization header,
    without the "Bearer" prefix.

The resolver and sync code only depend on the narrow QueryPort interface,
so tests substitute a fake and callers can wrap the client in a cache.
"""

from __future__ import annotations

import os
from abc import ABC, abstractmethod
from typing import Any

import httpx

from lincli.utils.errors import ApiError
from lincli.utils.logging import log_query

LINEAR_API_URL = "https://api.linear.app/graphql"
DEFAULT_TIMEOUT_SECONDS = 30.0


class QueryPort(ABC):
    """Execute one GraphQL request/response round trip."""

    @abstractmethod
    def query(self, query: str, variables: dict[str, Any] | None = None) -> dict[str, Any]:
        """Run a query and return its ``data`` object.

        Raises:
            ApiError: For network failures, non-success HTTP status,
                GraphQL-reported errors, or a null ``data`` payload
        """
        pass


def _default_timeout() -> float:
    raw = os.environ.get("LIN_HTTP_TIMEOUT")
    if raw is None:
        return DEFAULT_TIMEOUT_SECONDS
    try:
        return float(raw)
    except ValueError:
        return DEFAULT_TIMEOUT_SECONDS


class GraphQLClient(QueryPort):
    """Blocking GraphQL client for Linear.

    Usable as a context manager to close the underlying connection pool:

        with GraphQLClient(token) as client:
            data = client.query(VIEWER_QUERY)
    """

    def __init__(
        self,
        token: str,
        url: str | None = None,
        timeout_seconds: float | None = None,
        http_client: httpx.Client | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            token: Linear API key
            url: GraphQL endpoint (default: LIN_API_URL or the public endpoint)
            timeout_seconds: Request timeout (default: LIN_HTTP_TIMEOUT or 30s)
            http_client: Pre-built httpx client, mainly for tests
        """
        self.token = token
        self.url = url or os.environ.get("LIN_API_URL", LINEAR_API_URL)
        timeout = timeout_seconds if timeout_seconds is not None else _default_timeout()
        self._owns_client = http_client is None
        self._http = http_client or httpx.Client(timeout=httpx.Timeout(timeout))

    def __enter__(self) -> GraphQLClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        if self._owns_client:
            self._http.close()

    def query(self, query: str, variables: dict[str, Any] | None = None) -> dict[str, Any]:
        headers = {
            "Authorization": self.token,
            "Content-Type": "application/json",
        }
        payload = {"query": query, "variables": variables or {}}
        log_query(_operation_name(query), variables)

        try:
            response = self._http.post(self.url, json=payload, headers=headers)
        except httpx.HTTPError as e:
            raise ApiError(f"Request to Linear failed: {e}") from e

        if response.status_code >= 400:
            raise ApiError(_http_error_message(response))

        try:
            response_data: dict[str, Any] = response.json()
        except ValueError as e:
            raise ApiError(f"Linear returned a non-JSON response: {e}") from e

        errors = response_data.get("errors")
        if errors:
            messages = "; ".join(str(err.get("message", err)) for err in errors)
            raise ApiError(f"GraphQL errors: {messages}")

        # {"data": null} without errors still means there is nothing to read
        data = response_data.get("data")
        if data is None:
            raise ApiError("GraphQL response contains null data")

        result: dict[str, Any] = data
        return result


def _operation_name(query: str) -> str:
    """Extract ``Name`` from ``query Name(...)`` for log records."""
    tokens = query.replace("(", " ").replace("{", " ").split()
    if len(tokens) >= 2 and tokens[0] in ("query", "mutation"):
        return tokens[1]
    return "anonymous"


def _http_error_message(response: httpx.Response) -> str:
    if response.status_code in (401, 403):
        return (
            f"Authentication failed (HTTP {response.status_code}). "
            "Check that your API token is valid."
        )
    detail = response.text.strip()[:200]
    return f"HTTP {response.status_code} from Linear API" + (f": {detail}" if detail else "")


__all__ = [
    "LINEAR_API_URL",
    "QueryPort",
    "GraphQLClient",
]
