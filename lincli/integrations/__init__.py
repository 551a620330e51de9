"""Linear API integration: GraphQL client, query text and token resolution."""

from lincli.integrations.auth import (
    LINEAR_API_TOKEN_ENV,
    ResolvedToken,
    TokenSource,
    get_api_token,
)
from lincli.integrations.graphql import LINEAR_API_URL, GraphQLClient, QueryPort

__all__ = [
    "LINEAR_API_TOKEN_ENV",
    "LINEAR_API_URL",
    "GraphQLClient",
    "QueryPort",
    "ResolvedToken",
    "TokenSource",
    "get_api_token",
]
