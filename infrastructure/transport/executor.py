"""
Dual-transport reads: GraphQL first, REST as the fallback.

The two attempts are strictly sequential. A GraphQL failure of any kind
(transport error, a non-empty `errors` array, a missing field, a node whose id
cannot be resolved) is logged at WARNING and falls through to REST. Only when
REST fails as well does the caller see an error (`TransportExhausted`).

GraphQL results are normalized into the REST pagination envelope, so callers
cannot tell which transport answered except through the `defaults` applied to
fields GraphQL did not select (e.g. `hosts_count=0`).
"""

import logging
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from domain.errors import TransportExhausted
from domain.identifiers import resolve_identifier
from domain.schemas import PaginatedResponse
from infrastructure.api.base import HTTPClient
from infrastructure.api.graphql import GraphQLClient
from infrastructure.transport.connection import normalize_connection

logger = logging.getLogger(__name__)

NodeMapper = Callable[[dict[str, Any]], dict[str, Any]]


class GraphQLAttemptFailed(Exception):
    """GraphQL answered, but not with a usable result."""


def resolve_node_id(node: dict[str, Any]) -> dict[str, Any]:
    """Default node mapper: replace the opaque GraphQL id with its numeric id."""
    if "id" not in node:
        raise GraphQLAttemptFailed("GraphQL node has no 'id'")
    return {**node, "id": resolve_identifier(node["id"])}


@dataclass(frozen=True)
class LogicalQuery:
    """
    One read expressed for both transports.

    Attributes:
        name: Label used in logs and in TransportExhausted
        graphql_query: GraphQL document
        field_path: Keys leading from `data` to the connection (e.g. ("currentUser", "organizations"))
        rest_path: REST URL for the fallback
        rest_params: Query params for the REST call
        rest_results_key: When set, REST returns a plain object and the list lives under this key
        node_mapper: GraphQL node -> REST-shaped dict
        defaults: Values filled in for fields GraphQL does not select
    """

    name: str
    graphql_query: str
    field_path: tuple[str, ...]
    rest_path: str
    graphql_variables: Mapping[str, Any] | None = None
    rest_params: Mapping[str, Any] | None = None
    rest_results_key: str | None = None
    node_mapper: NodeMapper = resolve_node_id
    defaults: Mapping[str, Any] = field(default_factory=dict)


def _dig(data: Mapping[str, Any] | None, path: Sequence[str]) -> Any:
    current: Any = data
    for key in path:
        if not isinstance(current, Mapping) or current.get(key) is None:
            raise GraphQLAttemptFailed(f"GraphQL response has no data at '{'.'.join(path)}'")
        current = current[key]
    return current


class DualTransportExecutor:
    """Runs a LogicalQuery over GraphQL, falling back to REST."""

    def __init__(self, graphql: GraphQLClient | None, rest: HTTPClient, *, graphql_enabled: bool = True) -> None:
        self._graphql = graphql
        self._rest = rest
        self.graphql_enabled = graphql_enabled and graphql is not None

    async def _via_graphql(self, query: LogicalQuery) -> PaginatedResponse[dict[str, Any]]:
        if self._graphql is None:
            raise GraphQLAttemptFailed("No GraphQL client configured")
        response = await self._graphql.query(query.graphql_query, query.graphql_variables)
        if response.has_errors:
            raise GraphQLAttemptFailed(GraphQLClient.formatted_errors(response))

        connection = normalize_connection(_dig(response.data, query.field_path))
        results = []
        for node in connection.nodes:
            mapped = query.node_mapper(node)
            for key, value in query.defaults.items():
                if mapped.get(key) is None:
                    mapped[key] = value
            results.append(mapped)

        n = len(results)
        return PaginatedResponse[dict[str, Any]](results=results, total=n, subtotal=n, page=1, per_page=n)

    async def _via_rest(self, query: LogicalQuery) -> PaginatedResponse[dict[str, Any]]:
        if query.rest_results_key is None:
            return await self._rest.get_paginated(query.rest_path, params=query.rest_params)

        payload = await self._rest.get(query.rest_path, params=query.rest_params)
        items = payload.get(query.rest_results_key) if isinstance(payload, Mapping) else None
        results = [dict(item) for item in items or [] if isinstance(item, Mapping)]
        n = len(results)
        return PaginatedResponse[dict[str, Any]](results=results, total=n, subtotal=n, page=1, per_page=n)

    async def execute(self, query: LogicalQuery) -> PaginatedResponse[dict[str, Any]]:
        """
        Run `query`; at most two round trips, never concurrent.

        Raises:
            TransportExhausted: if GraphQL (when enabled) and REST both fail
        """
        graphql_error: BaseException | str | None = "disabled"
        if self.graphql_enabled:
            try:
                result = await self._via_graphql(query)
            except Exception as e:  # any GraphQL failure falls through to REST
                graphql_error = e
                logger.warning("GraphQL %s failed, falling back to REST: %s", query.name, e)
            else:
                logger.debug("GraphQL %s returned %d result(s)", query.name, len(result.results))
                return result

        try:
            return await self._via_rest(query)
        except Exception as e:
            raise TransportExhausted(query.name, graphql_error=graphql_error, rest_error=e) from e

    async def execute_list(self, query: LogicalQuery) -> list[dict[str, Any]]:
        return (await self.execute(query)).results
