"""GraphQL client: posts `{query, variables?}` to the root-level GraphQL endpoint."""

import logging
from collections.abc import Mapping
from typing import Any

from domain.schemas import GraphQLResponse
from infrastructure.api.base import HTTPClient
from infrastructure.api.client import APIError
from infrastructure.constants import GRAPHQL_PATH

logger = logging.getLogger(__name__)


class GraphQLClient:
    """
    Uses the unscoped base client so auth is shared, but never taxonomy params.

    GraphQL-level errors are returned in the response, not raised; the
    caller decides whether they are fatal.
    """

    def __init__(self, client: HTTPClient, *, path: str = GRAPHQL_PATH) -> None:
        self._client = client
        self.path = path

    async def query(self, query: str, variables: Mapping[str, Any] | None = None) -> GraphQLResponse:
        body: dict[str, Any] = {"query": query}
        if variables:
            body["variables"] = dict(variables)

        payload = await self._client.post(self.path, body)
        if not isinstance(payload, Mapping):
            raise APIError(f"GraphQL endpoint returned {type(payload).__name__}, expected an object", url=self.path)

        response = GraphQLResponse.model_validate(payload)
        if response.has_errors:
            logger.debug("GraphQL query returned errors: %s", self.formatted_errors(response))
        return response

    async def mutate(self, mutation: str, variables: Mapping[str, Any] | None = None) -> GraphQLResponse:
        # Mutations use the same transport as queries
        return await self.query(mutation, variables)

    @staticmethod
    def has_errors(response: GraphQLResponse) -> bool:
        return response.has_errors

    @staticmethod
    def error_messages(response: GraphQLResponse) -> list[str]:
        return [e.message for e in response.errors or []]

    @classmethod
    def formatted_errors(cls, response: GraphQLResponse) -> str:
        return ", ".join(cls.error_messages(response))
