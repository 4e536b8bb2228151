"""
Organizations / locations API.

List reads go through the dual-transport executor (GraphQL, then REST);
single-entity reads and writes are REST only.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from typing import Any, ClassVar, Generic, TypeVar

from domain.schemas import EnhancedLocation, EnhancedOrganization, PaginatedResponse
from infrastructure.api.base import HTTPClient, Params
from infrastructure.constants import CURRENT_USER_PATH, DEFAULT_PER_PAGE, LOCATIONS_PATH, ORGANIZATIONS_PATH, REST_PREFIX
from infrastructure.transport.executor import DualTransportExecutor, LogicalQuery, resolve_node_id

logger = logging.getLogger(__name__)

EntityT = TypeVar("EntityT", EnhancedOrganization, EnhancedLocation)

# Fields GraphQL does not select; REST always returns them
GRAPHQL_DEFAULTS: dict[str, Any] = {"hosts_count": 0, "users_count": 0}

ORGANIZATION_FIELDS = "id name title description ancestry label"
LOCATION_FIELDS = "id name title description ancestry"


def _list_query(operation: str, field: str, fields: str) -> str:
    return f"query {operation} {{ {field} {{ edges {{ node {{ {fields} }} }} }} }}"


def _user_list_query(operation: str, field: str, fields: str) -> str:
    return f"query {operation} {{ currentUser {{ {field} {{ edges {{ node {{ {fields} }} }} }} }} }}"


def _parent_from_ancestry(ancestry: Any) -> int | None:
    """Foreman ancestry is a '/'-joined id chain, root first; the last id is the parent."""
    if not isinstance(ancestry, str) or not ancestry.strip():
        return None
    last = ancestry.strip().strip("/").split("/")[-1]
    return int(last) if last.isdigit() and int(last) > 0 else None


def taxonomy_node(node: dict[str, Any]) -> dict[str, Any]:
    """Map a GraphQL organization/location node onto the REST entity shape."""
    mapped = resolve_node_id(node)
    mapped["name"] = mapped.get("name") or ""
    mapped["title"] = mapped.get("title") or mapped["name"]
    if mapped.get("parent_id") is None:
        mapped["parent_id"] = _parent_from_ancestry(mapped.get("ancestry"))
    return mapped


class _TaxonomyResourceAPI(Generic[EntityT]):
    """Shared implementation; subclasses pin the entity type and paths."""

    kind: ClassVar[str]
    plural: ClassVar[str]
    collection_path: ClassVar[str]
    graphql_fields: ClassVar[str]
    model: type[EntityT]

    def __init__(
        self,
        client: HTTPClient,
        executor: DualTransportExecutor,
        *,
        rest_prefix: str = REST_PREFIX,
        per_page: int = DEFAULT_PER_PAGE,
    ) -> None:
        self._client = client
        self._executor = executor
        self.rest_prefix = rest_prefix
        self.per_page = per_page

    @property
    def base_path(self) -> str:
        return f"{self.rest_prefix}{self.collection_path}"

    def _item_path(self, entity_id: int, suffix: str = "") -> str:
        return f"{self.base_path}/{int(entity_id)}{suffix}"

    def _list_params(self, params: Params | None) -> dict[str, Any]:
        # Caller params override the defaults
        return {
            "per_page": self.per_page,
            "include_hosts_count": True,
            "include_users_count": True,
            **(params or {}),
        }

    def _validate_page(self, page: PaginatedResponse[dict[str, Any]]) -> PaginatedResponse[EntityT]:
        return PaginatedResponse[self.model].model_validate(page.model_dump())  # type: ignore[valid-type]

    async def list(self, params: Params | None = None) -> PaginatedResponse[EntityT]:
        query = LogicalQuery(
            name=f"{self.plural}.list",
            graphql_query=_list_query(self.plural.capitalize(), self.plural, self.graphql_fields),
            field_path=(self.plural,),
            rest_path=self.base_path,
            rest_params=self._list_params(params),
            node_mapper=taxonomy_node,
            defaults=GRAPHQL_DEFAULTS,
        )
        return self._validate_page(await self._executor.execute(query))

    async def list_for_current_user(self) -> list[EntityT]:
        """Entities the authenticated user is assigned to."""
        query = LogicalQuery(
            name=f"{self.plural}.current_user",
            graphql_query=_user_list_query(f"User{self.plural.capitalize()}", self.plural, self.graphql_fields),
            field_path=("currentUser", self.plural),
            rest_path=f"{self.rest_prefix}{CURRENT_USER_PATH}",
            rest_results_key=self.plural,
            node_mapper=taxonomy_node,
            defaults=GRAPHQL_DEFAULTS,
        )
        return [self.model.model_validate(item) for item in await self._executor.execute_list(query)]

    async def search(self, query: str, params: Params | None = None) -> PaginatedResponse[EntityT]:
        # GraphQL list does not filter; searches go to REST directly
        payload = await self._client.get_paginated(self.base_path, params={**self._list_params(params), "search": query})
        return self._validate_page(payload)

    async def get(self, entity_id: int) -> EntityT:
        payload = await self._client.get(
            self._item_path(entity_id),
            params={"include_hosts_count": True, "include_users_count": True},
        )
        return self.model.model_validate(payload)

    async def create(self, data: Mapping[str, Any]) -> EntityT:
        payload = await self._client.post(self.base_path, {self.kind: dict(data)})
        logger.info("Created %s %r", self.kind, data.get("name"))
        return self.model.model_validate(payload)

    async def update(self, entity_id: int, data: Mapping[str, Any]) -> EntityT:
        payload = await self._client.put(self._item_path(entity_id), {self.kind: dict(data)})
        return self.model.model_validate(payload)

    async def delete(self, entity_id: int) -> None:
        await self._client.delete(self._item_path(entity_id))
        logger.info("Deleted %s %d", self.kind, entity_id)

    async def _count(self, entity_id: int, resource: str) -> int:
        payload = await self._client.get(self._item_path(entity_id, f"/{resource}"), params={"per_page": 1})
        total = payload.get("total") if isinstance(payload, Mapping) else None
        return int(total) if isinstance(total, int) else 0

    async def hosts_count(self, entity_id: int) -> int:
        return await self._count(entity_id, "hosts")

    async def users_count(self, entity_id: int) -> int:
        return await self._count(entity_id, "users")


class OrganizationsAPI(_TaxonomyResourceAPI[EnhancedOrganization]):
    kind = "organization"
    plural = "organizations"
    collection_path = ORGANIZATIONS_PATH
    graphql_fields = ORGANIZATION_FIELDS
    model = EnhancedOrganization


class LocationsAPI(_TaxonomyResourceAPI[EnhancedLocation]):
    kind = "location"
    plural = "locations"
    collection_path = LOCATIONS_PATH
    graphql_fields = LOCATION_FIELDS
    model = EnhancedLocation


class TaxonomyAPI:
    """Organizations and locations behind one facade."""

    def __init__(self, organizations: OrganizationsAPI, locations: LocationsAPI) -> None:
        self.organizations = organizations
        self.locations = locations

    async def get_all(
        self, params: Params | None = None
    ) -> tuple[PaginatedResponse[EnhancedOrganization], PaginatedResponse[EnhancedLocation]]:
        """Both lists, fetched concurrently."""
        organizations, locations = await asyncio.gather(self.organizations.list(params), self.locations.list(params))
        return organizations, locations

    async def search_all(
        self, query: str, params: Params | None = None
    ) -> tuple[PaginatedResponse[EnhancedOrganization], PaginatedResponse[EnhancedLocation]]:
        organizations, locations = await asyncio.gather(
            self.organizations.search(query, params),
            self.locations.search(query, params),
        )
        return organizations, locations

    async def get_all_for_current_user(self) -> tuple[list[EnhancedOrganization], list[EnhancedLocation]]:
        organizations, locations = await asyncio.gather(
            self.organizations.list_for_current_user(),
            self.locations.list_for_current_user(),
        )
        return organizations, locations
