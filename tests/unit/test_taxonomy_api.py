import base64
import json
import typing

import httpx
import pytest

from domain.context import TaxonomyStore
from domain.schemas import EnhancedLocation, EnhancedOrganization
from infrastructure.api.factory import make_clients
from infrastructure.api.taxonomy import OrganizationsAPI
from infrastructure.config import ClientConfig


def _gid(type_name: str, entity_id: int) -> str:
    return base64.b64encode(f"{type_name}-{entity_id}".encode()).decode()


class FakeForeman:
    def __init__(self, *, graphql_ok: bool = True) -> None:
        self.graphql_ok = graphql_ok
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if path == "/api/graphql":
            if not self.graphql_ok:
                return httpx.Response(200, json={"errors": [{"message": "Field 'organizations' doesn't exist"}]})
            query = json.loads(request.content)["query"]
            if "locations" in query:
                nodes = [{"id": _gid("Location", 3), "name": "Berlin", "ancestry": None}]
                return httpx.Response(200, json={"data": {"locations": {"edges": [{"node": n} for n in nodes]}}})
            nodes = [
                {"id": _gid("Organization", 1), "name": "Root", "title": "Root", "ancestry": None, "label": "root"},
                {"id": _gid("Organization", 2), "name": "Child", "title": "Root/Child", "ancestry": "1", "label": "child"},
            ]
            return httpx.Response(200, json={"data": {"organizations": {"edges": [{"node": n} for n in nodes]}}})

        if path == "/api/v2/organizations":
            return httpx.Response(
                200,
                json={"results": [{"id": 1, "name": "Root", "hosts_count": 12, "users_count": 2}], "total": 1, "subtotal": 1},
            )
        if path == "/api/v2/organizations/1/hosts":
            return httpx.Response(200, json={"results": [], "total": 12})
        if path == "/api/v2/locations/3":
            return httpx.Response(200, json={"id": 3, "name": "Berlin", "parent_id": None})
        if path == "/api/v2/locations":
            return httpx.Response(201, json={"id": 4, "name": "Munich", "parent_id": 3})
        return httpx.Response(404, json={"error": {"message": f"no route {path}"}})


def _stack(fake: FakeForeman):
    cfg = ClientConfig(base_url="https://foreman.test", token="pat")
    return make_clients(cfg, TaxonomyStore(), transport=httpx.MockTransport(fake))


@pytest.mark.asyncio
async def test_get_all_uses_graphql_with_sentinel_counts() -> None:
    fake = FakeForeman()
    clients = _stack(fake)

    organizations, locations = await clients.taxonomy.get_all()
    await clients.aclose()

    assert [o.id for o in organizations.results] == [1, 2]
    child = organizations.results[1]
    assert isinstance(child, EnhancedOrganization)
    assert child.parent_id == 1
    assert child.hosts_count == 0
    assert child.users_count == 0
    assert isinstance(locations.results[0], EnhancedLocation)
    assert locations.results[0].title == "Berlin"
    assert all(r.url.path == "/api/graphql" for r in fake.requests)


@pytest.mark.asyncio
async def test_list_falls_back_to_rest_with_default_params() -> None:
    fake = FakeForeman(graphql_ok=False)
    clients = _stack(fake)

    page = await clients.taxonomy.organizations.list({"per_page": 5})
    await clients.aclose()

    assert page.results == [EnhancedOrganization(id=1, name="Root", hosts_count=12, users_count=2)]
    rest = fake.requests[-1]
    assert rest.url.path == "/api/v2/organizations"
    assert rest.url.params["per_page"] == "5"
    assert rest.url.params["include_hosts_count"] == "true"


@pytest.mark.asyncio
async def test_rest_only_operations() -> None:
    fake = FakeForeman()
    clients = _stack(fake)

    assert await clients.taxonomy.organizations.hosts_count(1) == 12
    location = await clients.taxonomy.locations.get(3)
    created = await clients.taxonomy.locations.create({"name": "Munich", "parent_id": 3})
    await clients.aclose()

    assert location.name == "Berlin"
    assert created.parent_id == 3
    assert json.loads(fake.requests[-1].content) == {"location": {"name": "Munich", "parent_id": 3}}


@pytest.mark.asyncio
async def test_search_goes_to_rest_with_search_param() -> None:
    fake = FakeForeman()
    clients = _stack(fake)

    await clients.taxonomy.organizations.search("name ~ Ro")
    await clients.aclose()

    assert fake.requests[-1].url.params["search"] == "name ~ Ro"


def test_list_method_does_not_shadow_builtin_in_annotations() -> None:
    hints = typing.get_type_hints(OrganizationsAPI.list_for_current_user)

    assert typing.get_origin(hints["return"]) is list
