import base64

import httpx
import pytest

from infrastructure.api.client import APIError, ForemanClient
from infrastructure.config import ClientConfig


def _client(handler, **kwargs) -> ForemanClient:
    return ForemanClient(base_url="https://foreman.test", transport=httpx.MockTransport(handler), **kwargs)


def _capture(headers: list[httpx.Headers]):
    def handler(request: httpx.Request) -> httpx.Response:
        headers.append(request.headers)
        return httpx.Response(200, json={"ok": True})

    return handler


@pytest.mark.asyncio
async def test_personal_access_token_is_sent_as_bearer() -> None:
    seen: list[httpx.Headers] = []
    async with _client(_capture(seen), token="pat-1234") as client:
        assert await client.get("/api/v2/status") == {"ok": True}

    assert seen[0]["Authorization"] == "Bearer pat-1234"
    assert seen[0]["X-Requested-With"] == "XMLHttpRequest"


@pytest.mark.asyncio
async def test_encoded_credentials_token_is_sent_as_basic() -> None:
    token = base64.b64encode(b"admin:changeme").decode()
    seen: list[httpx.Headers] = []
    async with _client(_capture(seen), token=token) as client:
        await client.get("/api/v2/status")

    assert seen[0]["Authorization"] == f"Basic {token}"


@pytest.mark.asyncio
async def test_explicit_credentials_and_token_lifecycle() -> None:
    seen: list[httpx.Headers] = []
    async with _client(_capture(seen), username="admin", password="secret") as client:
        await client.get("/api/v2/status")
        client.set_token("pat")
        await client.get("/api/v2/status")
        assert client.get_token() == "pat"
        client.clear_token()
        assert client.get_token() is None

    assert seen[0]["Authorization"] == "Basic " + base64.b64encode(b"admin:secret").decode()
    assert seen[1]["Authorization"] == "Bearer pat"


@pytest.mark.asyncio
async def test_error_status_raises_api_error_with_foreman_message() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(422, json={"error": {"message": "Name has already been taken"}})

    async with _client(handler) as client:
        with pytest.raises(APIError) as excinfo:
            await client.post("/api/v2/organizations", {"organization": {"name": "dup"}})

    assert excinfo.value.status_code == 422
    assert excinfo.value.message == "Name has already been taken"
    assert excinfo.value.url.endswith("/api/v2/organizations")


@pytest.mark.asyncio
async def test_transport_failure_raises_api_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    async with _client(handler) as client:
        with pytest.raises(APIError) as excinfo:
            await client.get("/api/v2/status")

    assert excinfo.value.status_code is None


@pytest.mark.asyncio
async def test_get_paginated_parses_envelope_and_drops_none_params() -> None:
    seen: list[httpx.URL] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.url)
        return httpx.Response(
            200,
            json={"results": [{"id": 1}], "total": 3, "subtotal": 1, "page": 2, "per_page": 1, "sort": {"by": None, "order": None}},
        )

    async with _client(handler) as client:
        page = await client.get_paginated("/api/v2/organizations", params={"page": 2, "search": None})

    assert page.total == 3
    assert page.page == 2
    assert page.results == [{"id": 1}]
    assert dict(seen[0].params) == {"page": "2"}


@pytest.mark.asyncio
async def test_from_cfg_uses_configured_base_url() -> None:
    seen: list[httpx.URL] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.url)
        return httpx.Response(204)

    cfg = ClientConfig(base_url="https://foreman.example.com/")
    async with ForemanClient.from_cfg(cfg, transport=httpx.MockTransport(handler)) as client:
        assert await client.delete("/api/v2/organizations/3") is None

    assert str(seen[0]) == "https://foreman.example.com/api/v2/organizations/3"
