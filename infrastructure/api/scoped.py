"""
Taxonomy-scoped HTTP client.

Wraps any `HTTPClient` and adds the current `organization_id` / `location_id`
to outgoing requests:

- reads and deletes: merged into the query params
- writes (post/put/patch): appended to the URL query string, since the body
  shape belongs to the endpoint

Caller-supplied values always win: an id the caller already passed (in params
or in the URL query string) is never overwritten or duplicated.
"""

from collections.abc import Callable
from typing import Any
from urllib.parse import parse_qsl, urlencode, urlsplit

from domain.schemas import PaginatedResponse, TaxonomyContext
from infrastructure.api.base import HTTPClient, Params

ContextProvider = Callable[[], TaxonomyContext]


class TaxonomyAwareClient(HTTPClient):
    def __init__(self, client: HTTPClient, context_provider: ContextProvider) -> None:
        self._client = client
        self._context_provider = context_provider

    def get_unscoped(self) -> HTTPClient:
        """The wrapped client, for global resources (auth, cross-tenant admin calls)."""
        return self._client

    def taxonomy_params(self) -> dict[str, int]:
        """Ids present in the current context; empty when nothing is selected."""
        ctx = self._context_provider()
        params: dict[str, int] = {}
        if ctx.organization is not None:
            params["organization_id"] = ctx.organization.id
        if ctx.location is not None:
            params["location_id"] = ctx.location.id
        return params

    def _scoped_params(self, params: Params | None) -> dict[str, Any] | None:
        injected = self.taxonomy_params()
        if not injected:
            return dict(params) if params is not None else None
        return {**injected, **(params or {})}

    def _scoped_url(self, url: str, params: Params | None) -> str:
        injected = self.taxonomy_params()
        if not injected:
            return url

        query = urlsplit(url).query
        taken = {key for key, _ in parse_qsl(query, keep_blank_values=True)} | set(params or {})
        extra = {key: value for key, value in injected.items() if key not in taken}
        if not extra:
            return url

        separator = "&" if query else "?"
        if url.endswith(("?", "&")):
            separator = ""
        return f"{url}{separator}{urlencode(extra)}"

    # ------------------------------------------------------------------ #
    # Reads / deletes: params merge
    # ------------------------------------------------------------------ #

    async def get(self, url: str, *, params: Params | None = None) -> Any:
        return await self._client.get(url, params=self._scoped_params(params))

    async def delete(self, url: str, *, params: Params | None = None) -> Any:
        return await self._client.delete(url, params=self._scoped_params(params))

    async def get_paginated(self, url: str, *, params: Params | None = None) -> PaginatedResponse[dict[str, Any]]:
        return await self._client.get_paginated(url, params=self._scoped_params(params))

    # ------------------------------------------------------------------ #
    # Writes: URL append
    # ------------------------------------------------------------------ #

    async def post(self, url: str, json: Any = None, *, params: Params | None = None) -> Any:
        return await self._client.post(self._scoped_url(url, params), json, params=params)

    async def put(self, url: str, json: Any = None, *, params: Params | None = None) -> Any:
        return await self._client.put(self._scoped_url(url, params), json, params=params)

    async def patch(self, url: str, json: Any = None, *, params: Params | None = None) -> Any:
        return await self._client.patch(self._scoped_url(url, params), json, params=params)

    # ------------------------------------------------------------------ #
    # Token lifecycle (pass-through)
    # ------------------------------------------------------------------ #

    def get_token(self) -> str | None:
        return self._client.get_token()

    def set_token(self, token: str) -> None:
        self._client.set_token(token)

    def clear_token(self) -> None:
        self._client.clear_token()
