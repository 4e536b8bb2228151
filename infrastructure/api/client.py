"""Async HTTP client for the Foreman REST API (httpx)."""

import base64
import logging
from collections.abc import Mapping
from typing import Any

import httpx

from domain.schemas import PaginatedResponse
from infrastructure.api.base import HTTPClient, Params
from infrastructure.config.models import ClientConfig

logger = logging.getLogger(__name__)

DEFAULT_HEADERS = {
    "Content-Type": "application/json",
    "Accept": "application/json",
    "X-Requested-With": "XMLHttpRequest",
}


class APIError(Exception):
    """Non-2xx response or transport failure from the HTTP layer."""

    def __init__(self, message: str, *, status_code: int | None = None, url: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.url = url

    def __str__(self) -> str:
        prefix = f"HTTP {self.status_code} " if self.status_code is not None else ""
        return f"{prefix}{self.message}" + (f" ({self.url})" if self.url else "")


def _is_basic_token(token: str) -> bool:
    """A token that base64-decodes to `user:password` is sent as Basic auth, anything else as Bearer."""
    try:
        decoded = base64.b64decode(token, validate=True).decode("utf-8")
    except ValueError:
        return False
    return ":" in decoded


def _clean_params(params: Params | None) -> dict[str, Any] | None:
    if not params:
        return None
    return {k: v for k, v in params.items() if v is not None}


def _error_message(response: httpx.Response) -> str:
    # Foreman wraps errors as {"error": {"message": ..., "details": ...}}
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, Mapping):
        err = body.get("error")
        if isinstance(err, Mapping) and err.get("message"):
            return str(err["message"])
        if isinstance(err, str) and err:
            return err
        if body.get("message"):
            return str(body["message"])
    return response.reason_phrase or f"Request failed with status {response.status_code}"


class ForemanClient(HTTPClient):
    """
    Thin JSON wrapper over `httpx.AsyncClient`.

    Auth precedence:
    - token set: `Basic <token>` when it decodes to `user:password`, else `Bearer <token>`
    - otherwise explicit username/password as HTTP Basic
    """

    def __init__(
        self,
        *,
        base_url: str,
        token: str | None = None,
        username: str | None = None,
        password: str | None = None,
        timeout_s: float = 30.0,
        verify_ssl: bool = True,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._token = token
        self._basic_auth = httpx.BasicAuth(username, password) if username and password else None
        self._http = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=httpx.Timeout(timeout_s),
            headers=DEFAULT_HEADERS,
            verify=verify_ssl,
            transport=transport,
        )

    @classmethod
    def from_cfg(cls, cfg: ClientConfig, *, transport: httpx.AsyncBaseTransport | None = None) -> "ForemanClient":
        return cls(
            base_url=cfg.base_url,
            token=cfg.token,
            username=cfg.username,
            password=cfg.password,
            timeout_s=cfg.timeout_s,
            verify_ssl=cfg.verify_ssl,
            transport=transport,
        )

    # ------------------------------------------------------------------ #
    # Token lifecycle
    # ------------------------------------------------------------------ #

    def get_token(self) -> str | None:
        return self._token

    def set_token(self, token: str) -> None:
        self._token = token

    def clear_token(self) -> None:
        self._token = None

    def _auth_kwargs(self) -> dict[str, Any]:
        if self._token:
            scheme = "Basic" if _is_basic_token(self._token) else "Bearer"
            return {"headers": {"Authorization": f"{scheme} {self._token}"}, "auth": None}
        if self._basic_auth is not None:
            return {"auth": self._basic_auth}
        return {}

    # ------------------------------------------------------------------ #
    # Verbs
    # ------------------------------------------------------------------ #

    async def request(self, method: str, url: str, *, params: Params | None = None, json: Any = None) -> Any:
        """Send one request and return the decoded JSON body (None for empty bodies)."""
        kwargs: dict[str, Any] = {"params": _clean_params(params), **self._auth_kwargs()}
        if json is not None:
            kwargs["json"] = json

        try:
            response = await self._http.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            raise APIError(f"{method} {url} failed: {e}", url=url) from e

        if response.is_error:
            raise APIError(
                _error_message(response),
                status_code=response.status_code,
                url=str(response.request.url),
            )

        logger.debug("%s %s -> %d", method, response.request.url, response.status_code)
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise APIError("Response body is not valid JSON", status_code=response.status_code, url=url) from e

    async def get(self, url: str, *, params: Params | None = None) -> Any:
        return await self.request("GET", url, params=params)

    async def post(self, url: str, json: Any = None, *, params: Params | None = None) -> Any:
        return await self.request("POST", url, params=params, json=json)

    async def put(self, url: str, json: Any = None, *, params: Params | None = None) -> Any:
        return await self.request("PUT", url, params=params, json=json)

    async def patch(self, url: str, json: Any = None, *, params: Params | None = None) -> Any:
        return await self.request("PATCH", url, params=params, json=json)

    async def delete(self, url: str, *, params: Params | None = None) -> Any:
        return await self.request("DELETE", url, params=params)

    async def get_paginated(self, url: str, *, params: Params | None = None) -> PaginatedResponse[dict[str, Any]]:
        payload = await self.get(url, params=params)
        if not isinstance(payload, Mapping):
            raise APIError(f"Expected a pagination envelope, got {type(payload).__name__}", url=url)
        return PaginatedResponse[dict[str, Any]].model_validate(payload)

    # ------------------------------------------------------------------ #
    # Lifecycle
    # ------------------------------------------------------------------ #

    async def aclose(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> "ForemanClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()
