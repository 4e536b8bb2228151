"""Interface shared by the plain HTTP client and its taxonomy-scoped decorator."""

from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any

from domain.schemas import PaginatedResponse

Params = Mapping[str, Any]


class HTTPClient(ABC):
    """
    Generic JSON-over-HTTP client.

    All concrete clients must implement the verb methods and the token
    lifecycle; `get_paginated` returns the REST pagination envelope.
    """

    @abstractmethod
    async def get(self, url: str, *, params: Params | None = None) -> Any: ...

    @abstractmethod
    async def post(self, url: str, json: Any = None, *, params: Params | None = None) -> Any: ...

    @abstractmethod
    async def put(self, url: str, json: Any = None, *, params: Params | None = None) -> Any: ...

    @abstractmethod
    async def patch(self, url: str, json: Any = None, *, params: Params | None = None) -> Any: ...

    @abstractmethod
    async def delete(self, url: str, *, params: Params | None = None) -> Any: ...

    @abstractmethod
    async def get_paginated(self, url: str, *, params: Params | None = None) -> PaginatedResponse[dict[str, Any]]: ...

    @abstractmethod
    def get_token(self) -> str | None: ...

    @abstractmethod
    def set_token(self, token: str) -> None: ...

    @abstractmethod
    def clear_token(self) -> None: ...
