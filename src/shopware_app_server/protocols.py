"""Repository and token-cache protocol interfaces for dependency injection.

These protocols define the contracts that concrete storage backends (InMemory
for local dev and tests, a database or key-value store in production) must
satisfy. The registration engine and the app factory accept any implementation
that matches these protocols.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from .client.token_cache import TokenCacheItem


@runtime_checkable
class Shop(Protocol):
    """One registered shop (tenant) and its credentials."""

    @property
    def shop_id(self) -> str: ...
    @property
    def shop_url(self) -> str: ...
    @property
    def shop_secret(self) -> str: ...
    @property
    def shop_client_id(self) -> str | None: ...
    @property
    def shop_client_secret(self) -> str | None: ...
    @property
    def shop_active(self) -> bool: ...

    def set_shop_credentials(self, client_id: str, client_secret: str) -> None: ...
    def set_shop_active(self, active: bool) -> None: ...


@runtime_checkable
class ShopRepository(Protocol):
    """Shop CRUD operations."""

    async def create_shop(self, shop_id: str, shop_url: str, shop_secret: str) -> None: ...
    async def get_shop_by_id(self, shop_id: str) -> Shop | None: ...
    async def update_shop(self, shop: Shop) -> None: ...
    async def delete_shop(self, shop_id: str) -> None: ...


@runtime_checkable
class TokenCache(Protocol):
    """Per-shop Admin API bearer token storage."""

    async def get_token(self, shop_id: str) -> TokenCacheItem | None: ...
    async def set_token(self, shop_id: str, item: TokenCacheItem) -> None: ...
    async def clear_token(self, shop_id: str) -> None: ...
