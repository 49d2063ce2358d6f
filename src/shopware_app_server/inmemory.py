"""In-memory shop repository and token cache implementations.

These are used when ENVIRONMENT=local and throughout the test suite. They
satisfy the protocol interfaces but store everything in dicts (no persistence
across restarts).
"""

from __future__ import annotations

from dataclasses import dataclass

from .client.token_cache import TokenCacheItem


@dataclass(slots=True)
class SimpleShop:
    shop_id: str
    shop_url: str
    shop_secret: str
    shop_client_id: str | None = None
    shop_client_secret: str | None = None
    shop_active: bool = False

    def set_shop_credentials(self, client_id: str, client_secret: str) -> None:
        self.shop_client_id = client_id
        self.shop_client_secret = client_secret

    def set_shop_active(self, active: bool) -> None:
        self.shop_active = active

    def __repr__(self) -> str:
        return (
            f"SimpleShop(shop_id={self.shop_id!r}, shop_url={self.shop_url!r}, "
            f"shop_active={self.shop_active!r})"
        )


class InMemoryShopRepository:
    def __init__(self) -> None:
        self._shops: dict[str, SimpleShop] = {}

    async def create_shop(self, shop_id: str, shop_url: str, shop_secret: str) -> None:
        self._shops[shop_id] = SimpleShop(
            shop_id=shop_id,
            shop_url=shop_url,
            shop_secret=shop_secret,
        )

    async def get_shop_by_id(self, shop_id: str) -> SimpleShop | None:
        return self._shops.get(shop_id)

    async def update_shop(self, shop: SimpleShop) -> None:
        self._shops[shop.shop_id] = shop

    async def delete_shop(self, shop_id: str) -> None:
        self._shops.pop(shop_id, None)

    def __len__(self) -> int:
        return len(self._shops)


class InMemoryTokenCache:
    def __init__(self) -> None:
        self._tokens: dict[str, TokenCacheItem] = {}

    async def get_token(self, shop_id: str) -> TokenCacheItem | None:
        return self._tokens.get(shop_id)

    async def set_token(self, shop_id: str, item: TokenCacheItem) -> None:
        self._tokens[shop_id] = item

    async def clear_token(self, shop_id: str) -> None:
        self._tokens.pop(shop_id, None)
