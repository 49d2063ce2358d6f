"""Tests for the InMemory shop repository and token cache."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from shopware_app_server.client.token_cache import TokenCacheItem
from shopware_app_server.inmemory import (
    InMemoryShopRepository,
    InMemoryTokenCache,
    SimpleShop,
)
from shopware_app_server.protocols import Shop, ShopRepository, TokenCache


class TestProtocols:

    def test_inmemory_repository_satisfies_protocol(self):
        assert isinstance(InMemoryShopRepository(), ShopRepository)

    def test_inmemory_token_cache_satisfies_protocol(self):
        assert isinstance(InMemoryTokenCache(), TokenCache)

    def test_simple_shop_satisfies_protocol(self):
        assert isinstance(SimpleShop('id', 'https://shop.test', 'secret'), Shop)


class TestSimpleShop:

    def test_defaults(self):
        shop = SimpleShop('id', 'https://shop.test', 'secret')
        assert shop.shop_client_id is None
        assert shop.shop_client_secret is None
        assert shop.shop_active is False

    def test_set_credentials_sets_both(self):
        shop = SimpleShop('id', 'https://shop.test', 'secret')
        shop.set_shop_credentials('client', 'client-secret')
        assert (shop.shop_client_id, shop.shop_client_secret) == ('client', 'client-secret')

    def test_repr_hides_secrets(self):
        shop = SimpleShop('id', 'https://shop.test', 'super-secret')
        shop.set_shop_credentials('client', 'client-secret')
        text = repr(shop)
        assert 'super-secret' not in text
        assert 'client-secret' not in text


class TestInMemoryShopRepository:

    @pytest.mark.asyncio
    async def test_create_and_get(self):
        repo = InMemoryShopRepository()
        await repo.create_shop('shop-1', 'https://shop.test', 'secret')

        shop = await repo.get_shop_by_id('shop-1')
        assert shop is not None
        assert shop.shop_url == 'https://shop.test'
        assert shop.shop_secret == 'secret'
        assert shop.shop_active is False

    @pytest.mark.asyncio
    async def test_get_unknown_returns_none(self):
        assert await InMemoryShopRepository().get_shop_by_id('missing') is None

    @pytest.mark.asyncio
    async def test_update_persists_changes(self):
        repo = InMemoryShopRepository()
        await repo.create_shop('shop-1', 'https://shop.test', 'secret')
        shop = await repo.get_shop_by_id('shop-1')
        shop.set_shop_active(True)
        await repo.update_shop(shop)

        assert (await repo.get_shop_by_id('shop-1')).shop_active is True

    @pytest.mark.asyncio
    async def test_delete_is_idempotent(self):
        repo = InMemoryShopRepository()
        await repo.create_shop('shop-1', 'https://shop.test', 'secret')
        await repo.delete_shop('shop-1')
        await repo.delete_shop('shop-1')

        assert await repo.get_shop_by_id('shop-1') is None
        assert len(repo) == 0


class TestInMemoryTokenCache:

    @pytest.mark.asyncio
    async def test_set_get_clear(self):
        cache = InMemoryTokenCache()
        item = TokenCacheItem('token', datetime.now(timezone.utc) + timedelta(hours=1))

        assert await cache.get_token('shop-1') is None
        await cache.set_token('shop-1', item)
        assert await cache.get_token('shop-1') == item
        assert await cache.get_token('shop-2') is None

        await cache.clear_token('shop-1')
        assert await cache.get_token('shop-1') is None

    @pytest.mark.asyncio
    async def test_clear_unknown_shop_is_noop(self):
        await InMemoryTokenCache().clear_token('missing')


class TestTokenCacheItem:

    def test_from_grant_sets_absolute_expiry(self):
        now = datetime(2026, 1, 1, tzinfo=timezone.utc)
        item = TokenCacheItem.from_grant('token', 600, now=now)
        assert item.expires_at == now + timedelta(seconds=600)

    def test_is_expired(self):
        now = datetime(2026, 1, 1, tzinfo=timezone.utc)
        item = TokenCacheItem('token', now)
        assert item.is_expired(now + timedelta(seconds=1)) is True
        assert item.is_expired(now - timedelta(seconds=1)) is False

    def test_negative_expires_in_is_already_expired(self):
        assert TokenCacheItem.from_grant('token', -500).is_expired() is True

    def test_repr_hides_token(self):
        item = TokenCacheItem.from_grant('very-secret-token', 60)
        assert 'very-secret-token' not in repr(item)
