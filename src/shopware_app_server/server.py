"""AppServer: composition root of the protocol engine.

Wires signer, token cache, Admin API client factory, context resolver, hooks
and registration around one ShopRepository. Construct it once at process start
and share it; it holds no per-request state.

Usage:
    server = AppServer(
        AppConfig(app_name="MyApp", app_secret="...", authorize_callback_url="https://app/confirm"),
        repository=InMemoryShopRepository(),
    )
    server.hooks.on(EventName.APP_INSTALL, on_install)
    response = await server.registration.authorize(request)
"""

from __future__ import annotations

import httpx

from .client.http_client import HttpClient
from .hooks import Hooks
from .identity.context import ContextResolver
from .inmemory import InMemoryTokenCache
from .protocols import Shop, ShopRepository, TokenCache
from .registration.handshake import Registration
from .security.signer import HmacSigner
from .settings import AppConfig


class AppServer:
    """Protocol engine bound to one app identity and one shop repository."""

    def __init__(
        self,
        config: AppConfig,
        repository: ShopRepository,
        *,
        token_cache: TokenCache | None = None,
        http_client: httpx.AsyncClient | None = None,
        http_timeout_seconds: float | None = 30.0,
    ) -> None:
        self.config = config
        self.repository = repository
        self.token_cache: TokenCache = token_cache or InMemoryTokenCache()
        self.signer = HmacSigner()
        self.hooks = Hooks()
        self._http_client = http_client
        self._http_timeout_seconds = http_timeout_seconds

        self.context_resolver = ContextResolver(
            repository,
            self.signer,
            self.http_client_for,
        )
        self.registration = Registration(
            config,
            repository,
            self.signer,
            self.context_resolver,
            self.hooks,
        )

    def http_client_for(self, shop: Shop) -> HttpClient:
        """Build an Admin API client bound to ``shop`` sharing this server's token cache."""
        return HttpClient(
            shop,
            token_cache=self.token_cache,
            http_client=self._http_client,
            timeout_seconds=self._http_timeout_seconds,
        )
