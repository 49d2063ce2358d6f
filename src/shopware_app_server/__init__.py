"""Registration handshake, webhook authentication and Admin API client for Shopware apps."""

from .client import (
    ApiClientAuthenticationFailed,
    ApiClientRequestAborted,
    ApiClientRequestFailed,
    HttpClient,
)
from .hooks import EventName, Hooks
from .identity import Context, ContextResolutionError, ContextResolver
from .inmemory import InMemoryShopRepository, InMemoryTokenCache, SimpleShop
from .main import create_app, get_shop_context
from .protocols import Shop, ShopRepository, TokenCache
from .registration import Registration
from .security import HmacSigner
from .server import AppServer
from .settings import AppConfig, AppServerSettings

__all__ = [
    "ApiClientAuthenticationFailed",
    "ApiClientRequestAborted",
    "ApiClientRequestFailed",
    "AppConfig",
    "AppServer",
    "AppServerSettings",
    "Context",
    "ContextResolutionError",
    "ContextResolver",
    "EventName",
    "HmacSigner",
    "Hooks",
    "HttpClient",
    "InMemoryShopRepository",
    "InMemoryTokenCache",
    "Registration",
    "Shop",
    "ShopRepository",
    "SimpleShop",
    "TokenCache",
    "create_app",
    "get_shop_context",
]
