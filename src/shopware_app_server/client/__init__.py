"""Authenticated Admin API client for registered shops."""

from .errors import (
    ApiClientAuthenticationFailed,
    ApiClientError,
    ApiClientRequestAborted,
    ApiClientRequestFailed,
    HttpClientResponse,
)
from .http_client import HttpClient, MultipartForm
from .token_cache import TokenCacheItem

__all__ = [
    "ApiClientAuthenticationFailed",
    "ApiClientError",
    "ApiClientRequestAborted",
    "ApiClientRequestFailed",
    "HttpClient",
    "HttpClientResponse",
    "MultipartForm",
    "TokenCacheItem",
]
