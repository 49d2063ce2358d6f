"""Async HTTP client for a shop's Admin API.

Each client is bound to one shop. Auth uses the OAuth client-credentials grant
with the credentials issued during the registration confirmation; the bearer
token is kept in a pluggable TokenCache so it survives across requests.

Behaviour worth knowing:
  - Redirects are never followed. A 301/302 means the registered shop URL is
    wrong and is raised as ApiClientRequestFailed.
  - A 401 on a data call clears the cached token and replays the call exactly
    once. There is no other retry.
  - Timeouts surface as ApiClientRequestAborted, never as a request failure.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Mapping

import httpx

from ..protocols import Shop, TokenCache
from .errors import (
    ApiClientAuthenticationFailed,
    ApiClientRequestAborted,
    ApiClientRequestFailed,
    HttpClientResponse,
    redirect_response,
)
from .token_cache import TokenCacheItem

logger = logging.getLogger(__name__)

_REDIRECT_STATUS_CODES = frozenset({301, 302})
_DEFAULT_TIMEOUT_SECONDS = 30.0

# Module-level shared client for connection pooling in app runtimes/tests.
_shared_async_client: httpx.AsyncClient | None = None


def _get_shared_async_client() -> httpx.AsyncClient:
    global _shared_async_client
    if _shared_async_client is None:
        _shared_async_client = httpx.AsyncClient(follow_redirects=False)
    return _shared_async_client


def _reset_shared_async_client_for_tests() -> None:
    """Test helper: clear shared client cache (does not close the instance)."""
    global _shared_async_client
    _shared_async_client = None


@dataclass(frozen=True, slots=True)
class MultipartForm:
    """Multipart form body for POST requests (e.g. media uploads)."""

    data: Mapping[str, Any] = field(default_factory=dict)
    files: Mapping[str, Any] = field(default_factory=dict)


class HttpClient:
    """Authenticated client for one shop's ``{shop_url}/api`` endpoint."""

    def __init__(
        self,
        shop: Shop,
        *,
        token_cache: TokenCache,
        http_client: httpx.AsyncClient | None = None,
        timeout_seconds: float | None = _DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        self._shop = shop
        self._token_cache = token_cache
        self._client = http_client or _get_shared_async_client()
        self._timeout = timeout_seconds

    @property
    def shop(self) -> Shop:
        return self._shop

    @property
    def api_url(self) -> str:
        return f"{self._shop.shop_url}/api"

    # ── Public API ───────────────────────────────────────────────

    async def get(
        self,
        path: str,
        headers: Mapping[str, str] | None = None,
        *,
        timeout: float | None = None,
    ) -> HttpClientResponse:
        return await self._request("GET", path, headers=headers, timeout=timeout)

    async def post(
        self,
        path: str,
        body: Any = None,
        headers: Mapping[str, str] | None = None,
        *,
        timeout: float | None = None,
    ) -> HttpClientResponse:
        """POST JSON, raw bytes or a MultipartForm.

        JSON-serializable bodies are stringified and tagged
        ``content-type: application/json``; bytes and forms pass through untouched.
        """
        request_headers = dict(headers or {})
        if isinstance(body, (bytes, bytearray, MultipartForm)):
            payload = body
        else:
            request_headers["content-type"] = "application/json"
            payload = json.dumps({} if body is None else body)
        request_headers["accept"] = "application/json"

        return await self._request(
            "POST", path, body=payload, headers=request_headers, timeout=timeout
        )

    async def put(
        self,
        path: str,
        body: Any = None,
        headers: Mapping[str, str] | None = None,
        *,
        timeout: float | None = None,
    ) -> HttpClientResponse:
        return await self._json_request("PUT", path, body, headers, timeout)

    async def patch(
        self,
        path: str,
        body: Any = None,
        headers: Mapping[str, str] | None = None,
        *,
        timeout: float | None = None,
    ) -> HttpClientResponse:
        return await self._json_request("PATCH", path, body, headers, timeout)

    async def delete(
        self,
        path: str,
        body: Any = None,
        headers: Mapping[str, str] | None = None,
        *,
        timeout: float | None = None,
    ) -> HttpClientResponse:
        return await self._json_request("DELETE", path, body, headers, timeout)

    async def get_token(self, *, timeout: float | None = None) -> str:
        """Return a valid bearer token, requesting a new one on cache miss or expiry.

        Raises:
            ApiClientAuthenticationFailed: the shop rejected the grant.
            ApiClientRequestFailed: the token endpoint answered with a redirect.
            ApiClientRequestAborted: the grant request timed out.
        """
        shop_id = self._shop.shop_id
        cached = await self._token_cache.get_token(shop_id)
        if cached is not None:
            if not cached.is_expired():
                return cached.token
            logger.debug("Admin API token expired for shop %s, refreshing", shop_id)
            await self._token_cache.clear_token(shop_id)

        resp = await self._send(
            "POST",
            f"{self.api_url}/oauth/token",
            headers={"content-type": "application/json"},
            body=json.dumps({
                "grant_type": "client_credentials",
                "client_id": self._shop.shop_client_id,
                "client_secret": self._shop.shop_client_secret,
            }),
            timeout=timeout,
        )

        if resp.status_code in _REDIRECT_STATUS_CODES:
            raise ApiClientRequestFailed(shop_id, redirect_response(resp))

        if not resp.is_success:
            content_type = resp.headers.get("content-type", "text/plain")
            body: Any = resp.text
            if "application/json" in content_type:
                try:
                    body = resp.json()
                except ValueError:
                    pass
            logger.warning(
                "Admin API authentication failed for shop %s (status=%d)",
                shop_id,
                resp.status_code,
            )
            raise ApiClientAuthenticationFailed(
                shop_id,
                HttpClientResponse(resp.status_code, body, resp.headers),
            )

        grant = resp.json()
        item = TokenCacheItem.from_grant(grant["access_token"], grant["expires_in"])
        await self._token_cache.set_token(shop_id, item)
        logger.debug("Admin API token issued for shop %s", shop_id)
        return item.token

    # ── Internals ────────────────────────────────────────────────

    async def _json_request(
        self,
        method: str,
        path: str,
        body: Any,
        headers: Mapping[str, str] | None,
        timeout: float | None,
    ) -> HttpClientResponse:
        request_headers = {
            **(headers or {}),
            "content-type": "application/json",
            "accept": "application/json",
        }
        return await self._request(
            method,
            path,
            body=json.dumps({} if body is None else body),
            headers=request_headers,
            timeout=timeout,
        )

    async def _request(
        self,
        method: str,
        path: str,
        *,
        body: str | bytes | bytearray | MultipartForm | None = None,
        headers: Mapping[str, str] | None = None,
        timeout: float | None = None,
        retried: bool = False,
    ) -> HttpClientResponse:
        shop_id = self._shop.shop_id
        token = await self.get_token(timeout=timeout)
        request_headers = {"Authorization": f"Bearer {token}", **(headers or {})}

        resp = await self._send(
            method,
            f"{self.api_url}{path}",
            headers=request_headers,
            body=body,
            timeout=timeout,
        )

        if resp.status_code in _REDIRECT_STATUS_CODES:
            raise ApiClientRequestFailed(shop_id, redirect_response(resp))

        if resp.status_code == 401 and not retried:
            logger.debug(
                "Admin API %s %s returned 401 for shop %s, retrying with a fresh token",
                method,
                path,
                shop_id,
            )
            await self._token_cache.clear_token(shop_id)
            return await self._request(
                method,
                path,
                body=body,
                headers=headers,
                timeout=timeout,
                retried=True,
            )

        if not resp.is_success:
            raise ApiClientRequestFailed(
                shop_id,
                HttpClientResponse(resp.status_code, _decode_body(resp), resp.headers),
            )

        if resp.status_code == 204:
            return HttpClientResponse(resp.status_code, {}, resp.headers)

        return HttpClientResponse(resp.status_code, _decode_body(resp), resp.headers)

    async def _send(
        self,
        method: str,
        url: str,
        *,
        headers: Mapping[str, str],
        body: str | bytes | bytearray | MultipartForm | None,
        timeout: float | None,
    ) -> httpx.Response:
        effective_timeout = timeout if timeout is not None else self._timeout
        kwargs: dict[str, Any] = {}
        if isinstance(body, MultipartForm):
            kwargs["data"] = dict(body.data)
            kwargs["files"] = dict(body.files)
        elif body is not None:
            kwargs["content"] = bytes(body) if isinstance(body, bytearray) else body

        try:
            return await self._client.request(
                method,
                url,
                headers=dict(headers),
                timeout=effective_timeout,
                follow_redirects=False,
                **kwargs,
            )
        except httpx.TimeoutException as exc:
            logger.warning(
                "Admin API %s %s timed out for shop %s after %ss",
                method,
                url,
                self._shop.shop_id,
                effective_timeout,
            )
            raise ApiClientRequestAborted(self._shop.shop_id, effective_timeout) from exc


def _decode_body(resp: httpx.Response) -> Any:
    if not resp.content:
        return {}
    try:
        return resp.json()
    except ValueError:
        return resp.text
