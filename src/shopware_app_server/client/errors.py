"""Admin API client error hierarchy.

Every error carries the shop id and the (already parsed) response so callers
can inspect what the shop answered. Messages never include tokens or secrets.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any

import httpx

REDIRECT_DETAIL = (
    "Got a redirect response from the URL, the URL should point to the Shop "
    "without redirect"
)


@dataclass(frozen=True, slots=True)
class HttpClientResponse:
    """Status, decoded body and headers of an Admin API response."""

    status_code: int
    body: Any
    headers: httpx.Headers = field(default_factory=httpx.Headers)


class ApiClientError(Exception):
    """Base error for Admin API calls made on behalf of a shop."""

    def __init__(self, shop_id: str, message: str) -> None:
        self.shop_id = shop_id
        super().__init__(message)


class ApiClientAuthenticationFailed(ApiClientError):
    """The shop rejected the client-credentials grant."""

    def __init__(self, shop_id: str, response: HttpClientResponse) -> None:
        self.response = response
        body = response.body if isinstance(response.body, str) else json.dumps(response.body)
        super().__init__(
            shop_id,
            f"The api client authentication to shop with id: {shop_id} "
            f"with response: {body}",
        )


class ApiClientRequestFailed(ApiClientError):
    """A data call was rejected, or the shop URL answered with a redirect."""

    def __init__(self, shop_id: str, response: HttpClientResponse) -> None:
        self.response = response
        self.errors = error_entries(response.body)
        message = ", ".join(str(e.get("detail", "")) for e in self.errors)
        super().__init__(
            shop_id,
            f"Request failed with error: {message} for shop with id: {shop_id}",
        )


class ApiClientRequestAborted(ApiClientError):
    """The call was cancelled by its timeout before the shop answered."""

    def __init__(self, shop_id: str, timeout: float | None) -> None:
        self.timeout = timeout
        super().__init__(
            shop_id,
            f"Request to shop with id: {shop_id} aborted after {timeout}s",
        )


def redirect_response(resp: httpx.Response) -> HttpClientResponse:
    status = str(resp.status_code)
    return HttpClientResponse(
        status_code=resp.status_code,
        body={
            "errors": [
                {
                    "code": status,
                    "status": status,
                    "title": status,
                    "detail": REDIRECT_DETAIL,
                }
            ]
        },
        headers=resp.headers,
    )


def error_entries(body: Any) -> list[dict[str, Any]]:
    """Extract the ``errors`` list of a Shopware error body."""
    if isinstance(body, dict) and isinstance(body.get("errors"), list):
        return [e for e in body["errors"] if isinstance(e, dict)]
    if isinstance(body, str) and body:
        return [{"detail": body}]
    return []
