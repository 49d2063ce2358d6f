"""Admin API bearer token cache item."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone


@dataclass(frozen=True, slots=True)
class TokenCacheItem:
    """OAuth bearer token bound to one shop.

    Attributes:
        token: Opaque access token returned by the shop's token endpoint.
        expires_at: Absolute, timezone-aware expiry.
    """

    token: str
    expires_at: datetime

    @classmethod
    def from_grant(
        cls,
        token: str,
        expires_in: float,
        *,
        now: datetime | None = None,
    ) -> TokenCacheItem:
        issued_at = now or datetime.now(timezone.utc)
        return cls(token=token, expires_at=issued_at + timedelta(seconds=expires_in))

    def is_expired(self, now: datetime | None = None) -> bool:
        return self.expires_at < (now or datetime.now(timezone.utc))

    def __repr__(self) -> str:
        # Never expose the token itself.
        return f"TokenCacheItem(token='***', expires_at={self.expires_at.isoformat()})"
