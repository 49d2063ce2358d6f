"""Admin notifications sent through the shop's Admin API."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal

from ..client.http_client import HttpClient

NotificationLevel = Literal["neutral", "info", "attention", "critical", "positive"]


@dataclass(frozen=True, slots=True)
class NotificationRequest:
    status: NotificationLevel
    message: str
    admin_only: bool = False
    """Only admins can see the notification."""
    required_privileges: tuple[str, ...] = field(default_factory=tuple)
    """The user must hold all of these privileges to see the notification."""

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"status": self.status, "message": self.message}
        if self.admin_only:
            payload["adminOnly"] = True
        if self.required_privileges:
            payload["requiredPrivileges"] = list(self.required_privileges)
        return payload


async def send_notification(http_client: HttpClient, notification: NotificationRequest) -> None:
    await http_client.post("/notification", notification.to_payload())
