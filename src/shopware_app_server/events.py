"""Protocol events published by the registration engine.

Events live for a single engine call. Listeners may read them and, where the
event supports it, influence the engine's next step:

  - ``BeforeRegistrationEvent`` / ``ShopAuthorizeEvent``: ``reject_registration()``
    vetoes the handshake.
  - ``AppUninstallEvent``: setting ``keep_user_data = False`` deletes the shop.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from starlette.requests import Request

from .protocols import Shop


@dataclass(slots=True)
class _Vetoable:
    _reason: str | None = field(default=None, init=False, repr=False)

    def reject_registration(self, reason: str) -> None:
        self._reason = reason

    @property
    def reason(self) -> str | None:
        return self._reason


@dataclass(slots=True)
class BeforeRegistrationEvent(_Vetoable):
    """A verified registration request, before any shop record exists."""

    request: Request = field(repr=False)
    shop_id: str
    shop_url: str


@dataclass(slots=True)
class ShopAuthorizeEvent(_Vetoable):
    """The shop confirmed the handshake; credentials are set but not yet stored."""

    request: Request = field(repr=False)
    shop: Shop


@dataclass(slots=True)
class AppInstallEvent:
    request: Request = field(repr=False)
    shop: Shop
    app_version: str | None = None


@dataclass(slots=True)
class AppActivateEvent:
    request: Request = field(repr=False)
    shop: Shop


@dataclass(slots=True)
class AppDeactivateEvent:
    request: Request = field(repr=False)
    shop: Shop


@dataclass(slots=True)
class AppUpdateEvent:
    request: Request = field(repr=False)
    shop: Shop
    app_version: str | None = None


@dataclass(slots=True)
class AppUninstallEvent:
    request: Request = field(repr=False)
    shop: Shop
    keep_user_data: bool | None = None
