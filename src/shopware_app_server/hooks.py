"""Typed publish/subscribe registry for registration protocol events.

Each ``EventName`` is bound to exactly one event class. Listeners run
sequentially in registration order and each one (sync or async) completes
before the next starts, so a later listener sees what an earlier one did to
the event (e.g. a veto reason).

A listener that raises aborts the publish: the remaining listeners do not run
and the exception propagates to the protocol step that published the event.
"""

from __future__ import annotations

import inspect
import logging
from enum import Enum
from types import MappingProxyType
from typing import Any, Awaitable, Callable, Union

from .events import (
    AppActivateEvent,
    AppDeactivateEvent,
    AppInstallEvent,
    AppUninstallEvent,
    AppUpdateEvent,
    BeforeRegistrationEvent,
    ShopAuthorizeEvent,
)

logger = logging.getLogger(__name__)

ProtocolEvent = Union[
    BeforeRegistrationEvent,
    ShopAuthorizeEvent,
    AppInstallEvent,
    AppActivateEvent,
    AppDeactivateEvent,
    AppUpdateEvent,
    AppUninstallEvent,
]

Listener = Callable[[Any], Union[Awaitable[None], None]]


class EventName(str, Enum):
    BEFORE_REGISTRATION = 'onBeforeRegistrationEvent'
    AUTHORIZE = 'onAuthorize'
    APP_INSTALL = 'onAppInstall'
    APP_ACTIVATE = 'onAppActivate'
    APP_DEACTIVATE = 'onAppDeactivate'
    APP_UPDATE = 'onAppUpdate'
    APP_UNINSTALL = 'onAppUninstall'


EVENT_TYPES = MappingProxyType(
    {
        EventName.BEFORE_REGISTRATION: BeforeRegistrationEvent,
        EventName.AUTHORIZE: ShopAuthorizeEvent,
        EventName.APP_INSTALL: AppInstallEvent,
        EventName.APP_ACTIVATE: AppActivateEvent,
        EventName.APP_DEACTIVATE: AppDeactivateEvent,
        EventName.APP_UPDATE: AppUpdateEvent,
        EventName.APP_UNINSTALL: AppUninstallEvent,
    }
)


class Hooks:
    """Registry of protocol event listeners."""

    def __init__(self) -> None:
        self._listeners: dict[EventName, list[Listener]] = {}

    def on(self, name: EventName | str, listener: Listener) -> None:
        self._listeners.setdefault(EventName(name), []).append(listener)

    def has_listeners(self, name: EventName | str) -> bool:
        return bool(self._listeners.get(EventName(name)))

    async def publish(self, name: EventName | str, event: ProtocolEvent) -> None:
        event_name = EventName(name)
        expected = EVENT_TYPES[event_name]
        if not isinstance(event, expected):
            raise TypeError(
                f'{event_name.value} expects {expected.__name__}, '
                f'got {type(event).__name__}'
            )

        listeners = self._listeners.get(event_name, [])
        if listeners:
            logger.debug('Publishing %s to %d listener(s)', event_name.value, len(listeners))

        for listener in listeners:
            result = listener(event)
            if inspect.isawaitable(result):
                await result
