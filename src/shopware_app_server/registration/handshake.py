"""Registration handshake and app lifecycle endpoints.

Implements the shop lifecycle as seen by the app:

  unknown -> pending (authorize) -> confirmed (authorize_callback)
  confirmed -> active <-> inactive (activate / deactivate)
  any known state -> deleted (failed confirmation, veto, uninstall)

Trust model:
  - ``authorize`` is signed with the app secret, the only secret both sides
    know before a shop record exists.
  - ``authorize_callback`` and every lifecycle webhook are signed with the
    shop secret issued by ``authorize``.

Every method takes the raw request and returns a finished response; nothing
raises for a client-side problem.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any

from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from ..events import (
    AppActivateEvent,
    AppDeactivateEvent,
    AppInstallEvent,
    AppUninstallEvent,
    AppUpdateEvent,
    BeforeRegistrationEvent,
    ShopAuthorizeEvent,
)
from ..hooks import EventName, Hooks
from ..identity.context import Context, ContextRejected, ContextResolver
from ..protocols import ShopRepository
from ..security.secrets import generate_shop_secret
from ..security.signer import APP_SIGNATURE_HEADER, SHOP_SIGNATURE_HEADER, HmacSigner
from ..settings import AppConfig

logger = logging.getLogger(__name__)

_DUPLICATE_SLASHES = re.compile(r'([^:])(//+)')
_TRAILING_SLASHES = re.compile(r'/+$')


def normalize_shop_url(shop_url: str) -> str:
    """Collapse duplicate slashes (except after the scheme) and strip trailing ones.

    >>> normalize_shop_url('https://x.com///a//b/')
    'https://x.com/a/b'
    """
    return _TRAILING_SLASHES.sub('', _DUPLICATE_SLASHES.sub(r'\1/', shop_url))


def invalid_request_response(message: str, status_code: int = 401) -> JSONResponse:
    return JSONResponse({'message': message}, status_code=status_code)


class Registration:
    """The registration protocol engine.

    Args:
        config: App name, app secret and confirmation URL.
        repository: Shop storage.
        signer: HMAC signer shared with the context resolver.
        context_resolver: Authenticates lifecycle webhooks.
        hooks: Listeners that observe or veto protocol steps.
    """

    def __init__(
        self,
        config: AppConfig,
        repository: ShopRepository,
        signer: HmacSigner,
        context_resolver: ContextResolver,
        hooks: Hooks,
    ) -> None:
        self._config = config
        self._repository = repository
        self._signer = signer
        self._context_resolver = context_resolver
        self._hooks = hooks

    # ── Handshake ────────────────────────────────────────────────

    async def authorize(self, request: Request) -> Response:
        """Handle the registration request and answer with proof + shop secret.

        The shop then calls ``confirmation_url``, handled by ``authorize_callback``.
        """
        params = request.query_params
        signature = request.headers.get(APP_SIGNATURE_HEADER)
        shop_id = params.get('shop-id')
        shop_url = params.get('shop-url')
        timestamp = params.get('timestamp')

        if signature is None or shop_id is None or shop_url is None or timestamp is None:
            return invalid_request_response('Invalid Request', 400)

        signed = f'shop-id={shop_id}&shop-url={shop_url}&timestamp={timestamp}'
        if not self._signer.verify(signature, signed, self._config.app_secret):
            logger.warning('Registration rejected: bad app signature (shop_id=%s)', shop_id)
            return invalid_request_response('Cannot validate app signature')

        event = BeforeRegistrationEvent(request=request, shop_id=shop_id, shop_url=shop_url)
        await self._hooks.publish(EventName.BEFORE_REGISTRATION, event)
        if event.reason:
            logger.info('Registration vetoed for shop %s: %s', shop_id, event.reason)
            return invalid_request_response(event.reason, 400)

        shop_secret = generate_shop_secret()
        await self._repository.create_shop(shop_id, normalize_shop_url(shop_url), shop_secret)
        logger.info('Shop %s registered, awaiting confirmation', shop_id)

        return JSONResponse({
            'proof': self._signer.sign(
                shop_id + shop_url + self._config.app_name,
                self._config.app_secret,
            ),
            'secret': shop_secret,
            'confirmation_url': self._config.authorize_callback_url,
        })

    async def authorize_callback(self, request: Request) -> Response:
        """Confirm the handshake and store the Admin API credentials.

        A body whose signature does not match the stored shop secret deletes
        the shop record, whatever state it is in. The request itself is not
        authenticated at that point, so anyone who knows a shop id can delete
        an already confirmed, active shop this way; the shop then has to
        register again. Callers exposing this endpoint publicly should keep
        shop ids unguessable or rate-limit the confirmation route.
        """
        raw_body = await request.body()
        signature = request.headers.get(SHOP_SIGNATURE_HEADER)

        try:
            body = json.loads(raw_body)
        except ValueError:
            return invalid_request_response('Invalid Request', 400)

        if (
            not isinstance(body, dict)
            or not isinstance(body.get('shopId'), str)
            or not isinstance(body.get('apiKey'), str)
            or not isinstance(body.get('secretKey'), str)
            or signature is None
        ):
            return invalid_request_response('Invalid Request', 400)

        shop = await self._repository.get_shop_by_id(body['shopId'])
        if shop is None:
            logger.warning('Confirmation for unknown shop %s', body['shopId'])
            return invalid_request_response('Invalid shop given')

        if not self._signer.verify(signature, raw_body, shop.shop_secret):
            # A failed confirmation ends the handshake; drop the pending shop.
            await self._repository.delete_shop(shop.shop_id)
            logger.warning('Confirmation signature invalid, shop %s deleted', shop.shop_id)
            return invalid_request_response('Cannot validate app signature')

        shop.set_shop_credentials(body['apiKey'], body['secretKey'])

        event = ShopAuthorizeEvent(request=request, shop=shop)
        await self._hooks.publish(EventName.AUTHORIZE, event)
        if event.reason:
            await self._repository.delete_shop(shop.shop_id)
            logger.info('Confirmation vetoed for shop %s: %s', shop.shop_id, event.reason)
            return invalid_request_response(event.reason, 403)

        await self._repository.update_shop(shop)
        logger.info('Shop %s confirmed', shop.shop_id)
        return Response(status_code=204)

    # ── Lifecycle webhooks ───────────────────────────────────────

    async def install(self, request: Request) -> Response:
        ctx = await self._resolve(request)
        if isinstance(ctx, Response):
            return ctx

        event = AppInstallEvent(request=request, shop=ctx.shop, app_version=_app_version(ctx.payload))
        await self._hooks.publish(EventName.APP_INSTALL, event)
        return Response(status_code=204)

    async def activate(self, request: Request) -> Response:
        ctx = await self._resolve(request)
        if isinstance(ctx, Response):
            return ctx

        await self._hooks.publish(EventName.APP_ACTIVATE, AppActivateEvent(request=request, shop=ctx.shop))
        ctx.shop.set_shop_active(True)
        await self._repository.update_shop(ctx.shop)
        logger.info('Shop %s activated', ctx.shop.shop_id)
        return Response(status_code=204)

    async def deactivate(self, request: Request) -> Response:
        ctx = await self._resolve(request)
        if isinstance(ctx, Response):
            return ctx

        await self._hooks.publish(EventName.APP_DEACTIVATE, AppDeactivateEvent(request=request, shop=ctx.shop))
        ctx.shop.set_shop_active(False)
        await self._repository.update_shop(ctx.shop)
        logger.info('Shop %s deactivated', ctx.shop.shop_id)
        return Response(status_code=204)

    async def update(self, request: Request) -> Response:
        ctx = await self._resolve(request)
        if isinstance(ctx, Response):
            return ctx

        event = AppUpdateEvent(request=request, shop=ctx.shop, app_version=_app_version(ctx.payload))
        await self._hooks.publish(EventName.APP_UPDATE, event)
        return Response(status_code=204)

    async def uninstall(self, request: Request) -> Response:
        ctx = await self._resolve(request)
        if isinstance(ctx, Response):
            return ctx

        keep_user_data = _event_payload(ctx.payload).get('keepUserData')
        event = AppUninstallEvent(
            request=request,
            shop=ctx.shop,
            keep_user_data=keep_user_data if isinstance(keep_user_data, bool) else None,
        )
        await self._hooks.publish(EventName.APP_UNINSTALL, event)

        if event.keep_user_data is False:
            await self._repository.delete_shop(ctx.shop.shop_id)
            logger.info('Shop %s uninstalled, data deleted', ctx.shop.shop_id)
        else:
            logger.info('Shop %s uninstalled, data kept', ctx.shop.shop_id)
        return Response(status_code=204)

    async def _resolve(self, request: Request) -> Context | Response:
        result = await self._context_resolver.resolve_api(request)
        if isinstance(result, ContextRejected):
            exc = result.error
            logger.warning('Lifecycle webhook rejected (%s): %s', exc.code, exc.detail)
            status_code = 400 if exc.code == 'malformed_request' else 401
            return invalid_request_response(exc.detail or 'Invalid Request', status_code)
        return result.context


def _event_payload(payload: dict[str, Any]) -> dict[str, Any]:
    data = payload.get('data')
    inner = data.get('payload') if isinstance(data, dict) else None
    return inner if isinstance(inner, dict) else {}


def _app_version(payload: dict[str, Any]) -> str | None:
    version = _event_payload(payload).get('appVersion')
    if version is None:
        source = payload.get('source')
        version = source.get('appVersion') if isinstance(source, dict) else None
    return version if isinstance(version, str) else None
