"""Per-request shop context resolution.

This is the security boundary for every protected endpoint. Two transports:

  - API (webhooks, action buttons): JSON body with a ``source.shopId``
    envelope, signed over the exact raw body with the shop secret in the
    ``shopware-shop-signature`` header.
  - Browser (admin modules, iframes): query string carrying ``shop-id`` and a
    ``shopware-shop-signature`` parameter over the remaining parameters.

``from_api`` / ``from_browser`` raise ContextResolutionError; the
``resolve_*`` variants return an explicit ContextResolved / ContextRejected
result for callers that prefer matching over catching.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Callable, TypeVar, Union

from pydantic import BaseModel
from starlette.requests import Request

from ..client.http_client import HttpClient
from ..protocols import Shop, ShopRepository
from ..security.signer import (
    SHOP_SIGNATURE_HEADER,
    HmacSigner,
    SignatureVerificationError,
)

logger = logging.getLogger(__name__)

SHOP_ID_QUERY_PARAM = 'shop-id'

HttpClientFactory = Callable[[Shop], HttpClient]
PayloadModel = TypeVar('PayloadModel', bound=BaseModel)


class ContextResolutionError(Exception):
    """Raised when an inbound request cannot be authenticated.

    Codes: ``malformed_request``, ``unknown_shop``, ``missing_signature``,
    ``invalid_signature``.
    """

    def __init__(self, code: str, detail: str = '') -> None:
        self.code = code
        self.detail = detail
        super().__init__(f'{code}: {detail}' if detail else code)


@dataclass(frozen=True, slots=True)
class Context:
    """Authenticated, request-scoped bundle of shop + payload + Admin API client."""

    shop: Shop
    payload: dict[str, Any]
    http_client: HttpClient

    def payload_as(self, model: type[PayloadModel]) -> PayloadModel:
        """Validate the payload into a pydantic model (see ``models.py``)."""
        return model.model_validate(self.payload)


@dataclass(frozen=True, slots=True)
class ContextResolved:
    context: Context


@dataclass(frozen=True, slots=True)
class ContextRejected:
    error: ContextResolutionError


ContextResult = Union[ContextResolved, ContextRejected]


class ContextResolver:
    """Authenticate inbound requests and build a Context.

    Args:
        repository: Shop lookup.
        signer: Signature verification.
        http_client_factory: Builds the Admin API client bound to a shop.
    """

    def __init__(
        self,
        repository: ShopRepository,
        signer: HmacSigner,
        http_client_factory: HttpClientFactory,
    ) -> None:
        self._repository = repository
        self._signer = signer
        self._http_client_factory = http_client_factory

    async def from_api(self, request: Request) -> Context:
        raw_body = await request.body()
        try:
            body = json.loads(raw_body)
        except ValueError as exc:
            raise ContextResolutionError('malformed_request', 'Body is not valid JSON') from exc

        source = body.get('source') if isinstance(body, dict) else None
        shop_id = source.get('shopId') if isinstance(source, dict) else None
        if not isinstance(shop_id, str) or not shop_id:
            raise ContextResolutionError('malformed_request', 'Missing source.shopId')

        shop = await self._get_shop(shop_id)

        signature = request.headers.get(SHOP_SIGNATURE_HEADER)
        if signature is None:
            raise ContextResolutionError(
                'missing_signature', f'Missing {SHOP_SIGNATURE_HEADER} header'
            )

        if not self._signer.verify(signature, raw_body, shop.shop_secret):
            logger.warning('Invalid webhook signature for shop %s', shop_id)
            raise ContextResolutionError('invalid_signature', 'Invalid signature')

        return Context(shop=shop, payload=body, http_client=self._http_client_factory(shop))

    async def from_browser(self, request: Request) -> Context:
        shop_id = request.query_params.get(SHOP_ID_QUERY_PARAM)
        if shop_id is None:
            raise ContextResolutionError(
                'malformed_request', f'Missing {SHOP_ID_QUERY_PARAM} query parameter'
            )

        shop = await self._get_shop(shop_id)

        try:
            self._signer.verify_get_request(request, shop.shop_secret)
        except SignatureVerificationError as exc:
            if exc.code == 'invalid_signature':
                logger.warning('Invalid browser request signature for shop %s', shop_id)
            raise ContextResolutionError(
                'invalid_signature' if exc.code == 'invalid_signature' else 'missing_signature',
                exc.detail,
            ) from exc

        return Context(
            shop=shop,
            payload=dict(request.query_params),
            http_client=self._http_client_factory(shop),
        )

    async def resolve_api(self, request: Request) -> ContextResult:
        try:
            return ContextResolved(await self.from_api(request))
        except ContextResolutionError as exc:
            return ContextRejected(exc)

    async def resolve_browser(self, request: Request) -> ContextResult:
        try:
            return ContextResolved(await self.from_browser(request))
        except ContextResolutionError as exc:
            return ContextRejected(exc)

    async def _get_shop(self, shop_id: str) -> Shop:
        shop = await self._repository.get_shop_by_id(shop_id)
        if shop is None:
            raise ContextResolutionError('unknown_shop', f'Cannot find shop by id {shop_id}')
        return shop
