"""HMAC-SHA256 signing and verification for the shop <-> app protocol.

Every message between a shop and the app is authenticated with a hex-encoded
HMAC-SHA256:

  - Registration requests are signed with the app secret
    (``shopware-app-signature`` header).
  - Webhooks, the registration confirmation and browser module requests are
    signed with the per-shop secret (``shopware-shop-signature`` header or
    query parameter).
  - Responses from the app are signed with the per-shop secret
    (``shopware-app-signature`` header).

The keyed HMAC state is derived once per secret and copied for every message.
"""

from __future__ import annotations

import hashlib
import hmac
from urllib.parse import parse_qsl

from starlette.requests import Request
from starlette.responses import Response

APP_SIGNATURE_HEADER = 'shopware-app-signature'
SHOP_SIGNATURE_HEADER = 'shopware-shop-signature'
SHOP_SIGNATURE_QUERY_PARAM = 'shopware-shop-signature'


class SignatureVerificationError(Exception):
    """Raised when a signed request cannot be verified."""

    def __init__(self, code: str, detail: str = '') -> None:
        self.code = code
        self.detail = detail
        super().__init__(f'{code}: {detail}' if detail else code)


class HmacSigner:
    """Signs and verifies protocol messages.

    The signer is safe to share across concurrent requests: the key cache is
    keyed by secret value and populating it twice is harmless.
    """

    def __init__(self) -> None:
        self._key_cache: dict[str, hmac.HMAC] = {}

    def _keyed_hmac(self, secret: str) -> hmac.HMAC:
        keyed = self._key_cache.get(secret)
        if keyed is None:
            keyed = hmac.new(secret.encode('utf-8'), digestmod=hashlib.sha256)
            self._key_cache[secret] = keyed
        return keyed.copy()

    def sign(self, message: str | bytes, secret: str) -> str:
        mac = self._keyed_hmac(secret)
        mac.update(message.encode('utf-8') if isinstance(message, str) else message)
        return mac.hexdigest()

    def verify(self, signature: str, message: str | bytes, secret: str) -> bool:
        expected = self.sign(message, secret)
        return hmac.compare_digest(expected.encode('ascii'), signature.encode('utf-8'))

    def sign_response(self, response: Response, secret: str) -> None:
        """Attach ``shopware-app-signature`` computed over the full response body.

        Only rendered responses (``response.body``) can be signed; streaming
        responses must be buffered by the caller first.
        """
        body = getattr(response, 'body', None)
        if body is None:
            raise TypeError(
                f'cannot sign {type(response).__name__} without a rendered body'
            )
        response.headers[APP_SIGNATURE_HEADER] = self.sign(bytes(body), secret)

    def verify_get_request(self, request: Request, secret: str) -> None:
        """Verify a browser (module/iframe) request signed via query string.

        Raises:
            SignatureVerificationError: if the signature parameter is missing,
                no other parameters are present, or the signature is invalid.
        """
        query_string = canonical_query_string(request.url.query)
        signature = request.query_params.get(SHOP_SIGNATURE_QUERY_PARAM)

        if signature is None:
            raise SignatureVerificationError(
                'missing_signature',
                f'Missing {SHOP_SIGNATURE_QUERY_PARAM} query parameter',
            )
        if not query_string:
            raise SignatureVerificationError(
                'missing_parameters',
                'Missing query parameters to verify the GET request',
            )
        if not self.verify(signature, query_string, secret):
            raise SignatureVerificationError('invalid_signature', 'Invalid signature')


def canonical_query_string(raw_query: str) -> str:
    """Rebuild the signed string of a GET request.

    All parameters except the signature itself, in their original order, with
    URL-decoded values, joined as ``key=value`` pairs by ``&``.
    """
    pairs = parse_qsl(raw_query, keep_blank_values=True)
    return '&'.join(
        f'{key}={value}'
        for key, value in pairs
        if key != SHOP_SIGNATURE_QUERY_PARAM
    )
