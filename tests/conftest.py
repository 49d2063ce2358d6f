"""Pytest configuration for shopware_app_server tests."""
import sys
from pathlib import Path

# Add src/ to path for src-layout imports
_PROJECT_ROOT = Path(__file__).parent.parent
_SRC = _PROJECT_ROOT / 'src'
if str(_SRC) not in sys.path:
    sys.path.insert(0, str(_SRC))

import json

import pytest
from starlette.requests import Request

from shopware_app_server.inmemory import InMemoryShopRepository, InMemoryTokenCache
from shopware_app_server.security.signer import HmacSigner
from shopware_app_server.server import AppServer
from shopware_app_server.settings import AppConfig

APP_NAME = 'TestApp'
APP_SECRET = 'test-app-secret-0123456789'
CONFIRMATION_URL = 'https://app.test/app/register/confirm'


def _make_request(
    method: str = 'GET',
    path: str = '/',
    query: str = '',
    headers: dict[str, str] | None = None,
    body: bytes | str | dict | None = None,
) -> Request:
    if isinstance(body, dict):
        body = json.dumps(body)
    if isinstance(body, str):
        body = body.encode('utf-8')
    raw_body = body or b''

    async def receive():
        return {'type': 'http.request', 'body': raw_body, 'more_body': False}

    scope = {
        'type': 'http',
        'http_version': '1.1',
        'method': method,
        'scheme': 'https',
        'server': ('app.test', 443),
        'client': ('127.0.0.1', 50000),
        'root_path': '',
        'path': path,
        'raw_path': path.encode('utf-8'),
        'query_string': query.encode('utf-8'),
        'headers': [
            (k.lower().encode('latin-1'), v.encode('latin-1'))
            for k, v in (headers or {}).items()
        ],
    }
    return Request(scope, receive)


@pytest.fixture
def make_request():
    """Factory for raw starlette Requests."""
    return _make_request


@pytest.fixture
def signer() -> HmacSigner:
    return HmacSigner()


@pytest.fixture
def shop_repository() -> InMemoryShopRepository:
    return InMemoryShopRepository()


@pytest.fixture
def token_cache() -> InMemoryTokenCache:
    return InMemoryTokenCache()


@pytest.fixture
def app_config() -> AppConfig:
    return AppConfig(
        app_name=APP_NAME,
        app_secret=APP_SECRET,
        authorize_callback_url=CONFIRMATION_URL,
    )


@pytest.fixture
def app_server(app_config, shop_repository, token_cache) -> AppServer:
    return AppServer(app_config, shop_repository, token_cache=token_cache)
