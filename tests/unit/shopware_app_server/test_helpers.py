"""Tests for action-button responses and admin notifications."""

from __future__ import annotations

import json
from unittest.mock import AsyncMock

import httpx
import pytest

from shopware_app_server.client.http_client import HttpClient
from shopware_app_server.helpers import (
    NotificationRequest,
    create_modal_response,
    create_new_tab_response,
    create_notification_response,
    send_notification,
)
from shopware_app_server.inmemory import InMemoryTokenCache, SimpleShop


# ── Action-button responses ──────────────────────────────────────────


def test_new_tab_response():
    resp = create_new_tab_response('https://example.test/report')
    assert json.loads(resp.body) == {
        'actionType': 'openNewTab',
        'payload': {'redirectUrl': 'https://example.test/report'},
    }


def test_notification_response():
    resp = create_notification_response('error', 'Export failed')
    assert resp.status_code == 200
    assert json.loads(resp.body) == {
        'actionType': 'notification',
        'payload': {'status': 'error', 'message': 'Export failed'},
    }


def test_modal_response_defaults():
    resp = create_modal_response('https://app.test/modal')
    assert json.loads(resp.body)['payload'] == {
        'iframeUrl': 'https://app.test/modal',
        'size': 'medium',
        'expand': False,
    }


def test_modal_response_custom():
    resp = create_modal_response('https://app.test/modal', size='fullscreen', expand=True)
    body = json.loads(resp.body)
    assert body['actionType'] == 'openModal'
    assert body['payload']['size'] == 'fullscreen'
    assert body['payload']['expand'] is True


# ── Notifications ────────────────────────────────────────────────────


class TestNotificationRequest:

    def test_minimal_payload(self):
        assert NotificationRequest('info', 'Hi').to_payload() == {'status': 'info', 'message': 'Hi'}

    def test_full_payload(self):
        payload = NotificationRequest(
            'critical', 'Sync broken', admin_only=True, required_privileges=('product:read',)
        ).to_payload()
        assert payload == {
            'status': 'critical',
            'message': 'Sync broken',
            'adminOnly': True,
            'requiredPrivileges': ['product:read'],
        }


@pytest.mark.asyncio
async def test_send_notification_posts_to_admin_api():
    shop = SimpleShop('shop-1', 'https://shop.test', 'secret')
    shop.set_shop_credentials('id', 'sk')
    mock_http = AsyncMock()
    mock_http.request = AsyncMock(side_effect=[
        httpx.Response(200, json={'access_token': 'tok', 'expires_in': 600}),
        httpx.Response(204),
    ])
    client = HttpClient(shop, token_cache=InMemoryTokenCache(), http_client=mock_http)

    await send_notification(client, NotificationRequest('positive', 'Done'))

    call = mock_http.request.call_args
    assert call.args == ('POST', 'https://shop.test/api/notification')
    assert json.loads(call.kwargs['content']) == {'status': 'positive', 'message': 'Done'}
