"""Tests for per-shop secret generation."""

from __future__ import annotations

import pytest

from shopware_app_server.security.secrets import (
    MIN_SHOP_SECRET_LENGTH,
    SHOP_SECRET_ALPHABET,
    generate_shop_secret,
)


def test_default_length():
    assert len(generate_shop_secret()) == MIN_SHOP_SECRET_LENGTH == 120


def test_alphanumeric_only():
    secret = generate_shop_secret(500)
    assert secret.isascii()
    assert set(secret) <= set(SHOP_SECRET_ALPHABET)


def test_secrets_are_unique():
    assert len({generate_shop_secret() for _ in range(50)}) == 50


def test_longer_secrets_allowed():
    assert len(generate_shop_secret(256)) == 256


def test_short_length_rejected():
    with pytest.raises(ValueError):
        generate_shop_secret(32)
