"""Per-shop secret generation."""

from __future__ import annotations

import secrets
import string

SHOP_SECRET_ALPHABET = string.ascii_letters + string.digits
MIN_SHOP_SECRET_LENGTH = 120


def generate_shop_secret(length: int = MIN_SHOP_SECRET_LENGTH) -> str:
    """Generate the symmetric secret handed to a shop during registration.

    Uses ``secrets.choice()`` so every character comes from the OS CSPRNG.

    Args:
        length: Number of alphanumeric characters (at least 120).

    Returns:
        Random ASCII alphanumeric string.
    """
    if length < MIN_SHOP_SECRET_LENGTH:
        raise ValueError(f'shop secret length must be >= {MIN_SHOP_SECRET_LENGTH}')
    return ''.join(secrets.choice(SHOP_SECRET_ALPHABET) for _ in range(length))
