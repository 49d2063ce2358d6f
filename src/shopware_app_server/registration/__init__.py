"""Registration handshake and lifecycle protocol engine."""

from .handshake import Registration, normalize_shop_url

__all__ = ["Registration", "normalize_shop_url"]
