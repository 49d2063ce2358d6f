"""Message signing and secret generation."""

from .secrets import generate_shop_secret
from .signer import (
    APP_SIGNATURE_HEADER,
    SHOP_SIGNATURE_HEADER,
    HmacSigner,
    SignatureVerificationError,
)

__all__ = [
    "APP_SIGNATURE_HEADER",
    "SHOP_SIGNATURE_HEADER",
    "HmacSigner",
    "SignatureVerificationError",
    "generate_shop_secret",
]
