"""Inbound request authentication."""

from .context import (
    Context,
    ContextRejected,
    ContextResolutionError,
    ContextResolved,
    ContextResolver,
)

__all__ = [
    "Context",
    "ContextRejected",
    "ContextResolutionError",
    "ContextResolved",
    "ContextResolver",
]
