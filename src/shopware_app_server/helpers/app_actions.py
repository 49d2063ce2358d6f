"""Action-button responses understood by the Shopware administration.

An action button webhook may answer with an action for the admin UI to
perform. The response body must be signed like every other app response,
which the shop context middleware does automatically.
"""

from __future__ import annotations

from typing import Any, Literal

from starlette.responses import JSONResponse

NotificationStatus = Literal["success", "error", "info", "warning"]
ModalSize = Literal["small", "medium", "large", "fullscreen"]


def _action_response(action_type: str, payload: dict[str, Any]) -> JSONResponse:
    return JSONResponse({"actionType": action_type, "payload": payload})


def create_new_tab_response(redirect_url: str) -> JSONResponse:
    """Open ``redirect_url`` in a new browser tab."""
    return _action_response("openNewTab", {"redirectUrl": redirect_url})


def create_notification_response(status: NotificationStatus, message: str) -> JSONResponse:
    """Show a notification in the administration."""
    return _action_response("notification", {"status": status, "message": message})


def create_modal_response(
    iframe_url: str,
    size: ModalSize = "medium",
    expand: bool = False,
) -> JSONResponse:
    """Open a modal that renders ``iframe_url``."""
    return _action_response(
        "openModal",
        {"iframeUrl": iframe_url, "size": size, "expand": expand},
    )
