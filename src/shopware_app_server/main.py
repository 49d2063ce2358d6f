"""FastAPI application factory for a Shopware app backend.

The create_app() factory is the single entry point for building the ASGI
application. It wires middleware (request-ID, shop context), the registration
and lifecycle routes, and injects the shop repository / token cache via
dependency injection.

Usage:
    # Local development (InMemory shop repository)
    from shopware_app_server import create_app, AppServerSettings
    app = create_app(AppServerSettings())

    # Non-local (real repository injected)
    app = create_app(AppServerSettings.from_env(), shop_repository=repo)

    # Listeners
    app = create_app(settings, setup=lambda server: server.hooks.on(EventName.APP_INSTALL, on_install))

Business routes registered under ``settings.app_path_prefix`` receive an
authenticated Context through ``Depends(get_shop_context)`` and their
responses are signed automatically.
"""

from __future__ import annotations

import logging
import re
import time
import uuid
from contextlib import asynccontextmanager
from typing import Callable

import httpx
from fastapi import APIRouter, FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from .identity.context import Context, ContextRejected
from .observability import get_logger, request_id_ctx
from .protocols import ShopRepository, TokenCache
from .server import AppServer
from .settings import AppServerSettings

logger = logging.getLogger(__name__)
access_logger = get_logger("shopware_app_server.access")

# Allowed request-ID format: 8-128 chars of hex, dash, or alphanumeric.
_VALID_REQUEST_ID = re.compile(r"^[a-zA-Z0-9\-]{8,128}$")

SetupCallback = Callable[[AppServer], None]


class AppServerProvider:
    """Builds the AppServer exactly once and caches it on the application.

    When ``settings.app_url`` is empty the confirmation URL is derived from
    the base URL of the first request.
    """

    def __init__(
        self,
        settings: AppServerSettings,
        shop_repository: ShopRepository,
        *,
        token_cache: TokenCache | None = None,
        http_client: httpx.AsyncClient | None = None,
        setup: SetupCallback | None = None,
    ) -> None:
        self._settings = settings
        self._shop_repository = shop_repository
        self._token_cache = token_cache
        self._http_client = http_client
        self._setup = setup
        self._server: AppServer | None = None

        if settings.app_url:
            self._build(None)

    def get(self, request: Request) -> AppServer:
        if self._server is None:
            return self._build(str(request.base_url))
        return self._server

    def _build(self, base_url: str | None) -> AppServer:
        server = AppServer(
            self._settings.app_config(base_url),
            self._shop_repository,
            token_cache=self._token_cache,
            http_client=self._http_client,
            http_timeout_seconds=self._settings.http_timeout_seconds,
        )
        if self._setup is not None:
            self._setup(server)
        logger.info(
            "App server ready (app=%s, confirmation_url=%s)",
            server.config.app_name,
            server.config.authorize_callback_url,
        )
        self._server = server
        return server


def get_app_server(request: Request) -> AppServer:
    """FastAPI dependency returning the application's AppServer."""
    return request.app.state.app_server_provider.get(request)


class ShopContextUnavailable(Exception):
    """A route asked for a shop Context on a request the middleware did not authenticate."""


def invalid_shop_request_response() -> JSONResponse:
    return JSONResponse(status_code=400, content={"message": "Invalid request"})


def get_shop_context(request: Request) -> Context:
    """FastAPI dependency returning the authenticated shop Context.

    Raises:
        ShopContextUnavailable: the shop context middleware did not run for this
            path. create_app() renders it as the same 400 the middleware sends.
    """
    context: Context | None = getattr(request.state, "shop_context", None)
    if context is None:
        raise ShopContextUnavailable(request.url.path)
    return context


async def _shop_context_unavailable_handler(
    request: Request, exc: ShopContextUnavailable
) -> JSONResponse:
    logger.warning("Route %s requires a shop context but none was resolved", exc)
    return invalid_shop_request_response()


# ── Middleware ──────────────────────────────────────────────────────


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Generate or accept X-Request-ID and propagate it via contextvars.

    A valid incoming ID is reused, anything else is replaced with a fresh
    UUID. The ID lands in ``request_id_ctx`` so every log entry emitted while
    handling the request carries it.
    """

    async def dispatch(self, request: Request, call_next):  # type: ignore[override]
        incoming_id = request.headers.get("x-request-id", "")
        if incoming_id and _VALID_REQUEST_ID.match(incoming_id):
            request_id = incoming_id
        else:
            request_id = str(uuid.uuid4())

        request.state.request_id = request_id
        token = request_id_ctx.set(request_id)
        try:
            response = await call_next(request)
        finally:
            request_id_ctx.reset(token)

        response.headers["X-Request-ID"] = request_id
        return response


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log every completed request with method, path, status, and duration."""

    async def dispatch(self, request: Request, call_next):  # type: ignore[override]
        start = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start) * 1000

        access_logger.info(
            "request_completed",
            method=request.method,
            path=request.url.path,
            status=response.status_code,
            duration_ms=round(duration_ms, 2),
        )
        return response


class ShopContextMiddleware(BaseHTTPMiddleware):
    """Authenticate app requests and sign their responses.

    For each request under ``settings.app_path_prefix``:
    1. Registration and lifecycle paths pass through (the engine authenticates them).
    2. GET requests are resolved from the signed query string, everything
       else from the signed JSON body.
    3. On failure return 400 ``{"message": "Invalid request"}``.
    4. On success set ``request.state.shop_context`` and sign the response
       body with the shop secret.
    """

    def __init__(self, app, settings: AppServerSettings) -> None:
        super().__init__(app)
        self._prefix = settings.app_path_prefix
        self._passthrough = settings.lifecycle_paths

    async def dispatch(self, request: Request, call_next):  # type: ignore[override]
        request.state.shop_context = None
        path = request.url.path

        if not path.startswith(self._prefix) or path in self._passthrough:
            return await call_next(request)

        server = get_app_server(request)
        resolver = server.context_resolver
        if request.method == "GET":
            result = await resolver.resolve_browser(request)
        else:
            result = await resolver.resolve_api(request)

        if isinstance(result, ContextRejected):
            logger.warning(
                "Shop context rejected for %s (%s)",
                path,
                result.error.code,
            )
            return invalid_shop_request_response()

        request.state.shop_context = result.context
        response = await call_next(request)

        body = b"".join([chunk async for chunk in response.body_iterator])
        signed = Response(content=body, status_code=response.status_code)
        signed.raw_headers = list(response.raw_headers)
        server.signer.sign_response(signed, result.context.shop.shop_secret)
        return signed


# ── Routes ──────────────────────────────────────────────────────────


def _create_registration_router(settings: AppServerSettings) -> APIRouter:
    router = APIRouter(tags=["registration"])

    @router.get(settings.registration_path)
    async def register(request: Request):
        return await get_app_server(request).registration.authorize(request)

    @router.post(settings.registration_confirm_path)
    async def register_confirm(request: Request):
        return await get_app_server(request).registration.authorize_callback(request)

    @router.post(settings.app_install_path)
    async def app_install(request: Request):
        return await get_app_server(request).registration.install(request)

    @router.post(settings.app_activate_path)
    async def app_activate(request: Request):
        return await get_app_server(request).registration.activate(request)

    @router.post(settings.app_update_path)
    async def app_update(request: Request):
        return await get_app_server(request).registration.update(request)

    @router.post(settings.app_deactivate_path)
    async def app_deactivate(request: Request):
        return await get_app_server(request).registration.deactivate(request)

    @router.post(settings.app_delete_path)
    async def app_delete(request: Request):
        return await get_app_server(request).registration.uninstall(request)

    return router


# ── Factory ─────────────────────────────────────────────────────────


def create_app(
    settings: AppServerSettings | None = None,
    *,
    shop_repository: ShopRepository | None = None,
    token_cache: TokenCache | None = None,
    http_client: httpx.AsyncClient | None = None,
    setup: SetupCallback | None = None,
) -> FastAPI:
    """Create a configured app-server FastAPI application.

    Args:
        settings: Application settings. Omitted means AppServerSettings().
        shop_repository: Shop storage. Local mode defaults to InMemory;
            non-local mode requires it.
        token_cache: Admin API token cache. Defaults to InMemory.
        http_client: Outbound httpx client shared by all Admin API clients.
        setup: Called once with the AppServer after it is built (register
            hook listeners here).

    Raises:
        ValueError: If settings validation fails.
        ValueError: If non-local environment has no shop repository.
    """
    if settings is None:
        settings = AppServerSettings()

    errors = settings.validate()
    if errors:
        raise ValueError(
            "App server settings validation failed:\n"
            + "\n".join(f"  - {e}" for e in errors)
        )

    if shop_repository is None:
        if not settings.is_local:
            raise ValueError(
                f"Non-local environment ({settings.environment}) requires "
                "shop_repository to be explicitly provided"
            )
        from .inmemory import InMemoryShopRepository

        shop_repository = InMemoryShopRepository()

    provider = AppServerProvider(
        settings,
        shop_repository,
        token_cache=token_cache,
        http_client=http_client,
        setup=setup,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("App server startup (environment=%s)", settings.environment)
        yield
        logger.info("App server shutdown")

    app = FastAPI(
        title="Shopware App Server",
        description="Registration, lifecycle webhooks and signed app endpoints",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.app_server_provider = provider

    # ── Middleware stack (applied in reverse order) ──────────────
    # Order of execution: RequestID -> RequestLogging -> ShopContext -> route handler
    app.add_middleware(ShopContextMiddleware, settings=settings)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_exception_handler(ShopContextUnavailable, _shop_context_unavailable_handler)

    @app.get("/health")
    async def health():
        return {
            "status": "ok",
            "environment": settings.environment,
        }

    app.include_router(_create_registration_router(settings))

    return app


# Serve with `python -m shopware_app_server`, or point uvicorn at the factory:
#   uvicorn shopware_app_server.main:create_app --factory
