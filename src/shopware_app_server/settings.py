"""App server configuration settings.

AppServerSettings is the single configuration object accepted by create_app().
Values are plain fields; only from_env() looks at the process environment, so
tests build settings directly.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

_MIN_APP_SECRET_LENGTH = 16
_DEFAULT_APP_NAME = "LocalApp"
_DEFAULT_APP_SECRET = "local-app-secret"
_DEFAULT_HTTP_TIMEOUT_SECONDS = 30.0


@dataclass(frozen=True, slots=True)
class AppConfig:
    """Static identity of the app used by the registration handshake."""

    app_name: str
    app_secret: str
    authorize_callback_url: str

    def __repr__(self) -> str:
        return (
            f"AppConfig(app_name={self.app_name!r}, app_secret='***', "
            f"authorize_callback_url={self.authorize_callback_url!r})"
        )


@dataclass(frozen=True, slots=True)
class AppServerSettings:
    """Configuration for the app server FastAPI application.

    Defaults run a local app with a throwaway secret. Any other environment
    needs a real app_name and an app_secret of at least 16 characters.
    """

    # ── Environment ────────────────────────────────────────────────
    environment: str = "local"
    """One of: local, dev, staging, production."""

    # ── App identity ───────────────────────────────────────────────
    app_name: str = _DEFAULT_APP_NAME
    """Technical app name as declared in the app manifest."""

    app_secret: str = _DEFAULT_APP_SECRET
    """App secret shared with the shop during registration. Never log this."""

    app_url: str = ""
    """Public base URL of this app. Empty means: derive from the first request."""

    # ── Routes ─────────────────────────────────────────────────────
    registration_path: str = "/app/register"
    registration_confirm_path: str = "/app/register/confirm"
    app_install_path: str = "/app/install"
    app_activate_path: str = "/app/activate"
    app_update_path: str = "/app/update"
    app_deactivate_path: str = "/app/deactivate"
    app_delete_path: str = "/app/delete"

    app_path_prefix: str = "/app/"
    """Every request under this prefix is authenticated and its response signed."""

    # ── Outbound Admin API ─────────────────────────────────────────
    http_timeout_seconds: float = _DEFAULT_HTTP_TIMEOUT_SECONDS

    @property
    def is_local(self) -> bool:
        return self.environment == "local"

    @property
    def lifecycle_paths(self) -> frozenset[str]:
        """Paths handled by the registration engine itself."""
        return frozenset({
            self.registration_path,
            self.registration_confirm_path,
            self.app_install_path,
            self.app_activate_path,
            self.app_update_path,
            self.app_deactivate_path,
            self.app_delete_path,
        })

    def authorize_callback_url(self, base_url: str | None = None) -> str:
        base = (self.app_url or base_url or "").rstrip("/")
        return f"{base}{self.registration_confirm_path}"

    def app_config(self, base_url: str | None = None) -> AppConfig:
        return AppConfig(
            app_name=self.app_name,
            app_secret=self.app_secret,
            authorize_callback_url=self.authorize_callback_url(base_url),
        )

    def validate(self) -> list[str]:
        """Collect configuration problems; an empty list means the settings are usable."""
        errors: list[str] = []
        if not self.app_name:
            errors.append(f"{self.environment}: app_name is required")
        if not self.app_secret:
            errors.append(f"{self.environment}: app_secret is required")
        if not self.is_local and len(self.app_secret) < _MIN_APP_SECRET_LENGTH:
            errors.append(
                f"{self.environment}: app_secret must be >= "
                f"{_MIN_APP_SECRET_LENGTH} characters"
            )
        if self.http_timeout_seconds <= 0:
            errors.append("http_timeout_seconds must be positive")
        return errors

    @classmethod
    def from_env(cls, env: dict[str, str] | None = None) -> AppServerSettings:
        """Read ENVIRONMENT, APP_NAME, APP_SECRET, APP_URL and SHOPWARE_HTTP_TIMEOUT."""
        if env is None:
            env = dict(os.environ)

        timeout_raw = env.get("SHOPWARE_HTTP_TIMEOUT", "")
        timeout = float(timeout_raw) if timeout_raw else _DEFAULT_HTTP_TIMEOUT_SECONDS

        return cls(
            environment=env.get("ENVIRONMENT", "local"),
            app_name=env.get("APP_NAME", _DEFAULT_APP_NAME),
            app_secret=env.get("APP_SECRET", _DEFAULT_APP_SECRET),
            app_url=env.get("APP_URL", ""),
            http_timeout_seconds=timeout,
        )
