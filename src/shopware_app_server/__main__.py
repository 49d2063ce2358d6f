"""Run the app server with uvicorn.

    python -m shopware_app_server

Reads AppServerSettings from the environment (APP_NAME, APP_SECRET, APP_URL,
ENVIRONMENT, SHOPWARE_HTTP_TIMEOUT). Shops are kept in memory, so this entry
point is only accepted for ENVIRONMENT=local; hosted deployments build their
own app with create_app(shop_repository=...).
"""

import os

import uvicorn

from .main import create_app
from .observability import configure_logging
from .settings import AppServerSettings


def main():
    configure_logging()
    host = os.environ.get("HOST", "127.0.0.1")
    port = int(os.environ.get("PORT", "8000"))
    app = create_app(AppServerSettings.from_env())
    uvicorn.run(app, host=host, port=port, log_config=None)


if __name__ == "__main__":
    main()
