"""
lexdesk.api.__main__

`python -m lexdesk.api` (or the `lexdesk-api` script): serve the API with uvicorn.
"""

from __future__ import annotations

import uvicorn

from lexdesk.api.app import create_app
from lexdesk.settings import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run(
        create_app(settings=settings),
        host=settings.api_host,
        port=settings.api_port,
        log_level=settings.log_level.lower(),
        # Logging is owned by structlog (`observability.logging`).
        log_config=None,
        proxy_headers=settings.env == "prod",
    )


if __name__ == "__main__":
    main()
