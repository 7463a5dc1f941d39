"""
wiwebb_data.devserver.__main__

Entrypoint for running the dev server via `python -m wiwebb_data.devserver`.

Responsibilities:
- Load settings.
- Create the app over a freshly seeded simulated store.
- Start uvicorn with structlog-compatible logging config.
"""

from __future__ import annotations

import uvicorn

from wiwebb_data.devserver.app import create_app
from wiwebb_data.settings import get_settings


def main() -> None:
    settings = get_settings()
    app = create_app(settings=settings)

    uvicorn.run(
        app,
        host=settings.devserver_host,
        port=settings.devserver_port,
        log_config=None,  # structlog
    )


if __name__ == "__main__":
    main()


# --- Module Notes -----------------------------------------------------------
# Point a client at it with WIWEBB_API_BASE_URL=http://127.0.0.1:8000/api/v1 and
# WIWEBB_USE_MOCK_DATA=false to exercise the live data path end-to-end.
