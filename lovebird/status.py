"""
lovebird/status.py
Configuration status service for Lovebird.

Endpoints:
- /api/self-test: JSON health of the configuration, any method, always 200

Streamlit cannot serve JSON routes, so this runs as its own small process
next to the app (`lovebird-status`).  The /tests page calls it over HTTP.
"""

import os

from fastapi import FastAPI

from lovebird.config import Settings

SELF_TEST_PATH = "/api/self-test"
_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


def _flag(value: str | None) -> str:
    return "set" if value else "missing"


def self_test_payload(settings: Settings) -> dict:
    """
    Return the /api/self-test body for the given settings.

    The health signal lives in the body only; the endpoint never changes
    its status code.
    """
    return {
        "ok": bool(settings.service_url and settings.public_key),
        "url": _flag(settings.service_url),
        "anonKey": _flag(settings.public_key),
    }


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings if settings is not None else Settings.from_env()
    app = FastAPI(title="lovebird-status", version="0.1")
    app.state.settings = settings

    @app.api_route(SELF_TEST_PATH, methods=_METHODS)
    def self_test():
        return self_test_payload(app.state.settings)

    return app


def main() -> None:  # pragma: no cover
    import uvicorn

    settings = Settings.from_env()
    uvicorn.run(
        create_app(settings),
        host=os.environ.get("STATUS_HOST", "0.0.0.0"),
        port=int(os.environ.get("STATUS_PORT", "8000")),
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":  # pragma: no cover
    main()
