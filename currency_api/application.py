"""Application factory that wires the API from process configuration."""
from __future__ import annotations

from typing import Optional

from fastapi import FastAPI

from .api import create_app
from .config import Settings, load_settings
from .database import Database
from .exchange import ExchangeClient
from .tokens import TokenCodec


def create_application(
    *,
    settings: Optional[Settings] = None,
    database: Optional[Database] = None,
) -> FastAPI:
    """Create the ASGI application from ``settings`` (loaded from the environment by default)."""

    if settings is None:
        settings = load_settings()

    if database is None:
        database = Database(settings.database_path)
    database.initialize()

    exchange_client = ExchangeClient(
        base_url=settings.upstream_url,
        api_key=settings.upstream_api_key,
        timeout=settings.upstream_timeout,
    )

    app = create_app(
        database=database,
        codec=TokenCodec(settings.secret_key),
        exchange_client=exchange_client,
    )
    app.state.settings = settings
    return app


__all__ = ["create_application"]
