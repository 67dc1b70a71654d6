"""FastAPI application factory for the wallet P&L API."""

from __future__ import annotations

from typing import Any

from fastapi import FastAPI

from walletpnl.dashboard.routes import api


def create_app(lifespan: Any = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        lifespan: Optional async context manager for application lifespan events.
                  Used by main.py to build and tear down the engine and its
                  shared HTTP client.

    Returns:
        Configured FastAPI application with the JSON API mounted at /api.
    """
    app = FastAPI(
        title="Wallet P&L API",
        lifespan=lifespan,
    )

    # Wired by main.py lifespan (or directly by tests)
    app.state.engine = None
    app.state.price_cache = None

    app.include_router(api.router, prefix="/api")

    return app
