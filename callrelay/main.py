"""FastAPI application for the call signaling relay."""
from __future__ import annotations

import logging
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response
from fastapi.staticfiles import StaticFiles

from .core.config import Settings, settings as default_settings
from .routers import signaling as signaling_router
from .services.signaling import SignalingRouter

logger = logging.getLogger(__name__)


def create_app(router: SignalingRouter | None = None, config: Settings | None = None) -> FastAPI:
    """Build the app around a single signaling router.

    Every listener serving the returned app shares the same router, so peers
    can reach each other regardless of which endpoint they connected through.
    """

    config = config or default_settings
    app = FastAPI(title="Call Signaling Relay", version="0.1.0")
    app.state.signaling = router if router is not None else SignalingRouter()

    if config.cors_allow_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=config.cors_allow_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    @app.get("/api/health", tags=["meta"])
    async def health() -> dict[str, str]:
        """Simple liveness probe."""

        return {"status": "ok"}

    @app.head("/api/health", tags=["meta"])
    async def health_head() -> Response:
        """Allow HEAD for uptime monitors that only need the status code."""

        return Response(status_code=200)

    @app.get("/api/peers/count", tags=["signaling"])
    async def peer_count(request: Request) -> dict[str, int]:
        """Number of peers currently registered."""

        peers = await request.app.state.signaling.online()
        return {"online": len(peers)}

    app.include_router(signaling_router.router)

    public_dir = Path(config.public_dir)
    if public_dir.is_dir():
        app.mount("/", StaticFiles(directory=public_dir, html=True), name="public")
    else:
        logger.info("Static directory %s not found; serving API only", public_dir)

    return app


app = create_app()
