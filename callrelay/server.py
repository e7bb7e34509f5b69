"""Process entry point: serve one relay app over plaintext and TLS listeners."""
from __future__ import annotations

import asyncio
import logging
import ssl
import sys
from pathlib import Path

import uvicorn
from fastapi import FastAPI

from .core.config import Settings, get_settings
from .main import create_app

logger = logging.getLogger(__name__)


class StartupError(RuntimeError):
    """Raised when the process cannot start serving."""


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def validate_tls_credentials(certfile: str, keyfile: str) -> None:
    """Check that the TLS certificate chain loads before any listener starts.

    uvicorn loads the files again from their paths when the TLS server binds;
    this pass only turns a bad file into a ``StartupError``.
    """

    for path in (certfile, keyfile):
        if not Path(path).is_file():
            raise StartupError(f"TLS credential file not found: {path}")

    context = ssl.SSLContext(ssl.PROTOCOL_TLS_SERVER)
    try:
        context.load_cert_chain(certfile=certfile, keyfile=keyfile)
    except (OSError, ssl.SSLError) as exc:
        raise StartupError(f"Unable to load TLS credentials: {exc}") from exc


def build_servers(app: FastAPI, config: Settings) -> list[uvicorn.Server]:
    """Create one uvicorn server per listener, all bound to the same app."""

    log_level = config.log_level.lower()
    configs = [uvicorn.Config(app, host=config.host, port=config.http_port, log_level=log_level)]

    if config.https_enabled:
        validate_tls_credentials(config.ssl_certfile, config.ssl_keyfile)
        configs.append(
            uvicorn.Config(
                app,
                host=config.host,
                port=config.https_port,
                ssl_certfile=config.ssl_certfile,
                ssl_keyfile=config.ssl_keyfile,
                log_level=log_level,
            )
        )

    return [uvicorn.Server(server_config) for server_config in configs]


async def serve(servers: list[uvicorn.Server]) -> None:
    for server in servers:
        scheme = "https" if server.config.ssl_certfile else "http"
        logger.info("Server is listening on %s://localhost:%d", scheme, server.config.port)
    await asyncio.gather(*(server.serve() for server in servers))


def main() -> int:
    config = get_settings()
    configure_logging(config.log_level)

    try:
        servers = build_servers(create_app(config=config), config)
    except StartupError as exc:
        logger.error("Startup failed: %s", exc)
        return 1

    asyncio.run(serve(servers))
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
