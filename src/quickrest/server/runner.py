"""Run a quickrest app under uvicorn.

uvicorn's ``run()`` accepts a live ASGI callable, so the app object is
handed over directly instead of an import string.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from quickrest.app import QuickRest


def run_server(
    app: QuickRest,
    host: str,
    port: int,
    *,
    log_level: str = "info",
) -> None:
    """Start uvicorn with *app* and block until it shuts down.

    Args:
        app: The QuickRest instance (an ASGI 3.0 callable).
        host: Bind host address.
        port: Bind port number.
        log_level: uvicorn log level (``"debug"``, ``"info"``, ...).
    """
    import uvicorn

    config = uvicorn.Config(
        app,
        host=host,
        port=port,
        log_level=log_level,
        lifespan="on",
    )
    server = uvicorn.Server(config)
    server.run()
