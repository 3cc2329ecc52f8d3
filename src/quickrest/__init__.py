"""quickrest: a minimal HTTP request router for ASGI.

Routes match on exact method and exact path (or ``*``); middleware
matches on method and path, either of which may be ``*``. Middleware
runs first, then routes, one handler at a time in registration order.

Basic usage::

    from quickrest import QuickRest

    app = QuickRest()

    @app.get("/status")
    def status(request, response):
        response.json({"ok": True})

    app.serve()
"""

__version__ = "0.1.0"
__all__ = [
    "WILDCARD",
    "ConfigurationError",
    "Dispatcher",
    "Header",
    "Messages",
    "MiddlewareEntry",
    "QuickRest",
    "QuickRestError",
    "Request",
    "ResponseWriter",
    "Route",
    "ServerConfig",
    "ServerState",
    "Structured",
    "Text",
]


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import quickrest`` fast while providing a clean top-level API.
    """
    if name in ("QuickRest", "ServerState"):
        from quickrest import app as _app

        return getattr(_app, name)

    if name == "ServerConfig":
        from quickrest.config import ServerConfig

        return ServerConfig

    if name == "Request":
        from quickrest.http.request import Request

        return Request

    if name in ("Header", "ResponseWriter", "Structured", "Text"):
        from quickrest.http import response as _resp

        return getattr(_resp, name)

    if name == "Messages":
        from quickrest.http.messages import Messages

        return Messages

    if name in ("MiddlewareEntry", "Route", "WILDCARD"):
        from quickrest.routing import route as _route

        return getattr(_route, name)

    if name == "Dispatcher":
        from quickrest.routing.dispatcher import Dispatcher

        return Dispatcher

    if name in ("ConfigurationError", "QuickRestError"):
        from quickrest import errors as _errors

        return getattr(_errors, name)

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
