"""QuickRest server facade.

Configurable while setting up (routes, middleware, port, default
headers). Switches to serving on ``serve()`` or on the first ASGI call,
after which registration is rejected.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import replace
from enum import StrEnum
from typing import Any

from quickrest._internal.asgi import Receive, Scope, Send
from quickrest._internal.invoke import invoke
from quickrest._internal.types import Handler, ListeningCallback
from quickrest.config import ServerConfig
from quickrest.http.messages import Messages
from quickrest.http.response import Header
from quickrest.routing.dispatcher import Dispatcher
from quickrest.routing.route import WILDCARD, MiddlewareEntry, Route, check_method, check_path
from quickrest.server.handler import handle_request


class ServerState(StrEnum):
    CONFIGURING = "configuring"
    SERVING = "serving"


class QuickRest:
    """The quickrest server.

    Usage::

        app = QuickRest(ServerConfig(port=3053))
        app.set_default_headers(Header("Content-Type", "application/json"))

        app.use(log_request)

        @app.get("/status")
        def status(request, response):
            response.json({"ok": True})

        app.serve()

    Thread safety:
        Registration is single-threaded setup work. The switch to
        serving uses a Lock + double-check so exactly one caller freezes
        the dispatcher, even when several ASGI workers hit the first
        request concurrently.
    """

    __slots__ = (
        "_default_headers",
        "_dispatcher",
        "_logger",
        "_on_listening",
        "_state",
        "_state_lock",
        "config",
        "messages",
    )

    def __init__(
        self,
        config: ServerConfig | None = None,
        *,
        messages: Messages | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.config: ServerConfig = config or ServerConfig()
        self.messages: Messages = messages or Messages()
        self._logger: logging.Logger = (
            logger if logger is not None else logging.getLogger("quickrest.server")
        )
        self._dispatcher = Dispatcher(self._logger)
        self._default_headers: tuple[Header, ...] = ()
        self._on_listening: ListeningCallback | None = None
        self._state = ServerState.CONFIGURING
        self._state_lock = threading.Lock()

    # -- Configuration --

    @property
    def state(self) -> ServerState:
        return self._state

    @property
    def logging_enabled(self) -> bool:
        return self.config.enable_logging

    @property
    def logger(self) -> logging.Logger:
        """The logger requests and failures are reported to."""
        return self._logger

    @property
    def dispatcher(self) -> Dispatcher:
        return self._dispatcher

    @property
    def default_headers(self) -> tuple[Header, ...]:
        return self._default_headers

    def port(self, number: int | None = None) -> int:
        """Return the port, setting it first when *number* is given."""
        if number is not None:
            self._check_configuring()
            self.config = replace(self.config, port=int(number))
        return self.config.port

    def set_default_headers(self, *headers: Header | tuple[str, Any]) -> QuickRest:
        """Replace the headers applied to every response before handlers run."""
        self._check_configuring()
        self._default_headers = tuple(
            h if isinstance(h, Header) else Header(*h) for h in headers
        )
        return self

    # -- Registration --

    def mount(self, method: str, path: str, handler: Handler, *middleware: Handler) -> Route:
        """Register a route plus middleware scoped to the same method and path.

        The middleware fires for every request matching *method* and
        *path*, whichever route ends up handling it.
        """
        self._check_configuring()
        route = Route(
            method=check_method(method, allow_wildcard=False),
            path=check_path(path),
            handler=handler,
            middleware=tuple(middleware),
        )
        self._dispatcher.add_route(route)
        return route

    def get(self, path: str, handler: Handler | None = None, /, *middleware: Handler) -> Any:
        """Register a GET route. Without *handler*, returns a decorator."""
        return self._route("GET", path, handler, middleware)

    def post(self, path: str, handler: Handler | None = None, /, *middleware: Handler) -> Any:
        """Register a POST route. Without *handler*, returns a decorator."""
        return self._route("POST", path, handler, middleware)

    def put(self, path: str, handler: Handler | None = None, /, *middleware: Handler) -> Any:
        """Register a PUT route. Without *handler*, returns a decorator."""
        return self._route("PUT", path, handler, middleware)

    def delete(self, path: str, handler: Handler | None = None, /, *middleware: Handler) -> Any:
        """Register a DELETE route. Without *handler*, returns a decorator."""
        return self._route("DELETE", path, handler, middleware)

    def options(self, path: str, handler: Handler | None = None, /, *middleware: Handler) -> Any:
        """Register an OPTIONS route. Without *handler*, returns a decorator."""
        return self._route("OPTIONS", path, handler, middleware)

    def use(self, path: str | Handler = WILDCARD, /, *middleware: Handler) -> None:
        """Register middleware for every method on *path* (default ``*``).

        A callable first argument is middleware for every path::

            app.use(log_request)
            app.use("/admin", require_token, audit)
        """
        self._check_configuring()
        if callable(path):
            middleware = (path, *middleware)
            path = WILDCARD
        check_path(path)
        for handler in middleware:
            self._dispatcher.add_middleware(MiddlewareEntry(WILDCARD, path, handler))

    def _route(
        self,
        method: str,
        path: str,
        handler: Handler | None,
        middleware: tuple[Handler, ...],
    ) -> Any:
        if handler is not None:
            self.mount(method, path, handler, *middleware)
            return None

        def decorator(func: Handler) -> Handler:
            self.mount(method, path, func, *middleware)
            return func

        return decorator

    # -- Server --

    def serve(self, on_listening: ListeningCallback | None = None) -> None:
        """Start serving on the configured host and port (blocking).

        *on_listening* is called with this app (sync or async) once
        startup completes, right before connections are accepted.
        """
        from quickrest.server.runner import run_server

        self._on_listening = on_listening
        self._ensure_serving()
        run_server(self, self.config.host, self.config.port, log_level=self.config.log_level)

    # -- ASGI interface --

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """ASGI 3.0 entry point."""
        if scope["type"] == "lifespan":
            await self._handle_lifespan(receive, send)
            return

        if scope["type"] != "http":
            return

        self._ensure_serving()
        await handle_request(
            scope,
            receive,
            send,
            dispatcher=self._dispatcher,
            default_headers=self._default_headers,
            messages=self.messages,
            log=self._logger,
            log_requests=self.config.enable_logging,
        )

    async def _handle_lifespan(self, receive: Receive, send: Send) -> None:
        """Run the ASGI lifespan protocol.

        Switches to serving at startup and runs the ``on_listening``
        callback, if any.
        """
        self._ensure_serving()

        while True:
            message = await receive()
            msg_type = message["type"]

            if msg_type == "lifespan.startup":
                try:
                    if self._on_listening is not None:
                        await invoke(self._on_listening, self)
                except Exception as exc:
                    await send({"type": "lifespan.startup.failed", "message": str(exc)})
                    return
                if self.config.enable_logging:
                    self._logger.info("listening on %s:%d", self.config.host, self.config.port)
                await send({"type": "lifespan.startup.complete"})

            elif msg_type == "lifespan.shutdown":
                await send({"type": "lifespan.shutdown.complete"})
                return

    # -- Internal --

    def _ensure_serving(self) -> None:
        """Thread-safe switch to SERVING with double-check locking."""
        if self._state is ServerState.SERVING:
            return
        with self._state_lock:
            if self._state is ServerState.SERVING:
                return
            self._dispatcher.freeze()
            self._state = ServerState.SERVING

    def _check_configuring(self) -> None:
        if self._state is ServerState.SERVING:
            msg = (
                "Cannot modify the server after it has started serving requests. "
                "Register routes, middleware, and settings before calling serve()."
            )
            raise RuntimeError(msg)
