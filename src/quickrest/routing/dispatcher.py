"""Dispatcher: match a request and run its middleware and routes in order.

The tables are filled during setup and closed to further registration
when the server starts serving. Matching is a full linear scan in registration
order; there is no index because the tables are small and built once.
"""

import logging

from quickrest._internal.invoke import invoke
from quickrest.http.request import Request
from quickrest.http.response import ResponseWriter
from quickrest.routing.route import MiddlewareEntry, Route

logger = logging.getLogger("quickrest.server")


class Dispatcher:
    """Owns the ordered route and middleware tables.

    Usage::

        dispatcher = Dispatcher()
        dispatcher.add_route(Route("GET", "/status", status))
        dispatcher.add_middleware(MiddlewareEntry("*", "*", log_request))
        dispatcher.freeze()
        await dispatcher.dispatch(request, response)

    Per request, execution is strictly sequential: each handler,
    including any awaits it makes, completes before the next starts.
    Nothing is skipped once the response is finalized; the writer drops
    the redundant writes.
    """

    __slots__ = ("_frozen", "_logger", "_middleware", "_routes")

    def __init__(self, log: logging.Logger | None = None) -> None:
        self._routes: list[Route] = []
        self._middleware: list[MiddlewareEntry] = []
        self._frozen = False
        self._logger = log or logger

    # -- Registration --

    def add_route(self, route: Route) -> None:
        """Append a route and its inline middleware."""
        self._check_not_frozen()
        self._routes.append(route)
        self._middleware.extend(route.middleware_entries())

    def add_middleware(self, entry: MiddlewareEntry) -> None:
        """Append a middleware entry. Duplicates are kept and both fire."""
        self._check_not_frozen()
        self._middleware.append(entry)

    def freeze(self) -> None:
        """Close the tables. No more routes or middleware can be added."""
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    @property
    def routes(self) -> tuple[Route, ...]:
        """All registered routes, in registration order."""
        return tuple(self._routes)

    @property
    def middleware(self) -> tuple[MiddlewareEntry, ...]:
        """All registered middleware entries, in registration order."""
        return tuple(self._middleware)

    # -- Matching --

    def find_middleware(self, request: Request) -> list[MiddlewareEntry]:
        """Middleware whose method and path (or wildcards) match *request*."""
        return [m for m in self._middleware if m.matches(request.method, request.path)]

    def find_routes(self, request: Request) -> list[Route]:
        """Routes whose method matches exactly and whose path (or ``*``) matches."""
        return [r for r in self._routes if r.matches(request.method, request.path)]

    # -- Dispatch --

    async def dispatch(self, request: Request, response: ResponseWriter) -> None:
        """Run matched middleware, then matched routes, for one request.

        With no matching route the response is finalized as 404 after
        the middleware has run. A matched route that never finalizes
        leaves the response open. Handler exceptions propagate.
        """
        for entry in self.find_middleware(request):
            await invoke(entry.handler, request, response)

        routes = self.find_routes(request)
        if not routes:
            if not response.finalized:
                self._logger.debug("404 %s %s: no matching route", request.method, request.path)
            response.not_found()
            return

        for route in routes:
            await invoke(route.handler, request, response)

    def _check_not_frozen(self) -> None:
        if self._frozen:
            msg = (
                "Cannot register routes or middleware after the server has started. "
                "Register everything before calling serve()."
            )
            raise RuntimeError(msg)
