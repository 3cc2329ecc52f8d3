"""ASGI handler: translates ASGI scope/messages to quickrest types.

The only component that touches raw ASGI for HTTP requests. Builds the
immutable ``Request``, a ``ResponseWriter`` over an ``ASGISink`` with the
default headers applied, runs the dispatcher, and stays open until the
response has been finalized.
"""

import asyncio
import contextlib
import logging

from quickrest._internal.asgi import Receive, Scope, Send
from quickrest.http.messages import Messages
from quickrest.http.request import Request
from quickrest.http.response import Header, ResponseWriter
from quickrest.routing.dispatcher import Dispatcher
from quickrest.server.sink import ASGISink

logger = logging.getLogger("quickrest.server")


async def handle_request(
    scope: Scope,
    receive: Receive,
    send: Send,
    *,
    dispatcher: Dispatcher,
    default_headers: tuple[Header, ...],
    messages: Messages,
    log: logging.Logger | None = None,
    log_requests: bool = False,
) -> None:
    """Process a single HTTP request through the full pipeline.

    Returns once the response is finalized. A request whose handlers
    never finalize keeps this coroutine (and the connection) open.
    Exceptions from handlers are logged and re-raised to the server.
    """
    log = log or logger
    request = Request.from_asgi(scope, receive)

    sink = ASGISink(send)
    response = ResponseWriter(sink, messages)
    for header in default_headers:
        response.set_header(header.name, header.value)

    if log_requests:
        log.info("reached endpoint %s %s", request.method, request.path)

    pump = asyncio.create_task(sink.pump())
    try:
        await dispatcher.dispatch(request, response)
    except Exception:
        log.exception("Unhandled error in %s %s", request.method, request.path)
        if response.finalized:
            await pump
        else:
            pump.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await pump
        raise
    except BaseException:
        pump.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await pump
        raise

    await pump
    if log_requests:
        log.debug("%d %s %s", response.status_code, request.method, request.path)
