"""ASGI response sink: queues writer output and drains it through send().

The ``ResponseWriter`` API is synchronous so that both ``def`` and
``async def`` handlers can use it. The sink bridges that to the async
ASGI ``send`` callable: writes are queued as ASGI messages and a
per-request pump task sends them in order.
"""

import asyncio
import logging

from quickrest._internal.asgi import Message, Send

logger = logging.getLogger("quickrest.server")


class ASGISink:
    """Response sink for a single ASGI HTTP request.

    Must be created on the event loop that serves the request. Writes
    may come from any thread; off-loop writes are marshalled onto the
    loop with ``call_soon_threadsafe``. On-loop writes are scheduled with
    ``call_soon`` on the same callback queue, so messages reach the pump
    in call order wherever they come from.
    """

    __slots__ = ("_closed", "_loop", "_queue", "_send")

    def __init__(self, send: Send) -> None:
        self._send = send
        self._loop = asyncio.get_running_loop()
        self._queue: asyncio.Queue[Message] = asyncio.Queue()
        self._closed = asyncio.Event()

    # -- ResponseSink protocol --

    def start(self, status: int, headers: list[tuple[bytes, bytes]]) -> None:
        self._emit({"type": "http.response.start", "status": status, "headers": headers})

    def body(self, chunk: bytes, *, more: bool) -> None:
        self._emit({"type": "http.response.body", "body": chunk, "more_body": more})

    # -- Draining --

    @property
    def closed(self) -> bool:
        """True once the final body message has been sent."""
        return self._closed.is_set()

    async def pump(self) -> None:
        """Send queued messages until the final body message goes out.

        Never returns for a response that is never finalized.
        """
        while True:
            message = await self._queue.get()
            await self._send(message)
            if message["type"] == "http.response.body" and not message["more_body"]:
                self._closed.set()
                return

    def _emit(self, message: Message) -> None:
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None
        if running is self._loop:
            self._loop.call_soon(self._queue.put_nowait, message)
        else:
            self._loop.call_soon_threadsafe(self._queue.put_nowait, message)
