"""Per-request response writer with an at-most-once finalize guard.

Handlers never build response objects: they call methods on the
``ResponseWriter`` they are given. The writer forwards status, headers,
and body chunks to a ``ResponseSink`` (the transport side) and
guarantees the response is finalized exactly once. Every operation
after finalization is a silent no-op, so overlapping middleware and
route handlers cannot corrupt the stream.

Bodies are passed as an explicit tagged union::

    response.send(Text("hello"))
    response.send(Structured({"ok": True}))
    response.send()  # empty body
"""

from __future__ import annotations

import json as json_module
import logging
import threading
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, Protocol, TypeAlias

from quickrest.http.messages import Messages

logger = logging.getLogger("quickrest.http")

HeaderValue: TypeAlias = str | int | bytes | Sequence[str]


@dataclass(frozen=True, slots=True)
class Header:
    """A default response header, applied to every response."""

    name: str
    value: HeaderValue


@dataclass(frozen=True, slots=True)
class Text:
    """A raw text body, sent as-is."""

    value: str


@dataclass(frozen=True, slots=True)
class Structured:
    """A JSON-serializable body, encoded when the response is sent."""

    value: Any


Body: TypeAlias = Text | Structured


class ResponseSink(Protocol):
    """Transport side of a response.

    ``start`` is called once, before the first body chunk. ``body`` is
    called one or more times; the last call has ``more=False``.
    """

    def start(self, status: int, headers: list[tuple[bytes, bytes]]) -> None: ...

    def body(self, chunk: bytes, *, more: bool) -> None: ...


def encode_json(value: Any) -> str:
    """Encode a structured body the way ``JSON.stringify`` would (compact)."""
    return json_module.dumps(value, separators=(",", ":"), ensure_ascii=False)


def _to_bytes(chunk: str | bytes) -> bytes:
    return chunk.encode("utf-8") if isinstance(chunk, str) else chunk


class ResponseWriter:
    """Mutable, single-use writer for one response.

    Status and headers are buffered until the first body chunk is
    written. After that they are on the wire and further changes are
    ignored (with a warning). ``finalize()`` closes the response; the
    ``finalized`` flag never resets.

    Thread safety:
        The finalize check-and-set happens under a lock, so handlers
        that hand the writer to worker threads still finalize once.
    """

    __slots__ = (
        "_headers",
        "_headers_sent",
        "_finalized",
        "_lock",
        "_sink",
        "_status",
        "messages",
    )

    def __init__(self, sink: ResponseSink, messages: Messages | None = None) -> None:
        self._sink = sink
        self.messages: Messages = messages or Messages()
        self._status: int = 200
        # Insertion-ordered; each entry is (name as given, value)
        self._headers: list[tuple[str, str]] = []
        self._headers_sent: bool = False
        self._finalized: bool = False
        self._lock = threading.Lock()

    # -- Observers --

    @property
    def status_code(self) -> int:
        return self._status

    @property
    def finalized(self) -> bool:
        """True once the response has been closed."""
        return self._finalized

    @property
    def headers_sent(self) -> bool:
        """True once status and headers have been handed to the sink."""
        return self._headers_sent

    @property
    def headers(self) -> tuple[tuple[str, str], ...]:
        """Headers set so far, in insertion order."""
        return tuple(self._headers)

    def get_header(self, name: str) -> str | None:
        """Return the first value set for *name* (case-insensitive)."""
        wanted = name.lower()
        for key, value in self._headers:
            if key.lower() == wanted:
                return value
        return None

    # -- Status and headers --

    def set_status(self, code: int) -> ResponseWriter:
        """Set the status code. Returns the writer for chaining."""
        with self._lock:
            if self._finalized:
                return self
            if self._headers_sent:
                logger.warning("Ignoring status %d: headers already sent", code)
                return self
            self._status = code
        return self

    def set_header(self, name: str, value: HeaderValue) -> ResponseWriter:
        """Set a header, replacing any previous value for the same name.

        A sequence value emits one header line per item (``Set-Cookie``).
        ``bytes`` values are a single latin-1 header value.
        """
        with self._lock:
            if self._finalized:
                return self
            if self._headers_sent:
                logger.warning("Ignoring header %r: headers already sent", name)
                return self
            wanted = name.lower()
            self._headers = [(k, v) for k, v in self._headers if k.lower() != wanted]
            if isinstance(value, bytes):
                self._headers.append((name, value.decode("latin-1")))
            elif isinstance(value, str | int):
                self._headers.append((name, str(value)))
            else:
                self._headers.extend((name, str(item)) for item in value)
        return self

    # -- Body --

    def write(self, chunk: str | bytes) -> None:
        """Stream a partial body. Sends status and headers first if needed."""
        data = _to_bytes(chunk)
        with self._lock:
            if self._finalized:
                return
            if not self._headers_sent:
                self._start(content_length=None)
            if data:
                self._sink.body(data, more=True)

    def finalize(self, body: str | bytes | None = None) -> None:
        """Close the response with an optional final chunk.

        Only the first call reaches the sink; later calls are ignored.
        """
        data = _to_bytes(body) if body is not None else b""
        with self._lock:
            if self._finalized:
                return
            self._finalized = True
            if not self._headers_sent:
                self._start(content_length=len(data))
            self._sink.body(data, more=False)

    def send(self, body: Body | None = None) -> None:
        """Finalize with an explicitly tagged body.

        ``Text`` is sent raw; ``Structured`` is JSON-encoded. A content
        type is added only if none has been set (e.g. by default headers).
        """
        if body is None:
            self.finalize()
        elif isinstance(body, Text):
            self._default_content_type("text/plain; charset=utf-8")
            self.finalize(body.value)
        elif isinstance(body, Structured):
            self._default_content_type("application/json")
            self.finalize(encode_json(body.value))
        else:
            msg = f"send() expects Text, Structured or None, got {type(body).__name__}"
            raise TypeError(msg)

    def text(self, value: str) -> None:
        """Shorthand for ``send(Text(value))``."""
        self.send(Text(value))

    def json(self, value: Any) -> None:
        """Shorthand for ``send(Structured(value))``."""
        self.send(Structured(value))

    # -- Status helpers --

    def not_found(self, body: Body | None = None) -> None:
        self._terminate(404, body, self.messages.not_found)

    def unauthorized(self, body: Body | None = None) -> None:
        self._terminate(401, body, self.messages.unauthorized)

    def forbidden(self, body: Body | None = None) -> None:
        self._terminate(403, body, self.messages.forbidden)

    def bad_request(self, body: Body | None = None) -> None:
        self._terminate(400, body, self.messages.bad_request)

    def conflict(self, body: Body | None = None) -> None:
        self._terminate(409, body, self.messages.conflict)

    def unprocessable_entity(self, body: Body | None = None) -> None:
        self._terminate(422, body, self.messages.unprocessable_entity)

    def too_many_requests(self, body: Body | None = None) -> None:
        self._terminate(429, body, self.messages.too_many_requests)

    def error(self, status: int, body: Body | None = None) -> None:
        """Finalize with an arbitrary status and the generic error message."""
        self._terminate(status, body, self.messages.unknown_error)

    # -- Internal --

    def _terminate(self, status: int, body: Body | None, default: str) -> None:
        self.set_status(status)
        self.send(body if body is not None else Text(default))

    def _default_content_type(self, content_type: str) -> None:
        if not self._headers_sent and self.get_header("content-type") is None:
            self.set_header("Content-Type", content_type)

    def _start(self, *, content_length: int | None) -> None:
        """Hand status and headers to the sink. Caller holds the lock."""
        raw_headers = [
            (name.lower().encode("latin-1"), value.encode("latin-1"))
            for name, value in self._headers
        ]
        if content_length is not None and self.get_header("content-length") is None:
            raw_headers.append((b"content-length", str(content_length).encode("latin-1")))
        self._headers_sent = True
        self._sink.start(self._status, raw_headers)

    def __repr__(self) -> str:
        state = "finalized" if self._finalized else "open"
        return f"<ResponseWriter {self._status} {state}>"
