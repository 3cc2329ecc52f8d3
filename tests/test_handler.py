"""Tests for quickrest.server: ASGI sink and request handler pipeline."""

import asyncio
import threading
from typing import Any

import pytest

from quickrest.http.messages import Messages
from quickrest.http.response import Header
from quickrest.routing.dispatcher import Dispatcher
from quickrest.routing.route import WILDCARD, MiddlewareEntry, Route
from quickrest.server.handler import handle_request
from quickrest.server.sink import ASGISink


def _scope(method: str = "GET", path: str = "/") -> dict[str, Any]:
    return {
        "type": "http",
        "asgi": {"version": "3.0"},
        "http_version": "1.1",
        "method": method,
        "path": path,
        "query_string": b"",
        "headers": [],
    }


async def _receive() -> dict[str, Any]:
    return {"type": "http.request", "body": b"", "more_body": False}


class Collector:
    def __init__(self) -> None:
        self.messages: list[dict[str, Any]] = []

    async def __call__(self, message: dict[str, Any]) -> None:
        self.messages.append(message)

    @property
    def status(self) -> int:
        return self.messages[0]["status"]

    @property
    def headers(self) -> dict[bytes, bytes]:
        return dict(self.messages[0]["headers"])

    @property
    def body(self) -> bytes:
        return b"".join(m["body"] for m in self.messages[1:])


async def _run(
    dispatcher: Dispatcher,
    scope: dict[str, Any],
    *,
    default_headers: tuple[Header, ...] = (),
    messages: Messages | None = None,
    log_requests: bool = False,
) -> Collector:
    dispatcher.freeze()
    send = Collector()
    await handle_request(
        scope,
        _receive,
        send,
        dispatcher=dispatcher,
        default_headers=default_headers,
        messages=messages or Messages(),
        log_requests=log_requests,
    )
    return send


class TestASGISink:
    async def test_pump_sends_in_order_and_closes(self) -> None:
        send = Collector()
        sink = ASGISink(send)
        sink.start(200, [(b"x-a", b"1")])
        sink.body(b"part", more=True)
        sink.body(b"end", more=False)

        await sink.pump()

        assert [m["type"] for m in send.messages] == [
            "http.response.start",
            "http.response.body",
            "http.response.body",
        ]
        assert send.messages[1]["more_body"] is True
        assert send.messages[2]["more_body"] is False
        assert sink.closed is True

    async def test_writes_from_another_thread(self) -> None:
        send = Collector()
        sink = ASGISink(send)

        def worker() -> None:
            sink.start(201, [])
            sink.body(b"from-thread", more=False)

        thread = threading.Thread(target=worker)
        thread.start()
        await asyncio.wait_for(sink.pump(), 1.0)
        thread.join()

        assert send.status == 201
        assert send.body == b"from-thread"

    async def test_thread_writes_stay_ahead_of_later_loop_writes(self) -> None:
        send = Collector()
        sink = ASGISink(send)

        def worker() -> None:
            sink.start(200, [])
            sink.body(b"a", more=True)

        thread = threading.Thread(target=worker)
        thread.start()
        thread.join()
        sink.body(b"b", more=False)

        await asyncio.wait_for(sink.pump(), 1.0)

        assert [m["type"] for m in send.messages] == [
            "http.response.start",
            "http.response.body",
            "http.response.body",
        ]
        assert send.body == b"ab"

    async def test_pump_waits_until_final_body(self) -> None:
        sink = ASGISink(Collector())
        sink.start(200, [])
        sink.body(b"part", more=True)

        with pytest.raises(TimeoutError):
            await asyncio.wait_for(sink.pump(), 0.05)
        assert sink.closed is False


class TestHandleRequest:
    async def test_route_response(self) -> None:
        d = Dispatcher()
        d.add_route(Route("GET", "/status", lambda req, res: res.json({"ok": True})))

        send = await _run(d, _scope("GET", "/status"))

        assert send.status == 200
        assert send.body == b'{"ok":true}'

    async def test_default_headers_applied(self) -> None:
        d = Dispatcher()
        d.add_route(Route("GET", "/a", lambda req, res: res.text("a")))

        send = await _run(d, _scope("GET", "/a"), default_headers=(Header("X-Test", "1"),))

        assert send.headers[b"x-test"] == b"1"

    async def test_default_headers_visible_to_handlers(self) -> None:
        seen: list[str | None] = []
        d = Dispatcher()

        def mw(req, res) -> None:
            seen.append(res.get_header("x-test"))

        d.add_middleware(MiddlewareEntry(WILDCARD, WILDCARD, mw))

        await _run(d, _scope(), default_headers=(Header("X-Test", "1"),))
        assert seen == ["1"]

    async def test_not_found_uses_configured_message(self) -> None:
        send = await _run(Dispatcher(), _scope("GET", "/missing"), messages=Messages(not_found="nope"))

        assert send.status == 404
        assert send.body == b"nope"

    async def test_handler_exception_logged_and_raised(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        d = Dispatcher()

        def boom(req, res) -> None:
            raise RuntimeError("kaboom")

        d.add_route(Route("GET", "/", boom))

        with caplog.at_level("ERROR", logger="quickrest.server"), pytest.raises(RuntimeError):
            await _run(d, _scope())
        assert "Unhandled error in GET /" in caplog.text

    async def test_exception_after_finalize_still_flushes_response(self) -> None:
        d = Dispatcher()

        def reply_then_fail(req, res) -> None:
            res.text("sent")
            raise RuntimeError("after")

        d.add_route(Route("GET", "/", reply_then_fail))
        d.freeze()
        send = Collector()

        with pytest.raises(RuntimeError):
            await handle_request(
                _scope(), _receive, send, dispatcher=d, default_headers=(), messages=Messages()
            )
        assert send.status == 200
        assert send.body == b"sent"

    async def test_unfinalized_request_stays_open(self) -> None:
        d = Dispatcher()
        d.add_route(Route("GET", "/hang", lambda req, res: None))
        d.freeze()

        with pytest.raises(TimeoutError):
            await asyncio.wait_for(
                handle_request(
                    _scope("GET", "/hang"),
                    _receive,
                    Collector(),
                    dispatcher=d,
                    default_headers=(),
                    messages=Messages(),
                ),
                0.05,
            )

    async def test_worker_thread_write_then_finalize_on_loop(self) -> None:
        d = Dispatcher()

        def stream_then_close(req, res) -> None:
            worker = threading.Thread(target=res.write, args=("a",))
            worker.start()
            worker.join()
            res.finalize("b")

        d.add_route(Route("GET", "/", stream_then_close))

        send = await asyncio.wait_for(_run(d, _scope()), 1.0)

        assert send.status == 200
        assert [m["type"] for m in send.messages] == [
            "http.response.start",
            "http.response.body",
            "http.response.body",
        ]
        assert send.body == b"ab"
        assert send.messages[-1]["more_body"] is False

    async def test_cancelled_request_leaves_no_pending_pump(self) -> None:
        d = Dispatcher()

        async def wait_forever(req, res) -> None:
            await asyncio.Event().wait()

        d.add_route(Route("GET", "/hang", wait_forever))
        d.freeze()

        task = asyncio.create_task(
            handle_request(
                _scope("GET", "/hang"),
                _receive,
                Collector(),
                dispatcher=d,
                default_headers=(),
                messages=Messages(),
            )
        )
        await asyncio.sleep(0.01)
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task
        assert asyncio.all_tasks() == {asyncio.current_task()}

    async def test_request_logging(self, caplog: pytest.LogCaptureFixture) -> None:
        d = Dispatcher()
        d.add_route(Route("GET", "/a", lambda req, res: res.send()))

        with caplog.at_level("INFO", logger="quickrest.server"):
            await _run(d, _scope("GET", "/a"), log_requests=True)
        assert "reached endpoint GET /a" in caplog.text

    async def test_no_request_logging_by_default(self, caplog: pytest.LogCaptureFixture) -> None:
        d = Dispatcher()
        d.add_route(Route("GET", "/a", lambda req, res: res.send()))

        with caplog.at_level("INFO", logger="quickrest.server"):
            await _run(d, _scope("GET", "/a"))
        assert "reached endpoint" not in caplog.text
