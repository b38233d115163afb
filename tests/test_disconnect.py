"""
A client that goes away mid-request cancels the store call it was waiting on.
"""
import asyncio
import time
from types import SimpleNamespace

import pytest

from todo_api.errors import RequestAborted
from todo_api.main import create_app
from todo_api.routers.todos import run_until_disconnect

TODOS = "/api/v1/todos"


def http_scope(method: str, path: str) -> dict:
    return {
        "type": "http",
        "asgi": {"version": "3.0"},
        "http_version": "1.1",
        "method": method,
        "scheme": "http",
        "path": path,
        "raw_path": path.encode(),
        "root_path": "",
        "query_string": b"",
        "headers": [(b"host", b"testserver"), (b"content-type", b"application/json")],
        "client": ("127.0.0.1", 50000),
        "server": ("testserver", 80),
    }


def disconnecting_receive(body: bytes = b"", after: float = 0.05):
    """Deliver the body, then report a disconnect `after` seconds later."""
    messages = [{"type": "http.request", "body": body, "more_body": False}]

    async def receive():
        if messages:
            return messages.pop(0)
        await asyncio.sleep(after)
        return {"type": "http.disconnect"}

    return receive


class TestRunUntilDisconnect:
    @pytest.mark.asyncio
    async def test_returns_result_while_connected(self):
        async def never_disconnects():
            await asyncio.Event().wait()

        request = SimpleNamespace(receive=never_disconnects)

        async def operation():
            return "done"

        assert await run_until_disconnect(request, operation()) == "done"

    @pytest.mark.asyncio
    async def test_propagates_operation_error(self):
        request = SimpleNamespace(receive=disconnecting_receive(after=5.0))

        async def operation():
            raise ValueError("broken")

        with pytest.raises(ValueError):
            await run_until_disconnect(request, operation())

    @pytest.mark.asyncio
    async def test_disconnect_cancels_operation(self):
        request = SimpleNamespace(receive=disconnecting_receive())
        cancelled = asyncio.Event()

        async def operation():
            try:
                await asyncio.sleep(5.0)
            except asyncio.CancelledError:
                cancelled.set()
                raise

        with pytest.raises(RequestAborted):
            await run_until_disconnect(request, operation())
        assert cancelled.is_set()


class TestHandlersOnDisconnect:
    async def call(self, app, method: str, path: str, body: bytes = b"") -> list:
        sent = []

        async def send(message):
            sent.append(message)

        await app(http_scope(method, path), disconnecting_receive(body), send)
        return [m["status"] for m in sent if m["type"] == "http.response.start"]

    @pytest.mark.asyncio
    async def test_list_cancelled_on_disconnect(self, repository, collection, settings):
        collection.delay = 5.0
        app = create_app(repository=repository, settings=settings)
        started = time.monotonic()
        statuses = await self.call(app, "GET", TODOS)
        assert time.monotonic() - started < settings.read_timeout
        assert collection.cancelled == 1
        assert statuses == [499]

    @pytest.mark.asyncio
    async def test_create_cancelled_on_disconnect(self, repository, collection, settings):
        collection.delay = 5.0
        app = create_app(repository=repository, settings=settings)
        statuses = await self.call(app, "POST", TODOS, b'{"title": "Abandoned"}')
        assert collection.cancelled == 1
        assert collection.docs == {}
        assert statuses == [499]
