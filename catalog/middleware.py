import time
from contextvars import ContextVar

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine
from starlette.types import ASGIApp, Message, Receive, Scope, Send

# One mutable tally per request. Store calls run under ``asyncio.wait_for``,
# which may execute them in a child task holding a copy of the context, so
# the tally is mutated in place rather than rebound with ``set``.
_statement_tally: ContextVar[list[int] | None] = ContextVar("statement_tally", default=None)


def install_query_counter(engine: AsyncEngine) -> None:
    """Count every cursor execution on *engine* against the current request."""

    @event.listens_for(engine.sync_engine, "before_cursor_execute")
    def _tally(conn, cursor, statement, parameters, context, executemany):
        tally = _statement_tally.get()
        if tally is not None:
            tally[0] += 1


class TimingMiddleware:
    """
    Adds ``X-Response-Time-Ms`` and ``X-Query-Count`` to every HTTP response.

    An article read answered from Redis reports ``X-Query-Count: 0``.
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        tally = [0]
        token = _statement_tally.set(tally)
        started = time.perf_counter()

        async def send_with_diagnostics(message: Message) -> None:
            if message["type"] == "http.response.start":
                elapsed = round((time.perf_counter() - started) * 1000, 2)
                message["headers"] = [
                    *message.get("headers", []),
                    (b"x-response-time-ms", str(elapsed).encode()),
                    (b"x-query-count", str(tally[0]).encode()),
                ]
            await send(message)

        try:
            await self.app(scope, receive, send_with_diagnostics)
        finally:
            _statement_tally.reset(token)
