"""Request logging and ID injection middleware."""

import time
from urllib.parse import parse_qs
import uuid

import structlog
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from cashdrawer.core.logging import get_logger, set_request_id


def store_id_from_query(scope: Scope) -> str | None:
    """Return the `store_id` query parameter of a store-scoped request, if any."""
    query = parse_qs(scope.get("query_string", b"").decode("latin1"))
    values = query.get("store_id")
    return values[0] if values and values[0] else None


class RequestIDMiddleware:
    """
    Inject request ID and store into the logging context.

    Every request gets a UUID. If X-Request-ID header exists, use it.
    Store-scoped calls (`?store_id=...`) also bind `store_id`, so every
    line logged while handling a register's request names the store.
    """

    def __init__(self, app: ASGIApp):
        self.app = app
        self.logger = get_logger(__name__)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        structlog.contextvars.clear_contextvars()
        headers = dict(scope.get("headers", []))
        request_id = headers.get(b"x-request-id", str(uuid.uuid4()).encode()).decode()
        set_request_id(request_id)

        store_id = store_id_from_query(scope)
        if store_id:
            structlog.contextvars.bind_contextvars(store_id=store_id)

        started = time.perf_counter()
        self.logger.info("request.start", method=scope["method"], path=scope["path"])

        async def send_with_request_id(message: Message) -> None:
            if message["type"] == "http.response.start":
                response_headers = list(message.get("headers", []))
                response_headers.append((b"x-request-id", request_id.encode()))
                message["headers"] = response_headers

                status = message.get("status")
                log = self.logger.warning if status and status >= 500 else self.logger.info
                log(
                    "request.complete",
                    method=scope["method"],
                    path=scope["path"],
                    status_code=status,
                    duration_ms=round((time.perf_counter() - started) * 1000, 2),
                )

            await send(message)

        await self.app(scope, receive, send_with_request_id)
