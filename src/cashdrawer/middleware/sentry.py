"""Sentry context middleware to tag error reports with the request."""

import uuid

import sentry_sdk
from starlette.types import ASGIApp, Receive, Scope, Send

from cashdrawer.core.logging import get_request_id
from cashdrawer.middleware.logging import store_id_from_query


class SentryContextMiddleware:
    """
    Inject request context into Sentry error reports.

    Captures:
    - request_id: from X-Request-ID, the logging context, or a fresh UUID
    - store_id: from the query string when the route is store-scoped
    """

    def __init__(self, app: ASGIApp):
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request_id = None
        for name, value in scope.get("headers", []):
            if name.lower() == b"x-request-id":
                request_id = value.decode("latin1")
                break
        if not request_id:
            request_id = get_request_id()
        if not request_id or request_id == "no-request-id":
            request_id = str(uuid.uuid4())

        sentry_sdk.set_tag("request_id", request_id)

        store_id = store_id_from_query(scope)
        if store_id:
            sentry_sdk.set_tag("store_id", store_id)

        sentry_sdk.set_context(
            "request",
            {
                "method": scope.get("method"),
                "path": scope.get("path"),
                "request_id": request_id,
            },
        )

        await self.app(scope, receive, send)
