"""
Request body size guard.

``BodySizeLimitMiddleware`` is a pure ASGI middleware that bounds the total
request body:

- A declared ``Content-Length`` above the limit is answered with 413 before
  the application sees the request.
- Otherwise the ``receive`` callable is wrapped and counts body bytes as they
  arrive; the read that crosses the limit raises ``HTTPException(413)``. FastAPI
  re-raises HTTPException unchanged out of form parsing, so chunked uploads
  without a length fail the same way.
"""

import logging

from fastapi import HTTPException, status
from starlette.datastructures import Headers
from starlette.responses import JSONResponse
from starlette.types import ASGIApp, Message, Receive, Scope, Send


logger = logging.getLogger(__name__)

PAYLOAD_TOO_LARGE_MESSAGE = "Request body too large"


class BodySizeLimitMiddleware:
    """Reject HTTP requests whose body exceeds ``max_body_size`` bytes."""

    def __init__(self, app: ASGIApp, max_body_size: int) -> None:
        self.app = app
        self.max_body_size = max_body_size

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        content_length = Headers(scope=scope).get("content-length")
        if content_length is not None and content_length.isdigit():
            if int(content_length) > self.max_body_size:
                logger.warning(
                    "Rejected request with oversized Content-Length",
                    extra={
                        "path": scope.get("path"),
                        "content_length": int(content_length),
                        "limit": self.max_body_size,
                    },
                )
                response = JSONResponse(
                    {"error": PAYLOAD_TOO_LARGE_MESSAGE},
                    status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                )
                await response(scope, receive, send)
                return

        received = 0

        async def limited_receive() -> Message:
            nonlocal received
            message = await receive()
            if message["type"] == "http.request":
                received += len(message.get("body", b""))
                if received > self.max_body_size:
                    logger.warning(
                        "Request body exceeded limit while streaming",
                        extra={"path": scope.get("path"), "limit": self.max_body_size},
                    )
                    raise HTTPException(
                        status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                        detail=PAYLOAD_TOO_LARGE_MESSAGE,
                    )
            return message

        await self.app(scope, limited_receive, send)
