"""ASGI middleware capping upload request bodies while they stream in."""
import logging

from fastapi import HTTPException
from starlette.datastructures import Headers
from starlette.responses import JSONResponse
from starlette.types import ASGIApp, Message, Receive, Scope, Send

logger = logging.getLogger(__name__)


class BodySizeLimitMiddleware:
    """Reject oversized POST bodies on ``paths`` with 413.

    A declared Content-Length over the limit is refused before any of the
    body is read. Otherwise bytes are counted as they arrive and the
    request fails as soon as the count passes the limit.
    """

    def __init__(self, app: ASGIApp, max_body_bytes: int, paths: tuple[str, ...] = ("/upload",)):
        self.app = app
        self.max_body_bytes = max_body_bytes
        self.paths = paths

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http" or scope["method"] != "POST" or scope["path"] not in self.paths:
            await self.app(scope, receive, send)
            return

        declared = Headers(scope=scope).get("content-length")
        if declared is not None and declared.isdigit() and int(declared) > self.max_body_bytes:
            logger.warning(f"Rejected upload: Content-Length {declared} exceeds {self.max_body_bytes}")
            response = JSONResponse({"error": "File too large"}, status_code=413)
            await response(scope, receive, send)
            return

        received = 0

        async def limited_receive() -> Message:
            nonlocal received
            message = await receive()
            if message["type"] == "http.request":
                received += len(message.get("body", b""))
                if received > self.max_body_bytes:
                    logger.warning(f"Rejected upload: body passed {self.max_body_bytes} bytes mid-stream")
                    # FastAPI re-raises HTTPExceptions from body parsing untouched
                    raise HTTPException(status_code=413, detail="File too large")
            return message

        await self.app(scope, limited_receive, send)
