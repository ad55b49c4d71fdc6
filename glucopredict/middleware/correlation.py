"""Correlation ID middleware.

Every HTTP request is tagged with an ID, taken from the incoming
X-Correlation-ID header or freshly generated, that is echoed on the
response and stamped on every log record emitted while the request is
in flight.

Written as raw ASGI rather than BaseHTTPMiddleware, which runs the
downstream app in a separate task and breaks asyncpg connections.
"""

import time
import uuid

from starlette.types import ASGIApp, Message, Receive, Scope, Send

from glucopredict.logging_config import correlation_id_ctx, get_logger

logger = get_logger(__name__)

CORRELATION_ID_HEADER = "X-Correlation-ID"
_HEADER_KEY = CORRELATION_ID_HEADER.lower().encode()

# Longer inbound values are replaced rather than trusted into the logs
MAX_CORRELATION_ID_LENGTH = 128


def _inbound_correlation_id(scope: Scope) -> str | None:
    for key, value in scope.get("headers", []):
        if key == _HEADER_KEY:
            candidate = value.decode("latin-1").strip()
            if candidate and len(candidate) <= MAX_CORRELATION_ID_LENGTH:
                return candidate
            return None
    return None


class CorrelationIdMiddleware:
    """Attach a correlation ID to each request and log its lifecycle."""

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        correlation_id = _inbound_correlation_id(scope) or str(uuid.uuid4())
        token = correlation_id_ctx.set(correlation_id)

        method = scope.get("method", "")
        path = scope.get("path", "")
        started = time.perf_counter()
        status_code: int | None = None

        logger.debug("Request started", method=method, path=path)

        async def send_with_header(message: Message) -> None:
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = message.get("status")
                headers = list(message.get("headers", []))
                headers.append((_HEADER_KEY, correlation_id.encode("latin-1")))
                message = {**message, "headers": headers}
            await send(message)

        try:
            await self.app(scope, receive, send_with_header)
        except Exception:
            logger.exception(
                "Request failed",
                method=method,
                path=path,
                duration_ms=round((time.perf_counter() - started) * 1000, 2),
            )
            raise
        else:
            logger.info(
                "Request completed",
                method=method,
                path=path,
                status_code=status_code,
                duration_ms=round((time.perf_counter() - started) * 1000, 2),
            )
        finally:
            correlation_id_ctx.reset(token)
