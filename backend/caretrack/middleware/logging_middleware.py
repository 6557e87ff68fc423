"""
Request logging middleware.

Pure ASGI (not BaseHTTPMiddleware) so bodies are observed without being
buffered twice. Identifier tokens in URLs are masked, request and response
bodies are filtered for secrets and only logged at DEBUG.
"""

import json
import logging
import re
import time
from typing import Any, List, Optional

from starlette.types import ASGIApp, Message, Receive, Scope, Send

from ..core.logging_config import filter_sensitive_data, mask_identifier, truncate_large_data

logger = logging.getLogger(__name__)

# Encrypted ids are long hex strings (32+ chars)
_TOKEN_SEGMENT = re.compile(r"(?<=/)[0-9a-fA-F]{32,}(?=/|$)")

MAX_BODY_LOG_LENGTH = 2000


def mask_path(path: str) -> str:
    """Replace identifier tokens in a URL path with their masked form."""
    return _TOKEN_SEGMENT.sub(lambda m: mask_identifier(m.group(0)), path)


def _body_for_log(chunks: List[bytes]) -> Optional[str]:
    raw = b"".join(chunks)
    if not raw:
        return None
    text = raw.decode("utf-8", errors="ignore")
    try:
        payload: Any = filter_sensitive_data(json.loads(text))
        text = json.dumps(payload, ensure_ascii=False)
    except json.JSONDecodeError:
        pass
    return truncate_large_data(text, max_length=MAX_BODY_LOG_LENGTH)


def _error_reason(body: Optional[str]) -> Optional[str]:
    """Pull a concise reason out of an error response body."""
    if not body:
        return None
    try:
        payload = json.loads(body)
    except json.JSONDecodeError:
        return truncate_large_data(body, max_length=300)
    if isinstance(payload, dict):
        for key in ("message", "detail", "error"):
            if payload.get(key):
                return str(payload[key])
    return None


class RequestLoggingMiddleware:
    """Logs one line per request with status and duration."""

    def __init__(self, app: ASGIApp, exclude_paths: Optional[list] = None):
        """
        Args:
            app: The ASGI application
            exclude_paths: Paths that are passed through without logging
        """
        self.app = app
        self.exclude_paths = exclude_paths or ["/health", "/"]

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http" or scope.get("path", "") in self.exclude_paths:
            await self.app(scope, receive, send)
            return

        start_time = time.time()
        method = scope.get("method", "UNKNOWN")
        path = mask_path(scope.get("path", ""))
        client = scope.get("client")

        # Bodies are only kept when they will be logged: DEBUG, or an error reason
        log_bodies = logger.isEnabledFor(logging.DEBUG)
        request_chunks: List[bytes] = []
        response_chunks: List[bytes] = []
        status_code = 0

        async def logging_receive() -> Message:
            message = await receive()
            if log_bodies and message["type"] == "http.request":
                request_chunks.append(message.get("body", b""))
            return message

        async def logging_send(message: Message) -> None:
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = message.get("status", 0)
            elif message["type"] == "http.response.body" and (log_bodies or status_code >= 400):
                response_chunks.append(message.get("body", b""))
            await send(message)

        try:
            await self.app(scope, logging_receive, logging_send)
        except Exception as e:
            logger.error(
                f"Request failed: {method} {path} - {e}",
                exc_info=True,
                extra={"extra_fields": {
                    "method": method,
                    "path": path,
                    "duration_ms": round((time.time() - start_time) * 1000, 2),
                }}
            )
            raise

        duration_ms = round((time.time() - start_time) * 1000, 2)
        response_body = _body_for_log(response_chunks)
        fields = {
            "method": method,
            "path": path,
            "status_code": status_code,
            "duration_ms": duration_ms,
            "client": client[0] if client else None,
        }

        if status_code >= 500:
            log_level = logging.ERROR
        elif status_code >= 400:
            log_level = logging.WARNING
            fields["error_reason"] = _error_reason(response_body)
        else:
            log_level = logging.INFO

        logger.log(log_level, f"{method} {path} - {status_code} ({duration_ms:.2f}ms)", extra={"extra_fields": fields})

        if log_bodies:
            logger.debug(
                f"Bodies for {method} {path}",
                extra={"extra_fields": {
                    "request_body": _body_for_log(request_chunks),
                    "response_body": response_body,
                }}
            )
