from __future__ import annotations

import json
import logging
import os
import time
import uuid
from typing import Any, Dict, Iterable, List, Optional, Tuple
from urllib.parse import parse_qsl

from starlette.types import ASGIApp, Message, Receive, Scope, Send

logger = logging.getLogger("form_generator.http")


_SENSITIVE_KEYS = {
    "authorization",
    "cookie",
    "set-cookie",
    "x-api-key",
    "token",
    "secret",
    "password",
    "csrf_token",
}

Headers = Iterable[Tuple[bytes, bytes]]


def _env_bool(name: str, default: bool = False) -> bool:
    v = (os.getenv(name) or "").strip().lower()
    if not v:
        return default
    return v in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int) -> int:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _redact_pairs(pairs: Iterable[Tuple[str, Any]]) -> Dict[str, Any]:
    return {k: ("***" if str(k).lower() in _SENSITIVE_KEYS else v) for k, v in pairs}


def _header(headers: Optional[Headers], name: bytes) -> Optional[str]:
    for k, v in headers or ():
        if k.lower() == name:
            return v.decode("latin-1", errors="replace")
    return None


def _decode_headers(headers: Optional[Headers]) -> Dict[str, str]:
    return _redact_pairs(
        (k.decode("latin-1").lower(), v.decode("latin-1", errors="replace")) for k, v in headers or ()
    )


def _parse_body(content_type: str, body: bytes) -> Any:
    """Readable, redacted rendition of a captured body (form posts become dicts)."""
    ct = (content_type or "").lower()
    text = body.decode("utf-8", errors="replace")
    if "application/x-www-form-urlencoded" in ct:
        return _redact_pairs(parse_qsl(text, keep_blank_values=True))
    if "application/json" in ct:
        try:
            obj = json.loads(text)
        except ValueError:
            return text
        return _redact_pairs(obj.items()) if isinstance(obj, dict) else obj
    if "multipart/form-data" in ct:
        return "<multipart>"
    if ct.startswith("text/html"):
        return f"<html {len(body)} bytes>"
    if ct.startswith("text/") or not body:
        return text
    return "<binary>"


class HttpLoggingMiddleware:
    """Logs one JSON line per HTTP request: method, path, status, duration and (capped) bodies."""

    def __init__(self, app: ASGIApp, *, log_headers: bool, max_body_bytes: int) -> None:
        self.app = app
        self.log_headers = log_headers
        self.max_body_bytes = max(0, max_body_bytes)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope.get("type") != "http":
            await self.app(scope, receive, send)
            return

        started_at = time.perf_counter()
        req_headers: List[Tuple[bytes, bytes]] = list(scope.get("headers") or [])
        request_id = _header(req_headers, b"x-request-id") or uuid.uuid4().hex[:12]

        req_body = bytearray()
        res_body = bytearray()
        res_headers: List[Tuple[bytes, bytes]] = []
        res_status: Optional[int] = None

        def _capture(buf: bytearray, chunk: bytes) -> None:
            remaining = self.max_body_bytes - len(buf)
            if chunk and remaining > 0:
                buf.extend(chunk[:remaining])

        async def receive_wrapped() -> Message:
            message = await receive()
            if message.get("type") == "http.request":
                _capture(req_body, message.get("body") or b"")
            return message

        async def send_wrapped(message: Message) -> None:
            nonlocal res_status, res_headers
            if message.get("type") == "http.response.start":
                res_status = int(message.get("status") or 0)
                res_headers = list(message.get("headers") or [])
            elif message.get("type") == "http.response.body":
                _capture(res_body, message.get("body") or b"")
            await send(message)

        err: Optional[BaseException] = None
        try:
            await self.app(scope, receive_wrapped, send_wrapped)
        except BaseException as e:  # noqa: BLE001 - log then re-raise
            err = e
            raise
        finally:
            record: Dict[str, Any] = {
                "id": request_id,
                "method": str(scope.get("method") or "").upper(),
                "path": str(scope.get("path") or ""),
                "status": res_status,
                "dur_ms": int((time.perf_counter() - started_at) * 1000),
                "request": {"body": _parse_body(_header(req_headers, b"content-type") or "", bytes(req_body))},
                "response": {"body": _parse_body(_header(res_headers, b"content-type") or "", bytes(res_body))},
            }
            if self.log_headers:
                record["request"]["headers"] = _decode_headers(req_headers)
                record["response"]["headers"] = _decode_headers(res_headers)
            if err is not None:
                record["error"] = {"type": type(err).__name__, "message": str(err)}
            logger.info(json.dumps(record, ensure_ascii=False, separators=(",", ":"), default=str))


def install_http_logging(app: Any) -> None:
    """
    Enable request/response logging via env vars.

    - `FORM_HTTP_LOG=1` enables the middleware
    - `FORM_HTTP_LOG_HEADERS=1` also logs request/response headers (redacted)
    - `FORM_HTTP_LOG_BODY_MAX_BYTES=4096` caps body bytes captured per request/response
    """
    if not _env_bool("FORM_HTTP_LOG", default=False):
        return
    app.add_middleware(
        HttpLoggingMiddleware,
        log_headers=_env_bool("FORM_HTTP_LOG_HEADERS", default=False),
        max_body_bytes=_env_int("FORM_HTTP_LOG_BODY_MAX_BYTES", default=4096),
    )
