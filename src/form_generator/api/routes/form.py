from __future__ import annotations

import logging
import time
import uuid
from typing import Dict

from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse, JSONResponse, PlainTextResponse, Response
from jinja2 import TemplateError
from starlette.status import HTTP_415_UNSUPPORTED_MEDIA_TYPE, HTTP_500_INTERNAL_SERVER_ERROR

from ...errors import StoreError
from ...form import FormDefinition
from ...normalizer import normalize
from ...rendering import render_form_page, render_saved_page
from ...store import AppendStore

logger = logging.getLogger(__name__)


def _wants_json(request: Request) -> bool:
    return "application/json" in (request.headers.get("accept") or "").lower()


_STORE_ERROR_MESSAGES = {
    "lock": "Failed to lock storage file",
    "read": "Failed to read storage file",
    "write": "Failed to write storage file",
}

_FORM_CONTENT_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")


def _store_error_message(exc: StoreError) -> str:
    return _STORE_ERROR_MESSAGES.get(exc.phase, "Failed to write storage file")


def _is_form_body(request: Request) -> bool:
    content_type = (request.headers.get("content-type") or "").split(";", 1)[0].strip().lower()
    return content_type in _FORM_CONTENT_TYPES


async def _posted_pairs(request: Request) -> Dict[str, str]:
    """Flat string key/value pairs from the form body. Repeated keys keep the last value."""
    form_data = await request.form()
    try:
        return {key: value for key, value in form_data.items() if isinstance(value, str)}
    finally:
        await form_data.close()


def create_router(
    form: FormDefinition,
    store: AppendStore,
    *,
    form_route: str = "/",
    submit_route: str = "/submit",
    lang: str = "en",
) -> APIRouter:
    """
    Routes serving `form` and appending its submissions to `store`.

    The router carries no global state, so it can be mounted into any FastAPI app.
    """
    router = APIRouter(tags=["form"])

    @router.get(form_route, response_class=HTMLResponse)
    async def render_form() -> Response:
        try:
            html = render_form_page(form, action=submit_route, lang=lang)
        except TemplateError as exc:
            logger.error("Template render error: %r", exc)
            return PlainTextResponse("Template render error", status_code=HTTP_500_INTERNAL_SERVER_ERROR)
        return HTMLResponse(html)

    @router.post(submit_route, response_class=HTMLResponse)
    async def submit(request: Request) -> Response:
        if not _is_form_body(request):
            return PlainTextResponse(
                "Expected a form-encoded body", status_code=HTTP_415_UNSUPPORTED_MEDIA_TYPE
            )
        record = normalize(form, await _posted_pairs(request))

        try:
            await store.append_async(record)
        except StoreError as exc:
            request_id = f"store_{int(time.time() * 1000)}_{uuid.uuid4().hex[:8]}"
            logger.error(
                "submission not stored requestId=%s path=%s err=%s cause=%r",
                request_id,
                exc.path,
                exc,
                exc.__cause__,
            )
            message = _store_error_message(exc)
            if _wants_json(request):
                return JSONResponse(
                    status_code=HTTP_500_INTERNAL_SERVER_ERROR,
                    content={"ok": False, "error": "store_error", "message": message, "requestId": request_id},
                )
            return PlainTextResponse(message, status_code=HTTP_500_INTERNAL_SERVER_ERROR)

        logger.debug("entry submitted: %s", record.answers)
        if _wants_json(request):
            return JSONResponse({"ok": True, "timestamp": record.model_dump(mode="json")["timestamp"]})
        return HTMLResponse(render_saved_page(back_url=form_route, lang=lang))

    return router
