from __future__ import annotations

import logging
import time
import uuid
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.status import HTTP_500_INTERNAL_SERVER_ERROR

from ..config import Settings, load_config, load_env_files
from ..form import FormDefinition
from ..store import AppendStore
from .http_logging import install_http_logging
from .routes.form import create_router

logger = logging.getLogger(__name__)


def create_app(
    form: FormDefinition,
    store: AppendStore,
    *,
    form_route: str = "/",
    submit_route: str = "/submit",
    lang: str = "en",
) -> FastAPI:
    app = FastAPI(title=form.title or "form-generator")

    @app.exception_handler(Exception)
    async def _unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        request_id = f"err_{int(time.time() * 1000)}_{uuid.uuid4().hex[:8]}"
        logger.error("500 internal_error requestId=%s path=%s err=%r", request_id, request.url.path, exc)
        return JSONResponse(
            status_code=HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "ok": False,
                "error": "internal_error",
                "message": "Unhandled server error.",
                "requestId": request_id,
            },
        )

    @app.get("/health", tags=["health"])
    async def health() -> Dict[str, Any]:
        return {"ok": True, "service": "form-generator", "fields": len(form.fields), "ts": int(time.time() * 1000)}

    app.include_router(
        create_router(form, store, form_route=form_route, submit_route=submit_route, lang=lang)
    )
    install_http_logging(app)
    return app


def app_from_env(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the app from `.env` / environment settings.

    Usable as a uvicorn factory: `uvicorn --factory form_generator.api.main:app_from_env`.
    Raises ConfigError before anything is served if the form config is invalid.
    """
    if settings is None:
        load_env_files()
        settings = Settings.from_env()
    config = load_config(settings.config_path)
    store = AppendStore(settings.store_path(config), on_corrupt=settings.on_corrupt)
    logger.info(
        "Loaded config: '%s', writing answers to '%s' with %d fields",
        settings.config_path,
        store.path,
        len(config.form.fields),
    )
    return create_app(
        config.form,
        store,
        form_route=settings.form_route,
        submit_route=settings.submit_route,
        lang=settings.lang,
    )
