from __future__ import annotations

from .main import app_from_env, create_app
from .routes.form import create_router

__all__ = ["app_from_env", "create_app", "create_router"]
