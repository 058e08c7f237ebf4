"""
Config-driven web form service.

A form is declared once (TOML/JSON), rendered as HTML, and every submission is
appended to a single JSON log file.

- Form model: `form_generator.fields`, `form_generator.form`
- Submissions: `form_generator.normalizer`, `form_generator.store`
- HTTP app: `form_generator.api`
"""

from __future__ import annotations

from .errors import ConfigError, StoreError
from .fields import FieldDefinition, Widget, WidgetKind, resolve_widget
from .form import FormDefinition, build_form
from .normalizer import SubmissionRecord, normalize
from .store import AppendStore, CorruptStorePolicy

__all__ = [
    "AppendStore",
    "ConfigError",
    "CorruptStorePolicy",
    "FieldDefinition",
    "FormDefinition",
    "StoreError",
    "SubmissionRecord",
    "Widget",
    "WidgetKind",
    "build_form",
    "normalize",
    "resolve_widget",
]
