"""
HTML rendering for the form and the post-submit page (Jinja2).

Templates auto-escape every string except the per-field `markup_before`/`markup_after`
decorations, which come from the config file and are emitted verbatim.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Tuple

from fastapi.templating import Jinja2Templates

from .fields import FieldDefinition, Widget, WidgetKind, resolve_widget
from .form import FormDefinition

TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))
templates.env.globals["WidgetKind"] = WidgetKind


def widget_rows(form: FormDefinition) -> List[Tuple[FieldDefinition, Widget]]:
    return [(field, resolve_widget(field)) for field in form.fields]


def form_context(form: FormDefinition, *, action: str, lang: str = "en") -> Dict[str, Any]:
    return {
        "lang": lang,
        "form_title": form.title,
        "submit_button": form.submit_label,
        "action": action,
        "rows": widget_rows(form),
    }


def render_form_page(form: FormDefinition, *, action: str, lang: str = "en") -> str:
    return templates.get_template("form.html").render(**form_context(form, action=action, lang=lang))


def render_saved_page(*, back_url: str, lang: str = "en") -> str:
    return templates.get_template("saved.html").render(back_url=back_url, lang=lang)
