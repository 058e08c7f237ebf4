from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


class WidgetKind(str, Enum):
    CHECKBOX = "checkbox"
    TEXTAREA = "textarea"
    SELECT = "select"
    INPUT = "input"


@dataclass(frozen=True)
class Widget:
    """Resolved rendering behaviour for one field."""

    kind: WidgetKind
    options: Tuple[str, ...] = ()
    input_type: Optional[str] = None


class FieldDefinition(BaseModel):
    """One declared question of the form, as read from the config file."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    identifier: str = Field(..., alias="name", description="Canonical answer key (unique per form)")
    title: str = Field(default="", description="Question label shown to the user")
    description: str = Field(default="", description="Help text shown under the label")
    answer_type: str = Field(
        default="text",
        description="'checkbox', 'textarea', 'select', or any HTML input type (e.g. 'email', 'date')",
    )
    options: Optional[Tuple[str, ...]] = Field(default=None, description="Choices for 'select' fields")
    markup_before: Optional[str] = Field(
        default=None, alias="html_before", description="Raw HTML emitted before the field"
    )
    markup_after: Optional[str] = Field(
        default=None, alias="html_after", description="Raw HTML emitted after the field"
    )

    @property
    def widget(self) -> Widget:
        return resolve_widget(self)


def resolve_widget(field: FieldDefinition) -> Widget:
    """
    Map `answer_type` onto a widget:
      - "checkbox" -> boolean toggle
      - "textarea" -> multi-line text
      - "select"   -> choice list from `options` (empty when absent)
      - anything else -> single-line input, `answer_type` passed through as the input type
    """
    answer_type = field.answer_type
    if answer_type == "checkbox":
        return Widget(kind=WidgetKind.CHECKBOX)
    if answer_type == "textarea":
        return Widget(kind=WidgetKind.TEXTAREA)
    if answer_type == "select":
        return Widget(kind=WidgetKind.SELECT, options=tuple(field.options or ()))
    return Widget(kind=WidgetKind.INPUT, input_type=answer_type)
