from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Set, Tuple, Union

from pydantic import ValidationError

from .errors import ConfigError
from .fields import FieldDefinition

RawField = Union[FieldDefinition, Mapping[str, Any]]


@dataclass(frozen=True)
class FormDefinition:
    title: str
    submit_label: str
    fields: Tuple[FieldDefinition, ...]

    @property
    def identifiers(self) -> Tuple[str, ...]:
        return tuple(f.identifier for f in self.fields)


def _coerce_field(raw: RawField, index: int) -> FieldDefinition:
    if isinstance(raw, FieldDefinition):
        return raw
    if not isinstance(raw, Mapping):
        raise ConfigError(f"field #{index + 1} must be a table, got {type(raw).__name__}")
    try:
        return FieldDefinition.model_validate(dict(raw))
    except ValidationError as exc:
        raise ConfigError(f"field #{index + 1} is invalid: {exc}") from exc


def build_form(raw_fields: Iterable[RawField], title: str, submit_label: str) -> FormDefinition:
    """
    Build the immutable form from raw field descriptors, in order.

    Fails fast with ConfigError on the first empty or duplicate identifier (compared after
    trimming); nothing is returned on failure.
    """
    for label, value in (("title", title), ("submit label", submit_label)):
        if not isinstance(value, str):
            raise ConfigError(f"form {label} must be a string, got {type(value).__name__}")

    seen: Set[str] = set()
    fields = []
    for index, raw in enumerate(raw_fields):
        field = _coerce_field(raw, index)
        identifier = field.identifier.strip()
        if not identifier:
            raise ConfigError(f"field #{index + 1} has an empty name")
        if identifier in seen:
            raise ConfigError(f"duplicate field name in config: {identifier}")
        seen.add(identifier)
        if identifier != field.identifier:
            field = field.model_copy(update={"identifier": identifier})
        fields.append(field)

    return FormDefinition(title=title, submit_label=submit_label, fields=tuple(fields))
