from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field

from .form import FormDefinition


class SubmissionRecord(BaseModel):
    """One stored submission: UTC timestamp + answers (None = no answer)."""

    model_config = ConfigDict(frozen=True)

    timestamp: datetime
    answers: Dict[str, Optional[str]] = Field(default_factory=dict)


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    t = str(value).strip()
    return t or None


def normalize(
    form: FormDefinition,
    raw_pairs: Mapping[str, str],
    now: Optional[datetime] = None,
) -> SubmissionRecord:
    """
    Turn posted key/value pairs into a SubmissionRecord.

    Declared fields come first, in declaration order, and are always present (None when
    missing or blank). Undeclared keys are kept under their raw name, after the declared
    ones. Values are trimmed; blank values become None. `raw_pairs` is not modified.
    """
    remaining = dict(raw_pairs)
    answers: Dict[str, Optional[str]] = {}

    for identifier in form.identifiers:
        answers[identifier] = _clean(remaining.pop(identifier, None))

    for key, value in remaining.items():
        answers[key] = _clean(value)

    return SubmissionRecord(timestamp=now or datetime.now(timezone.utc), answers=answers)
