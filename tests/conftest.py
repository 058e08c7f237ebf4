from __future__ import annotations

import sys
from pathlib import Path

import pytest

_REPO_ROOT = Path(__file__).resolve().parents[1]
_SRC = _REPO_ROOT / "src"
if _SRC.exists():
    sys.path.insert(0, str(_SRC))

from form_generator.form import FormDefinition, build_form  # noqa: E402


@pytest.fixture
def retro_form() -> FormDefinition:
    return build_form(
        [
            {"name": "went_well", "title": "What went well?", "answer_type": "textarea"},
            {"name": "mood", "title": "Mood", "answer_type": "select", "options": ["great", "ok", "rough"]},
            {"name": "email", "title": "Email", "answer_type": "email", "html_before": "<hr class='sep'>"},
            {"name": "attend_next", "title": "Join next time", "answer_type": "checkbox"},
        ],
        title="Team retro",
        submit_label="Send",
    )
