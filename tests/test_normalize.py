from datetime import datetime, timezone

from form_generator.form import build_form
from form_generator.normalizer import normalize


def _form(*names):
    return build_form([{"name": n} for n in names], title="T", submit_label="Go")


def test_blank_declared_and_undeclared_extra():
    record = normalize(_form("q1"), {"q1": "  ", "extra": "hi"})
    assert record.answers == {"q1": None, "extra": "hi"}


def test_missing_declared_field_is_absent():
    record = normalize(_form("q1", "q2"), {"q2": "x"})
    assert record.answers == {"q1": None, "q2": "x"}


def test_values_are_trimmed_and_blank_is_never_empty_string():
    record = normalize(_form("q1"), {"q1": "  yes \n", "a": "", "b": " \t "})
    assert record.answers == {"q1": "yes", "a": None, "b": None}
    assert "" not in record.answers.values()


def test_no_submitted_key_is_dropped():
    raw = {"z": "1", "q2": "2", "y": "3", "q1": "4"}
    record = normalize(_form("q1", "q2"), raw)
    assert set(raw) <= set(record.answers)
    assert list(record.answers) == ["q1", "q2", "z", "y"]


def test_input_mapping_is_not_mutated():
    raw = {"q1": " a ", "x": "b"}
    normalize(_form("q1"), raw)
    assert raw == {"q1": " a ", "x": "b"}


def test_timestamp_is_utc():
    fixed = datetime(2026, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
    assert normalize(_form("q1"), {}, now=fixed).timestamp == fixed
    assert normalize(_form("q1"), {}).timestamp.utcoffset().total_seconds() == 0
