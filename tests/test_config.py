import json

import pytest

from form_generator.config import AppConfig, Settings, load_config
from form_generator.errors import ConfigError
from form_generator.store import CorruptStorePolicy

TOML = """
form_title = "Survey"
submit_button = "Send"
json_output = "out.json"

[[fields]]
name = "q1"
title = "First"
description = "d"
answer_type = "select"
options = ["a", "b"]

[[fields]]
name = "q2"
title = "Second"
description = ""
answer_type = "text"
"""


def test_load_toml(tmp_path):
    p = tmp_path / "config.toml"
    p.write_text(TOML, encoding="utf-8")
    cfg = load_config(p)
    assert cfg.form.title == "Survey"
    assert cfg.form.submit_label == "Send"
    assert cfg.form.identifiers == ("q1", "q2")
    assert cfg.form.fields[0].options == ("a", "b")
    assert cfg.json_output == "out.json"


def test_load_json(tmp_path):
    p = tmp_path / "config.json"
    p.write_text(
        json.dumps({"form_title": "S", "submit_button": "Go", "fields": [{"name": "q1", "title": "Q"}]}),
        encoding="utf-8",
    )
    cfg = load_config(p)
    assert cfg.form.identifiers == ("q1",)
    assert cfg.json_output is None


def test_duplicate_field_in_file(tmp_path):
    p = tmp_path / "config.toml"
    p.write_text(TOML.replace('name = "q2"', 'name = "q1"'), encoding="utf-8")
    with pytest.raises(ConfigError, match="duplicate"):
        load_config(p)


@pytest.mark.parametrize(
    "content",
    [
        "form_title = ",
        'submit_button = "Go"',
        'form_title = "T"\nsubmit_button = "Go"\nfields = "nope"',
    ],
)
def test_malformed_config(tmp_path, content):
    p = tmp_path / "config.toml"
    p.write_text(content, encoding="utf-8")
    with pytest.raises(ConfigError):
        load_config(p)


def test_missing_config_file(tmp_path):
    with pytest.raises(ConfigError, match="cannot read"):
        load_config(tmp_path / "nope.toml")


def test_store_path_precedence():
    cfg = AppConfig(form=None, json_output="from_config.json")
    assert Settings(output_file="cli.json").store_path(cfg) == "cli.json"
    assert Settings().store_path(cfg) == "from_config.json"
    assert Settings().store_path(AppConfig(form=None)) == "answers.json"


def test_settings_from_env(monkeypatch):
    monkeypatch.setenv("SERVER_PORT", "9000")
    monkeypatch.setenv("FORM_SUBMIT_ROUTE", "/answers")
    monkeypatch.setenv("FORM_STORE_ON_CORRUPT", "raise")
    monkeypatch.delenv("FORM_OUTPUT_FILE", raising=False)
    s = Settings.from_env()
    assert s.port == 9000
    assert s.submit_route == "/answers"
    assert s.on_corrupt is CorruptStorePolicy.RAISE
    assert s.output_file is None


def test_settings_bad_values(monkeypatch):
    monkeypatch.setenv("SERVER_PORT", "abc")
    assert Settings.from_env().port == 8081
    monkeypatch.setenv("FORM_STORE_ON_CORRUPT", "shrug")
    with pytest.raises(ConfigError):
        Settings.from_env()


def test_non_utf8_config_is_config_error(tmp_path):
    p = tmp_path / "config.toml"
    p.write_bytes(b'form_title = "\xff\xfe"\nsubmit_button = "Go"\n')
    with pytest.raises(ConfigError, match="cannot read"):
        load_config(p)
