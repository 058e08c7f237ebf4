from __future__ import annotations

import json
import os
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import ConfigError
from .form import FormDefinition, build_form
from .store import CorruptStorePolicy

DEFAULT_CONFIG_PATH = "config.toml"
DEFAULT_OUTPUT_FILE = "answers.json"


class _ConfigFile(BaseModel):
    """Top-level shape of the config document; fields are validated by `build_form`."""

    model_config = ConfigDict(extra="ignore")

    form_title: str
    submit_button: str
    json_output: Optional[str] = None
    fields: List[Dict[str, Any]] = Field(default_factory=list)


@dataclass(frozen=True)
class AppConfig:
    form: FormDefinition
    json_output: Optional[str] = None


def _parse_document(path: Path, raw: str) -> Any:
    if path.suffix.lower() == ".json":
        return json.loads(raw)
    return tomllib.loads(raw)


def load_config(path: Union[str, Path]) -> AppConfig:
    """Read a TOML (or `.json`) form config and build the immutable form from it."""
    p = Path(path)
    try:
        raw = p.read_bytes().decode("utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigError(f"cannot read config {p}: {exc}") from exc

    try:
        doc = _parse_document(p, raw)
    except (tomllib.TOMLDecodeError, json.JSONDecodeError) as exc:
        raise ConfigError(f"cannot parse config {p}: {exc}") from exc

    try:
        parsed = _ConfigFile.model_validate(doc)
    except ValidationError as exc:
        raise ConfigError(f"invalid config {p}: {exc}") from exc

    try:
        form = build_form(parsed.fields, title=parsed.form_title, submit_label=parsed.submit_button)
    except ConfigError as exc:
        raise ConfigError(f"invalid config {p}: {exc}") from exc

    return AppConfig(form=form, json_output=parsed.json_output)


def _env_int(name: str, default: int) -> int:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_str(name: str, default: str) -> str:
    return (os.getenv(name) or "").strip() or default


def load_env_files(root: Optional[Path] = None) -> None:
    # `.env.local` only fills what `.env` and the real environment left unset.
    base = root or Path.cwd()
    load_dotenv(base / ".env", override=False)
    load_dotenv(base / ".env.local", override=False)


@dataclass(frozen=True)
class Settings:
    config_path: str = DEFAULT_CONFIG_PATH
    output_file: Optional[str] = None
    host: str = "127.0.0.1"
    port: int = 8081
    form_route: str = "/"
    submit_route: str = "/submit"
    lang: str = "en"
    on_corrupt: CorruptStorePolicy = CorruptStorePolicy.RESET

    @classmethod
    def from_env(cls) -> "Settings":
        try:
            on_corrupt = CorruptStorePolicy.parse(os.getenv("FORM_STORE_ON_CORRUPT"))
        except ValueError as exc:
            raise ConfigError(str(exc)) from exc
        return cls(
            config_path=_env_str("FORM_CONFIG_PATH", DEFAULT_CONFIG_PATH),
            output_file=(os.getenv("FORM_OUTPUT_FILE") or "").strip() or None,
            host=_env_str("SERVER_HOST", "127.0.0.1"),
            port=_env_int("SERVER_PORT", 8081),
            form_route=_env_str("FORM_ROUTE", "/"),
            submit_route=_env_str("FORM_SUBMIT_ROUTE", "/submit"),
            lang=_env_str("FORM_LANG", "en"),
            on_corrupt=on_corrupt,
        )

    def store_path(self, config: AppConfig) -> str:
        """Explicit output file, then the config's `json_output`, then the default."""
        return self.output_file or config.json_output or DEFAULT_OUTPUT_FILE
