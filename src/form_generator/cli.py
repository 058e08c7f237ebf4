from __future__ import annotations

import argparse
import dataclasses
import logging
import sys
from typing import List, Optional

from .config import Settings, load_env_files
from .errors import ConfigError

logger = logging.getLogger("form_generator")


def _build_parser(defaults: Settings) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="form-generator",
        description="Serve a config-defined HTML form and append every submission to a JSON file.",
    )
    parser.add_argument("-c", "--config-path", default=defaults.config_path, help="form config (TOML or .json)")
    parser.add_argument(
        "-o",
        "--output-file",
        default=defaults.output_file,
        help="JSON file receiving submissions (default: config json_output, else answers.json)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    parser.add_argument("--host", default=defaults.host)
    parser.add_argument("--port", type=int, default=defaults.port)
    return parser


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def main(argv: Optional[List[str]] = None) -> int:
    load_env_files()
    try:
        env_settings = Settings.from_env()
    except ConfigError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    args = _build_parser(env_settings).parse_args(argv)
    _configure_logging(args.verbose)

    settings = dataclasses.replace(
        env_settings,
        config_path=args.config_path,
        output_file=args.output_file,
        host=args.host,
        port=args.port,
    )

    from .api.main import app_from_env

    try:
        app = app_from_env(settings)
    except ConfigError as exc:
        logger.error("loading %s: %s", settings.config_path, exc)
        return 1

    import uvicorn

    uvicorn.run(app, host=settings.host, port=settings.port, log_level="debug" if args.verbose else "info")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
