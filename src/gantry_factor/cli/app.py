"""Command line application entry point for gantry factor estimation."""

from __future__ import annotations

import argparse
import sys
from typing import Any, Callable, Mapping, Optional, Sequence

from ..logging.config import setup_logging
from .errors import CliError, log_cli_error
from .io import load_cli_config
from .parser import add_global_arguments, build_parser


CommandHandler = Callable[..., str]


def _logging_settings(preliminary: argparse.Namespace, config: Mapping[str, Any]) -> dict[str, Any]:
    logging_config = dict(config.get("logging", {}) or {})
    if preliminary.log_level is not None:
        logging_config["level"] = preliminary.log_level
    if preliminary.log_output is not None:
        logging_config["output"] = preliminary.log_output
    if preliminary.log_format is not None:
        logging_config["format"] = preliminary.log_format
    logging_config.setdefault("level", "info")
    logging_config.setdefault("output", "stderr")
    logging_config.setdefault("format", "json")
    return logging_config


def _emit(message: str) -> None:
    sys.stdout.write(message)
    if not message.endswith("\n"):
        sys.stdout.write("\n")


def run_cli(args: Optional[Sequence[str]] = None) -> str:
    """Execute the gantry factor command line interface.

    Returns the text written to stdout. Failures exit with the status code of
    the :class:`CliError` category.
    """

    config_parser = argparse.ArgumentParser(add_help=False)
    add_global_arguments(config_parser)
    preliminary, remaining = config_parser.parse_known_args(args)

    try:
        config = load_cli_config(preliminary.config_path)
        config["logging"] = _logging_settings(preliminary, config)
        try:
            setup_logging(config)
        except ValueError as exc:
            raise CliError(str(exc), category="usage", context={"logging": config["logging"]}) from exc

        parser = build_parser()
        namespace = parser.parse_args(list(remaining), namespace=preliminary)
        handler: CommandHandler = namespace.handler
        result = handler(namespace, config=config)
    except CliError as exc:
        if not exc.logged:
            log_cli_error(exc.payload, exc_info=exc)
            exc.logged = True
        if exc.payload.message:
            _emit(exc.payload.message)
        raise SystemExit(exc.status_code) from exc

    if result:
        _emit(result)
    return result


def main() -> None:  # pragma: no cover - thin wrapper
    run_cli()


if __name__ == "__main__":  # pragma: no cover - CLI invocation guard
    main()
