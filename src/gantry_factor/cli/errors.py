"""Error helpers for the gantry factor command line tool."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from ..core.errors import GantryFactorError

__all__ = [
    "CliError",
    "ErrorPayload",
    "build_error_payload",
    "cli_error_from_estimation",
    "log_cli_error",
]

STATUS_CODES: Mapping[str, int] = {
    "runtime": 1,
    "usage": 2,
    "io": 3,
    "not_found": 4,
}

_LOGGER_NAME = "gantry_factor.cli"


@dataclass(frozen=True, slots=True)
class ErrorPayload:
    """What a failed command reports: exit status, category, message, context."""

    status_code: int
    category: str
    message: str
    context: Mapping[str, Any]

    def as_dict(self) -> Mapping[str, Any]:
        return {
            "status_code": self.status_code,
            "category": self.category,
            "message": self.message,
            "context": dict(self.context),
        }


def _scalar(value: Any) -> Any:
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    return str(value)


def build_error_payload(
    message: str,
    *,
    category: str = "runtime",
    status_code: Optional[int] = None,
    context: Optional[Mapping[str, Any]] = None,
) -> ErrorPayload:
    """Create an :class:`ErrorPayload`; the exit status defaults from ``category``."""

    if status_code is None:
        status_code = STATUS_CODES.get(category, STATUS_CODES["runtime"])
    return ErrorPayload(
        status_code=status_code,
        category=category,
        message=message,
        context={key: _scalar(value) for key, value in (context or {}).items()},
    )


def log_cli_error(
    payload: ErrorPayload,
    *,
    logger: Optional[logging.Logger] = None,
    exc_info: Optional[BaseException] = None,
) -> None:
    """Log ``payload`` at error level with its context as structured fields."""

    (logger or logging.getLogger(_LOGGER_NAME)).error(
        payload.message,
        extra={
            "event": "cli.error",
            "category": payload.category,
            "status_code": payload.status_code,
            "context": dict(payload.context),
        },
        exc_info=exc_info,
    )


class CliError(RuntimeError):
    """Failure raised by a command handler.

    ``logged`` records whether the error has already been reported so the
    entry point does not log it twice.
    """

    def __init__(
        self,
        message: str,
        *,
        category: str = "runtime",
        status_code: Optional[int] = None,
        context: Optional[Mapping[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.payload = build_error_payload(
            message, category=category, status_code=status_code, context=context
        )
        self.logged = False

    @property
    def category(self) -> str:
        return self.payload.category

    @property
    def status_code(self) -> int:
        return self.payload.status_code

    @property
    def context(self) -> Mapping[str, Any]:
        return self.payload.context


def cli_error_from_estimation(exc: GantryFactorError, *, source: Optional[str] = None) -> CliError:
    """Wrap an estimation failure, keeping its index/field context."""

    context: dict[str, Any] = {"error": type(exc).__name__}
    context.update(exc.context())
    if source is not None:
        context["source"] = source
    return CliError(str(exc), category="runtime", context=context)
