"""Error taxonomy for gantry factor estimation.

Every failure raised by the core is a :class:`GantryFactorError`. The errors
are deterministic structural or numerical faults, so callers should surface
them rather than retry. Each error carries the offending sample index or field
name where one applies and exposes it through :meth:`GantryFactorError.context`
for structured logging.
"""

from __future__ import annotations

import math
from typing import Any, Mapping, Optional

__all__ = [
    "GantryFactorError",
    "EmptyInputError",
    "MissingFieldError",
    "SampleValueError",
    "UnderdeterminedModelError",
    "SingularDesignMatrixError",
    "DegenerateRegressionError",
]


class GantryFactorError(ValueError):
    """Base class for every estimation failure."""

    def context(self) -> Mapping[str, Any]:
        """Return the attributes describing the failure."""

        return {}


class EmptyInputError(GantryFactorError):
    """Raised when a computation receives no samples."""

    def __init__(self, message: str = "No samples were provided.", *, detail: Optional[str] = None) -> None:
        super().__init__(message)
        self.detail = detail

    def context(self) -> Mapping[str, Any]:
        return {"detail": self.detail} if self.detail else {}


class MissingFieldError(GantryFactorError):
    """Raised when a record lacks a required field."""

    def __init__(self, field: str, *, index: Optional[int] = None) -> None:
        location = f" in record {index}" if index is not None else ""
        super().__init__(f"Required field '{field}' is missing{location}.")
        self.field = field
        self.index = index

    def context(self) -> Mapping[str, Any]:
        return {"field": self.field, "index": self.index}


class SampleValueError(GantryFactorError):
    """Raised when a field is present but cannot be interpreted."""

    def __init__(self, field: str, value: object, *, index: Optional[int] = None) -> None:
        location = f" in record {index}" if index is not None else ""
        super().__init__(f"Invalid value {value!r} for field '{field}'{location}.")
        self.field = field
        self.value = value
        self.index = index

    def context(self) -> Mapping[str, Any]:
        return {"field": self.field, "index": self.index, "value": repr(self.value)}


class UnderdeterminedModelError(GantryFactorError):
    """Raised when there are fewer samples than model parameters."""

    def __init__(self, sample_count: int, parameter_count: int) -> None:
        super().__init__(
            f"At least {parameter_count} samples are required to fit {parameter_count} "
            f"parameters; got {sample_count}."
        )
        self.sample_count = sample_count
        self.parameter_count = parameter_count

    def context(self) -> Mapping[str, Any]:
        return {"sample_count": self.sample_count, "parameter_count": self.parameter_count}


class SingularDesignMatrixError(GantryFactorError):
    """Raised when the covariates are collinear and the fit is not unique."""

    def __init__(self, rank: int, parameter_count: int, condition_number: float) -> None:
        super().__init__(
            f"Design matrix is singular or ill-conditioned (rank {rank} of "
            f"{parameter_count}, condition number {condition_number:.3g})."
        )
        self.rank = rank
        self.parameter_count = parameter_count
        self.condition_number = condition_number

    def context(self) -> Mapping[str, Any]:
        condition = self.condition_number if math.isfinite(self.condition_number) else None
        return {
            "rank": self.rank,
            "parameter_count": self.parameter_count,
            "condition_number": condition,
        }


class DegenerateRegressionError(GantryFactorError):
    """Raised when the preview offset does not vary, leaving the slope undefined."""

    def __init__(self, sample_count: int, reason: str) -> None:
        super().__init__(f"Gantry factor regression is degenerate: {reason}.")
        self.sample_count = sample_count
        self.reason = reason

    def context(self) -> Mapping[str, Any]:
        return {"sample_count": self.sample_count, "reason": self.reason}
