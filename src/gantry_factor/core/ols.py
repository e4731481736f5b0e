"""Ordinary least squares shared by the drift fitter and the gantry estimator."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Mapping, Sequence, Tuple

import numpy as np

from .errors import SingularDesignMatrixError, UnderdeterminedModelError

__all__ = ["MAX_CONDITION_NUMBER", "OLSResult", "design_matrix", "fit_ols"]

#: Condition number above which a design matrix is treated as singular.
MAX_CONDITION_NUMBER = 1e10


@dataclass(frozen=True)
class OLSResult:
    """Coefficients and diagnostics of a least squares fit.

    ``standard_errors`` are NaN when the fit leaves no residual degrees of
    freedom. ``r_squared`` is NaN when the response is constant.
    """

    names: Tuple[str, ...]
    coefficients: Tuple[float, ...]
    fitted: Tuple[float, ...]
    residuals: Tuple[float, ...]
    r_squared: float
    standard_errors: Tuple[float, ...]
    degrees_of_freedom: int
    condition_number: float

    def coefficient(self, name: str) -> float:
        return self.coefficients[self.names.index(name)]

    def standard_error(self, name: str) -> float:
        return self.standard_errors[self.names.index(name)]

    def standard_error_map(self) -> Mapping[str, float]:
        return dict(zip(self.names, self.standard_errors))


def design_matrix(*columns: Sequence[float]) -> np.ndarray:
    """Stack an intercept column with ``columns`` into an ``(n, p)`` matrix."""

    length = len(columns[0]) if columns else 0
    if any(len(column) != length for column in columns):
        raise ValueError("Design matrix columns must have the same length")
    stacked = [np.ones(length, dtype=float)]
    stacked.extend(np.asarray(column, dtype=float) for column in columns)
    return np.column_stack(stacked)


def _condition_number(singular_values: np.ndarray) -> float:
    smallest = float(singular_values[-1])
    if smallest <= 0.0:
        return math.inf
    return float(singular_values[0]) / smallest


def fit_ols(
    design: np.ndarray,
    response: Sequence[float] | np.ndarray,
    *,
    names: Sequence[str],
) -> OLSResult:
    """Fit ``response ≈ design @ beta`` minimising the squared residuals.

    Parameters
    ----------
    design:
        ``(n, p)`` matrix, usually built with :func:`design_matrix`.
    response:
        ``n`` observations.
    names:
        ``p`` coefficient names, in column order.

    Raises
    ------
    UnderdeterminedModelError
        When ``n < p``.
    SingularDesignMatrixError
        When the columns are linearly dependent, either exactly (numerical
        rank below ``p``) or nearly (condition number above
        :data:`MAX_CONDITION_NUMBER`).
    """

    x = np.asarray(design, dtype=float)
    y = np.asarray(response, dtype=float).reshape(-1)
    if x.ndim != 2:
        raise ValueError("design must be a two dimensional matrix")
    n, p = x.shape
    if len(names) != p:
        raise ValueError(f"Expected {p} coefficient names, got {len(names)}")
    if y.shape[0] != n:
        raise ValueError(f"Response has {y.shape[0]} rows but the design has {n}")
    if not (np.all(np.isfinite(x)) and np.all(np.isfinite(y))):
        raise ValueError("Design matrix and response must be finite")
    if n < p:
        raise UnderdeterminedModelError(n, p)

    singular_values = np.linalg.svd(x, compute_uv=False)
    tolerance = singular_values[0] * max(n, p) * np.finfo(float).eps
    rank = int(np.count_nonzero(singular_values > tolerance))
    condition = _condition_number(singular_values)
    if rank < p or condition > MAX_CONDITION_NUMBER:
        raise SingularDesignMatrixError(rank, p, condition)

    beta, _, _, _ = np.linalg.lstsq(x, y, rcond=None)
    fitted = x @ beta
    residuals = y - fitted

    ssr = float(residuals @ residuals)
    centred = y - y.mean()
    sst = float(centred @ centred)
    r_squared = 1.0 - ssr / sst if sst > 0.0 else math.nan

    dof = n - p
    if dof > 0:
        sigma2 = ssr / dof
        covariance = sigma2 * np.linalg.inv(x.T @ x)
        errors = np.sqrt(np.clip(np.diag(covariance), 0.0, None))
    else:
        errors = np.full(p, np.nan)

    return OLSResult(
        names=tuple(str(name) for name in names),
        coefficients=tuple(float(value) for value in beta),
        fitted=tuple(float(value) for value in fitted),
        residuals=tuple(float(value) for value in residuals),
        r_squared=float(r_squared),
        standard_errors=tuple(float(value) for value in errors),
        degrees_of_freedom=dof,
        condition_number=condition,
    )
