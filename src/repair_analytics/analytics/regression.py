"""Regression family fitters.

Closed set of trend models fitted against a 1-based period index:

- ``LinearFit``        y = slope * x + intercept
- ``EnhancedLinearFit`` linear fit plus standard errors, p-values, confidence
  intervals and the quantities needed for a prediction interval
- ``PolynomialFit``    y = a * x^2 + b * x + c
- ``LogarithmicFit``   y = a * ln(x) + b

Every fit exposes ``r_squared``, ``predict(x)`` and
``interval_half_width(x, y_std)`` so forecasters can treat the families
uniformly.  Degenerate input never raises; it yields a zero fit with
R^2 = 0.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Callable, ClassVar, Union

from repair_analytics.analytics.stat_primitives import student_t_pvalue

logger = logging.getLogger(__name__)

SINGULAR_DET_THRESHOLD = 1e-10


# ---------------------------------------------------------------------------
# Fit variants
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class LinearFit:
    """Ordinary least squares line."""
    slope: float = 0.0
    intercept: float = 0.0
    r_squared: float = 0.0

    family: ClassVar[str] = "linear"

    def predict(self, x: float) -> float:
        return self.slope * x + self.intercept

    def interval_half_width(self, x: float, y_std: float) -> float:
        return y_std


@dataclass(frozen=True)
class EnhancedLinearFit(LinearFit):
    """Linear fit with inference statistics."""
    slope_std_error: float = 0.0
    intercept_std_error: float = 0.0
    slope_p_value: float = 1.0
    intercept_p_value: float = 1.0
    slope_confidence_interval: tuple[float, float] = (0.0, 0.0)
    intercept_confidence_interval: tuple[float, float] = (0.0, 0.0)
    mean_x: float = 0.0
    sxx: float = 0.0
    mse: float = 0.0
    t_critical: float = 2.0
    n: int = 0

    def interval_half_width(self, x: float, y_std: float = 0.0) -> float:
        """Half width of the 95% prediction interval at *x*."""
        if self.n < 3 or self.sxx <= 0:
            return 0.0
        variance = self.mse * (1.0 + 1.0 / self.n + (x - self.mean_x) ** 2 / self.sxx)
        return self.t_critical * math.sqrt(max(variance, 0.0))


@dataclass(frozen=True)
class PolynomialFit:
    """Quadratic fit ``a*x^2 + b*x + c``."""
    a: float = 0.0
    b: float = 0.0
    c: float = 0.0
    r_squared: float = 0.0

    family: ClassVar[str] = "polynomial"

    @property
    def coefficients(self) -> tuple[float, float, float]:
        return (self.a, self.b, self.c)

    def predict(self, x: float) -> float:
        return self.a * x * x + self.b * x + self.c

    def interval_half_width(self, x: float, y_std: float) -> float:
        return y_std


@dataclass(frozen=True)
class LogarithmicFit:
    """Log-x fit ``a*ln(x) + b``."""
    a: float = 0.0
    b: float = 0.0
    r_squared: float = 0.0

    family: ClassVar[str] = "logarithmic"

    def predict(self, x: float) -> float:
        if x <= 0:
            return self.b
        return self.a * math.log(x) + self.b

    def interval_half_width(self, x: float, y_std: float) -> float:
        return y_std


RegressionFit = Union[LinearFit, EnhancedLinearFit, PolynomialFit, LogarithmicFit]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _r_squared(y: list[float], predicted: list[float]) -> float:
    """1 - SSres/SStot, or 0 when the series has no variance."""
    n = len(y)
    if n == 0:
        return 0.0
    y_mean = sum(y) / n
    ss_tot = sum((yi - y_mean) ** 2 for yi in y)
    if ss_tot == 0:
        return 0.0
    ss_res = sum((yi - pi) ** 2 for yi, pi in zip(y, predicted))
    r2 = 1.0 - ss_res / ss_tot
    return r2 if math.isfinite(r2) else 0.0


def _ols(x: list[float], y: list[float]) -> tuple[float, float] | None:
    """Centred least squares; None when x has no spread."""
    if min(x) == max(x):
        return None
    n = len(x)
    mean_x = sum(x) / n
    mean_y = sum(y) / n
    sxx = sum((xi - mean_x) ** 2 for xi in x)
    if sxx <= 0:
        return None
    sxy = sum((xi - mean_x) * (yi - mean_y) for xi, yi in zip(x, y))
    slope = sxy / sxx
    return slope, mean_y - slope * mean_x


def _coefficient_p_value(coef: float, std_error: float, df: int) -> float:
    if std_error == 0 or not math.isfinite(std_error):
        # Exact fit: any non-zero coefficient is certain
        return 0.0 if coef != 0 else 1.0
    return student_t_pvalue(abs(coef) / std_error, df)


def t_critical_95(df: int) -> float:
    """Approximate two-sided 95% critical value (not a t-table lookup)."""
    return 1.96 if df > 30 else 2.0


# ---------------------------------------------------------------------------
# Fitters
# ---------------------------------------------------------------------------


def fit_linear(x: list[float], y: list[float]) -> LinearFit:
    """Closed-form OLS.  Needs at least two points and non-constant x."""
    if len(x) != len(y) or len(x) < 2:
        return LinearFit()
    coefs = _ols(x, y)
    if coefs is None:
        return LinearFit()
    slope, intercept = coefs
    r2 = _r_squared(y, [slope * xi + intercept for xi in x])
    return LinearFit(slope=slope, intercept=intercept, r_squared=r2)


def fit_enhanced_linear(x: list[float], y: list[float]) -> EnhancedLinearFit:
    """OLS with standard errors, t-test p-values and 95% confidence intervals.

    Needs at least three points (one residual degree of freedom).  The
    critical value is 1.96 for df > 30 and 2.0 otherwise.
    """
    n = len(x)
    if n != len(y) or n < 3:
        return EnhancedLinearFit(n=n)
    coefs = _ols(x, y)
    if coefs is None:
        return EnhancedLinearFit(n=n)
    slope, intercept = coefs

    predicted = [slope * xi + intercept for xi in x]
    r2 = _r_squared(y, predicted)

    df = n - 2
    ss_res = sum((yi - pi) ** 2 for yi, pi in zip(y, predicted))
    mse = ss_res / df

    mean_x = sum(x) / n
    sum_xx = sum(xi * xi for xi in x)
    sxx = sum((xi - mean_x) ** 2 for xi in x)
    if sxx <= 0:
        return EnhancedLinearFit(n=n)

    se_slope = math.sqrt(mse / sxx)
    se_intercept = math.sqrt(mse * sum_xx / (n * sxx))

    t_crit = t_critical_95(df)
    slope_margin = t_crit * se_slope
    intercept_margin = t_crit * se_intercept

    return EnhancedLinearFit(
        slope=slope,
        intercept=intercept,
        r_squared=r2,
        slope_std_error=se_slope,
        intercept_std_error=se_intercept,
        slope_p_value=_coefficient_p_value(slope, se_slope, df),
        intercept_p_value=_coefficient_p_value(intercept, se_intercept, df),
        slope_confidence_interval=(slope - slope_margin, slope + slope_margin),
        intercept_confidence_interval=(intercept - intercept_margin, intercept + intercept_margin),
        mean_x=mean_x,
        sxx=sxx,
        mse=mse,
        t_critical=t_crit,
        n=n,
    )


def fit_polynomial(x: list[float], y: list[float]) -> PolynomialFit:
    """Quadratic least squares via Cramer's rule on the normal equations.

    Solves::

        [n     Sx    Sx2] [c]   [Sy  ]
        [Sx    Sx2   Sx3] [b] = [Sxy ]
        [Sx2   Sx3   Sx4] [a]   [Sx2y]
    """
    n = len(x)
    if n != len(y) or n < 3:
        return PolynomialFit()

    s_x = s_x2 = s_x3 = s_x4 = 0.0
    s_y = s_xy = s_x2y = 0.0
    for xi, yi in zip(x, y):
        xi2 = xi * xi
        s_x += xi
        s_x2 += xi2
        s_x3 += xi2 * xi
        s_x4 += xi2 * xi2
        s_y += yi
        s_xy += xi * yi
        s_x2y += xi2 * yi

    def det3(m: list[list[float]]) -> float:
        return (
            m[0][0] * (m[1][1] * m[2][2] - m[1][2] * m[2][1])
            - m[0][1] * (m[1][0] * m[2][2] - m[1][2] * m[2][0])
            + m[0][2] * (m[1][0] * m[2][1] - m[1][1] * m[2][0])
        )

    matrix = [
        [n, s_x, s_x2],
        [s_x, s_x2, s_x3],
        [s_x2, s_x3, s_x4],
    ]
    rhs = [s_y, s_xy, s_x2y]

    det = det3(matrix)
    if abs(det) < SINGULAR_DET_THRESHOLD:
        logger.debug("Singular normal equations (det=%g), returning zero fit", det)
        return PolynomialFit()

    def replaced(col: int) -> list[list[float]]:
        return [
            [rhs[r] if c == col else matrix[r][c] for c in range(3)]
            for r in range(3)
        ]

    c = det3(replaced(0)) / det
    b = det3(replaced(1)) / det
    a = det3(replaced(2)) / det

    r2 = _r_squared(y, [a * xi * xi + b * xi + c for xi in x])
    return PolynomialFit(a=a, b=b, c=c, r_squared=r2)


def fit_logarithmic(x: list[float], y: list[float]) -> LogarithmicFit:
    """Fit ``a*ln(x) + b``; any non-positive x yields a zero fit."""
    if len(x) != len(y) or len(x) < 2:
        return LogarithmicFit()
    if any(xi <= 0 for xi in x):
        return LogarithmicFit()
    linear = fit_linear([math.log(xi) for xi in x], y)
    return LogarithmicFit(a=linear.slope, b=linear.intercept, r_squared=linear.r_squared)


# Candidate families for count series, in tie-break order
FAMILY_FITTERS: tuple[tuple[str, Callable[[list[float], list[float]], RegressionFit]], ...] = (
    (LinearFit.family, fit_enhanced_linear),
    (PolynomialFit.family, fit_polynomial),
    (LogarithmicFit.family, fit_logarithmic),
)
