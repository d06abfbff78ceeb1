"""Correlation with significance and a Fisher-z confidence interval."""

from __future__ import annotations

import math
from dataclasses import dataclass

from repair_analytics.analytics.stat_primitives import pearson, student_t_pvalue

Z_CRITICAL_95 = 1.96


@dataclass(frozen=True)
class CorrelationResult:
    coefficient: float
    p_value: float
    confidence_interval: tuple[float, float]
    n: int


def fisher_interval(r: float, n: int, z_critical: float = Z_CRITICAL_95) -> tuple[float, float]:
    """95% interval for *r* via the Fisher z-transform.

    Collapses to ``(r, r)`` when n <= 3 or |r| = 1.
    """
    if n <= 3 or abs(r) >= 1:
        return (r, r)
    z = 0.5 * math.log((1 + r) / (1 - r))
    se = 1 / math.sqrt(n - 3)
    return (math.tanh(z - z_critical * se), math.tanh(z + z_critical * se))


def correlate(x: list[float], y: list[float]) -> CorrelationResult:
    """Pearson r between *x* and *y* with a two-tailed t-test p-value.

    Mismatched lengths give r = 0 and p = 1.  A perfect correlation has
    p = 0.
    """
    n = len(x)
    if n != len(y):
        return CorrelationResult(coefficient=0.0, p_value=1.0, confidence_interval=(0.0, 0.0), n=0)

    r = pearson(x, y)
    if n < 3:
        return CorrelationResult(coefficient=r, p_value=1.0, confidence_interval=(r, r), n=n)
    if abs(r) >= 1:
        return CorrelationResult(coefficient=r, p_value=0.0, confidence_interval=(r, r), n=n)

    df = n - 2
    t = r * math.sqrt(df / (1 - r * r))
    return CorrelationResult(
        coefficient=r,
        p_value=student_t_pvalue(t, df),
        confidence_interval=fisher_interval(r, n),
        n=n,
    )
