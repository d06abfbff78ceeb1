"""Statistical primitives used by the regression and correlation modules.

Pure-Python implementations with no external dependencies.  None of these
functions raise for degenerate input: mismatched or too-short vectors, zero
variance and non-positive degrees of freedom degrade to neutral values
(correlation 0, p-value 1).

Valid domains
-------------
- ``log_gamma(x)``: x > 0 (returns ``inf`` for x <= 0).
- ``incomplete_beta(a, b, x)``: a > 0, b > 0, 0 <= x <= 1.
- ``student_t_pvalue(t, df)``: any finite t, df > 0 (returns 1 otherwise).
"""

from __future__ import annotations

import math

# Lanczos coefficients for the log-gamma series
_LANCZOS_COF = (
    76.18009172947146,
    -86.50532032941677,
    24.01409824083091,
    -1.231739572450155,
    0.1208650973866179e-2,
    -0.5395239384953e-5,
)

# Abramowitz & Stegun 26.2.17 coefficients
_AS_P = 0.2316419
_AS_A = (0.31938153, -0.356563782, 1.781477937, -1.821255978, 1.330274429)

_CF_MAX_ITER = 200
_CF_EPS = 1e-15
_CF_TINY = 1e-30


# ---------------------------------------------------------------------------
# Descriptive statistics
# ---------------------------------------------------------------------------


def mean(values: list[float]) -> float:
    """Arithmetic mean; 0 for an empty sequence."""
    if not values:
        return 0.0
    return sum(values) / len(values)


def population_variance(values: list[float]) -> float:
    """Population variance (divides by n); 0 for an empty sequence."""
    if not values:
        return 0.0
    m = mean(values)
    return sum((v - m) ** 2 for v in values) / len(values)


def population_stddev(values: list[float]) -> float:
    return math.sqrt(population_variance(values))


def pearson(x: list[float], y: list[float]) -> float:
    """Pearson correlation coefficient, clamped to [-1, 1].

    Returns 0 when the lengths differ, fewer than two points are given, or
    either vector has zero variance.
    """
    n = len(x)
    if n != len(y) or n < 2:
        return 0.0

    x_mean = sum(x) / n
    y_mean = sum(y) / n

    numerator = 0.0
    ss_x = 0.0
    ss_y = 0.0
    for xi, yi in zip(x, y):
        dx = xi - x_mean
        dy = yi - y_mean
        numerator += dx * dy
        ss_x += dx * dx
        ss_y += dy * dy

    if ss_x == 0 or ss_y == 0:
        return 0.0

    r = numerator / math.sqrt(ss_x * ss_y)
    return max(-1.0, min(1.0, r))


# ---------------------------------------------------------------------------
# Distributions
# ---------------------------------------------------------------------------


def normal_cdf(z: float) -> float:
    """Standard normal CDF via the Abramowitz & Stegun rational approximation.

    Absolute error is below 7.5e-8.  Symmetric: ``normal_cdf(-z) == 1 - normal_cdf(z)``.
    """
    if math.isnan(z):
        return 0.5
    abs_z = abs(z)
    t = 1.0 / (1.0 + _AS_P * abs_z)
    a1, a2, a3, a4, a5 = _AS_A
    poly = t * (a1 + t * (a2 + t * (a3 + t * (a4 + t * a5))))
    upper = 1.0 - (1.0 / math.sqrt(2 * math.pi)) * math.exp(-0.5 * abs_z * abs_z) * poly
    return upper if z >= 0 else 1.0 - upper


def log_gamma(x: float) -> float:
    """Natural log of the gamma function (Lanczos series, x > 0)."""
    if x <= 0:
        return math.inf
    if x == 1 or x == 2:
        return 0.0

    y = x
    tmp = x + 5.5
    tmp = (x + 0.5) * math.log(tmp) - tmp
    ser = 1.000000000190015
    for cof in _LANCZOS_COF:
        y += 1
        ser += cof / y
    return tmp + math.log(2.5066282746310005 * ser / x)


def log_beta(a: float, b: float) -> float:
    return log_gamma(a) + log_gamma(b) - log_gamma(a + b)


def _beta_continued_fraction(a: float, b: float, x: float) -> float:
    """Lentz evaluation of the incomplete-beta continued fraction."""
    f = 1.0
    c = 1.0
    d = 0.0

    for i in range(_CF_MAX_ITER + 1):
        m = i // 2
        if i == 0:
            numerator = 1.0
        elif i % 2 == 0:
            numerator = (m * (b - m) * x) / ((a + 2 * m - 1) * (a + 2 * m))
        else:
            numerator = -((a + m) * (a + b + m) * x) / ((a + 2 * m) * (a + 2 * m + 1))

        d = 1.0 + numerator * d
        if abs(d) < _CF_TINY:
            d = _CF_TINY
        d = 1.0 / d

        c = 1.0 + numerator / c
        if abs(c) < _CF_TINY:
            c = _CF_TINY

        delta = c * d
        f *= delta
        if abs(1.0 - delta) < _CF_EPS:
            break

    return f - 1.0


def incomplete_beta(a: float, b: float, x: float) -> float:
    """Regularized incomplete beta function ``I_x(a, b)``.

    Returns 0 outside the domain (a or b non-positive, x outside [0, 1]).
    """
    if a <= 0 or b <= 0 or math.isnan(x) or x < 0 or x > 1:
        return 0.0
    if x == 0 or x == 1:
        return x

    # The fraction converges fastest below the mean; use symmetry above it
    if x > (a + 1) / (a + b + 2):
        return 1.0 - incomplete_beta(b, a, 1.0 - x)

    front = math.exp(a * math.log(x) + b * math.log(1.0 - x) - log_beta(a, b)) / a
    result = front * _beta_continued_fraction(a, b, x)
    return max(0.0, min(1.0, result))


def student_t_pvalue(t_stat: float, df: float) -> float:
    """Two-tailed p-value for a Student-t statistic.

    For ``df > 30`` the normal approximation is used; otherwise the exact
    relation ``p = I_{df/(df+t^2)}(df/2, 1/2)``.
    """
    if df <= 0 or math.isnan(t_stat) or math.isnan(df):
        return 1.0
    t = abs(t_stat)
    if math.isinf(t):
        return 0.0

    if df > 30:
        p = 2.0 * (1.0 - normal_cdf(t))
    else:
        x = df / (df + t * t)
        p = incomplete_beta(df / 2.0, 0.5, x)
    return max(0.0, min(1.0, p))
