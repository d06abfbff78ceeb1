"""Period-over-period growth comparison.

Compares each period with the one before it and flags changes that look
larger than ordinary noise.  The significance rules are heuristics, not
rigorous tests:

- ticket counts are treated as Poisson, stddev = sqrt(mean of the pair)
- revenue stddev is taken as a fixed fraction (default 10%) of the pair mean

A change is flagged when ``|current - previous| > sigma_threshold * stddev``.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from repair_analytics.analytics.aggregator import PeriodMetric

DEFAULT_SIGMA_THRESHOLD = 2.0
DEFAULT_REVENUE_STDDEV_FRACTION = 0.1


@dataclass(frozen=True)
class GrowthComparison:
    """Growth between one period and the previous one."""
    period: str
    current_count: int
    previous_count: int
    current_amount: float
    previous_amount: float
    count_growth_rate: float
    amount_growth_rate: float
    count_significant: bool
    amount_significant: bool


def growth_rate(current: float, previous: float) -> float:
    """Percentage growth, 100 from a zero base to a positive value, else 0."""
    if previous != 0:
        return round((current - previous) / previous * 100, 2)
    return 100.0 if current > 0 else 0.0


def is_count_change_significant(
    current: float,
    previous: float,
    sigma_threshold: float = DEFAULT_SIGMA_THRESHOLD,
) -> bool:
    stddev = math.sqrt(max((current + previous) / 2, 0.0))
    return abs(current - previous) > sigma_threshold * stddev


def is_amount_change_significant(
    current: float,
    previous: float,
    sigma_threshold: float = DEFAULT_SIGMA_THRESHOLD,
    stddev_fraction: float = DEFAULT_REVENUE_STDDEV_FRACTION,
) -> bool:
    stddev = abs((current + previous) / 2) * stddev_fraction
    return abs(current - previous) > sigma_threshold * stddev


def compare_periods(
    metrics: list[PeriodMetric],
    sigma_threshold: float = DEFAULT_SIGMA_THRESHOLD,
    revenue_stddev_fraction: float = DEFAULT_REVENUE_STDDEV_FRACTION,
) -> list[GrowthComparison]:
    """Compare every period with its predecessor (first period is skipped)."""
    comparisons: list[GrowthComparison] = []
    for previous, current in zip(metrics, metrics[1:]):
        comparisons.append(GrowthComparison(
            period=current.period,
            current_count=current.count,
            previous_count=previous.count,
            current_amount=round(current.total_amount, 2),
            previous_amount=round(previous.total_amount, 2),
            count_growth_rate=growth_rate(current.count, previous.count),
            amount_growth_rate=growth_rate(current.total_amount, previous.total_amount),
            count_significant=is_count_change_significant(
                current.count, previous.count, sigma_threshold,
            ),
            amount_significant=is_amount_change_significant(
                current.total_amount, previous.total_amount,
                sigma_threshold, revenue_stddev_fraction,
            ),
        ))
    return comparisons
