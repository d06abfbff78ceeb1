"""Model selection and point forecasting for period series.

Fits every regression family to the ticket-count series, keeps the one with
the highest R^2, and projects future periods with confidence bounds.
Revenue is always projected with the enhanced linear fit.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass

from repair_analytics.analytics.aggregator import PeriodMetric
from repair_analytics.analytics.periods import Granularity, future_labels
from repair_analytics.analytics.regression import (
    FAMILY_FITTERS,
    EnhancedLinearFit,
    RegressionFit,
    fit_enhanced_linear,
)
from repair_analytics.analytics.stat_primitives import population_stddev

logger = logging.getLogger(__name__)

MIN_POINTS_FOR_FORECAST = 3


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves rounded up."""
    return int(math.floor(value + 0.5))


@dataclass(frozen=True)
class ForecastPoint:
    """Projected figures for one future period."""
    period: str
    predicted_count: int
    predicted_amount: float
    count_lower: int
    count_upper: int
    amount_lower: float
    amount_upper: float


@dataclass(frozen=True)
class ModelSelection:
    """All candidate count models and the one chosen."""
    best: RegressionFit
    candidates: dict[str, RegressionFit]

    @property
    def best_family(self) -> str:
        return self.best.family


def select_count_model(x: list[float], y: list[float]) -> ModelSelection:
    """Fit every family and keep the first with the strictly highest R^2."""
    candidates: dict[str, RegressionFit] = {}
    best: RegressionFit | None = None
    for family, fitter in FAMILY_FITTERS:
        fit = fitter(x, y)
        candidates[family] = fit
        if best is None or fit.r_squared > best.r_squared:
            best = fit
    return ModelSelection(best=best, candidates=candidates)


def _count_bounds(
    fit: RegressionFit,
    x: float,
    predicted: int,
    count_std: float,
) -> tuple[int, int]:
    half_width = fit.interval_half_width(x, count_std)
    lower = max(0, round_half_up(predicted - half_width))
    upper = round_half_up(predicted + half_width)
    return lower, max(upper, lower)


def forecast_periods(
    metrics: list[PeriodMetric],
    granularity: Granularity | str,
    periods_ahead: int = 6,
    selection: ModelSelection | None = None,
) -> list[ForecastPoint]:
    """Project ticket counts and revenue for the next *periods_ahead* periods.

    Returns an empty list with fewer than three historical periods.

    Args:
        metrics: Chronologically sorted period metrics.
        granularity: Granularity the metrics were aggregated at; drives the
            labels of future periods.
        periods_ahead: Number of future periods to project.
        selection: Precomputed count model selection (computed if omitted).
    """
    n = len(metrics)
    if n < MIN_POINTS_FOR_FORECAST or periods_ahead <= 0:
        logger.debug("Forecast skipped: %d periods, %d ahead", n, periods_ahead)
        return []

    x = [float(i) for i in range(1, n + 1)]
    counts = [float(m.count) for m in metrics]
    amounts = [float(m.total_amount) for m in metrics]

    if selection is None:
        selection = select_count_model(x, counts)
    revenue_fit: EnhancedLinearFit = fit_enhanced_linear(x, amounts)
    count_std = population_stddev(counts)

    labels = future_labels(metrics[-1].start, granularity, periods_ahead)

    points: list[ForecastPoint] = []
    for step, label in enumerate(labels, start=1):
        future_x = float(n + step)

        predicted_count = max(0, round_half_up(selection.best.predict(future_x)))
        count_lower, count_upper = _count_bounds(selection.best, future_x, predicted_count, count_std)

        predicted_amount = max(0.0, revenue_fit.predict(future_x))
        amount_hw = revenue_fit.interval_half_width(future_x)

        points.append(ForecastPoint(
            period=label,
            predicted_count=predicted_count,
            predicted_amount=round(predicted_amount, 2),
            count_lower=count_lower,
            count_upper=count_upper,
            amount_lower=round(max(0.0, predicted_amount - amount_hw), 2),
            amount_upper=round(predicted_amount + amount_hw, 2),
        ))

    logger.debug(
        "Forecast %d periods with %s model (R^2=%.4f)",
        periods_ahead, selection.best_family, selection.best.r_squared,
    )
    return points


def format_forecast_report(
    points: list[ForecastPoint],
    selection: ModelSelection | None = None,
) -> str:
    """Render forecast points as a plain-text report."""
    if not points:
        return "Not enough history to forecast (need at least 3 periods)."

    lines = ["=== Ticket Forecast ==="]
    if selection is not None:
        lines.append(
            f"Model: {selection.best_family} (R^2={selection.best.r_squared:.4f})"
        )
        for family, fit in selection.candidates.items():
            lines.append(f"  {family}: R^2={fit.r_squared:.4f}")
    lines.append("Forecasted Periods:")
    for p in points:
        lines.append(
            f"  {p.period}: tickets={p.predicted_count} "
            f"[{p.count_lower}, {p.count_upper}], "
            f"revenue={p.predicted_amount:,.2f} "
            f"[{p.amount_lower:,.2f}, {p.amount_upper:,.2f}]"
        )
    return "\n".join(lines)
