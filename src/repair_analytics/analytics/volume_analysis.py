"""Ticket volume summary: trend direction, volatility and ticket/revenue link."""

from __future__ import annotations

from dataclasses import dataclass

from repair_analytics.analytics.aggregator import PeriodMetric
from repair_analytics.analytics.correlation import CorrelationResult, correlate
from repair_analytics.analytics.regression import fit_linear
from repair_analytics.analytics.stat_primitives import mean, population_stddev

TREND_BAND = 0.05  # last period must move more than 5% to count as a trend


@dataclass
class VolumeAnalysis:
    trend_direction: str  # "up", "down", "stable"
    standard_deviation: float
    coefficient_of_variation: float  # percent
    correlation: CorrelationResult  # tickets vs revenue
    slope: float  # revenue per ticket
    intercept: float
    data_points: int


def trend_direction(values: list[float]) -> str:
    """Compare the last period with the one before it."""
    if len(values) < 2:
        return "stable"
    last, previous = values[-1], values[-2]
    if last > previous * (1 + TREND_BAND):
        return "up"
    if last < previous * (1 - TREND_BAND):
        return "down"
    return "stable"


def analyze_ticket_volume(metrics: list[PeriodMetric]) -> VolumeAnalysis:
    counts = [float(m.count) for m in metrics]
    revenues = [float(m.total_amount) for m in metrics]

    std = population_stddev(counts)
    avg = mean(counts)
    cv = round(std / avg * 100, 2) if avg > 0 else 0.0

    # Revenue regressed on ticket volume
    fit = fit_linear(counts, revenues)

    return VolumeAnalysis(
        trend_direction=trend_direction(counts),
        standard_deviation=round(std, 2),
        coefficient_of_variation=cv,
        correlation=correlate(counts, revenues),
        slope=fit.slope,
        intercept=fit.intercept,
        data_points=len(counts),
    )
