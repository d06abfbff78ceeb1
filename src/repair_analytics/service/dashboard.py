"""Dashboard analytics service.

Async entry points used by the dashboard screens.  Each call fetches one
batch from the store, aggregates it, and hands the series to the pure
analytics modules with the heuristics configured in ``settings``.
Store errors propagate to the caller.
"""
from __future__ import annotations

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from repair_analytics.analytics.aggregator import (
    PeriodMetric,
    aggregate_paid_records,
    aggregate_records,
    roll_up_daily,
)
from repair_analytics.analytics.correlation import CorrelationResult, correlate
from repair_analytics.analytics.forecaster import ForecastPoint, forecast_periods
from repair_analytics.analytics.outlier_detector import OutlierReport, flag_outliers
from repair_analytics.analytics.period_comparator import GrowthComparison, compare_periods
from repair_analytics.analytics.periods import Granularity
from repair_analytics.analytics.smoothing import SmoothingForecastResult, ensemble_forecast
from repair_analytics.analytics.volume_analysis import VolumeAnalysis, analyze_ticket_volume
from repair_analytics.db.ticket_store import fetch_daily_trends, fetch_ticket_records

logger = logging.getLogger(__name__)


async def get_period_metrics(
    session: AsyncSession,
    granularity: Granularity | str = Granularity.DAILY,
    start=None,
    end=None,
    paid_only: bool = False,
) -> list[PeriodMetric]:
    """Aggregate raw tickets into period metrics, optionally paid tickets only."""
    granularity = Granularity(granularity)
    records = await fetch_ticket_records(session, start=start, end=end, paid_only=paid_only)
    if paid_only:
        metrics = aggregate_paid_records(records, granularity, start=start, end=end)
    else:
        metrics = aggregate_records(records, granularity, start=start, end=end)
    logger.info(
        "Period metrics: %d records -> %d %s periods (paid_only=%s)",
        len(records), len(metrics), granularity.value, paid_only,
    )
    return metrics


async def get_daily_trend_metrics(
    session: AsyncSession,
    granularity: Granularity | str = Granularity.DAILY,
    start=None,
    end=None,
) -> list[PeriodMetric]:
    """Roll the daily trend view up to *granularity*."""
    granularity = Granularity(granularity)
    rows = await fetch_daily_trends(session, start=start, end=end)
    metrics = roll_up_daily(rows, granularity)
    logger.info("Daily trends: %d days -> %d %s periods", len(rows), len(metrics), granularity.value)
    return metrics


async def get_forecast(
    session: AsyncSession,
    granularity: Granularity | str = Granularity.DAILY,
    periods_ahead: int | None = None,
) -> list[ForecastPoint]:
    ahead = settings.forecast_periods_ahead if periods_ahead is None else periods_ahead
    metrics = await get_daily_trend_metrics(session, granularity)
    points = forecast_periods(metrics, granularity, periods_ahead=ahead)
    logger.info("Forecast: %d historical periods, %d projected", len(metrics), len(points))
    return points


async def get_advanced_forecast(
    session: AsyncSession,
    granularity: Granularity | str = Granularity.DAILY,
    periods_ahead: int | None = None,
) -> SmoothingForecastResult:
    """Smoothing / ARIMA ensemble forecast of ticket counts."""
    ahead = settings.forecast_periods_ahead if periods_ahead is None else periods_ahead
    metrics = await get_daily_trend_metrics(session, granularity)
    result = ensemble_forecast(
        metrics,
        granularity,
        periods_ahead=ahead,
        alpha=settings.smoothing_alpha,
        beta=settings.holt_beta,
        theta=settings.arima_theta,
    )
    logger.info("Advanced forecast: %d projected periods", len(result.forecasts))
    return result


async def get_period_over_period(
    session: AsyncSession,
    granularity: Granularity | str = Granularity.DAILY,
) -> list[GrowthComparison]:
    metrics = await get_daily_trend_metrics(session, granularity)
    comparisons = compare_periods(
        metrics,
        sigma_threshold=settings.significance_sigma,
        revenue_stddev_fraction=settings.revenue_stddev_fraction,
    )
    significant = sum(1 for c in comparisons if c.count_significant or c.amount_significant)
    logger.info("Period over period: %d comparisons, %d significant", len(comparisons), significant)
    return comparisons


async def get_volume_analysis(
    session: AsyncSession,
    granularity: Granularity | str = Granularity.DAILY,
) -> VolumeAnalysis:
    metrics = await get_daily_trend_metrics(session, granularity)
    return analyze_ticket_volume(metrics)


async def get_outlier_report(
    session: AsyncSession,
    granularity: Granularity | str = Granularity.DAILY,
) -> OutlierReport:
    metrics = await get_daily_trend_metrics(session, granularity)
    report = flag_outliers(metrics)
    logger.info(
        "Outliers: zscore=%d iqr=%d modified=%d tukey=%d",
        len(report.zscore.indices), len(report.iqr.indices),
        len(report.modified_zscore.indices), len(report.tukey.indices),
    )
    return report


async def get_ticket_revenue_correlation(
    session: AsyncSession,
    granularity: Granularity | str = Granularity.DAILY,
) -> CorrelationResult:
    """Correlation between per-period ticket counts and revenue."""
    metrics = await get_daily_trend_metrics(session, granularity)
    return correlate(
        [float(m.count) for m in metrics],
        [float(m.total_amount) for m in metrics],
    )
