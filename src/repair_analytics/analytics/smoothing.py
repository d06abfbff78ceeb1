"""Smoothing and ARIMA-style forecasts with a simple ensemble.

Operates on the ticket-count series only and is independent of the
regression forecaster.  Methods:

- Simple exponential smoothing (``alpha``)
- Holt's double exponential smoothing (``alpha``, ``beta``)
- Simplified ARIMA(0,1,1) recursion (``theta``)
- Ensemble: mean of the methods available for each future step

Never raises; series too short for Holt simply drop it from the ensemble.
"""

from __future__ import annotations

from dataclasses import dataclass

from repair_analytics.analytics.aggregator import PeriodMetric
from repair_analytics.analytics.forecaster import round_half_up
from repair_analytics.analytics.periods import Granularity, future_labels

DEFAULT_ALPHA = 0.3
DEFAULT_BETA = 0.3
DEFAULT_THETA = 0.3


@dataclass(frozen=True)
class HoltResult:
    """Level and trend components of Holt's method (empty for n < 2)."""
    level: list[float]
    trend: list[float]

    def forecast(self, steps: int) -> float | None:
        if not self.level:
            return None
        return self.level[-1] + steps * self.trend[-1]


@dataclass(frozen=True)
class SmoothedPeriod:
    """Historical period with each method's in-sample value."""
    period: str
    count: int
    exponential_smoothed: float
    holt_level: float | None
    holt_trend: float | None
    arima_fitted: float


@dataclass(frozen=True)
class EnsembleForecastPoint:
    period: str
    exponential_smoothing: int
    holt: int | None
    arima: int
    ensemble: int


@dataclass(frozen=True)
class SmoothingForecastResult:
    historical: list[SmoothedPeriod]
    forecasts: list[EnsembleForecastPoint]


# ---------------------------------------------------------------------------
# Methods
# ---------------------------------------------------------------------------


def exponential_smoothing(data: list[float], alpha: float = DEFAULT_ALPHA) -> list[float]:
    """``S1 = y1``; ``Si = alpha*yi + (1-alpha)*S(i-1)``."""
    if not data:
        return []
    smoothed = [float(data[0])]
    for value in data[1:]:
        smoothed.append(alpha * value + (1 - alpha) * smoothed[-1])
    return smoothed


def double_exponential_smoothing(
    data: list[float],
    alpha: float = DEFAULT_ALPHA,
    beta: float = DEFAULT_BETA,
) -> HoltResult:
    """Holt's linear trend method.  Needs two points to seed the trend."""
    if len(data) < 2:
        return HoltResult(level=[], trend=[])

    level = [float(data[0])]
    trend = [float(data[1] - data[0])]
    for value in data[1:]:
        current_level = alpha * value + (1 - alpha) * (level[-1] + trend[-1])
        current_trend = beta * (current_level - level[-1]) + (1 - beta) * trend[-1]
        level.append(current_level)
        trend.append(current_trend)
    return HoltResult(level=level, trend=trend)


def arima_011(data: list[float], theta: float = DEFAULT_THETA) -> list[float]:
    """Simplified ARIMA(0,1,1): each fit is the previous fit plus theta times the last error."""
    if not data:
        return []
    fitted = [float(data[0])]
    previous_error = 0.0
    for value in data[1:]:
        prediction = fitted[-1] + theta * previous_error
        previous_error = value - prediction
        fitted.append(prediction)
    return fitted


# ---------------------------------------------------------------------------
# Ensemble
# ---------------------------------------------------------------------------


def ensemble_forecast(
    metrics: list[PeriodMetric],
    granularity: Granularity | str,
    periods_ahead: int = 6,
    alpha: float = DEFAULT_ALPHA,
    beta: float = DEFAULT_BETA,
    theta: float = DEFAULT_THETA,
) -> SmoothingForecastResult:
    """Run every smoothing method over ticket counts and ensemble the forecasts."""
    if not metrics:
        return SmoothingForecastResult(historical=[], forecasts=[])

    counts = [float(m.count) for m in metrics]
    ses = exponential_smoothing(counts, alpha)
    holt = double_exponential_smoothing(counts, alpha, beta)
    arima = arima_011(counts, theta)

    historical = [
        SmoothedPeriod(
            period=m.period,
            count=m.count,
            exponential_smoothed=ses[i],
            holt_level=holt.level[i] if holt.level else None,
            holt_trend=holt.trend[i] if holt.trend else None,
            arima_fitted=arima[i],
        )
        for i, m in enumerate(metrics)
    ]

    forecasts: list[EnsembleForecastPoint] = []
    if periods_ahead > 0:
        labels = future_labels(metrics[-1].start, granularity, periods_ahead)
        for step, label in enumerate(labels, start=1):
            ses_value = ses[-1]
            holt_value = holt.forecast(step)
            arima_value = arima[-1]

            available = [v for v in (ses_value, holt_value, arima_value) if v is not None]
            ensemble = sum(available) / len(available)

            forecasts.append(EnsembleForecastPoint(
                period=label,
                exponential_smoothing=max(0, round_half_up(ses_value)),
                holt=max(0, round_half_up(holt_value)) if holt_value is not None else None,
                arima=max(0, round_half_up(arima_value)),
                ensemble=max(0, round_half_up(ensemble)),
            ))

    return SmoothingForecastResult(historical=historical, forecasts=forecasts)
