"""Tests for smoothing methods and the ensemble forecast."""

from datetime import date

import pytest

from repair_analytics.analytics.aggregator import PeriodMetric
from repair_analytics.analytics.periods import Granularity, advance_period, format_key, format_label
from repair_analytics.analytics.smoothing import (
    HoltResult,
    arima_011,
    double_exponential_smoothing,
    ensemble_forecast,
    exponential_smoothing,
)


def _metrics(counts, granularity=Granularity.MONTHLY, first=date(2024, 1, 1)) -> list[PeriodMetric]:
    out = []
    for i, count in enumerate(counts):
        start = advance_period(first, granularity, i)
        out.append(PeriodMetric(
            period=format_label(start, granularity),
            key=format_key(start, granularity),
            start=start,
            count=count,
            distinct_entities=count,
            total_amount=count * 20.0,
            average_value=20.0,
            value_per_entity=20.0,
        ))
    return out


class TestExponentialSmoothing:
    def test_seeded_with_first_value(self):
        assert exponential_smoothing([10, 20]) == pytest.approx([10.0, 13.0])

    def test_custom_alpha(self):
        assert exponential_smoothing([10, 20], alpha=1.0) == pytest.approx([10.0, 20.0])

    def test_three_points(self):
        assert exponential_smoothing([10, 12, 14]) == pytest.approx([10.0, 10.6, 11.62])

    def test_empty(self):
        assert exponential_smoothing([]) == []


class TestDoubleExponentialSmoothing:
    def test_linear_series_keeps_trend(self):
        holt = double_exponential_smoothing([10, 12, 14])
        assert holt.level == pytest.approx([10.0, 12.0, 14.0])
        assert holt.trend == pytest.approx([2.0, 2.0, 2.0])
        assert holt.forecast(1) == pytest.approx(16.0)
        assert holt.forecast(2) == pytest.approx(18.0)

    def test_single_point_is_empty(self):
        holt = double_exponential_smoothing([10])
        assert holt == HoltResult(level=[], trend=[])
        assert holt.forecast(1) is None


class TestArima011:
    def test_recursion(self):
        assert arima_011([10, 12, 14]) == pytest.approx([10.0, 10.0, 10.6])

    def test_theta_zero_is_flat(self):
        assert arima_011([5, 9, 1, 7], theta=0.0) == pytest.approx([5.0, 5.0, 5.0, 5.0])

    def test_empty(self):
        assert arima_011([]) == []


class TestEnsembleForecast:
    def test_linear_series(self):
        result = ensemble_forecast(_metrics([10, 12, 14]), Granularity.MONTHLY, periods_ahead=2)
        assert [f.period for f in result.forecasts] == ["April 2024", "May 2024"]

        first, second = result.forecasts
        assert first.exponential_smoothing == 12
        assert first.holt == 16
        assert first.arima == 11
        assert first.ensemble == 13

        assert second.exponential_smoothing == 12
        assert second.holt == 18
        assert second.arima == 11
        assert second.ensemble == 13

    def test_historical_rows(self):
        result = ensemble_forecast(_metrics([10, 12, 14]), Granularity.MONTHLY, periods_ahead=1)
        assert [h.period for h in result.historical] == ["January 2024", "February 2024", "March 2024"]
        last = result.historical[-1]
        assert last.count == 14
        assert last.exponential_smoothed == pytest.approx(11.62)
        assert last.holt_level == pytest.approx(14.0)
        assert last.holt_trend == pytest.approx(2.0)
        assert last.arima_fitted == pytest.approx(10.6)

    def test_single_period_drops_holt(self):
        result = ensemble_forecast(_metrics([10]), Granularity.MONTHLY, periods_ahead=1)
        point = result.forecasts[0]
        assert point.holt is None
        assert point.exponential_smoothing == 10
        assert point.arima == 10
        assert point.ensemble == 10
        assert result.historical[0].holt_level is None

    def test_declining_series_floored_at_zero(self):
        result = ensemble_forecast(_metrics([10, 5, 0]), Granularity.MONTHLY, periods_ahead=3)
        for point in result.forecasts:
            assert point.holt == 0
            assert point.ensemble >= 0
            assert point.exponential_smoothing >= 0
            assert point.arima >= 0

    def test_custom_parameters(self):
        result = ensemble_forecast(
            _metrics([10, 20]), Granularity.MONTHLY, periods_ahead=1, alpha=1.0, beta=1.0, theta=0.0,
        )
        point = result.forecasts[0]
        assert point.exponential_smoothing == 20
        assert point.holt == 30
        assert point.arima == 10

    def test_quarterly_labels(self):
        metrics = _metrics([4, 5, 6], Granularity.QUARTERLY, first=date(2024, 4, 1))
        result = ensemble_forecast(metrics, "quarterly", periods_ahead=2)
        assert [f.period for f in result.forecasts] == ["Q1 2025", "Q2 2025"]

    def test_zero_horizon(self):
        result = ensemble_forecast(_metrics([1, 2, 3]), Granularity.MONTHLY, periods_ahead=0)
        assert result.forecasts == []
        assert len(result.historical) == 3

    def test_empty(self):
        result = ensemble_forecast([], Granularity.MONTHLY)
        assert result.historical == []
        assert result.forecasts == []
