"""Tests for correlation significance and intervals."""

import pytest

from repair_analytics.analytics.correlation import correlate, fisher_interval


class TestCorrelate:
    def test_self_correlation(self):
        x = [1.0, 2.0, 3.0, 4.0, 5.0]
        result = correlate(x, x)
        assert result.coefficient == pytest.approx(1.0)
        assert result.p_value < 1e-6
        assert result.n == 5

    def test_known_values(self):
        result = correlate([1, 2, 3, 4, 5], [2, 4, 5, 4, 5])
        assert result.coefficient == pytest.approx(0.774597, abs=1e-6)
        # t = 2.121 with 3 df
        assert 0.11 < result.p_value < 0.14
        low, high = result.confidence_interval
        assert low == pytest.approx(-0.340, abs=2e-3)
        assert high == pytest.approx(0.984, abs=2e-3)

    def test_three_points_exact_p_value(self):
        # r = 0.5, df = 1 (Cauchy): p = 1 - (2/pi) * atan(1/sqrt(3)) = 2/3
        result = correlate([1, 2, 3], [1, 3, 2])
        assert result.coefficient == pytest.approx(0.5)
        assert result.p_value == pytest.approx(2 / 3, abs=1e-6)
        assert result.confidence_interval == (result.coefficient, result.coefficient)

    def test_negative(self):
        result = correlate([1, 2, 3, 4, 5, 6], [12, 10, 9, 6, 5, 1])
        assert result.coefficient < -0.9
        assert result.p_value < 0.05
        low, high = result.confidence_interval
        assert low < result.coefficient < high < 0

    def test_length_mismatch(self):
        result = correlate([1, 2, 3], [1, 2])
        assert result.coefficient == 0.0
        assert result.p_value == 1.0
        assert result.n == 0

    def test_too_few_points(self):
        result = correlate([1, 2], [2, 4])
        assert result.p_value == 1.0
        assert result.n == 2

    def test_constant_series(self):
        result = correlate([1, 2, 3, 4], [5, 5, 5, 5])
        assert result.coefficient == 0.0
        assert result.p_value == pytest.approx(1.0)

    def test_p_value_in_unit_interval(self):
        result = correlate([3, 1, 4, 1, 5, 9, 2, 6], [2, 7, 1, 8, 2, 8, 1, 8])
        assert 0.0 <= result.p_value <= 1.0
        low, high = result.confidence_interval
        assert -1.0 <= low <= high <= 1.0


class TestFisherInterval:
    def test_collapses_for_small_n(self):
        assert fisher_interval(0.4, 3) == (0.4, 0.4)

    def test_collapses_for_perfect_r(self):
        assert fisher_interval(1.0, 20) == (1.0, 1.0)

    def test_zero_r_is_symmetric(self):
        low, high = fisher_interval(0.0, 28)
        assert low == pytest.approx(-high)
        assert high == pytest.approx(0.3731, abs=1e-3)
