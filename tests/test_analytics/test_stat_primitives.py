"""Tests for statistical primitives, checked against reference values."""

import math

import pytest

from repair_analytics.analytics.stat_primitives import (
    incomplete_beta,
    log_beta,
    log_gamma,
    mean,
    normal_cdf,
    pearson,
    population_stddev,
    population_variance,
    student_t_pvalue,
)


class TestDescriptive:
    def test_mean(self):
        assert mean([1, 2, 3, 4]) == 2.5

    def test_mean_empty(self):
        assert mean([]) == 0.0

    def test_population_variance(self):
        assert population_variance([2, 4, 4, 4, 5, 5, 7, 9]) == 4.0

    def test_population_stddev(self):
        assert population_stddev([2, 4, 4, 4, 5, 5, 7, 9]) == 2.0

    def test_variance_empty(self):
        assert population_variance([]) == 0.0


class TestPearson:
    def test_self_correlation(self):
        x = [3.0, 1.0, 4.0, 1.0, 5.0, 9.0]
        assert pearson(x, x) == pytest.approx(1.0)

    def test_perfect_negative(self):
        assert pearson([1, 2, 3], [6, 4, 2]) == pytest.approx(-1.0)

    def test_known_value(self):
        assert pearson([1, 2, 3, 4, 5], [2, 4, 5, 4, 5]) == pytest.approx(0.774597, abs=1e-6)

    def test_length_mismatch(self):
        assert pearson([1, 2, 3], [1, 2]) == 0.0

    def test_too_short(self):
        assert pearson([1], [1]) == 0.0

    def test_zero_variance(self):
        assert pearson([1, 2, 3], [7, 7, 7]) == 0.0

    def test_bounded(self):
        r = pearson([0.1, 0.2, 0.3], [0.3, 0.6, 0.9])
        assert -1.0 <= r <= 1.0


class TestNormalCdf:
    def test_zero(self):
        assert normal_cdf(0) == pytest.approx(0.5, abs=1e-7)

    def test_1_96(self):
        assert normal_cdf(1.96) == pytest.approx(0.975002, abs=1e-6)

    def test_symmetry(self):
        for z in (0.3, 1.0, 2.5):
            assert normal_cdf(-z) == pytest.approx(1 - normal_cdf(z), abs=1e-12)

    def test_tails(self):
        assert normal_cdf(10) == pytest.approx(1.0)
        assert normal_cdf(-10) == pytest.approx(0.0, abs=1e-12)

    def test_nan(self):
        assert normal_cdf(float("nan")) == 0.5


class TestLogGamma:
    def test_one_and_two(self):
        assert log_gamma(1) == 0.0
        assert log_gamma(2) == 0.0

    def test_factorial(self):
        assert log_gamma(5) == pytest.approx(math.log(24), abs=1e-9)

    def test_half(self):
        assert log_gamma(0.5) == pytest.approx(math.log(math.sqrt(math.pi)), abs=1e-9)

    def test_matches_math_lgamma(self):
        for x in (0.7, 3.3, 12.5, 40.0):
            assert log_gamma(x) == pytest.approx(math.lgamma(x), abs=1e-8)

    def test_non_positive(self):
        assert log_gamma(0) == math.inf
        assert log_gamma(-2.5) == math.inf

    def test_log_beta(self):
        # B(2, 3) = 1/12
        assert log_beta(2, 3) == pytest.approx(math.log(1 / 12), abs=1e-9)


class TestIncompleteBeta:
    def test_endpoints(self):
        assert incomplete_beta(2, 3, 0) == 0
        assert incomplete_beta(2, 3, 1) == 1

    def test_uniform(self):
        # I_x(1, 1) = x
        assert incomplete_beta(1, 1, 0.3) == pytest.approx(0.3, abs=1e-8)

    def test_a_equals_one(self):
        # I_x(1, b) = 1 - (1 - x)^b
        assert incomplete_beta(1, 3, 0.2) == pytest.approx(1 - 0.8 ** 3, abs=1e-8)

    def test_symmetric_midpoint(self):
        assert incomplete_beta(2, 2, 0.5) == pytest.approx(0.5, abs=1e-8)

    def test_upper_region_uses_symmetry(self):
        # I_x(a, b) = 1 - I_(1-x)(b, a)
        assert incomplete_beta(2, 5, 0.9) == pytest.approx(1 - incomplete_beta(5, 2, 0.1), abs=1e-10)

    def test_out_of_domain(self):
        assert incomplete_beta(2, 3, -0.1) == 0.0
        assert incomplete_beta(2, 3, 1.1) == 0.0
        assert incomplete_beta(0, 3, 0.5) == 0.0


class TestStudentTPValue:
    def test_zero_statistic(self):
        assert student_t_pvalue(0.0, 10) == pytest.approx(1.0)

    def test_cauchy_df1(self):
        # df=1 is Cauchy: P(|T| > 1) = 0.5
        assert student_t_pvalue(1.0, 1) == pytest.approx(0.5, abs=1e-6)

    def test_df2_closed_form(self):
        # df=2: p = 1 - t / sqrt(2 + t^2)
        expected = 1 - 2 / math.sqrt(6)
        assert student_t_pvalue(2.0, 2) == pytest.approx(expected, abs=1e-6)

    def test_critical_value_df10(self):
        assert student_t_pvalue(2.228, 10) == pytest.approx(0.05, abs=1e-3)

    def test_critical_value_df1(self):
        assert student_t_pvalue(12.706, 1) == pytest.approx(0.05, abs=1e-3)

    def test_sign_ignored(self):
        assert student_t_pvalue(-2.228, 10) == pytest.approx(student_t_pvalue(2.228, 10))

    def test_large_df_uses_normal(self):
        assert student_t_pvalue(1.96, 100) == pytest.approx(0.05, abs=1e-3)

    def test_non_positive_df(self):
        assert student_t_pvalue(3.0, 0) == 1.0
        assert student_t_pvalue(3.0, -4) == 1.0

    def test_nan(self):
        assert student_t_pvalue(float("nan"), 5) == 1.0

    def test_infinite(self):
        assert student_t_pvalue(math.inf, 5) == 0.0

    def test_monotone_in_t(self):
        ps = [student_t_pvalue(t, 8) for t in (0.5, 1.0, 2.0, 4.0)]
        assert ps == sorted(ps, reverse=True)
