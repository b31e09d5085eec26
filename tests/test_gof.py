import math

import numpy as np
import pytest
import scipy.stats as st

import simrng.dist as dist
from simrng import freq, gof, sampler
from simrng.errors import InsufficientData, InvalidRequest, LookupOutOfRange
from simrng.rng import make_generator


def test_exponential_sample_fits_its_distribution():
    spec = dist.expon(2.0)
    drawn = sampler.sample(make_generator(42), spec, 10000)
    table = freq.tabulate(drawn, spec)

    result = gof.chi_square_test(table, 0.05)

    assert result.test == "chi_square"
    assert result.degrees_of_freedom == 9
    assert result.statistic == pytest.approx(7.4203, abs=1e-3)
    assert result.critical_value == pytest.approx(16.919, abs=1e-3)
    assert result.reject is False
    assert result.verdict == "do not reject"
    assert 0 < result.p_value < 1


def test_poisson_sample_fits_its_distribution():
    spec = dist.poisson(3)
    table = freq.tabulate(sampler.sample(make_generator(99), spec, 2000), spec)

    result = gof.chi_square_test(table, 0.05)

    assert result.degrees_of_freedom == 8
    assert result.statistic == pytest.approx(9.0876, abs=1e-3)
    assert not result.reject


def test_chi_square_rejects_wrong_distribution():
    drawn = sampler.sample(make_generator(42), dist.expon(2.0), 2000)
    table = freq.tabulate(drawn, dist.uniform(0, 3))

    result = gof.chi_square_test(table, 0.05)

    assert result.reject
    assert result.statistic > result.critical_value


def test_estimated_parameters_reduce_degrees_of_freedom():
    spec = dist.expon(2.0)
    table = freq.tabulate(sampler.sample(make_generator(42), spec, 10000), spec)

    assert gof.chi_square_test(table, 0.05, estimated_params=0).degrees_of_freedom == 10
    assert gof.chi_square_test(table, 0.05, estimated_params=3).degrees_of_freedom == 7


@pytest.mark.parametrize(
    "spec, fitted",
    [
        (dist.uniform(0, 1), 0),
        (dist.expon(1.0), 1),
        (dist.norm(0, 1), 2),
        (dist.gamma(2.5, 1), 2),
        (dist.poisson(3), 1),
        (dist.empirical([1, 2, 3]), 0),
    ],
)
def test_degrees_of_freedom_default_per_family(spec, fitted):
    table = freq.tabulate(sampler.sample(make_generator(11), spec, 2000), spec)

    assert spec.estimated_params == fitted
    assert gof.chi_square_test(table, 0.05).degrees_of_freedom == len(table) - 1 - fitted


def test_chi_square_needs_degrees_of_freedom():
    spec = dist.uniform(0, 1)
    table = freq.tabulate([0.1, 0.5, 0.9], spec)

    with pytest.raises(InsufficientData):
        gof.chi_square_test(table, 0.05)


def test_chi_square_needs_positive_expected_counts():
    spec = dist.empirical([1, 0, 1])
    table = freq.tabulate([0, 2, 2, 0], spec, min_expected=0)

    with pytest.raises(InsufficientData):
        gof.chi_square_test(table, 0.05)


def test_statistics_ranges():
    for seed in range(5):
        spec = dist.norm(0, 1)
        drawn = sampler.sample(make_generator(seed), spec, 50)
        table = freq.tabulate(drawn, spec, 5, min_expected=0)
        assert gof.chi_square_statistic(table.observed, table.expected) >= 0
        assert 0 <= gof.ks_statistic(drawn, dist.norm(3, 1)) <= 1
        assert 0 <= gof.ks_statistic(drawn, spec) <= 1


def test_ks_statistic_matches_scipy():
    spec = dist.gamma(2.5, 1)
    drawn = sampler.sample(make_generator(3), spec, 300)

    assert gof.ks_statistic(drawn, spec) == pytest.approx(st.kstest(drawn.values, spec.cdf).statistic)


def test_ks_statistic_single_point():
    assert gof.ks_statistic([0.25], dist.uniform(0, 1)) == pytest.approx(0.75)


def test_ks_accepts_uniform_sample():
    drawn = sampler.sample(make_generator(12345), dist.uniform(0, 1), 1000)

    result = gof.ks_test(drawn, dist.uniform(0, 1), 0.05)

    assert result.test == "ks"
    assert result.sample_size == 1000
    assert result.degrees_of_freedom is None
    assert result.statistic == pytest.approx(0.02029, abs=1e-5)
    assert result.critical_value == pytest.approx(math.sqrt(-0.5 * math.log(0.025)) / math.sqrt(1000))
    assert not result.reject


def test_ks_accepts_poisson_sample():
    spec = dist.poisson(2)
    drawn = sampler.sample(make_generator(99), spec, 2000)

    result = gof.ks_test(drawn, spec, 0.05)

    assert result.statistic == pytest.approx(0.01168, abs=1e-4)
    assert not result.reject


def test_ks_accepts_empirical_sample():
    spec = dist.empirical([1, 1, 1, 1])
    drawn = sampler.sample(make_generator(5), spec, 2000)

    result = gof.ks_test(drawn, spec, 0.05)

    assert result.statistic == pytest.approx(0.0075)
    assert not result.reject


def test_ks_statistic_on_discrete_support_compares_left_limits():
    spec = dist.empirical([1, 1])

    assert gof.ks_statistic([0, 1], spec) == pytest.approx(0.0)
    assert gof.ks_statistic([1, 1], spec) == pytest.approx(0.5)


def test_ks_rejects_shifted_distribution():
    drawn = sampler.sample(make_generator(12345), dist.uniform(0, 1), 1000)

    assert gof.ks_test(drawn, dist.uniform(0, 2), 0.05).reject


def test_ks_empty_sample():
    with pytest.raises(InsufficientData):
        gof.ks_test([], dist.uniform(0, 1), 0.05)


@pytest.mark.parametrize("alpha", [0, 1, -0.1, 1.5, "0.05", float("nan")])
def test_significance_level_validated(alpha):
    with pytest.raises(InvalidRequest):
        gof.ks_test([0.5], dist.uniform(0, 1), alpha)


def test_chi_square_table_values():
    assert math.trunc(gof.chi_square_critical_value(3, 0.05) * 100) / 100 == 7.81
    assert math.trunc(gof.chi_square_critical_value(5, 0.05) * 100) / 100 == 11.07
    assert math.trunc(gof.chi_square_critical_value(7, 0.05) * 100) / 100 == 14.06
    assert gof.chi_square_critical_value(10, 0.01) == pytest.approx(23.209, abs=1e-3)


def test_chi_square_extrapolation():
    approx = gof.chi_square_critical_value(150, 0.05)
    assert (150, 0.05) not in gof.CHI_SQUARE_TABLE
    assert approx == pytest.approx(st.chi2.isf(0.05, 150), rel=1e-3)

    off_grid = gof.chi_square_critical_value(4, 0.07)
    assert off_grid == pytest.approx(st.chi2.isf(0.07, 4), rel=0.02)


def test_chi_square_lookup_out_of_range():
    with pytest.raises(LookupOutOfRange):
        gof.chi_square_critical_value(1, 0.99)


def test_chi_square_non_positive_df():
    with pytest.raises(InsufficientData):
        gof.chi_square_critical_value(0, 0.05)


def test_ks_table_values():
    assert gof.ks_critical_value(1, 0.05) == pytest.approx(0.975)
    assert gof.ks_critical_value(10, 0.05) == pytest.approx(0.40925, abs=1e-4)
    assert gof.ks_critical_value(36, 0.05) == pytest.approx(1.3581 / 6, abs=1e-4)


def test_tables_are_read_only():
    with pytest.raises(TypeError):
        gof.CHI_SQUARE_TABLE[(1, 0.05)] = 0.0
    with pytest.raises(TypeError):
        gof.KS_TABLE[(1, 0.05)] = 0.0


def test_result_is_immutable_and_serialisable():
    result = gof.ks_test([0.5], dist.uniform(0, 1), 0.05)

    with pytest.raises(AttributeError):
        result.reject = True
    assert result.as_dict()["verdict"] == result.verdict
