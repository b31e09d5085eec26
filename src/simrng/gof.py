"""Chi-square and Kolmogorov-Smirnov goodness-of-fit tests.

Critical values come from read-only tables built once at import time with
SciPy, for the significance levels in :data:`SIGNIFICANCE_LEVELS`:

* chi-square, degrees of freedom 1 to 100;
* Kolmogorov-Smirnov (two-sided, exact distribution), sample sizes 1 to 35.

Requests outside the tables fall back to closed-form approximations:
Wilson-Hilferty for chi-square,
``df * (1 - 2/(9 df) + z * sqrt(2/(9 df)))**3`` with ``z`` the upper
``alpha`` normal quantile, and the asymptotic ``sqrt(-ln(alpha/2) / 2) / sqrt(n)``
for Kolmogorov-Smirnov.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from numbers import Integral
from types import MappingProxyType
from typing import Mapping, Optional, Tuple

import numpy as np
import scipy.stats as st

from simrng._utils import _as_values, _validate_significance
from simrng.dist import as_distribution, distribution
from simrng.errors import InsufficientData, InvalidRequest, LookupOutOfRange
from simrng.freq import FrequencyTable
from simrng.log_cfg import logger

SIGNIFICANCE_LEVELS = (0.20, 0.10, 0.05, 0.025, 0.01, 0.005, 0.001)
CHI_SQUARE_MAX_DF = 100
KS_MAX_N = 35


def _build_chi_square_table() -> Mapping[Tuple[int, float], float]:
    dfs = np.arange(1, CHI_SQUARE_MAX_DF + 1)
    table = {}
    for a in SIGNIFICANCE_LEVELS:
        table.update({(int(df), a): float(v) for df, v in zip(dfs, st.chi2.isf(a, dfs))})
    return MappingProxyType(table)


def _build_ks_table() -> Mapping[Tuple[int, float], float]:
    sizes = np.arange(1, KS_MAX_N + 1)
    table = {}
    for a in SIGNIFICANCE_LEVELS:
        table.update({(int(n), a): float(v) for n, v in zip(sizes, st.kstwo.isf(a, sizes))})
    return MappingProxyType(table)


CHI_SQUARE_TABLE = _build_chi_square_table()
KS_TABLE = _build_ks_table()


@dataclass(frozen=True)
class TestResult:
    """Outcome of one goodness-of-fit test.

    ``reject`` is true when the statistic exceeds the critical value, i.e.
    the sample is judged not to come from the distribution.
    """

    __test__ = False  # not a pytest class

    test: str
    statistic: float
    critical_value: float
    significance_level: float
    sample_size: int
    reject: bool
    degrees_of_freedom: Optional[int] = None
    p_value: Optional[float] = None

    @property
    def verdict(self) -> str:
        return "reject" if self.reject else "do not reject"

    def as_dict(self) -> dict:
        return {
            "test": self.test,
            "statistic": self.statistic,
            "critical_value": self.critical_value,
            "significance_level": self.significance_level,
            "sample_size": self.sample_size,
            "degrees_of_freedom": self.degrees_of_freedom,
            "p_value": self.p_value,
            "reject": self.reject,
            "verdict": self.verdict,
        }


def _positive_int(value, name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, Integral):
        raise InvalidRequest(f"{name} must be an integer, got {value!r}.")
    if value <= 0:
        raise InsufficientData(f"{name} must be positive, got {value}.")
    return int(value)


def chi_square_critical_value(df: int, alpha: float) -> float:
    """Upper ``alpha`` critical value of the chi-square distribution with ``df`` degrees of freedom.

    Raises
    ------
    InsufficientData
        If ``df`` is not positive.
    LookupOutOfRange
        If the value is outside the table and the Wilson-Hilferty
        approximation is not positive.
    """
    df = _positive_int(df, "Degrees of freedom")
    alpha = _validate_significance(alpha)
    try:
        return CHI_SQUARE_TABLE[(df, alpha)]
    except KeyError:
        pass
    h = 2.0 / (9.0 * df)
    z = float(st.norm.isf(alpha))
    value = df * (1.0 - h + z * math.sqrt(h)) ** 3
    if not math.isfinite(value) or value <= 0:
        raise LookupOutOfRange(f"No chi-square critical value for df={df}, alpha={alpha}.")
    return value


def ks_critical_value(n: int, alpha: float) -> float:
    """Two-sided Kolmogorov-Smirnov critical value for sample size ``n``."""
    n = _positive_int(n, "Sample size")
    alpha = _validate_significance(alpha)
    try:
        return KS_TABLE[(n, alpha)]
    except KeyError:
        pass
    value = math.sqrt(-0.5 * math.log(alpha / 2.0)) / math.sqrt(n)
    if not math.isfinite(value) or value <= 0:
        raise LookupOutOfRange(f"No Kolmogorov-Smirnov critical value for n={n}, alpha={alpha}.")
    return value


def chi_square_statistic(observed, expected) -> float:
    """``sum((o - e)**2 / e)``."""
    observed = np.asarray(observed, dtype=float)
    expected = np.asarray(expected, dtype=float)
    return float(np.sum((observed - expected) ** 2 / expected))


def ks_statistic(sample, spec: distribution) -> float:
    """Largest distance between the empirical and theoretical CDFs.

    Both CDFs are compared at each sorted observation (``i/n`` against
    ``P(X <= x_i)``) and just before it (``(i-1)/n`` against ``P(X < x_i)``).
    For continuous families the two theoretical values coincide; for
    discrete ones both CDFs jump at the same support points.
    """
    spec = as_distribution(spec)
    x = np.sort(_as_values(sample))
    n = x.size
    cdf = np.asarray(spec.cdf(x), dtype=float)
    below = np.asarray(spec.prob_below(x), dtype=float) if spec.discrete else cdf
    i = np.arange(1, n + 1)
    d_plus = np.max(i / n - cdf)
    d_minus = np.max(below - (i - 1) / n)
    return float(np.clip(max(d_plus, d_minus), 0.0, 1.0))


def chi_square_test(
    table: FrequencyTable, significance_level: float = 0.05, estimated_params: Optional[int] = None
) -> TestResult:
    """Pearson chi-square test of a frequency table.

    Parameters
    ----------
    table : FrequencyTable
        Output of :func:`simrng.freq.tabulate`.
    significance_level : float
        Probability of rejecting a true null hypothesis, in ``(0, 1)``.
    estimated_params : int, optional
        Number of distribution parameters estimated from the sample, so the
        degrees of freedom are ``bins - 1 - estimated_params``. Defaults to
        the family's ``estimated_params`` (uniform and empirical 0,
        exponential and Poisson 1, normal and gamma 2).

    Raises
    ------
    InsufficientData
        If the table is empty, a bin expects no observations, or the degrees
        of freedom are not positive.
    """
    alpha = _validate_significance(significance_level)
    if estimated_params is None:
        estimated_params = table.distribution.estimated_params
    if isinstance(estimated_params, bool) or not isinstance(estimated_params, Integral) or estimated_params < 0:
        raise InvalidRequest(f"estimated_params must be a non-negative integer, got {estimated_params!r}.")
    if table.size < 1 or len(table) == 0:
        raise InsufficientData("Frequency table holds no observations.")
    expected = table.expected
    if (expected <= 0).any():
        raise InsufficientData("Every bin must expect a positive count; merge bins first.")
    df = len(table) - 1 - int(estimated_params)
    if df <= 0:
        raise InsufficientData(f"{len(table)} bins leave {df} degrees of freedom.")

    statistic = chi_square_statistic(table.observed, expected)
    critical = chi_square_critical_value(df, alpha)
    result = TestResult(
        test="chi_square",
        statistic=statistic,
        critical_value=critical,
        significance_level=alpha,
        sample_size=table.size,
        reject=statistic > critical,
        degrees_of_freedom=df,
        p_value=float(st.chi2.sf(statistic, df)),
    )
    logger.debug("chi-square %s: %.4f vs %.4f (df=%d) -> %s", table.distribution, statistic, critical, df, result.verdict)
    return result


def ks_test(sample, spec, significance_level: float = 0.05) -> TestResult:
    """Kolmogorov-Smirnov test of ``sample`` against ``spec``.

    Raises
    ------
    InsufficientData
        If the sample is empty.
    """
    alpha = _validate_significance(significance_level)
    spec = as_distribution(spec)
    values = _as_values(sample)
    n = int(values.size)
    statistic = ks_statistic(values, spec)
    critical = ks_critical_value(n, alpha)
    result = TestResult(
        test="ks",
        statistic=statistic,
        critical_value=critical,
        significance_level=alpha,
        sample_size=n,
        reject=statistic > critical,
        p_value=float(st.kstwo.sf(statistic, n)),
    )
    logger.debug("KS %s: %.4f vs %.4f (n=%d) -> %s", spec, statistic, critical, n, result.verdict)
    return result
