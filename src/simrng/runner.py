"""Request-level entry points.

These are the operations a web layer or the CLI calls. Each builds whatever
state it needs (a fresh generator per request), validates its inputs, and
raises a typed :class:`simrng.errors.SimRNGError` on failure, so nothing is
shared between concurrent requests.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Mapping, Optional, Sequence, Union

from simrng.dist import as_distribution, distribution
from simrng.errors import InvalidRequest
from simrng.freq import DEFAULT_BIN_RULE, MIN_EXPECTED, BinStrategy, FrequencyTable, tabulate
from simrng.gof import TestResult, chi_square_test, ks_test
from simrng.rng import make_generator
from simrng import sampler
from simrng.sampler import Sample

DistributionLike = Union[distribution, Mapping[str, Any]]

TESTS = ("chi_square", "ks")


def generate_sample(seed: int, distribution: DistributionLike, count: int, generator: str = "lcg") -> Sample:
    """Draw ``count`` variates of ``distribution`` from a generator seeded with ``seed``.

    Parameters
    ----------
    seed : int
        Seed of the request's own generator.
    distribution : distribution or mapping
        A spec, or its tagged form ``{"kind": ..., "params": {...}}``.
    count : int
        Number of variates, strictly positive.
    generator : str
        ``"lcg"`` (default) or ``"lehmer"``.

    Returns
    -------
    Sample
    """
    spec = as_distribution(distribution)
    rng = make_generator(seed, generator)
    return sampler.sample(rng, spec, count)


def build_frequency_table(
    sample: Iterable[float],
    distribution: DistributionLike,
    bin_strategy: BinStrategy = DEFAULT_BIN_RULE,
    min_expected: float = MIN_EXPECTED,
) -> FrequencyTable:
    """Tabulate ``sample`` against ``distribution``; see :func:`simrng.freq.tabulate`."""
    return tabulate(sample, distribution, bin_strategy, min_expected)


def run_chi_square_test(
    table: FrequencyTable, significance_level: float, estimated_params: Optional[int] = None
) -> TestResult:
    """Chi-square test of a table built by :func:`build_frequency_table`.

    ``estimated_params`` defaults to the count of the table's distribution family.
    """
    return chi_square_test(table, significance_level, estimated_params)


def run_ks_test(sample: Iterable[float], distribution: DistributionLike, significance_level: float) -> TestResult:
    """Kolmogorov-Smirnov test of ``sample`` against ``distribution``."""
    return ks_test(sample, distribution, significance_level)


@dataclass
class RunReport:
    """Everything one :func:`run` call produced."""

    sample: Sample
    table: FrequencyTable
    results: Dict[str, TestResult] = field(default_factory=dict)

    def as_dict(self) -> dict:
        return {
            "distribution": str(self.sample.distribution),
            "seed": self.sample.seed,
            "count": len(self.sample),
            "mean": self.sample.mean(),
            "variance": self.sample.var(),
            "bins": [
                {
                    "lower": b.lower,
                    "upper": b.upper,
                    "observed": b.observed,
                    "expected": b.expected,
                }
                for b in self.table
            ],
            "tests": {name: r.as_dict() for name, r in self.results.items()},
        }


def run(
    seed: int,
    distribution: DistributionLike,
    count: int,
    *,
    significance_level: float = 0.05,
    bin_strategy: BinStrategy = DEFAULT_BIN_RULE,
    min_expected: float = MIN_EXPECTED,
    tests: Sequence[str] = TESTS,
    generator: str = "lcg",
) -> RunReport:
    """Generate a sample, tabulate it and run the requested goodness-of-fit tests.

    The sample is always tested against the distribution it was drawn from.

    Raises
    ------
    InvalidRequest
        If ``tests`` names an unknown test.
    """
    unknown = [t for t in tests if t not in TESTS]
    if unknown:
        raise InvalidRequest(f"Unknown tests {unknown}; expected a subset of {list(TESTS)}.")
    spec = as_distribution(distribution)
    drawn = generate_sample(seed, spec, count, generator)
    table = build_frequency_table(drawn, spec, bin_strategy, min_expected)
    report = RunReport(drawn, table)
    if "chi_square" in tests:
        report.results["chi_square"] = run_chi_square_test(table, significance_level)
    if "ks" in tests:
        report.results["ks"] = run_ks_test(drawn, spec, significance_level)
    return report
