"""Empirical frequency tables with theoretical expected counts.

A table partitions the real line into half-open bins ``[lower, upper)``; the
outermost bins are open-ended so every observation lands in exactly one bin
and the theoretical probabilities sum to one.

Continuous families get equal-width bins between the sample minimum and
maximum, the number of bins given either explicitly or by a rule on the
sample size. Discrete families get one category per support value (Poisson:
every integer between the sample minimum and maximum, limited to the support
carrying all but :data:`DISCRETE_TAIL` of the mass on either side; empirical:
every value of the spec), the bin strategy is ignored for them.

Adjacent bins are then merged left to right until each group expects at
least ``min_expected`` observations; a short trailing group joins the group
before it. This is what keeps the chi-square approximation valid.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from numbers import Integral
from typing import Iterable, List, Tuple, Union

import numpy as np

from simrng._utils import _as_real, _as_values
from simrng.dist import as_distribution, distribution, empirical
from simrng.errors import InsufficientData, InvalidRequest
from simrng.log_cfg import logger

MIN_EXPECTED = 5.0
DEFAULT_BIN_RULE = "sturges"
DISCRETE_TAIL = 1e-12
"""Tail mass beyond which discrete categories are not split out."""

BIN_RULES = {
    "sturges": lambda n: int(math.ceil(math.log2(n))) + 1,
    "sqrt": lambda n: int(math.ceil(math.sqrt(n))),
    "rice": lambda n: int(math.ceil(2.0 * n ** (1.0 / 3.0))),
}

BinStrategy = Union[int, str]


@dataclass(frozen=True)
class Bin:
    """One interval ``[lower, upper)`` of a :class:`FrequencyTable`."""

    lower: float
    upper: float
    observed: int
    probability: float
    expected: float

    @property
    def label(self) -> str:
        return f"[{self.lower:g}, {self.upper:g})"


@dataclass(frozen=True, eq=False)
class FrequencyTable:
    """Ordered bins (ascending support order) for one sample and spec.

    Attributes
    ----------
    bins : tuple of Bin
        The merged bins.
    size : int
        Number of observations tabulated.
    distribution : distribution
        The spec the expected counts were computed from.
    merged : int
        How many raw bins were absorbed by merging.
    """

    bins: Tuple[Bin, ...]
    size: int
    distribution: distribution
    merged: int = 0

    def __len__(self) -> int:
        return len(self.bins)

    def __iter__(self):
        return iter(self.bins)

    @property
    def observed(self) -> np.ndarray:
        return np.array([b.observed for b in self.bins], dtype=float)

    @property
    def expected(self) -> np.ndarray:
        return np.array([b.expected for b in self.bins], dtype=float)

    @property
    def probabilities(self) -> np.ndarray:
        return np.array([b.probability for b in self.bins], dtype=float)

    def to_frame(self):
        """Return the table as a :class:`pandas.DataFrame`."""
        from pandas import DataFrame

        return DataFrame(
            {
                "lower": [b.lower for b in self.bins],
                "upper": [b.upper for b in self.bins],
                "observed": [b.observed for b in self.bins],
                "probability": [b.probability for b in self.bins],
                "expected": [b.expected for b in self.bins],
            }
        )

    def plot(self, show: bool = True):
        """Plot observed against expected counts per bin with matplotlib."""
        import matplotlib.pyplot as plt

        x = np.arange(len(self.bins))
        fig, ax = plt.subplots()
        ax.bar(x - 0.2, self.observed, width=0.4, label="observed")
        ax.bar(x + 0.2, self.expected, width=0.4, label="expected")
        ax.set_xticks(x)
        ax.set_xticklabels([b.label for b in self.bins], rotation=45, ha="right")
        ax.set_ylabel("count")
        ax.set_title(str(self.distribution))
        ax.legend()
        fig.tight_layout()
        if show:
            plt.show(block=True)
        return ax


def bin_count(n: int, rule: str = DEFAULT_BIN_RULE) -> int:
    """Number of bins the named ``rule`` derives from sample size ``n``.

    * ``sturges``: ``ceil(log2 n) + 1``
    * ``sqrt``: ``ceil(sqrt n)``
    * ``rice``: ``ceil(2 * n ** (1/3))``
    """
    try:
        fn = BIN_RULES[str(rule).strip().lower()]
    except KeyError:
        raise InvalidRequest(f"Bin rule '{rule}' is not recognized.") from None
    if n < 1:
        raise InsufficientData("Cannot derive a bin count from an empty sample.")
    return max(fn(n), 1)


def _resolve_bins(strategy: BinStrategy, n: int) -> int:
    if isinstance(strategy, str):
        return bin_count(n, strategy)
    if isinstance(strategy, bool) or not isinstance(strategy, Integral):
        raise InvalidRequest(f"Bin strategy must be a positive integer or a rule name, got {strategy!r}.")
    if strategy <= 0:
        raise InvalidRequest(f"Bin count must be positive, got {strategy}.")
    return int(strategy)


def _inner_edges(values: np.ndarray, spec: distribution, k: int) -> np.ndarray:
    """Finite edges between bins; the outer edges are always -inf and +inf."""
    if isinstance(spec, empirical):
        return spec.values[1:]
    lo, hi = float(values.min()), float(values.max())
    if spec.discrete:
        # categories outside the significant support fall into the outer bins
        first = max(math.floor(lo), int(spec.dist.ppf(DISCRETE_TAIL)))
        last = min(math.floor(hi), int(spec.dist.isf(DISCRETE_TAIL)))
        return np.arange(first + 1, last + 1, dtype=float)
    if k == 1 or lo == hi:
        return np.empty(0)
    return np.linspace(lo, hi, k + 1)[1:-1]


def _groups(expected: np.ndarray, min_expected: float) -> List[Tuple[int, int]]:
    groups: List[Tuple[int, int]] = []
    start, acc = 0, 0.0
    for i, e in enumerate(expected):
        acc += e
        if acc >= min_expected:
            groups.append((start, i))
            start, acc = i + 1, 0.0
    if start < len(expected):
        if groups:
            groups[-1] = (groups[-1][0], len(expected) - 1)
        else:
            groups.append((start, len(expected) - 1))
    return groups


def tabulate(
    sample: Iterable[float],
    spec,
    bins: BinStrategy = DEFAULT_BIN_RULE,
    min_expected: float = MIN_EXPECTED,
) -> FrequencyTable:
    """Build a :class:`FrequencyTable` for ``sample`` against ``spec``.

    Parameters
    ----------
    sample : iterable of float
        The observations, typically a :class:`simrng.sampler.Sample`.
    spec : distribution or mapping
        Theoretical distribution supplying the expected counts.
    bins : int or str
        Explicit bin count, or one of :data:`BIN_RULES`.
    min_expected : float
        Merge threshold on the expected count per bin; ``0`` disables merging.

    Raises
    ------
    InsufficientData
        If the sample is empty.
    InvalidRequest
        On a bad bin strategy, a negative threshold or non-finite data.
    """
    spec = as_distribution(spec)
    values = _as_values(sample)
    min_expected = _as_real(min_expected, "min_expected", InvalidRequest)
    if min_expected < 0:
        raise InvalidRequest("min_expected must not be negative.")
    n = int(values.size)
    inner = _inner_edges(values, spec, _resolve_bins(bins, n))
    edges = np.concatenate(([-np.inf], inner, [np.inf]))
    observed = np.bincount(np.searchsorted(inner, values, side="right"), minlength=edges.size - 1)
    probs = np.atleast_1d(spec.interval_probability(edges[:-1], edges[1:]))

    merged: List[Bin] = []
    for first, last in _groups(probs * n, min_expected):
        p = float(probs[first:last + 1].sum())
        merged.append(
            Bin(
                lower=float(edges[first]),
                upper=float(edges[last + 1]),
                observed=int(observed[first:last + 1].sum()),
                probability=p,
                expected=p * n,
            )
        )
    absorbed = probs.size - len(merged)
    if absorbed:
        logger.debug("merged %d of %d bins below %g expected observations", absorbed, probs.size, min_expected)
    return FrequencyTable(tuple(merged), n, spec, absorbed)
