"""Turn a generator's uniform stream into samples of a distribution spec."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, List, Optional

import numpy as np

from simrng._utils import _validate_count
from simrng.dist import DISTRIBUTIONS, distribution
from simrng.errors import InvalidParameter, InvalidRequest
from simrng.log_cfg import logger
from simrng.rng import Generator

PAGE_SIZE = 30


@dataclass(frozen=True, eq=False)
class Sample:
    """An immutable, ordered sample produced by one :func:`sample` call.

    Attributes
    ----------
    values : numpy.ndarray
        Read-only array of variates in generation order.
    distribution : distribution
        The spec the variates were drawn from.
    seed : int, optional
        Seed of the generator that produced the sample, when known.
    """

    values: np.ndarray
    distribution: distribution
    seed: Optional[int] = None

    def __post_init__(self):
        values = np.array(self.values, dtype=float).reshape(-1)
        values.flags.writeable = False
        object.__setattr__(self, "values", values)

    def __len__(self) -> int:
        return int(self.values.size)

    def __iter__(self) -> Iterator[float]:
        return iter(self.values.tolist())

    def __getitem__(self, index):
        return self.values[index]

    def mean(self) -> float:
        return float(self.values.mean())

    def var(self) -> float:
        """Unbiased sample variance."""
        return float(self.values.var(ddof=1)) if self.values.size > 1 else 0.0

    def page(self, number: int, size: int = PAGE_SIZE) -> List[float]:
        """Return the 1-based page ``number`` of ``size`` values.

        Pages past the end are empty.
        """
        number = _validate_count(number, "page number")
        size = _validate_count(size, "page size")
        start = size * (number - 1)
        return self.values[start:start + size].tolist()

    def tolist(self) -> List[float]:
        return self.values.tolist()


def _check(generator, spec) -> None:
    if not isinstance(generator, Generator):
        raise InvalidRequest(f"Expected a simrng generator, got {type(generator).__name__}.")
    if not isinstance(spec, distribution) or DISTRIBUTIONS.get(spec.dist_type) is not type(spec):
        raise InvalidParameter(f"Unsupported distribution spec {spec!r}.")


def draw(generator: Generator, spec: distribution) -> float:
    """Draw one variate of ``spec`` from ``generator``."""
    _check(generator, spec)
    return spec.sample(generator)


def sample(generator: Generator, spec: distribution, count: int) -> Sample:
    """Draw ``count`` variates of ``spec`` from ``generator``.

    Raises
    ------
    InvalidRequest
        If ``count`` is not a positive integer.
    SamplingExhausted
        If a bounded sampling loop runs out of attempts.
    """
    count = _validate_count(count)
    _check(generator, spec)
    values = spec.samples(generator, count)
    logger.debug("drew %d variates of %s (seed=%s)", count, spec, generator.seed)
    return Sample(values, spec, generator.seed)
