"""Distribution specs and their variate transforms.

Every supported family is a small immutable class deriving from
:class:`distribution`. The class validates its parameters on construction,
exposes the theoretical CDF/PMF used by the statistical tests (through a
frozen SciPy distribution where SciPy covers the family) and implements the
transform turning uniform draws from a :class:`simrng.rng.Generator` into
variates.

The set of families is closed: :data:`DISTRIBUTIONS` lists every kind that
:func:`make`, the sampler and the tabulator accept.
"""
from __future__ import annotations

import math
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

import numpy as np
import scipy.stats as st

from simrng._utils import _as_real, _validate_positive
from simrng.errors import InvalidParameter, SamplingExhausted
from simrng.log_cfg import logger

MAX_ATTEMPTS = 1000
"""Default bound on acceptance-rejection attempts per variate."""

ERLANG_MAX_SHAPE = 64
"""Largest integer gamma shape sampled by convolution; larger shapes use Cheng GB."""

POISSON_PRODUCT_LIMIT = 30.0
"""Largest rate sampled with the product-of-uniforms method."""

_TINY = np.nextafter(0.0, 1.0)


def _one_minus(u: float) -> float:
    """Return ``1 - u`` clamped away from zero so that ``log`` stays finite."""
    return max(1.0 - u, _TINY)


class distribution:
    """Base class of every distribution spec.

    Subclasses set ``dist_type``, ``params`` (an ordered mapping of parameter
    name to value) and, when SciPy has the family, ``dist``.
    """

    dist_type: str = "distribution"
    discrete: bool = False
    # parameters a chi-square test counts as fitted from the sample
    estimated_params: int = 0
    aliases: Dict[str, str] = {}

    def __init__(self):
        self.params: Dict[str, Any] = {}
        self.dist = None

    def __str__(self):
        """Human-readable representation like 'dist.uniform(a=4, b=5)'."""

        def _fmt(p):
            if isinstance(p, (int, float)):
                return f"{p:g}"
            return str(p)

        params_str = ", ".join(f"{k}={_fmt(v)}" for k, v in self.params.items())
        return f"dist.{self.dist_type}({params_str})"

    __repr__ = __str__

    def __eq__(self, other):
        if not isinstance(other, distribution):
            return NotImplemented
        return type(self) is type(other) and self._key() == other._key()

    def __hash__(self):
        return hash((type(self).__name__, self._key()))

    def _key(self):
        return tuple((k, tuple(v) if isinstance(v, (list, tuple)) else v) for k, v in self.params.items())

    # -- sampling ---------------------------------------------------------

    def sample(self, generator) -> float:
        """Draw a single variate using uniforms from ``generator``."""
        return self._variate(generator)

    def samples(self, generator, n: int) -> np.ndarray:
        """Draw ``n`` variates using uniforms from ``generator``."""
        return np.asarray(self._variates(generator, n), dtype=float)

    def _variate(self, generator) -> float:
        raise NotImplementedError

    def _variates(self, generator, n: int) -> List[float]:
        return [self._variate(generator) for _ in range(n)]

    # -- theory -----------------------------------------------------------

    def pdf(self, x):
        """Evaluate the density (or mass, for discrete families) at ``x``."""
        if self.discrete:
            return self.dist.pmf(x)
        return self.dist.pdf(x)

    def cdf(self, x):
        """Evaluate ``P(X <= x)``."""
        return self.dist.cdf(x)

    def _prob_below(self, x):
        return self.dist.cdf(x)

    def prob_below(self, x):
        """Evaluate ``P(X < x)``; infinite arguments map to 0 and 1."""
        x = np.asarray(x, dtype=float)
        finite = np.where(np.isfinite(x), x, 0.0)
        inner = np.asarray(self._prob_below(finite), dtype=float)
        out = np.where(np.isposinf(x), 1.0, np.where(np.isneginf(x), 0.0, inner))
        return out if out.ndim else float(out)

    def interval_probability(self, lower, upper):
        """Probability mass of the half-open interval ``[lower, upper)``."""
        return np.clip(np.asarray(self.prob_below(upper)) - np.asarray(self.prob_below(lower)), 0.0, 1.0)

    def percentile(self, q):
        """Return the value at percentile ``q`` (0-100)."""
        return self.dist.ppf(q / 100)

    def mean(self):
        return self.dist.mean()

    def var(self):
        return self.dist.var()

    def std(self):
        return self.dist.std()


class uniform(distribution):
    """Continuous uniform distribution on ``[a, b)``.

    Sampling: ``a + u * (b - a)``, one uniform per variate.
    """

    dist_type = "uniform"
    aliases = {"lower": "a", "upper": "b", "min": "a", "max": "b"}

    def __init__(self, a, b):
        super().__init__()
        a = _as_real(a, "a")
        b = _as_real(b, "b")
        if a >= b:
            raise InvalidParameter("Lower bound must be less than upper bound.")
        self.params = {"a": a, "b": b}
        self.dist = st.uniform(loc=a, scale=b - a)

    def _variate(self, generator) -> float:
        a, b = self.params["a"], self.params["b"]
        x = a + generator.next() * (b - a)
        # rounding can land exactly on b for extreme ranges
        return x if x < b else float(np.nextafter(b, a))


class expon(distribution):
    """Exponential distribution with rate ``lam`` (mean ``1 / lam``).

    Sampling: inverse CDF ``-ln(1 - u) / lam``, one uniform per variate.
    """

    dist_type = "expon"
    estimated_params = 1
    aliases = {"lambda": "lam", "rate": "lam"}

    def __init__(self, lam):
        super().__init__()
        lam = _validate_positive(lam, "Rate")
        self.params = {"lam": lam}
        self.dist = st.expon(scale=1.0 / lam)

    def _variate(self, generator) -> float:
        return -math.log(_one_minus(generator.next())) / self.params["lam"]


class norm(distribution):
    """
    Normal distribution.

    Parameters
    -----------
    mean : float
        The mean of the normal distribution.
    std : float
        The standard deviation, strictly positive.
    algorithm : str
        ``"box_muller"`` (default) or ``"convolution"``.

    Box-Muller turns two uniforms into a pair of variates
    ``sqrt(-2 ln(1-u1)) * (cos, sin)(2 pi u2)``. Nothing is cached between
    calls: :meth:`samples` emits both members of each pair and consumes
    ``2 * ceil(n / 2)`` uniforms, dropping the last member when ``n`` is odd,
    while :meth:`sample` consumes two uniforms and returns the cosine member.

    Convolution sums twelve uniforms and subtracts 6, consuming twelve
    uniforms per variate.
    """

    dist_type = "norm"
    estimated_params = 2
    aliases = {"mu": "mean", "sigma": "std", "sd": "std"}
    algorithms = ("box_muller", "convolution")

    def __init__(self, mean, std, algorithm: str = "box_muller"):
        super().__init__()
        mean = _as_real(mean, "Mean")
        std = _validate_positive(std, "Standard deviation")
        algorithm = str(algorithm).strip().lower().replace("-", "_")
        if algorithm not in self.algorithms:
            raise InvalidParameter(f"Normal algorithm '{algorithm}' is not recognized.")
        self.params = {"mean": mean, "std": std, "algorithm": algorithm}
        self.dist = st.norm(loc=mean, scale=std)

    def _pair(self, generator):
        u1 = generator.next()
        u2 = generator.next()
        r = math.sqrt(-2.0 * math.log(_one_minus(u1)))
        theta = 2.0 * math.pi * u2
        mean, std = self.params["mean"], self.params["std"]
        return mean + std * r * math.cos(theta), mean + std * r * math.sin(theta)

    def _convolution(self, generator) -> float:
        total = sum(generator.next() for _ in range(12)) - 6.0
        return self.params["mean"] + self.params["std"] * total

    def _variate(self, generator) -> float:
        if self.params["algorithm"] == "convolution":
            return self._convolution(generator)
        return self._pair(generator)[0]

    def _variates(self, generator, n: int) -> List[float]:
        if self.params["algorithm"] == "convolution":
            return [self._convolution(generator) for _ in range(n)]
        out: List[float] = []
        while len(out) < n:
            out.extend(self._pair(generator))
        return out[:n]


class gamma(distribution):
    """Gamma distribution with ``shape`` k and ``scale`` theta.

    * Integer shape up to :data:`ERLANG_MAX_SHAPE`: convolution of ``k`` exponentials,
      ``-theta * sum(ln(1 - u_i))``; exactly ``k`` uniforms per variate.
    * Non-integer shape below 1: Ahrens-Dieter GS acceptance-rejection. The
      proposal is a composition of the density ``x**(k-1)`` on ``(0, 1]`` and
      an exponential tail on ``(1, inf)``; it is accepted with probability
      ``exp(-x)`` or ``x**(k-1)`` respectively.
    * Any other shape above 1: Cheng's GB acceptance-rejection with a
      log-logistic proposal.

    Both rejection methods use two uniforms per attempt and give up after
    ``max_attempts`` attempts with :class:`SamplingExhausted`. A candidate
    that underflows to 0 lies outside the support and is rejected.
    """

    dist_type = "gamma"
    estimated_params = 2
    aliases = {"k": "shape", "alpha": "shape", "theta": "scale"}

    def __init__(self, shape, scale=1.0, max_attempts: int = MAX_ATTEMPTS):
        super().__init__()
        shape = _validate_positive(shape, "Shape")
        scale = _validate_positive(scale, "Scale")
        if isinstance(max_attempts, bool) or not isinstance(max_attempts, int) or max_attempts < 1:
            raise InvalidParameter("max_attempts must be a positive integer.")
        self.params = {"shape": shape, "scale": scale}
        self.max_attempts = max_attempts
        self.dist = st.gamma(shape, scale=scale)

    @property
    def method(self) -> str:
        shape = self.params["shape"]
        if shape.is_integer() and shape <= ERLANG_MAX_SHAPE:
            return "convolution"
        return "ahrens_dieter" if shape < 1 else "cheng"

    def _variate(self, generator) -> float:
        method = self.method
        if method == "convolution":
            k = int(self.params["shape"])
            x = -sum(math.log(_one_minus(generator.next())) for _ in range(k))
        elif method == "ahrens_dieter":
            x = self._ahrens_dieter(generator)
        else:
            x = self._cheng(generator)
        return self.params["scale"] * x

    def _exhausted(self):
        logger.debug("%s: no variate accepted after %d attempts", self, self.max_attempts)
        return SamplingExhausted(
            f"{self} rejected {self.max_attempts} consecutive candidates.", self.max_attempts
        )

    def _ahrens_dieter(self, generator) -> float:
        a = self.params["shape"]
        b = (math.e + a) / math.e
        for _ in range(self.max_attempts):
            u1 = generator.next()
            u2 = generator.next()
            p = b * u1
            if p <= 1.0:
                x = p ** (1.0 / a)
                if x > 0.0 and u2 <= math.exp(-x):
                    return x
            else:
                x = -math.log((b - p) / a)
                if x > 0.0 and u2 <= x ** (a - 1.0):
                    return x
        raise self._exhausted()

    def _cheng(self, generator) -> float:
        alpha = self.params["shape"]
        a = 1.0 / math.sqrt(2.0 * alpha - 1.0)
        b = alpha - math.log(4.0)
        c = alpha + 1.0 / a
        d = 1.0 + math.log(4.5)
        for _ in range(self.max_attempts):
            u1 = generator.next()
            u2 = generator.next()
            if u1 == 0.0 or u2 == 0.0:
                continue
            v = a * math.log(u1 / (1.0 - u1))
            x = alpha * math.exp(v)
            if x <= 0.0:
                continue
            z = u1 * u1 * u2
            r = b + c * v - x
            if r + d - 4.5 * z >= 0.0 or r >= math.log(z):
                return x
        raise self._exhausted()


class poisson(distribution):
    """Poisson distribution with rate ``lam``.

    For ``lam <= 30`` variates come from the product-of-uniforms method: the
    variate is the number of uniforms multiplied before the product drops
    below ``exp(-lam)``, minus one. The loop stops after
    ``ceil(lam + 10 * sqrt(lam) + 10)`` uniforms with
    :class:`SamplingExhausted`. Larger rates use the inverse CDF by
    accumulation over the discrete CDF, one uniform per variate.
    """

    dist_type = "poisson"
    estimated_params = 1
    discrete = True
    aliases = {"lambda": "lam", "rate": "lam"}

    def __init__(self, lam):
        super().__init__()
        lam = _validate_positive(lam, "Rate")
        self.params = {"lam": lam}
        self.dist = st.poisson(lam)

    @property
    def max_draws(self) -> int:
        lam = self.params["lam"]
        return int(math.ceil(lam + 10.0 * math.sqrt(lam) + 10.0))

    def _prob_below(self, x):
        return self.dist.cdf(np.ceil(x) - 1)

    def _variate(self, generator) -> float:
        lam = self.params["lam"]
        if lam > POISSON_PRODUCT_LIMIT:
            return float(max(self.dist.ppf(generator.next()), 0.0))
        limit = math.exp(-lam)
        product = 1.0
        for k in range(self.max_draws):
            product *= generator.next()
            if product < limit:
                return float(k)
        raise SamplingExhausted(f"{self} needed more than {self.max_draws} uniforms.", self.max_draws)


class empirical(distribution):
    """Discrete distribution over ``values`` with relative ``weights``.

    ``values`` default to ``0, 1, ..., len(weights) - 1``. Weights must be
    non-negative with a positive sum; values must be distinct. Sampling is
    the inverse CDF by accumulation, one uniform per variate.
    """

    dist_type = "empirical"
    discrete = True

    def __init__(self, weights: Iterable[float], values: Optional[Iterable[float]] = None):
        super().__init__()
        w = np.asarray(list(weights), dtype=float).reshape(-1)
        if w.size == 0:
            raise InvalidParameter("Weights must contain at least one entry.")
        if not np.all(np.isfinite(w)) or (w < 0).any():
            raise InvalidParameter("Weights must be finite and non-negative.")
        if w.sum() <= 0:
            raise InvalidParameter("Weights must have a positive sum.")
        if values is None:
            v = np.arange(w.size, dtype=float)
        else:
            v = np.asarray(list(values), dtype=float).reshape(-1)
            if v.size != w.size:
                raise InvalidParameter("values and weights must have the same length.")
            if not np.all(np.isfinite(v)):
                raise InvalidParameter("values must be finite.")
            if np.unique(v).size != v.size:
                raise InvalidParameter("values must be distinct.")
        order = np.argsort(v, kind="stable")
        self.values = v[order]
        self.probabilities = w[order] / w.sum()
        self._cum = np.cumsum(self.probabilities)
        self._cum[-1] = 1.0
        self.params = {"weights": tuple(w.tolist()), "values": tuple(v.tolist())}

    def __str__(self):
        return f"dist.empirical(n={self.values.size})"

    __repr__ = __str__

    def _variate(self, generator) -> float:
        idx = int(np.searchsorted(self._cum, generator.next(), side="right"))
        return float(self.values[min(idx, self.values.size - 1)])

    def _cdf_at(self, x, side):
        idx = np.searchsorted(self.values, x, side=side) - 1
        cum = np.concatenate(([0.0], self._cum))
        return cum[idx + 1]

    def cdf(self, x):
        return self._cdf_at(x, "right")

    def _prob_below(self, x):
        return self._cdf_at(x, "left")

    def pdf(self, x):
        x = np.asarray(x, dtype=float)
        idx = np.clip(np.searchsorted(self.values, x, side="left"), 0, self.values.size - 1)
        return np.where(self.values[idx] == x, self.probabilities[idx], 0.0)

    def percentile(self, q):
        idx = np.searchsorted(self._cum, np.asarray(q, dtype=float) / 100, side="left")
        return self.values[np.clip(idx, 0, self.values.size - 1)]

    def mean(self):
        return float(np.dot(self.values, self.probabilities))

    def var(self):
        m = self.mean()
        return float(np.dot((self.values - m) ** 2, self.probabilities))

    def std(self):
        return math.sqrt(self.var())


DISTRIBUTIONS: Dict[str, type] = {
    "uniform": uniform,
    "expon": expon,
    "norm": norm,
    "gamma": gamma,
    "poisson": poisson,
    "empirical": empirical,
}
"""Every supported family keyed by its ``dist_type``."""

_KIND_ALIASES = {
    "exponential": "expon",
    "normal": "norm",
    "gaussian": "norm",
    "normal_box_muller": "norm",
    "erlang": "gamma",
    "discrete": "empirical",
}


def make(kind: str, params: Optional[Mapping[str, Any]] = None) -> distribution:
    """Build a distribution spec from its tagged form ``{kind, params}``.

    Parameters
    ----------
    kind : str
        A key of :data:`DISTRIBUTIONS` or a common alias such as
        ``"normal"`` or ``"exponential"``.
    params : mapping
        Parameter name to value. Names may use the family's aliases, e.g.
        ``lambda`` for ``lam`` or ``sigma`` for ``std``.

    Raises
    ------
    InvalidParameter
        Unknown kind, unknown or missing parameter, or a value outside the
        family's domain.
    """
    normalized = str(kind).strip().lower().replace("-", "_")
    normalized = _KIND_ALIASES.get(normalized, normalized)
    if normalized not in DISTRIBUTIONS:
        raise InvalidParameter(f"Distribution type '{kind}' is not recognized.")
    cls = DISTRIBUTIONS[normalized]

    kwargs: Dict[str, Any] = {}
    for name, value in dict(params or {}).items():
        key = cls.aliases.get(name, name)
        if key in kwargs:
            raise InvalidParameter(f"Parameter '{key}' given more than once.")
        kwargs[key] = value
    try:
        return cls(**kwargs)
    except TypeError as exc:
        raise InvalidParameter(f"Bad parameters for {normalized}: {exc}") from None


def as_distribution(value) -> distribution:
    """Accept either a spec instance or a ``{"kind": ..., "params": ...}`` mapping."""
    if isinstance(value, distribution):
        return value
    if isinstance(value, Mapping) and "kind" in value:
        return make(value["kind"], value.get("params"))
    raise InvalidParameter(f"Cannot interpret {value!r} as a distribution.")


def kinds() -> Sequence[str]:
    """Names of the supported families."""
    return tuple(DISTRIBUTIONS)
