"""Core pseudo-random generators.

Both generators are algebraic recurrences ``x[n+1] = (a * x[n] + c) mod m``
with fixed, documented constants. ``next()`` returns ``x[n+1] / m`` which
always lies in ``[0, 1)``.

========================== ============ ============ ============ ==========
generator                  modulus m    multiplier a increment c  period
========================== ============ ============ ============ ==========
LinearCongruentialGenerator 2**32       2849201      1013904223   2**32
LehmerGenerator            2**31 - 1    48271        0            2**31 - 2
========================== ============ ============ ============ ==========

Each instance owns its state; there is no module-level generator, so
independent requests (even on different threads) never interfere as long as
each builds its own generator from its own seed.
"""
from __future__ import annotations

from numbers import Integral

import numpy as np

from simrng.errors import GeneratorInitializationError, InvalidRequest

_SEED_MIN = -(2 ** 63)
_SEED_MAX = 2 ** 64


class Generator:
    """Base class for linear congruential style recurrences.

    Subclasses only set the ``modulus``, ``multiplier`` and ``increment``
    class attributes.
    """

    kind = "base"
    modulus = 1
    multiplier = 1
    increment = 0

    def __init__(self, seed: int):
        if isinstance(seed, bool) or not isinstance(seed, Integral):
            raise GeneratorInitializationError(f"Seed must be an integer, got {seed!r}.")
        seed = int(seed)
        if not _SEED_MIN <= seed < _SEED_MAX:
            raise GeneratorInitializationError(f"Seed {seed} does not fit in 64 bits.")
        state = seed % self.modulus
        # a state mapped onto itself would yield a constant stream
        if self._step(state) == state:
            raise GeneratorInitializationError(
                f"Seed {seed} is a fixed point of the {self.kind} recurrence."
            )
        self._seed = seed
        self._state = state

    def __repr__(self):
        return f"{type(self).__name__}(seed={self._seed})"

    @property
    def seed(self) -> int:
        return self._seed

    @property
    def state(self) -> int:
        """Current integer state of the recurrence."""
        return self._state

    @property
    def period(self) -> int:
        return self.modulus

    def _step(self, state: int) -> int:
        return (self.multiplier * state + self.increment) % self.modulus

    def next(self) -> float:
        """Advance the recurrence once and return a float in ``[0, 1)``."""
        self._state = self._step(self._state)
        return self._state / self.modulus

    def next_stream(self, n: int) -> np.ndarray:
        """Return the next ``n`` uniforms as a numpy array."""
        if isinstance(n, bool) or not isinstance(n, Integral) or n < 0:
            raise InvalidRequest(f"Stream length must be a non-negative integer, got {n!r}.")
        out = np.empty(int(n), dtype=float)
        for i in range(int(n)):
            out[i] = self.next()
        return out

    def clone(self) -> Generator:
        """Return an independent generator positioned at the current state."""
        twin = type(self).__new__(type(self))
        twin._seed = self._seed
        twin._state = self._state
        return twin


class LinearCongruentialGenerator(Generator):
    """Mixed LCG modulo ``2**32``.

    ``c`` is odd and ``a - 1`` is a multiple of 4, which gives the full period
    ``2**32`` for every seed; no seed is degenerate.
    """

    kind = "lcg"
    modulus = 2 ** 32
    multiplier = 1 + 4 * 712300
    increment = 1013904223


class LehmerGenerator(Generator):
    """Park-Miller "MINSTD" multiplicative generator.

    A seed congruent to 0 modulo ``2**31 - 1`` collapses the recurrence and is
    rejected.
    """

    kind = "lehmer"
    modulus = 2 ** 31 - 1
    multiplier = 48271
    increment = 0

    @property
    def period(self) -> int:
        return self.modulus - 1


GENERATORS = {
    "lcg": LinearCongruentialGenerator,
    "lehmer": LehmerGenerator,
}


def make_generator(seed: int, kind: str = "lcg") -> Generator:
    """Build a fresh generator of the given ``kind`` from ``seed``.

    Raises
    ------
    InvalidRequest
        If ``kind`` is not one of :data:`GENERATORS`.
    GeneratorInitializationError
        If the seed is unusable.
    """
    try:
        cls = GENERATORS[str(kind).strip().lower()]
    except KeyError:
        raise InvalidRequest(f"Generator kind '{kind}' is not recognized.") from None
    return cls(seed)
