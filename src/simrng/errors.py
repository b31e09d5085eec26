"""Typed errors raised by simrng.

Every error carries a short machine-readable ``code`` so that callers (a web
layer, the CLI) can map each failure kind to a distinct message or status.
"""


class SimRNGError(Exception):
    """Base class for all simrng errors."""

    code = "error"


class InvalidParameter(SimRNGError, ValueError):
    """A distribution parameter violates its domain constraint."""

    code = "invalid_parameter"


class InvalidRequest(SimRNGError, ValueError):
    """Non-positive counts, bad significance levels or unknown bin rules."""

    code = "invalid_request"


class GeneratorInitializationError(SimRNGError, ValueError):
    """The seed is not usable by the chosen recurrence."""

    code = "generator_initialization"


class SamplingExhausted(SimRNGError, RuntimeError):
    """A bounded sampling loop ran out of attempts."""

    code = "sampling_exhausted"

    def __init__(self, message: str, attempts: int):
        super().__init__(message)
        self.attempts = attempts


class InsufficientData(SimRNGError, ValueError):
    """Too few observations (or degrees of freedom) for a statistic."""

    code = "insufficient_data"


class LookupOutOfRange(SimRNGError, LookupError):
    """No critical value could be looked up or approximated."""

    code = "lookup_out_of_range"
