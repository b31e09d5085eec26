import pytest

from simrng.rng import LinearCongruentialGenerator


class ScriptedGenerator(LinearCongruentialGenerator):
    """Generator returning a fixed list of uniforms, for edge-case tests."""

    def __init__(self, values):
        super().__init__(1)
        self._values = list(values)
        self.calls = 0

    def next(self):
        value = self._values[self.calls]
        self.calls += 1
        return value


@pytest.fixture
def scripted():
    return ScriptedGenerator
