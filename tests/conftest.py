"""
Pytest fixtures shared by the weak pool tests.
"""

import gc

import pytest

from weak_pool import WeakPool


class Box:
    """weakly referenceable stand-in for values like ints and strings"""

    def __init__(self, value):
        self.value = value

    def __eq__(self, other):
        return isinstance(other, Box) and other.value == self.value

    def __hash__(self):
        return hash(self.value)

    def __repr__(self):
        return f"Box({self.value!r})"


@pytest.fixture
def box():
    return Box


@pytest.fixture
def pool():
    return WeakPool()


@pytest.fixture
def collect():
    """force reclamation of everything that is no longer referenced"""
    def _collect():
        gc.collect()
        gc.collect()
    return _collect
