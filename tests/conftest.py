"""Shared fixtures for correlation tests."""

import pytest
from helpers import make_trajectory, ramp_trajectory

from dynprops.parallel.dispatcher import reset_default_backend


@pytest.fixture
def trajectory():
    """Random 12-frame, 5-particle trajectory."""
    return make_trajectory()


@pytest.fixture
def ramp():
    """Four-frame trajectory with x = 1, 2, 3, 4 for particle 0."""
    return ramp_trajectory()


@pytest.fixture(autouse=True)
def _reset_backend():
    """Keep the module-level default backend from leaking between tests."""
    yield
    reset_default_backend()
