"""Serial (single-process) backend."""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np
from numpy.typing import NDArray

from .base import ParallelBackend

if TYPE_CHECKING:
    from ...correlation.accumulator import AccumulatorState


class SerialBackend(ParallelBackend):
    """
    Every window accumulated one after another in the calling process.

    This is the default backend and produces the reference result every
    other backend must reproduce.
    """

    name = "serial"
    n_workers = 1
    rank = 0

    def allreduce_sum(self, local_data: NDArray[np.floating]) -> NDArray[np.floating]:
        """Only one contribution exists; return a copy of it."""
        return np.array(local_data, dtype=np.float64)

    def barrier(self) -> None:
        """Nothing to wait for."""

    def reduce_state(self, state: AccumulatorState) -> AccumulatorState:
        """The local state is already the global one."""
        return state
