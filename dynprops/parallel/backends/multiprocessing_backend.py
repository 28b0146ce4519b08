"""Process-pool backend for shared-memory machines."""

from __future__ import annotations

import logging
import os
from collections.abc import Callable, Sequence
from concurrent.futures import FIRST_EXCEPTION, ProcessPoolExecutor, wait
from typing import TYPE_CHECKING, Any

import numpy as np
from numpy.typing import NDArray

from .base import ParallelBackend

if TYPE_CHECKING:
    from ...correlation.accumulator import AccumulatorState

logger = logging.getLogger(__name__)


class MultiprocessingBackend(ParallelBackend):
    """
    Windows accumulated concurrently in a pool of worker processes.

    Partial states come back to the calling process, which merges them
    itself, so the reduction needs no communication. The task and what it
    carries (trajectory, quantities, selections) must be picklable.

    If any window fails, windows not yet started are cancelled and the
    first failure is re-raised; no partial state is returned.
    """

    name = "multiprocessing"
    rank = 0

    def __init__(self, n_workers: int | None = None) -> None:
        """
        Initialize multiprocessing backend.

        Args:
            n_workers: Number of worker processes. Defaults to CPU count.
        """
        self._n_workers = n_workers or os.cpu_count() or 1

    @property
    def n_workers(self) -> int:
        """Return number of worker processes."""
        return self._n_workers

    def allreduce_sum(self, local_data: NDArray[np.floating]) -> NDArray[np.floating]:
        """Every partial state already lives in this process."""
        return np.array(local_data, dtype=np.float64)

    def barrier(self) -> None:
        """Pool results are collected synchronously; nothing to wait for."""

    def reduce_state(self, state: AccumulatorState) -> AccumulatorState:
        """The merged local state is already the global one."""
        return state

    def parallel_map(self, func: Callable[[Any], Any], items: Sequence[Any]) -> list[Any]:
        """
        Apply a task to every item in the process pool.

        Args:
            func: Picklable task.
            items: Picklable items.

        Returns:
            Results in item order.
        """
        if not items:
            return []

        logger.debug("submitting %d tasks to %d processes", len(items), self._n_workers)
        with ProcessPoolExecutor(max_workers=self._n_workers) as executor:
            futures = [executor.submit(func, item) for item in items]
            done, not_done = wait(futures, return_when=FIRST_EXCEPTION)
            failed = [f for f in futures if f in done and f.exception() is not None]
            if failed:
                for future in not_done:
                    future.cancel()
                executor.shutdown(wait=True, cancel_futures=True)
                raise failed[0].exception()
            return [future.result() for future in futures]
