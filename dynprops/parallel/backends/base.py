"""Abstract base class for parallel backends."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence
from typing import TYPE_CHECKING, Any

import numpy as np
from numpy.typing import NDArray

if TYPE_CHECKING:
    from ...correlation.accumulator import AccumulatorState
    from ..windows import FrameWindow


class ParallelBackend(ABC):
    """
    Abstract base class for parallelization backends.

    A correlation run maps one accumulation task per frame window, then
    meets at a single reduction barrier where the partial states are
    summed. Backends decide which windows run in this process, how the
    tasks are executed and how the sum crosses process boundaries.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Return backend name."""
        ...

    @property
    @abstractmethod
    def n_workers(self) -> int:
        """Return number of parallel workers."""
        ...

    @property
    @abstractmethod
    def rank(self) -> int:
        """Return rank of current process (0 for single-process backends)."""
        ...

    @property
    def is_root(self) -> bool:
        """Check if this is the root process."""
        return self.rank == 0

    @abstractmethod
    def allreduce_sum(self, local_data: NDArray[np.floating]) -> NDArray[np.floating]:
        """
        Sum a flat vector over every process.

        Args:
            local_data: This process's contribution.

        Returns:
            The sum, available on every process.
        """
        ...

    @abstractmethod
    def barrier(self) -> None:
        """Synchronize all workers."""
        ...

    def abort(self, errorcode: int = 1) -> None:
        """
        Abort the run on every worker after a fatal error.

        Single-process backends have nothing to tear down; the caller
        re-raises the error.
        """

    def owns(self, window: FrameWindow) -> bool:
        """Check whether this process accumulates a window."""
        return True

    def parallel_map(self, func: Callable[[Any], Any], items: Sequence[Any]) -> list[Any]:
        """
        Apply a task to every item, in order.

        Runs in the calling process; pool-based backends override this.
        """
        return [func(item) for item in items]

    def map_windows(
        self,
        func: Callable[[FrameWindow], Any],
        windows: Sequence[FrameWindow],
    ) -> list[Any]:
        """
        Run a task for every window this process owns.

        Args:
            func: Task taking a FrameWindow.
            windows: All windows of the run.

        Returns:
            Results for the owned windows, in window order.
        """
        return self.parallel_map(func, [w for w in windows if self.owns(w)])

    def reduce_state(self, state: AccumulatorState) -> AccumulatorState:
        """
        Combine this process's merged state with every other process's.

        The state is flattened with ``pack`` so one vector sum performs the
        merge; every process receives the same result.
        """
        return state.unpack(self.allreduce_sum(state.pack()))
