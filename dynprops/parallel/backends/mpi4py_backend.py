"""Distributed backend on top of mpi4py."""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np
from numpy.typing import NDArray

from .base import ParallelBackend

if TYPE_CHECKING:
    from mpi4py import MPI as MPI_TYPE

    from ..windows import FrameWindow


class MPI4PyBackend(ParallelBackend):
    """
    One frame window per MPI rank.

    Windows are dealt round-robin by their rank number, so a run with more
    windows than processes still covers every window exactly once. The
    packed partial states are combined with a single ``Allreduce`` and
    every rank ends up holding the merged state.

    The program must be launched with mpirun/mpiexec.

    Example:
        mpirun -n 4 python examples/run_force_torque.py
    """

    name = "mpi4py"

    def __init__(self) -> None:
        """Attach to ``MPI.COMM_WORLD``."""
        try:
            from mpi4py import MPI
        except ImportError as e:
            raise ImportError(
                "mpi4py is required for the MPI backend. Install with: pip install mpi4py"
            ) from e

        self._MPI = MPI
        self._comm = MPI.COMM_WORLD

    @property
    def n_workers(self) -> int:
        """Return communicator size."""
        return self._comm.Get_size()

    @property
    def rank(self) -> int:
        """Return MPI rank of this process."""
        return self._comm.Get_rank()

    @property
    def comm(self) -> MPI_TYPE.Comm:
        """Return MPI communicator."""
        return self._comm

    def owns(self, window: FrameWindow) -> bool:
        """Windows are dealt to ranks round-robin."""
        return window.rank % self.n_workers == self.rank

    def allreduce_sum(self, local_data: NDArray[np.floating]) -> NDArray[np.floating]:
        """
        Sum a packed state over every rank.

        Buffers are contiguous float64, so counts and coverage travel
        exactly alongside the sums.
        """
        send = np.ascontiguousarray(local_data, dtype=np.float64)
        recv = np.empty_like(send)
        self._comm.Allreduce(send, recv, op=self._MPI.SUM)
        return recv

    def barrier(self) -> None:
        """Wait for every rank."""
        self._comm.Barrier()

    def abort(self, errorcode: int = 1) -> None:
        """Tear down every rank; a failed rank can never reach the reduction."""
        self._comm.Abort(errorcode)
