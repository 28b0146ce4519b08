"""Backends that place frame windows on workers.

The MPI backend is imported on demand by the dispatcher since mpi4py is
optional.
"""

from .base import ParallelBackend
from .multiprocessing_backend import MultiprocessingBackend
from .serial import SerialBackend

__all__ = ["ParallelBackend", "SerialBackend", "MultiprocessingBackend"]
