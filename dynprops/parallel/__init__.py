"""Parallelization infrastructure for correlation runs."""

from .backends.base import ParallelBackend
from .backends.serial import SerialBackend
from .dispatcher import get_backend, set_default_backend
from .windows import FrameDecomposition, FrameWindow

__all__ = [
    "ParallelBackend",
    "SerialBackend",
    "FrameDecomposition",
    "FrameWindow",
    "get_backend",
    "set_default_backend",
]
