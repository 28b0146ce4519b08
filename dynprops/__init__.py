"""
dynprops - Time-correlation functions of per-particle dynamic properties.

Design Principles:
- Generic two-point correlation engine, specialized by quantity and combine
- Exact, order-independent merging of partial results
- Serial, shared-memory and MPI parallelism over frame windows
- Bounded memory: samples are dropped once no lag can reach them

Quick Start:
    >>> from dynprops import CrossCorrelationFunction, Selection, Trajectory
    >>> traj = Trajectory.from_arrays(positions, velocities=velocities)
    >>> result = CrossCorrelationFunction(traj, "velocity", Selection.all()).run()
    >>> print(result.values[0])
"""

__version__ = "0.1.0"

# High-level APIs
from . import plotting
from .config import CorrelationConfig
from .correlation import (
    CorrelationResult,
    CrossCorrelationFunction,
    Specialization,
    correlate,
)
from .errors import ConfigurationError, CorrelationError, DataError
from .io import CorrelationTextReader, CorrelationTextWriter

# Core components for advanced users
from .system import Frame, Selection, Trajectory

__all__ = [
    "plotting",
    "correlate",
    "CorrelationConfig",
    "CrossCorrelationFunction",
    "CorrelationResult",
    "Specialization",
    "CorrelationTextReader",
    "CorrelationTextWriter",
    "CorrelationError",
    "ConfigurationError",
    "DataError",
    "Frame",
    "Selection",
    "Trajectory",
]
