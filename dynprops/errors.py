"""Error taxonomy for correlation runs."""

from __future__ import annotations


class CorrelationError(Exception):
    """Base class for fatal errors raised during a correlation run."""


class ConfigurationError(CorrelationError, ValueError):
    """
    Raised when a run is set up inconsistently.

    Covers incompatible partial states, selections that never match,
    non-positive bin counts and frame windows outside the trajectory.
    """


class DataError(CorrelationError, ValueError):
    """Raised when an extractor is asked for a particle it does not own."""

    def __init__(self, frame_index: int, particle_id: int, reason: str) -> None:
        self.frame_index = frame_index
        self.particle_id = particle_id
        super().__init__(f"frame {frame_index}, particle {particle_id}: {reason}")
