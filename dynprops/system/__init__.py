"""Trajectory and selection collaborators."""

from .frame import Frame
from .selection import Selection
from .trajectory import Trajectory

__all__ = ["Frame", "Selection", "Trajectory"]
