"""Property extractors mapping particles to correlated quantities."""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING

import numpy as np
from numpy.typing import NDArray

from ..errors import DataError
from .store import FrameSample, FrameSampleStore, RunningMean

if TYPE_CHECKING:
    from ..system import Selection, Trajectory

Quantity = Callable[["Trajectory", int, int], NDArray[np.floating]]


def position(traj: Trajectory, frame_index: int, particle_id: int) -> NDArray[np.floating]:
    """Particle position."""
    return traj.position(frame_index, particle_id)


def velocity(traj: Trajectory, frame_index: int, particle_id: int) -> NDArray[np.floating]:
    """Particle velocity in the lab frame."""
    return traj.velocity(frame_index, particle_id)


def force(traj: Trajectory, frame_index: int, particle_id: int) -> NDArray[np.floating]:
    """Force in the lab frame."""
    return traj.force(frame_index, particle_id)


def torque(traj: Trajectory, frame_index: int, particle_id: int) -> NDArray[np.floating]:
    """Torque in the lab frame."""
    return traj.torque(frame_index, particle_id)


def body_force(traj: Trajectory, frame_index: int, particle_id: int) -> NDArray[np.floating]:
    """Force rotated into the particle's body frame, A · F."""
    return traj.orientation(frame_index, particle_id) @ traj.force(frame_index, particle_id)


def body_torque(traj: Trajectory, frame_index: int, particle_id: int) -> NDArray[np.floating]:
    """Torque rotated into the particle's body frame, A · τ."""
    return traj.orientation(frame_index, particle_id) @ traj.torque(frame_index, particle_id)


def body_velocity(traj: Trajectory, frame_index: int, particle_id: int) -> NDArray[np.floating]:
    """Velocity rotated into the particle's body frame, A · v."""
    return traj.orientation(frame_index, particle_id) @ traj.velocity(
        frame_index, particle_id
    )


class PropertyExtractor:
    """
    One side (A or B) of a correlation.

    Wraps a quantity callable, the side's selection, its frame sample store
    and its running mean. Every extraction appends the value to the frame's
    sample; extractions from frames the worker owns also feed the running
    mean, while halo frames borrowed from a neighbouring window do not.
    """

    def __init__(
        self,
        quantity: Quantity,
        selection: Selection,
        store: FrameSampleStore,
        side: str = "A",
    ) -> None:
        """
        Initialize extractor.

        Args:
            quantity: Callable ``quantity(trajectory, frame_index, particle_id)``.
            selection: Particles this side samples.
            store: Storage for extracted values.
            side: Label used in error messages.
        """
        self.quantity = quantity
        self.selection = selection
        self.store = store
        self.side = side
        self.running_mean = RunningMean()
        self.value_shape: tuple[int, ...] | None = None

    def extract(
        self,
        traj: Trajectory,
        frame_index: int,
        particle_id: int,
        owned: bool = True,
    ) -> tuple[NDArray[np.floating], int]:
        """
        Extract one particle's value in one frame.

        Args:
            traj: Trajectory to read.
            frame_index: Frame index.
            particle_id: Particle id; must belong to the selection at this frame.
            owned: Whether the frame is a time origin owned by this worker.

        Returns:
            Tuple of (value, slot index within the frame).

        Raises:
            DataError: If the particle is not selected or was already extracted.
        """
        if not self.selection.contains(traj.frame(frame_index), particle_id):
            raise DataError(
                frame_index,
                particle_id,
                f"not in selection {self.side} ({self.selection})",
            )

        value = np.asarray(self.quantity(traj, frame_index, particle_id), dtype=np.float64)
        if self.value_shape is None:
            self.value_shape = value.shape
        elif value.shape != self.value_shape:
            raise DataError(
                frame_index,
                particle_id,
                f"quantity shape {value.shape} differs from {self.value_shape}",
            )

        slot = self.store.append(frame_index, int(particle_id), value)
        if owned:
            self.running_mean.add(value)
        return value, slot

    def extract_frame(
        self,
        traj: Trajectory,
        frame_index: int,
        owned: bool = True,
    ) -> FrameSample:
        """
        Extract every selected particle of a frame and seal the sample.

        Returns:
            The frame's sample, in selection order.
        """
        for pid in traj.particles_matching(frame_index, self.selection):
            self.extract(traj, frame_index, int(pid), owned=owned)
        return self.store.seal(frame_index, self.value_shape or ())

    def reset(self, value_shape: tuple[int, ...] | None = None) -> None:
        """
        Drop stored samples and the running mean.

        Args:
            value_shape: Expected shape of extracted values, if known.
        """
        self.store.clear()
        self.value_shape = value_shape
        self.running_mean = RunningMean.zeros(value_shape or ())
