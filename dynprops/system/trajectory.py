"""In-memory trajectory collaborator."""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from typing import TYPE_CHECKING

import numpy as np
from numpy.typing import ArrayLike, NDArray

from .frame import Frame

if TYPE_CHECKING:
    from .selection import Selection


class Trajectory:
    """
    Ordered sequence of frames sampled at a fixed interval.

    The correlation engine only reads from a trajectory: the frame count,
    which particles match a selection in a given frame, and per-particle
    physical quantities.

    Example:
        traj = Trajectory.from_arrays(positions, forces=forces, frame_interval=0.5)
        ids = traj.particles_matching(0, Selection.all())
        f = traj.force(0, ids[0])
    """

    def __init__(
        self,
        frames: Sequence[Frame],
        frame_interval: float | None = None,
    ) -> None:
        """
        Initialize trajectory.

        Args:
            frames: Frames in time order.
            frame_interval: Time between consecutive frames. Defaults to the
                spacing of the first two frame times, or 1.0 if that is
                not available.
        """
        self._frames = list(frames)

        if frame_interval is None:
            frame_interval = 1.0
            if len(self._frames) > 1:
                spacing = self._frames[1].time - self._frames[0].time
                if spacing > 0:
                    frame_interval = float(spacing)
        if frame_interval <= 0:
            raise ValueError(f"frame_interval must be positive, got {frame_interval}")
        self.frame_interval = float(frame_interval)

    def frame_count(self) -> int:
        """Return number of frames."""
        return len(self._frames)

    def __len__(self) -> int:
        return len(self._frames)

    def __getitem__(self, index: int) -> Frame:
        return self._frames[index]

    def __iter__(self) -> Iterator[Frame]:
        return iter(self._frames)

    def frame(self, index: int) -> Frame:
        """
        Return a frame by index.

        Raises:
            IndexError: If index is outside [0, frame_count()).
        """
        if not 0 <= index < len(self._frames):
            raise IndexError(
                f"frame {index} outside trajectory of {len(self._frames)} frames"
            )
        return self._frames[index]

    def particles_matching(
        self, frame_index: int, selection: Selection
    ) -> NDArray[np.int64]:
        """Return ids matching a selection in one frame, in frame order."""
        return selection.evaluate(self.frame(frame_index))

    def _row(self, frame_index: int, particle_id: int) -> tuple[Frame, int]:
        frame = self.frame(frame_index)
        return frame, frame.index_of(particle_id)

    def position(self, frame_index: int, particle_id: int) -> NDArray[np.floating]:
        """Return a particle's position."""
        frame, row = self._row(frame_index, particle_id)
        return frame.positions[row]

    def velocity(self, frame_index: int, particle_id: int) -> NDArray[np.floating]:
        """Return a particle's velocity."""
        frame, row = self._row(frame_index, particle_id)
        return frame.velocities[row]

    def force(self, frame_index: int, particle_id: int) -> NDArray[np.floating]:
        """Return a particle's lab-frame force."""
        frame, row = self._row(frame_index, particle_id)
        return frame.forces[row]

    def torque(self, frame_index: int, particle_id: int) -> NDArray[np.floating]:
        """Return a particle's lab-frame torque."""
        frame, row = self._row(frame_index, particle_id)
        return frame.torques[row]

    def orientation(self, frame_index: int, particle_id: int) -> NDArray[np.floating]:
        """Return a particle's lab-to-body rotation matrix."""
        frame, row = self._row(frame_index, particle_id)
        return frame.orientations[row]

    @classmethod
    def from_arrays(
        cls,
        positions: ArrayLike,
        velocities: ArrayLike | None = None,
        forces: ArrayLike | None = None,
        torques: ArrayLike | None = None,
        orientations: ArrayLike | None = None,
        particle_ids: ArrayLike | None = None,
        frame_interval: float = 1.0,
    ) -> Trajectory:
        """
        Build a trajectory with a constant particle set from stacked arrays.

        Args:
            positions: Shape (n_frames, N, 3).
            velocities: Shape (n_frames, N, 3).
            forces: Shape (n_frames, N, 3).
            torques: Shape (n_frames, N, 3).
            orientations: Shape (n_frames, N, 3, 3).
            particle_ids: Shape (N,).
            frame_interval: Time between frames.

        Returns:
            New Trajectory with frame times ``i * frame_interval``.
        """
        positions = np.asarray(positions, dtype=np.float64)
        if positions.ndim != 3 or positions.shape[2] != 3:
            raise ValueError(
                f"positions must have shape (n_frames, N, 3), got {positions.shape}"
            )

        def _per_frame(arr: ArrayLike | None, i: int):
            return None if arr is None else np.asarray(arr)[i]

        frames = [
            Frame.create(
                positions=positions[i],
                velocities=_per_frame(velocities, i),
                forces=_per_frame(forces, i),
                torques=_per_frame(torques, i),
                orientations=_per_frame(orientations, i),
                particle_ids=particle_ids,
                time=i * frame_interval,
                step=i,
            )
            for i in range(len(positions))
        ]
        return cls(frames, frame_interval=frame_interval)
