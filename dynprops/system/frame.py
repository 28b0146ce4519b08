"""Single trajectory frame representation."""

from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np
from numpy.typing import ArrayLike, NDArray


@dataclass
class Frame:
    """
    Snapshot of every particle in one trajectory frame.

    This is a pure data container. Rows are indexed by position in the frame;
    ``particle_ids`` maps rows to stable particle identifiers.

    Attributes:
        positions: Particle positions, shape (N, 3).
        velocities: Particle velocities, shape (N, 3).
        forces: Forces in the lab frame, shape (N, 3).
        torques: Torques in the lab frame, shape (N, 3).
        orientations: Lab-to-body rotation matrices, shape (N, 3, 3).
        particle_ids: Particle identifiers, shape (N,).
        time: Frame time.
        step: Frame step number.
    """

    positions: NDArray[np.floating]
    velocities: NDArray[np.floating]
    forces: NDArray[np.floating]
    torques: NDArray[np.floating]
    orientations: NDArray[np.floating]
    particle_ids: NDArray[np.integer]
    time: float = 0.0
    step: int = 0
    _rows: dict[int, int] = field(default_factory=dict, init=False, repr=False)

    def __post_init__(self) -> None:
        """Validate and convert arrays."""
        self.positions = np.asarray(self.positions, dtype=np.float64)
        self.velocities = np.asarray(self.velocities, dtype=np.float64)
        self.forces = np.asarray(self.forces, dtype=np.float64)
        self.torques = np.asarray(self.torques, dtype=np.float64)
        self.orientations = np.asarray(self.orientations, dtype=np.float64)
        self.particle_ids = np.asarray(self.particle_ids, dtype=np.int64)

        n = len(self.particle_ids)
        for name in ("positions", "velocities", "forces", "torques"):
            shape = getattr(self, name).shape
            if shape != (n, 3):
                raise ValueError(
                    f"{name} shape {shape} incompatible with {n} particles"
                )
        if self.orientations.shape != (n, 3, 3):
            raise ValueError(
                f"orientations shape {self.orientations.shape} incompatible with "
                f"{n} particles"
            )

        self._rows = {int(pid): row for row, pid in enumerate(self.particle_ids)}
        if len(self._rows) != n:
            raise ValueError("particle_ids must be unique within a frame")

    @property
    def n_particles(self) -> int:
        """Return number of particles."""
        return len(self.particle_ids)

    def index_of(self, particle_id: int) -> int:
        """
        Return the row holding a particle.

        Raises:
            KeyError: If the particle is not present in this frame.
        """
        try:
            return self._rows[int(particle_id)]
        except KeyError:
            raise KeyError(f"particle {particle_id} not present at step {self.step}") from None

    def has_particle(self, particle_id: int) -> bool:
        """Check whether a particle is present in this frame."""
        return int(particle_id) in self._rows

    @classmethod
    def create(
        cls,
        positions: ArrayLike,
        velocities: ArrayLike | None = None,
        forces: ArrayLike | None = None,
        torques: ArrayLike | None = None,
        orientations: ArrayLike | None = None,
        particle_ids: ArrayLike | None = None,
        time: float = 0.0,
        step: int = 0,
    ) -> Frame:
        """
        Create a Frame, filling missing arrays.

        Velocities, forces and torques default to zeros, orientations to the
        identity and particle ids to ``0..N-1``.

        Args:
            positions: Particle positions, shape (N, 3).
            velocities: Particle velocities, shape (N, 3).
            forces: Lab-frame forces, shape (N, 3).
            torques: Lab-frame torques, shape (N, 3).
            orientations: Lab-to-body rotation matrices, shape (N, 3, 3).
            particle_ids: Particle identifiers, shape (N,).
            time: Frame time.
            step: Frame step number.

        Returns:
            New Frame instance.
        """
        positions = np.asarray(positions, dtype=np.float64)
        n = len(positions)

        if velocities is None:
            velocities = np.zeros((n, 3), dtype=np.float64)
        if forces is None:
            forces = np.zeros((n, 3), dtype=np.float64)
        if torques is None:
            torques = np.zeros((n, 3), dtype=np.float64)
        if orientations is None:
            orientations = np.tile(np.eye(3), (n, 1, 1))
        if particle_ids is None:
            particle_ids = np.arange(n, dtype=np.int64)

        return cls(
            positions=positions,
            velocities=velocities,
            forces=forces,
            torques=torques,
            orientations=orientations,
            particle_ids=particle_ids,
            time=time,
            step=step,
        )

    def freeze(self) -> Frame:
        """Make every array read-only and return self."""
        for arr in (
            self.positions,
            self.velocities,
            self.forces,
            self.torques,
            self.orientations,
            self.particle_ids,
        ):
            arr.flags.writeable = False
        return self
