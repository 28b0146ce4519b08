"""Trajectory builders, quantities and predicates shared by the tests.

Everything here is module-level so it pickles.
"""

import numpy as np

from dynprops.system import Trajectory


def random_rotations(rng: np.random.Generator, shape: tuple[int, ...]) -> np.ndarray:
    """Draw proper rotation matrices with the given leading shape."""
    q, r = np.linalg.qr(rng.normal(size=(*shape, 3, 3)))
    q = q * np.sign(np.diagonal(r, axis1=-2, axis2=-1))[..., None, :]
    det = np.linalg.det(q)
    q[det < 0, :, 0] *= -1
    return q


def make_trajectory(
    n_frames: int = 12,
    n_particles: int = 5,
    seed: int = 42,
    frame_interval: float = 0.5,
) -> Trajectory:
    """Create a reproducible trajectory with random dynamics and orientations."""
    rng = np.random.default_rng(seed)
    shape = (n_frames, n_particles, 3)
    return Trajectory.from_arrays(
        positions=rng.uniform(0.0, 10.0, shape),
        velocities=rng.normal(0.5, 1.0, shape),
        forces=rng.normal(0.0, 2.0, shape),
        torques=rng.normal(0.2, 1.0, shape),
        orientations=random_rotations(rng, (n_frames, n_particles)),
        frame_interval=frame_interval,
    )


def ramp_trajectory(values=(1.0, 2.0, 3.0, 4.0)) -> Trajectory:
    """Single-particle trajectory whose x coordinate takes the given values."""
    positions = np.zeros((len(values), 1, 3))
    positions[:, 0, 0] = values
    return Trajectory.from_arrays(positions)


def stacked(traj: Trajectory, name: str) -> np.ndarray:
    """Stack a per-frame array over the trajectory, e.g. shape (F, N, 3)."""
    return np.stack([getattr(frame, name) for frame in traj])


def x_coordinate(traj, frame_index, particle_id):
    """Scalar quantity: the particle's x coordinate."""
    return np.float64(traj.position(frame_index, particle_id)[0])


def all_on_even_steps(frame, particle_id):
    """Every particle on even steps, only particle 0 on odd steps."""
    return frame.step % 2 == 0 or particle_id == 0


def ragged_quantity(traj, frame_index, particle_id):
    """Quantity whose shape changes after the first frame."""
    size = 3 if frame_index == 0 else 2
    return np.zeros(size)
