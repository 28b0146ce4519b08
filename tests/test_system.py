"""Tests for trajectory, frame and selection collaborators."""

import numpy as np
import pytest
from helpers import all_on_even_steps

from dynprops.system import Frame, Selection, Trajectory


class TestFrame:
    """Tests for Frame."""

    def test_create_defaults(self):
        """Missing arrays are filled with zeros, identities and 0..N-1."""
        frame = Frame.create(np.ones((4, 3)))

        assert frame.n_particles == 4
        np.testing.assert_array_equal(frame.velocities, np.zeros((4, 3)))
        np.testing.assert_array_equal(frame.orientations[2], np.eye(3))
        np.testing.assert_array_equal(frame.particle_ids, [0, 1, 2, 3])

    def test_index_of(self):
        """Particle ids map to rows."""
        frame = Frame.create(np.zeros((3, 3)), particle_ids=[10, 20, 30])

        assert frame.index_of(20) == 1
        assert frame.has_particle(30)
        assert not frame.has_particle(5)

    def test_index_of_missing(self):
        """Missing particles raise KeyError."""
        frame = Frame.create(np.zeros((2, 3)))
        with pytest.raises(KeyError):
            frame.index_of(7)

    def test_duplicate_ids_rejected(self):
        """Particle ids must be unique."""
        with pytest.raises(ValueError, match="unique"):
            Frame.create(np.zeros((2, 3)), particle_ids=[1, 1])

    def test_shape_mismatch_rejected(self):
        """Per-particle arrays must agree with the particle count."""
        with pytest.raises(ValueError, match="forces"):
            Frame.create(np.zeros((3, 3)), forces=np.zeros((2, 3)))

    def test_freeze(self):
        """Frozen frames are read-only."""
        frame = Frame.create(np.zeros((2, 3))).freeze()
        with pytest.raises(ValueError):
            frame.positions[0, 0] = 1.0


class TestSelection:
    """Tests for Selection."""

    def test_all(self):
        """Selection.all matches every particle in frame order."""
        frame = Frame.create(np.zeros((3, 3)), particle_ids=[5, 2, 9])

        np.testing.assert_array_equal(Selection.all().evaluate(frame), [5, 2, 9])
        assert str(Selection.all()) == "all"

    def test_ids_keep_frame_order(self):
        """Id selections return matches in frame order, not request order."""
        frame = Frame.create(np.zeros((4, 3)), particle_ids=[3, 1, 2, 0])
        sel = Selection.ids([0, 3])

        np.testing.assert_array_equal(sel.evaluate(frame), [3, 0])
        assert sel.contains(frame, 0)
        assert not sel.contains(frame, 1)
        assert str(sel) == "select 0 3"

    def test_contains_absent_particle(self):
        """Particles missing from the frame are never contained."""
        frame = Frame.create(np.zeros((2, 3)))
        assert not Selection.all().contains(frame, 99)

    def test_where_varies_by_frame(self):
        """Predicate selections may change membership between frames."""
        traj = Trajectory.from_arrays(np.zeros((2, 3, 3)))
        sel = Selection.where(all_on_even_steps)

        np.testing.assert_array_equal(traj.particles_matching(0, sel), [0, 1, 2])
        np.testing.assert_array_equal(traj.particles_matching(1, sel), [0])
        assert str(sel) == "all_on_even_steps"


class TestTrajectory:
    """Tests for Trajectory."""

    def test_from_arrays(self):
        """Stacked arrays become frames with regular times."""
        positions = np.arange(2 * 3 * 3, dtype=float).reshape(2, 3, 3)
        traj = Trajectory.from_arrays(positions, frame_interval=0.25)

        assert traj.frame_count() == 2
        assert len(traj) == 2
        assert traj[1].time == pytest.approx(0.25)
        assert traj[1].step == 1
        np.testing.assert_array_equal(traj.position(1, 2), positions[1, 2])

    def test_frame_interval_from_times(self):
        """Frame interval defaults to the spacing of the first two frames."""
        frames = [Frame.create(np.zeros((1, 3)), time=t) for t in (2.0, 2.5, 3.0)]
        assert Trajectory(frames).frame_interval == pytest.approx(0.5)

    def test_frame_interval_single_frame(self):
        """A single frame falls back to unit interval."""
        assert Trajectory([Frame.create(np.zeros((1, 3)))]).frame_interval == 1.0

    def test_non_positive_interval_rejected(self):
        """Frame interval must be positive."""
        with pytest.raises(ValueError):
            Trajectory([], frame_interval=0.0)

    def test_frame_out_of_range(self):
        """Frame access outside the trajectory raises IndexError."""
        traj = Trajectory.from_arrays(np.zeros((2, 1, 3)))
        with pytest.raises(IndexError):
            traj.frame(2)
        with pytest.raises(IndexError):
            traj.frame(-1)

    def test_per_particle_accessors(self, trajectory):
        """Accessors read the row of the requested particle."""
        frame = trajectory[3]
        np.testing.assert_array_equal(trajectory.velocity(3, 2), frame.velocities[2])
        np.testing.assert_array_equal(trajectory.force(3, 2), frame.forces[2])
        np.testing.assert_array_equal(trajectory.torque(3, 2), frame.torques[2])
        np.testing.assert_array_equal(
            trajectory.orientation(3, 2), frame.orientations[2]
        )
