"""Tests for combine operators, pairing and the correlation accumulator."""

import functools

import numpy as np
import pytest
from helpers import all_on_even_steps, stacked, x_coordinate

from dynprops.correlation import (
    AccumulatorState,
    CorrelationAccumulator,
    dot_product,
    elementwise_product,
    outer_product,
    pair_by_identity,
    pair_by_rank,
    scalar_product,
)
from dynprops.correlation.accumulator import get_pairing, probe_shapes
from dynprops.correlation.combine import combine_key
from dynprops.correlation.extractors import body_force, body_torque, velocity
from dynprops.errors import ConfigurationError
from dynprops.system import Selection, Trajectory


class TestCombine:
    """Tests for combine operators."""

    def test_single_and_batched(self):
        """Operators accept single values and stacks of values."""
        a = np.array([1.0, 2.0, 3.0])
        b = np.array([4.0, 5.0, 6.0])

        assert dot_product(a, b) == pytest.approx(32.0)
        np.testing.assert_allclose(outer_product(a, b), np.outer(a, b))
        np.testing.assert_allclose(elementwise_product(a, b), a * b)
        assert scalar_product(2.0, 3.0) == pytest.approx(6.0)

        batch = outer_product(np.tile(a, (4, 1)), np.tile(b, (4, 1)))
        assert batch.shape == (4, 3, 3)
        np.testing.assert_allclose(batch[2], np.outer(a, b))

    def test_combine_key(self):
        """Keys distinguish operators and are stable."""
        assert combine_key(outer_product) == combine_key(outer_product)
        assert combine_key(outer_product) != combine_key(dot_product)
        assert combine_key(dot_product).endswith(":dot_product")

    def test_combine_key_closures(self):
        """Closures from one factory and lambdas get distinct keys."""
        def scaled(factor):
            def op(a, b):
                return factor * np.dot(a, b)
            return op

        plus, minus = scaled(1.0), scaled(-1.0)
        assert combine_key(plus) == combine_key(plus)
        assert combine_key(plus) != combine_key(minus)
        assert combine_key(lambda a, b: a * b) != combine_key(lambda a, b: a * b)

    def test_combine_key_partial(self):
        """Partials are keyed by function and bound arguments."""
        first = functools.partial(np.multiply, dtype=np.float64)
        second = functools.partial(np.multiply, dtype=np.float32)

        assert combine_key(first) == combine_key(functools.partial(np.multiply, dtype=np.float64))
        assert combine_key(first) != combine_key(second)


class TestPairing:
    """Tests for pairing policies."""

    def test_rank(self):
        """Rank pairing matches slot i with slot i."""
        idx_a, idx_b = pair_by_rank(np.array([5, 6, 7]), np.array([7, 6, 5]))
        np.testing.assert_array_equal(idx_a, [0, 1, 2])
        np.testing.assert_array_equal(idx_b, [0, 1, 2])

    def test_rank_size_mismatch(self):
        """Rank pairing of samples with different sizes is rejected."""
        with pytest.raises(ConfigurationError, match="identity pairing"):
            pair_by_rank(np.array([0, 1]), np.array([0]))

    def test_identity(self):
        """Identity pairing matches equal particle ids."""
        ids_a = np.array([4, 1, 9])
        ids_b = np.array([9, 4])
        idx_a, idx_b = pair_by_identity(ids_a, ids_b)

        np.testing.assert_array_equal(ids_a[idx_a], ids_b[idx_b])
        assert sorted(ids_a[idx_a]) == [4, 9]

    def test_lookup(self):
        """Pairings resolve by name; unknown names are configuration errors."""
        assert get_pairing("rank") is pair_by_rank
        assert get_pairing(pair_by_identity) is pair_by_identity
        with pytest.raises(ConfigurationError):
            get_pairing("nearest")


class TestProbeShapes:
    """Tests for shape probing."""

    def test_shapes(self, trajectory):
        """Shapes come from the first matching particle."""
        shapes = probe_shapes(
            trajectory,
            body_force,
            body_torque,
            outer_product,
            Selection.all(),
            Selection.all(),
        )
        assert shapes == ((3,), (3,), (3, 3))

    def test_empty_selection(self, trajectory):
        """A selection matching nothing is a configuration error."""
        with pytest.raises(ConfigurationError, match="selection B"):
            probe_shapes(
                trajectory,
                velocity,
                velocity,
                dot_product,
                Selection.all(),
                Selection.ids([99]),
            )


def _velocity_accumulator(traj, n_bins, **kwargs):
    return CorrelationAccumulator(
        traj,
        velocity,
        velocity,
        dot_product,
        Selection.all(),
        Selection.all(),
        n_bins=n_bins,
        **kwargs,
    )


class TestCorrelationAccumulator:
    """Tests for CorrelationAccumulator."""

    def test_counts(self, trajectory):
        """Every lag collects (frames - tau) * particles pairs."""
        state = _velocity_accumulator(trajectory, n_bins=5).accumulate()

        np.testing.assert_array_equal(state.counts, [(12 - tau) * 5 for tau in range(5)])
        np.testing.assert_array_equal(state.coverage, np.ones(12))
        assert state.mean_a.count == 60
        assert state.mean_b.count == 60

    def test_sums_match_direct_computation(self, trajectory):
        """Per-lag sums equal the brute-force double loop."""
        state = _velocity_accumulator(trajectory, n_bins=4).accumulate()
        v = stacked(trajectory, "velocities")

        for tau in range(4):
            expected = np.sum(v[: 12 - tau] * v[tau:])
            assert state.sums[tau] == pytest.approx(expected)

    def test_tensor_sums(self, trajectory):
        """Outer-product sums have tensor shape."""
        acc = CorrelationAccumulator(
            trajectory,
            body_force,
            body_torque,
            outer_product,
            Selection.all(),
            Selection.all(),
            n_bins=3,
        )
        state = acc.accumulate()

        rot = stacked(trajectory, "orientations")
        bf = np.einsum("fnij,fnj->fni", rot, stacked(trajectory, "forces"))
        bt = np.einsum("fnij,fnj->fni", rot, stacked(trajectory, "torques"))
        expected = np.einsum("fni,fnj->ij", bf[:10], bt[2:])

        assert state.result_shape == (3, 3)
        np.testing.assert_allclose(state.sums[2], expected)

    def test_window(self, trajectory):
        """A window owns its origins and reads later frames as halo."""
        state = _velocity_accumulator(trajectory, n_bins=3).accumulate((4, 8))

        np.testing.assert_array_equal(state.counts, [20, 20, 20])
        np.testing.assert_array_equal(state.coverage[4:8], 1)
        assert state.coverage.sum() == 4
        assert state.mean_a.count == 20
        assert state.mean_b.count == 20

    def test_window_at_end(self, trajectory):
        """Lags running past the trajectory end are simply not collected."""
        state = _velocity_accumulator(trajectory, n_bins=3).accumulate((10, 12))
        np.testing.assert_array_equal(state.counts, [10, 5, 0])

    def test_empty_window(self, trajectory):
        """An empty window yields an empty state."""
        state = _velocity_accumulator(trajectory, n_bins=3).accumulate((5, 5))

        assert state.counts.sum() == 0
        assert state.coverage.sum() == 0

    def test_window_outside_trajectory(self, trajectory):
        """Windows outside the trajectory are configuration errors."""
        with pytest.raises(ConfigurationError):
            _velocity_accumulator(trajectory, n_bins=3).accumulate((8, 13))

    def test_non_positive_bins(self, trajectory):
        """n_bins must be positive."""
        with pytest.raises(ConfigurationError):
            _velocity_accumulator(trajectory, n_bins=0)

    def test_samples_released(self, trajectory):
        """No sample stays resident after a pass."""
        acc = _velocity_accumulator(trajectory, n_bins=4)
        acc.accumulate()

        assert acc.extractor_a.store.n_resident == 0
        assert acc.extractor_b.store.n_resident == 0

    def test_retain_samples(self, trajectory):
        """Retained samples survive the pass."""
        acc = _velocity_accumulator(trajectory, n_bins=4, retain_samples=True)
        acc.accumulate()

        assert acc.extractor_a.store.n_resident == 12
        assert acc.extractor_b.store.n_resident == 12

    def test_rank_pairing_mismatch(self):
        """Rank pairing over selections of varying size fails."""
        traj = Trajectory.from_arrays(np.ones((4, 3, 3)))
        acc = CorrelationAccumulator(
            traj,
            velocity,
            velocity,
            dot_product,
            Selection.where(all_on_even_steps),
            Selection.where(all_on_even_steps),
            n_bins=2,
        )
        with pytest.raises(ConfigurationError):
            acc.accumulate()

    def test_identity_pairing_varying_selection(self):
        """Identity pairing counts only particles present at both ends."""
        traj = Trajectory.from_arrays(np.ones((4, 3, 3)))
        acc = CorrelationAccumulator(
            traj,
            x_coordinate,
            x_coordinate,
            scalar_product,
            Selection.where(all_on_even_steps),
            Selection.where(all_on_even_steps),
            n_bins=4,
            pairing="identity",
        )
        state = acc.accumulate()

        np.testing.assert_array_equal(state.counts, [8, 3, 4, 1])
        np.testing.assert_allclose(state.sums, [8.0, 3.0, 4.0, 1.0])


class TestAccumulatorState:
    """Tests for AccumulatorState."""

    def test_empty(self):
        """Empty states have zero sums and the requested shapes."""
        state = AccumulatorState.empty(4, "k", (3, 3), (3,), (3,), n_frames=10)

        assert state.sums.shape == (4, 3, 3)
        assert state.result_shape == (3, 3)
        assert state.n_frames == 10
        assert state.mean_a.total.shape == (3,)

    def test_pack_unpack(self, trajectory):
        """Unpacking a packed state restores it."""
        state = _velocity_accumulator(trajectory, n_bins=3).accumulate((2, 6))
        restored = state.unpack(state.pack())

        np.testing.assert_array_equal(restored.sums, state.sums)
        np.testing.assert_array_equal(restored.counts, state.counts)
        np.testing.assert_array_equal(restored.coverage, state.coverage)
        np.testing.assert_array_equal(restored.mean_b.total, state.mean_b.total)
        assert restored.mean_a.count == state.mean_a.count
        assert restored.combine_key == state.combine_key

    def test_sum_of_packed_states_is_merge(self, trajectory):
        """Adding packed vectors merges the states they came from."""
        acc = _velocity_accumulator(trajectory, n_bins=3)
        left = acc.accumulate((0, 6))
        right = acc.accumulate((6, 12))
        whole = acc.accumulate()

        combined = left.unpack(left.pack() + right.pack())

        np.testing.assert_allclose(combined.sums, whole.sums)
        np.testing.assert_array_equal(combined.counts, whole.counts)
        assert combined.mean_a.count == whole.mean_a.count

    def test_unpack_wrong_length(self):
        """Packed vectors must match the layout."""
        state = AccumulatorState.empty(2, "k", (), (), (), n_frames=3)
        with pytest.raises(ConfigurationError):
            state.unpack(np.zeros(3))
