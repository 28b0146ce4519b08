"""Time-lag correlation accumulator."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np
from numpy.typing import NDArray

from ..errors import ConfigurationError
from .combine import Combine, combine_key
from .extractors import PropertyExtractor, Quantity
from .store import FrameSampleStore, RunningMean

if TYPE_CHECKING:
    from ..parallel.windows import FrameWindow
    from ..system import Selection, Trajectory

logger = logging.getLogger(__name__)

Pairing = Callable[
    [NDArray[np.int64], NDArray[np.int64]],
    tuple[NDArray[np.intp], NDArray[np.intp]],
]


def pair_by_rank(
    ids_a: NDArray[np.int64], ids_b: NDArray[np.int64]
) -> tuple[NDArray[np.intp], NDArray[np.intp]]:
    """
    Pair slot i of side A with slot i of side B.

    Both selections must enumerate corresponding particles in lockstep.

    Raises:
        ConfigurationError: If the two samples have different sizes.
    """
    if len(ids_a) != len(ids_b):
        raise ConfigurationError(
            f"rank pairing needs equal per-frame counts, got {len(ids_a)} and "
            f"{len(ids_b)}; use identity pairing for selections of varying size"
        )
    idx = np.arange(len(ids_a))
    return idx, idx


def pair_by_identity(
    ids_a: NDArray[np.int64], ids_b: NDArray[np.int64]
) -> tuple[NDArray[np.intp], NDArray[np.intp]]:
    """Pair slots that hold the same particle id on both sides."""
    _, idx_a, idx_b = np.intersect1d(ids_a, ids_b, assume_unique=True, return_indices=True)
    return idx_a, idx_b


PAIRINGS: dict[str, Pairing] = {
    "rank": pair_by_rank,
    "identity": pair_by_identity,
}


def get_pairing(pairing: str | Pairing) -> Pairing:
    """Resolve a pairing policy by name."""
    if callable(pairing):
        return pairing
    try:
        return PAIRINGS[pairing]
    except KeyError:
        raise ConfigurationError(
            f"Unknown pairing: {pairing}. Available: {', '.join(PAIRINGS)}"
        ) from None


@dataclass
class AccumulatorState:
    """
    Mergeable, unnormalized correlation data.

    Attributes:
        n_bins: Number of time-lag bins.
        combine_key: Identity of the combine operator used.
        sums: Per-lag sums of combine outputs, shape (n_bins, *result_shape).
        counts: Per-lag number of contributing pairs, shape (n_bins,).
        mean_a: Running mean of side A.
        mean_b: Running mean of side B.
        coverage: Times each frame was owned as a time origin, shape (n_frames,).
    """

    n_bins: int
    combine_key: str
    sums: NDArray[np.floating]
    counts: NDArray[np.int64]
    mean_a: RunningMean
    mean_b: RunningMean
    coverage: NDArray[np.int64]

    @classmethod
    def empty(
        cls,
        n_bins: int,
        combine_key: str,
        result_shape: tuple[int, ...],
        value_shape_a: tuple[int, ...],
        value_shape_b: tuple[int, ...],
        n_frames: int,
    ) -> AccumulatorState:
        """Create a state with no contributions."""
        return cls(
            n_bins=n_bins,
            combine_key=combine_key,
            sums=np.zeros((n_bins, *result_shape), dtype=np.float64),
            counts=np.zeros(n_bins, dtype=np.int64),
            mean_a=RunningMean.zeros(value_shape_a),
            mean_b=RunningMean.zeros(value_shape_b),
            coverage=np.zeros(n_frames, dtype=np.int64),
        )

    @property
    def result_shape(self) -> tuple[int, ...]:
        """Shape of one correlation value."""
        return tuple(self.sums.shape[1:])

    @property
    def n_frames(self) -> int:
        """Length of the trajectory this state refers to."""
        return len(self.coverage)

    def pack(self) -> NDArray[np.float64]:
        """
        Flatten the additive parts of the state into one vector.

        The layout is sums, counts, mean_a total, mean_a count, mean_b total,
        mean_b count, coverage. Summing packed vectors is the same as merging.
        """
        return np.concatenate(
            [
                self.sums.ravel(),
                self.counts.astype(np.float64),
                np.ravel(self.mean_a.total),
                [float(self.mean_a.count)],
                np.ravel(self.mean_b.total),
                [float(self.mean_b.count)],
                self.coverage.astype(np.float64),
            ]
        )

    def unpack(self, packed: NDArray[np.float64]) -> AccumulatorState:
        """
        Rebuild a state with this state's layout from a packed vector.

        Args:
            packed: Vector produced by ``pack`` (or a sum of such vectors).

        Returns:
            New AccumulatorState.
        """
        packed = np.asarray(packed, dtype=np.float64)
        if packed.shape != (len(self.pack()),):
            raise ConfigurationError(
                f"packed state has {packed.size} entries, expected {len(self.pack())}"
            )

        sections = [
            self.sums.size,
            self.n_bins,
            np.size(self.mean_a.total),
            1,
            np.size(self.mean_b.total),
            1,
        ]
        offsets = np.cumsum(sections)
        sums, counts, total_a, count_a, total_b, count_b, coverage = np.split(
            packed, offsets
        )
        return AccumulatorState(
            n_bins=self.n_bins,
            combine_key=self.combine_key,
            sums=sums.reshape(self.sums.shape),
            counts=np.rint(counts).astype(np.int64),
            mean_a=RunningMean(
                total=total_a.reshape(np.shape(self.mean_a.total)),
                count=int(round(count_a[0])),
            ),
            mean_b=RunningMean(
                total=total_b.reshape(np.shape(self.mean_b.total)),
                count=int(round(count_b[0])),
            ),
            coverage=np.rint(coverage).astype(np.int64),
        )


def probe_shapes(
    traj: Trajectory,
    quantity_a: Quantity,
    quantity_b: Quantity,
    combine: Combine,
    selection_a: Selection,
    selection_b: Selection,
) -> tuple[tuple[int, ...], tuple[int, ...], tuple[int, ...]]:
    """
    Find the value shapes of both sides and of the combined result.

    Evaluates each quantity on the first selected particle found in the
    trajectory, so every worker agrees on the shapes even when its own
    window holds no selected particle.

    Returns:
        Tuple of (value_shape_a, value_shape_b, result_shape).

    Raises:
        ConfigurationError: If either selection never matches.
    """
    shapes: dict[str, tuple[int, ...]] = {}
    samples: dict[str, np.ndarray] = {}

    for side, quantity, selection in (
        ("A", quantity_a, selection_a),
        ("B", quantity_b, selection_b),
    ):
        for frame_index in range(traj.frame_count()):
            ids = traj.particles_matching(frame_index, selection)
            if len(ids):
                value = np.asarray(quantity(traj, frame_index, int(ids[0])), dtype=np.float64)
                shapes[side] = value.shape
                samples[side] = value
                break
        else:
            raise ConfigurationError(
                f"selection {side} ({selection}) matches no particle in any of "
                f"{traj.frame_count()} frames"
            )

    result = np.asarray(combine(samples["A"], samples["B"]))
    return shapes["A"], shapes["B"], tuple(result.shape)


class CorrelationAccumulator:
    """
    Accumulates the per-lag sums of ``combine(A(t), B(t + tau))``.

    For every origin frame in a window and every lag below ``n_bins``, the
    samples of side A at the origin are paired with the samples of side B at
    the later frame and their combine outputs are summed into the lag's bin.
    Side B is also read from up to ``n_bins - 1`` frames past the window (the
    halo); those frames do not feed the running means, so states built on
    disjoint windows merge exactly.

    Samples are released as soon as no later origin can reference them, so
    peak memory grows with ``n_bins`` rather than with the trajectory length.

    Example:
        acc = CorrelationAccumulator(traj, velocity, velocity, dot_product,
                                     Selection.all(), Selection.all(), n_bins=50)
        state = acc.accumulate()
    """

    def __init__(
        self,
        traj: Trajectory,
        quantity_a: Quantity,
        quantity_b: Quantity,
        combine: Combine,
        selection_a: Selection,
        selection_b: Selection,
        n_bins: int,
        pairing: str | Pairing = "rank",
        shapes: tuple[tuple[int, ...], tuple[int, ...], tuple[int, ...]] | None = None,
        retain_samples: bool = False,
    ) -> None:
        """
        Initialize accumulator.

        Args:
            traj: Trajectory to read (read-only).
            quantity_a: Quantity sampled on side A.
            quantity_b: Quantity sampled on side B.
            combine: Bilinear combine operator.
            selection_a: Particles of side A.
            selection_b: Particles of side B.
            n_bins: Number of time-lag bins (maximum lag + 1).
            pairing: Pairing policy name ("rank", "identity") or callable.
            shapes: Precomputed (value_shape_a, value_shape_b, result_shape);
                probed from the trajectory when None.
            retain_samples: Keep every sealed sample after the pass.
        """
        if n_bins <= 0:
            raise ConfigurationError(f"n_bins must be positive, got {n_bins}")

        self.traj = traj
        self.combine = combine
        self.n_bins = int(n_bins)
        self.pairing = get_pairing(pairing)
        self.retain_samples = retain_samples
        self._shapes = shapes

        n_frames = traj.frame_count()
        self.extractor_a = PropertyExtractor(
            quantity_a, selection_a, FrameSampleStore(n_frames), side="A"
        )
        self.extractor_b = PropertyExtractor(
            quantity_b, selection_b, FrameSampleStore(n_frames), side="B"
        )

    @property
    def shapes(self) -> tuple[tuple[int, ...], tuple[int, ...], tuple[int, ...]]:
        """Value shapes of side A, side B and the result."""
        if self._shapes is None:
            self._shapes = probe_shapes(
                self.traj,
                self.extractor_a.quantity,
                self.extractor_b.quantity,
                self.combine,
                self.extractor_a.selection,
                self.extractor_b.selection,
            )
        return self._shapes

    def _resolve_window(self, window: FrameWindow | tuple[int, int] | None) -> tuple[int, int]:
        n_frames = self.traj.frame_count()
        if window is None:
            return 0, n_frames
        if isinstance(window, tuple):
            start, stop = window
        else:
            start, stop = window.start, window.stop
        if not (0 <= start <= stop <= n_frames):
            raise ConfigurationError(
                f"frame window [{start}, {stop}) outside [0, {n_frames})"
            )
        return int(start), int(stop)

    def accumulate(
        self, window: FrameWindow | tuple[int, int] | None = None
    ) -> AccumulatorState:
        """
        Build the accumulator state for a window of origin frames.

        Args:
            window: Origin frames as a FrameWindow or (start, stop) pair;
                the whole trajectory when None.

        Returns:
            Unnormalized state covering the window.
        """
        start, stop = self._resolve_window(window)
        n_frames = self.traj.frame_count()
        shape_a, shape_b, shape_r = self.shapes

        self.extractor_a.reset(shape_a)
        self.extractor_b.reset(shape_b)

        state = AccumulatorState.empty(
            self.n_bins,
            combine_key(self.combine),
            shape_r,
            shape_a,
            shape_b,
            n_frames,
        )
        state.coverage[start:stop] = 1

        store_a = self.extractor_a.store
        store_b = self.extractor_b.store
        b_extracted = start

        logger.debug(
            "accumulating origins [%d, %d) with %d bins over %d frames",
            start,
            stop,
            self.n_bins,
            n_frames,
        )

        for f1 in range(start, stop):
            sample_a = self.extractor_a.extract_frame(self.traj, f1, owned=True)
            last = min(f1 + self.n_bins, n_frames)
            while b_extracted < last:
                self.extractor_b.extract_frame(
                    self.traj, b_extracted, owned=b_extracted < stop
                )
                b_extracted += 1

            if len(sample_a):
                for tau in range(last - f1):
                    sample_b = store_b.get(f1 + tau)
                    if not len(sample_b):
                        continue
                    idx_a, idx_b = self.pairing(sample_a.ids, sample_b.ids)
                    if len(idx_a) == 0:
                        continue
                    contrib = self.combine(sample_a.values[idx_a], sample_b.values[idx_b])
                    state.sums[tau] += np.sum(contrib, axis=0)
                    state.counts[tau] += len(idx_a)

            if not self.retain_samples:
                store_a.release(f1)
                store_b.release(f1)

        # Frames past the window were read into the halo only.
        if not self.retain_samples:
            store_b.clear()

        state.mean_a = self.extractor_a.running_mean
        state.mean_b = self.extractor_b.running_mean

        logger.debug(
            "window [%d, %d): %d pairs, %d A samples, %d B samples",
            start,
            stop,
            int(state.counts.sum()),
            state.mean_a.count,
            state.mean_b.count,
        )
        return state
