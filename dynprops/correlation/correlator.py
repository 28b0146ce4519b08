"""Driver running a correlation function over a trajectory."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from ..errors import ConfigurationError
from ..parallel.dispatcher import backend_from_config, get_backend
from ..parallel.windows import FrameDecomposition, FrameWindow
from .accumulator import (
    AccumulatorState,
    CorrelationAccumulator,
    Pairing,
    probe_shapes,
)
from .combine import Combine, combine_key
from .extractors import Quantity
from .normalize import normalize
from .reduce import merge_states
from .specializations import Specialization, get_specialization

if TYPE_CHECKING:
    from ..config import CorrelationConfig
    from ..parallel.backends.base import ParallelBackend
    from ..system import Selection, Trajectory
    from .result import CorrelationResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CorrelationJob:
    """
    Picklable accumulation task for one frame window.

    Everything a worker needs travels with the job; the trajectory is
    only read.
    """

    trajectory: Trajectory
    quantity_a: Quantity
    quantity_b: Quantity
    combine: Combine
    selection_a: Selection
    selection_b: Selection
    n_bins: int
    pairing: str | Pairing
    shapes: tuple[tuple[int, ...], tuple[int, ...], tuple[int, ...]]

    def __call__(self, window: FrameWindow) -> AccumulatorState:
        accumulator = CorrelationAccumulator(
            self.trajectory,
            self.quantity_a,
            self.quantity_b,
            self.combine,
            self.selection_a,
            self.selection_b,
            n_bins=self.n_bins,
            pairing=self.pairing,
            shapes=self.shapes,
        )
        return accumulator.accumulate(window)


class CrossCorrelationFunction:
    """
    Time cross-correlation C(tau) = <A(t) * B(t + tau)> - <A> * <B>.

    Splits the trajectory into one frame window per worker, accumulates
    each window independently, merges the partial states at a single
    reduction barrier and normalizes the result.

    With the same quantity and selection on both sides this is an
    autocorrelation.

    Example:
        cf = CrossCorrelationFunction(traj, "force_torque", Selection.all())
        result = cf.run()
        result.values.shape  # (n_bins, 3, 3)
    """

    def __init__(
        self,
        trajectory: Trajectory,
        specialization: str | Specialization,
        selection_a: Selection,
        selection_b: Selection | None = None,
        n_bins: int | None = None,
        pairing: str | Pairing = "rank",
        backend: str | ParallelBackend | None = None,
        n_windows: int | None = None,
        require_complete: bool = True,
        output_prefix: str | None = None,
    ) -> None:
        """
        Initialize correlation function.

        Args:
            trajectory: Trajectory to analyze.
            specialization: Correlation name or Specialization instance.
            selection_a: Particles sampled on side A.
            selection_b: Particles sampled on side B. Defaults to selection_a.
            n_bins: Number of time-lag bins. Defaults to the frame count.
            pairing: Pairing policy ("rank" or "identity") or callable.
            backend: Parallel backend name or instance.
            n_windows: Number of frame windows. Defaults to the number of workers.
            require_complete: Require every frame to be covered exactly once.
            output_prefix: Prefix used to build the output file name.
        """
        self.trajectory = trajectory
        self.specialization = get_specialization(specialization)
        self.selection_a = selection_a
        self.selection_b = selection_b if selection_b is not None else selection_a
        self.n_bins = int(n_bins) if n_bins is not None else trajectory.frame_count()
        if self.n_bins <= 0:
            raise ConfigurationError(f"n_bins must be positive, got {self.n_bins}")
        self.pairing = pairing
        self.backend = get_backend(backend)
        self.n_windows = n_windows
        self.require_complete = require_complete
        self.output_prefix = output_prefix
        self.reset()

    @property
    def name(self) -> str:
        """Correlation name."""
        return self.specialization.name

    def reset(self) -> None:
        """Drop any computed result."""
        self._result: CorrelationResult | None = None
        self._job: CorrelationJob | None = None

    @property
    def metadata(self) -> dict[str, Any]:
        """Description attached to the result."""
        meta: dict[str, Any] = {
            "title": self.specialization.title,
            "correlation": self.specialization.name,
            "selection_a": str(self.selection_a),
            "selection_b": str(self.selection_b),
            "n_bins": self.n_bins,
            "n_frames": self.trajectory.frame_count(),
        }
        if self.output_prefix is not None:
            meta["output_name"] = self.specialization.output_name(self.output_prefix)
        return meta

    @property
    def job(self) -> CorrelationJob:
        """The accumulation task shared by every window."""
        if self._job is None:
            sp = self.specialization
            shapes = probe_shapes(
                self.trajectory,
                sp.quantity_a,
                sp.quantity_b,
                sp.combine,
                self.selection_a,
                self.selection_b,
            )
            self._job = CorrelationJob(
                trajectory=self.trajectory,
                quantity_a=sp.quantity_a,
                quantity_b=sp.quantity_b,
                combine=sp.combine,
                selection_a=self.selection_a,
                selection_b=self.selection_b,
                n_bins=self.n_bins,
                pairing=self.pairing,
                shapes=shapes,
            )
        return self._job

    def decomposition(self) -> FrameDecomposition:
        """Frame windows for this run."""
        n_windows = self.n_windows or self.backend.n_workers
        return FrameDecomposition(self.trajectory.frame_count(), self.n_bins, n_windows)

    def compute_partial(self, window: FrameWindow | tuple[int, int]) -> AccumulatorState:
        """Accumulate one window of origin frames."""
        if isinstance(window, tuple):
            start, stop = window
            window = FrameWindow(rank=0, start=start, stop=stop, halo_stop=stop)
        return self.job(window)

    def _empty_state(self) -> AccumulatorState:
        shape_a, shape_b, shape_r = self.job.shapes
        return AccumulatorState.empty(
            self.n_bins,
            combine_key(self.specialization.combine),
            shape_r,
            shape_a,
            shape_b,
            self.trajectory.frame_count(),
        )

    def run(self) -> CorrelationResult:
        """
        Compute the correlation function.

        Returns:
            Normalized CorrelationResult.

        Raises:
            ConfigurationError: On inconsistent setup or incompatible partials.
            DataError: If an extractor reads a particle outside its selection.
        """
        decomp = self.decomposition()
        logger.info(
            "%s: %d frames, %d bins, %d windows on %s backend",
            self.specialization.title,
            self.trajectory.frame_count(),
            self.n_bins,
            len(decomp),
            self.backend.name,
        )

        try:
            template = self._empty_state()
            partials = self.backend.map_windows(self.job, decomp.windows)
            local = merge_states([template, *partials])
        except Exception:
            logger.error("correlation run aborted on rank %d", self.backend.rank)
            self.backend.abort()
            raise

        merged = self.backend.reduce_state(local)
        self._result = normalize(
            merged,
            self.specialization.combine,
            frame_interval=self.trajectory.frame_interval,
            metadata=self.metadata,
            require_complete=self.require_complete,
        )
        logger.info(
            "%s: %d pairs accumulated",
            self.specialization.title,
            int(merged.counts.sum()),
        )
        return self._result

    def result(self) -> CorrelationResult:
        """Return the result, computing it on first access."""
        if self._result is None:
            return self.run()
        return self._result


def correlate(
    trajectory: Trajectory,
    config: CorrelationConfig,
    selection_a: Selection,
    selection_b: Selection | None = None,
) -> CorrelationResult:
    """
    Run a correlation function described by a configuration.

    Args:
        trajectory: Trajectory to analyze.
        config: Run configuration.
        selection_a: Particles sampled on side A.
        selection_b: Particles sampled on side B. Defaults to selection_a.

    Returns:
        Normalized CorrelationResult.
    """
    backend = backend_from_config(config)

    cf = CrossCorrelationFunction(
        trajectory,
        config.correlation,
        selection_a,
        selection_b,
        n_bins=config.n_bins,
        pairing=config.pairing,
        backend=backend,
        n_windows=config.n_windows,
        require_complete=config.require_complete,
        output_prefix=config.output_prefix,
    )
    return cf.run()
