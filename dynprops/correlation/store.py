"""Per-frame sample storage and running means."""

from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np
from numpy.typing import ArrayLike, NDArray

from ..errors import ConfigurationError, DataError


@dataclass(frozen=True)
class FrameSample:
    """
    Values extracted for one side in one frame.

    Attributes:
        ids: Particle ids in extraction order, shape (n,).
        values: Extracted values, shape (n, *value_shape).
    """

    ids: NDArray[np.int64]
    values: NDArray[np.floating]

    def __post_init__(self) -> None:
        """Make arrays read-only."""
        self.ids.flags.writeable = False
        self.values.flags.writeable = False

    def __len__(self) -> int:
        return len(self.ids)


class _OpenSample:
    """Mutable sample for a frame whose pass is still running."""

    __slots__ = ("ids", "values", "seen")

    def __init__(self) -> None:
        self.ids: list[int] = []
        self.values: list[NDArray[np.floating]] = []
        self.seen: set[int] = set()


class FrameSampleStore:
    """
    Dense per-frame storage for one side of a correlation.

    Storage is a list sized to the trajectory length up front. A frame's
    sample is created the first time a value is appended, becomes an
    immutable FrameSample when sealed, and is dropped on release.
    """

    def __init__(self, n_frames: int) -> None:
        """
        Initialize store.

        Args:
            n_frames: Total number of frames in the trajectory.
        """
        if n_frames < 0:
            raise ValueError("n_frames must be non-negative")
        self.n_frames = n_frames
        self._samples: list[_OpenSample | FrameSample | None] = [None] * n_frames

    def _check_frame(self, frame_index: int) -> None:
        if not 0 <= frame_index < self.n_frames:
            raise IndexError(
                f"frame {frame_index} outside store of {self.n_frames} frames"
            )

    def append(self, frame_index: int, particle_id: int, value: ArrayLike) -> int:
        """
        Append a value to a frame's sample.

        Returns:
            Slot index of the value within the frame.

        Raises:
            DataError: If the frame is sealed or the particle was already stored.
        """
        self._check_frame(frame_index)
        sample = self._samples[frame_index]
        if isinstance(sample, FrameSample):
            raise DataError(frame_index, particle_id, "frame already sealed")
        if sample is None:
            sample = _OpenSample()
            self._samples[frame_index] = sample
        if particle_id in sample.seen:
            raise DataError(frame_index, particle_id, "extracted twice")

        sample.seen.add(particle_id)
        sample.ids.append(particle_id)
        sample.values.append(np.asarray(value, dtype=np.float64))
        return len(sample.ids) - 1

    def seal(self, frame_index: int, value_shape: tuple[int, ...] = ()) -> FrameSample:
        """
        Finish a frame's pass and freeze its sample.

        Args:
            frame_index: Frame to seal.
            value_shape: Shape of a single value; used for empty frames.

        Returns:
            The immutable sample.
        """
        self._check_frame(frame_index)
        sample = self._samples[frame_index]
        if isinstance(sample, FrameSample):
            return sample

        if sample is None or not sample.ids:
            frozen = FrameSample(
                ids=np.empty(0, dtype=np.int64),
                values=np.empty((0, *value_shape), dtype=np.float64),
            )
        else:
            frozen = FrameSample(
                ids=np.asarray(sample.ids, dtype=np.int64),
                values=np.stack(sample.values),
            )
        self._samples[frame_index] = frozen
        return frozen

    def get(self, frame_index: int) -> FrameSample:
        """
        Return a sealed sample.

        Raises:
            KeyError: If the frame has not been sealed.
        """
        self._check_frame(frame_index)
        sample = self._samples[frame_index]
        if not isinstance(sample, FrameSample):
            raise KeyError(f"frame {frame_index} has no sealed sample")
        return sample

    def is_sealed(self, frame_index: int) -> bool:
        """Check whether a frame's pass has completed."""
        self._check_frame(frame_index)
        return isinstance(self._samples[frame_index], FrameSample)

    def release(self, frame_index: int) -> None:
        """Drop a frame's sample."""
        self._check_frame(frame_index)
        self._samples[frame_index] = None

    def clear(self) -> None:
        """Drop every sample, keeping the allocation."""
        self._samples = [None] * self.n_frames

    @property
    def n_resident(self) -> int:
        """Number of frames currently holding a sample."""
        return sum(s is not None for s in self._samples)


@dataclass
class RunningMean:
    """
    Accumulated sum and count of every value extracted for one side.

    Used only for the correlation-of-averages correction.
    """

    total: NDArray[np.floating] = field(
        default_factory=lambda: np.zeros((), dtype=np.float64)
    )
    count: int = 0

    def add(self, value: ArrayLike) -> None:
        """Add one value."""
        self.total = self.total + np.asarray(value, dtype=np.float64)
        self.count += 1

    def merge(self, other: RunningMean) -> RunningMean:
        """Return the combination of two running means."""
        return RunningMean(total=self.total + other.total, count=self.count + other.count)

    def mean(self, side: str = "") -> NDArray[np.floating]:
        """
        Return the average value.

        Raises:
            ConfigurationError: If no value was ever added.
        """
        if self.count == 0:
            label = f"selection {side}" if side else "a selection"
            raise ConfigurationError(
                f"{label} matched no particles in the whole trajectory; "
                "its mean is undefined"
            )
        return self.total / float(self.count)

    @classmethod
    def zeros(cls, value_shape: tuple[int, ...]) -> RunningMean:
        """Create an empty running mean for values of a given shape."""
        return cls(total=np.zeros(value_shape, dtype=np.float64), count=0)
