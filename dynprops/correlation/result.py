"""Normalized correlation results."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any

import numpy as np
from numpy.typing import NDArray


@dataclass(frozen=True)
class CorrelationResult:
    """
    Immutable correlation curve.

    Attributes:
        values: Connected correlation per lag, shape (n_bins, *result_shape).
        counts: Number of pairs behind each lag, shape (n_bins,). A zero count
            marks a lag with no data; its value is the zero element.
        frame_interval: Time between frames, used to convert lags to times.
        metadata: Free-form description (title, selections, output name).
    """

    values: NDArray[np.floating]
    counts: NDArray[np.int64]
    frame_interval: float = 1.0
    metadata: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        """Validate shapes and make arrays read-only."""
        values = np.array(self.values, dtype=np.float64)
        counts = np.array(self.counts, dtype=np.int64)
        if counts.ndim != 1 or len(values) != len(counts):
            raise ValueError(
                f"values {values.shape} and counts {counts.shape} disagree on n_bins"
            )
        values.flags.writeable = False
        counts.flags.writeable = False
        object.__setattr__(self, "values", values)
        object.__setattr__(self, "counts", counts)

    @property
    def n_bins(self) -> int:
        """Number of time-lag bins."""
        return len(self.counts)

    @property
    def lags(self) -> NDArray[np.int64]:
        """Lag indices 0..n_bins-1."""
        return np.arange(self.n_bins, dtype=np.int64)

    @property
    def times(self) -> NDArray[np.floating]:
        """Physical times tau * frame_interval."""
        return self.lags * self.frame_interval

    @property
    def result_shape(self) -> tuple[int, ...]:
        """Shape of one correlation value."""
        return tuple(self.values.shape[1:])

    @property
    def title(self) -> str:
        """Correlation function title."""
        return str(self.metadata.get("title", "Correlation Function"))

    def has_data(self) -> NDArray[np.bool_]:
        """Mask of lags backed by at least one pair."""
        return self.counts > 0

    def records(self) -> list[tuple[float, NDArray[np.floating]]]:
        """Return (time, value) records in lag order."""
        return [(float(t), v) for t, v in zip(self.times, self.values)]

    def __len__(self) -> int:
        return self.n_bins

    def __iter__(self) -> Iterator[tuple[float, NDArray[np.floating]]]:
        return iter(self.records())
