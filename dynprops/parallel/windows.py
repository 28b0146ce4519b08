"""Frame-window decomposition for parallel correlation runs."""

from __future__ import annotations

from dataclasses import dataclass

from ..errors import ConfigurationError


@dataclass(frozen=True)
class FrameWindow:
    """
    A contiguous block of origin frames owned by one worker.

    Frame pairs starting in the window may end up to ``n_bins - 1`` frames
    past it; those halo frames belong to the next window and are only read.

    Attributes:
        rank: Worker that owns this window.
        start: First origin frame.
        stop: One past the last origin frame.
        halo_stop: One past the last frame read from the halo.
    """

    rank: int
    start: int
    stop: int
    halo_stop: int

    @property
    def n_origins(self) -> int:
        """Number of owned origin frames."""
        return self.stop - self.start

    @property
    def n_halo(self) -> int:
        """Number of halo frames."""
        return self.halo_stop - self.stop

    @property
    def frames(self) -> range:
        """Owned origin frames."""
        return range(self.start, self.stop)

    @property
    def halo_frames(self) -> range:
        """Frames read past the window."""
        return range(self.stop, self.halo_stop)

    def contains(self, frame_index: int) -> bool:
        """Check if a frame is an owned origin."""
        return self.start <= frame_index < self.stop

    def as_tuple(self) -> tuple[int, int]:
        """Return (start, stop)."""
        return self.start, self.stop


class FrameDecomposition:
    """
    Split a trajectory's origin frames into contiguous, disjoint windows.

    Windows are balanced the same way atoms are spread over workers: the
    first ``n_frames % n_windows`` windows get one extra frame.

    Example:
        decomp = FrameDecomposition(n_frames=1000, n_bins=100, n_windows=4)
        for window in decomp.windows:
            print(window.start, window.stop, window.halo_stop)
    """

    def __init__(self, n_frames: int, n_bins: int, n_windows: int) -> None:
        """
        Initialize decomposition.

        Args:
            n_frames: Total number of frames.
            n_bins: Number of time-lag bins (sets the halo width).
            n_windows: Number of windows, usually the number of workers.
        """
        if n_frames < 0:
            raise ConfigurationError(f"n_frames must be non-negative, got {n_frames}")
        if n_bins <= 0:
            raise ConfigurationError(f"n_bins must be positive, got {n_bins}")
        if n_windows <= 0:
            raise ConfigurationError(f"n_windows must be positive, got {n_windows}")

        self.n_frames = n_frames
        self.n_bins = n_bins
        self.n_windows = n_windows
        self._windows = self._create_windows()

    def _create_windows(self) -> list[FrameWindow]:
        per_window = self.n_frames // self.n_windows
        remainder = self.n_frames % self.n_windows

        windows = []
        for rank in range(self.n_windows):
            if rank < remainder:
                start = rank * (per_window + 1)
                stop = start + per_window + 1
            else:
                start = rank * per_window + remainder
                stop = start + per_window

            halo_stop = min(stop + self.n_bins - 1, self.n_frames) if stop > start else stop
            windows.append(FrameWindow(rank=rank, start=start, stop=stop, halo_stop=halo_stop))
        return windows

    @property
    def windows(self) -> list[FrameWindow]:
        """All windows in rank order."""
        return list(self._windows)

    def window_for_rank(self, rank: int) -> FrameWindow:
        """Return the window owned by a rank."""
        return self._windows[rank]

    def __len__(self) -> int:
        return len(self._windows)

    def __iter__(self):
        return iter(self._windows)
