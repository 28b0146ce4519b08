"""Run configuration for correlation functions."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import asdict, dataclass, fields
from typing import Any

from .errors import ConfigurationError


@dataclass(frozen=True)
class CorrelationConfig:
    """
    Settings for one correlation run.

    Attributes:
        correlation: Name of a built-in correlation function.
        n_bins: Number of time-lag bins; None means one per frame.
        pairing: "rank" (slot i with slot i) or "identity" (same particle id).
        backend: Parallel backend name.
        n_workers: Worker processes for the multiprocessing backend.
        n_windows: Frame windows; None means one per worker.
        require_complete: Require every frame to be covered exactly once.
        output_prefix: Prefix for the output file name.
    """

    correlation: str = "force_torque"
    n_bins: int | None = None
    pairing: str = "rank"
    backend: str = "serial"
    n_workers: int | None = None
    n_windows: int | None = None
    require_complete: bool = True
    output_prefix: str | None = None

    def __post_init__(self) -> None:
        """Validate settings."""
        from .correlation.accumulator import PAIRINGS
        from .correlation.specializations import SPECIALIZATIONS
        from .parallel.dispatcher import BACKENDS

        if self.correlation not in SPECIALIZATIONS:
            raise ConfigurationError(
                f"Unknown correlation: {self.correlation}. "
                f"Available: {', '.join(SPECIALIZATIONS)}"
            )
        if self.n_bins is not None and self.n_bins <= 0:
            raise ConfigurationError(f"n_bins must be positive, got {self.n_bins}")
        if self.pairing not in PAIRINGS:
            raise ConfigurationError(
                f"Unknown pairing: {self.pairing}. Available: {', '.join(PAIRINGS)}"
            )
        if self.backend not in BACKENDS:
            raise ConfigurationError(
                f"Unknown backend: {self.backend}. Available: {', '.join(BACKENDS)}"
            )
        if self.n_workers is not None and self.n_workers <= 0:
            raise ConfigurationError(f"n_workers must be positive, got {self.n_workers}")
        if self.n_windows is not None and self.n_windows <= 0:
            raise ConfigurationError(f"n_windows must be positive, got {self.n_windows}")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> CorrelationConfig:
        """
        Build a configuration from a mapping.

        Raises:
            ConfigurationError: If the mapping has unknown keys.
        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigurationError(f"Unknown configuration keys: {unknown}")
        return cls(**dict(data))

    def to_dict(self) -> dict[str, Any]:
        """Return settings as a plain dictionary."""
        return asdict(self)
