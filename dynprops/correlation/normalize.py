"""Conversion of accumulated sums into connected correlation values."""

from __future__ import annotations

from typing import Any

import numpy as np

from ..errors import ConfigurationError
from .accumulator import AccumulatorState
from .combine import Combine, combine_key
from .result import CorrelationResult


def normalize(
    state: AccumulatorState,
    combine: Combine,
    frame_interval: float = 1.0,
    metadata: dict[str, Any] | None = None,
    require_complete: bool = False,
) -> CorrelationResult:
    """
    Normalize an accumulator state.

    For every lag with data:

        C(tau) = sums[tau] / counts[tau] - combine(<A>, <B>)

    Lags without data keep the zero element and a zero count.

    Args:
        state: Merged accumulator state.
        combine: Combine operator the state was built with; also used for
            the correlation of averages so both terms share a shape.
        frame_interval: Time between frames.
        metadata: Description attached to the result.
        require_complete: Require every frame to be owned by exactly one
            partial state.

    Returns:
        CorrelationResult.

    Raises:
        ConfigurationError: If the operator does not match the state, a side
            never matched any particle, or coverage is incomplete.
    """
    key = combine_key(combine)
    if key != state.combine_key:
        raise ConfigurationError(
            f"state was built with {state.combine_key}, cannot normalize with {key}"
        )
    if require_complete and not np.all(state.coverage == 1):
        missing = np.flatnonzero(state.coverage == 0)
        doubled = np.flatnonzero(state.coverage > 1)
        raise ConfigurationError(
            f"frame coverage incomplete: {len(missing)} frames missing, "
            f"{len(doubled)} frames counted more than once"
        )

    mean_a = state.mean_a.mean("A")
    mean_b = state.mean_b.mean("B")
    correlation_of_averages = np.asarray(combine(mean_a, mean_b), dtype=np.float64)
    if correlation_of_averages.shape != state.result_shape:
        raise ConfigurationError(
            f"correlation of averages has shape {correlation_of_averages.shape}, "
            f"bins have {state.result_shape}"
        )

    values = np.zeros_like(state.sums)
    mask = state.counts > 0
    divisor = state.counts[mask].reshape((-1,) + (1,) * len(state.result_shape))
    values[mask] = state.sums[mask] / divisor - correlation_of_averages

    return CorrelationResult(
        values=values,
        counts=state.counts.copy(),
        frame_interval=frame_interval,
        metadata=dict(metadata or {}),
    )
