"""Merging of partial accumulator states."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from functools import reduce

import numpy as np

from ..errors import ConfigurationError
from .accumulator import AccumulatorState

logger = logging.getLogger(__name__)


def _check_compatible(a: AccumulatorState, b: AccumulatorState) -> None:
    if a.n_bins != b.n_bins:
        raise ConfigurationError(
            f"cannot merge states with n_bins={a.n_bins} and n_bins={b.n_bins}"
        )
    if a.combine_key != b.combine_key:
        raise ConfigurationError(
            f"cannot merge states built with {a.combine_key} and {b.combine_key}"
        )
    if a.result_shape != b.result_shape:
        raise ConfigurationError(
            f"cannot merge results of shape {a.result_shape} and {b.result_shape}"
        )
    if a.n_frames != b.n_frames:
        raise ConfigurationError(
            f"cannot merge states over {a.n_frames} and {b.n_frames} frames"
        )


def merge_pair(a: AccumulatorState, b: AccumulatorState) -> AccumulatorState:
    """
    Merge two states into a new one.

    Sums, counts, running means and coverage are added element-wise; the
    inputs are left untouched.

    Raises:
        ConfigurationError: If the states are structurally incompatible or
            own a common frame.
    """
    _check_compatible(a, b)
    coverage = a.coverage + b.coverage
    overlap = np.flatnonzero(coverage > 1)
    if overlap.size:
        raise ConfigurationError(
            f"partial states overlap on {overlap.size} origin frames "
            f"(first: {int(overlap[0])}); frame pairs would be double-counted"
        )
    return AccumulatorState(
        n_bins=a.n_bins,
        combine_key=a.combine_key,
        sums=a.sums + b.sums,
        counts=a.counts + b.counts,
        mean_a=a.mean_a.merge(b.mean_a),
        mean_b=a.mean_b.merge(b.mean_b),
        coverage=coverage,
    )


def merge_states(states: Iterable[AccumulatorState]) -> AccumulatorState:
    """
    Merge partial states computed over disjoint frame windows.

    Merging is associative and commutative up to floating-point summation
    order.

    Args:
        states: Partial states, at least one.

    Returns:
        Combined state.

    Raises:
        ConfigurationError: If no state is given or any two are incompatible.
    """
    states = list(states)
    if not states:
        raise ConfigurationError("no partial states to merge")

    merged = reduce(merge_pair, states)
    logger.debug(
        "merged %d partial states: %d pairs over %d origin frames",
        len(states),
        int(merged.counts.sum()),
        int(merged.coverage.sum()),
    )
    return merged
