"""
Bilinear combine operators.

Each operator takes one A value and one B value and returns the correlation
contribution. Operators broadcast over any leading batch axes, so the same
function handles a single pair and a stack of pairs:

    >>> outer_product(np.ones(3), np.arange(3)).shape
    (3, 3)
    >>> outer_product(np.ones((10, 3)), np.ones((10, 3))).shape
    (10, 3, 3)
"""

from __future__ import annotations

import functools
from collections.abc import Callable

import numpy as np
from numpy.typing import NDArray

Combine = Callable[[NDArray[np.floating], NDArray[np.floating]], NDArray[np.floating]]


def scalar_product(a: NDArray[np.floating], b: NDArray[np.floating]) -> NDArray[np.floating]:
    """Product of two scalar quantities."""
    return np.multiply(a, b)


def dot_product(a: NDArray[np.floating], b: NDArray[np.floating]) -> NDArray[np.floating]:
    """Dot product of two vectors over the last axis."""
    return np.einsum("...i,...i->...", a, b)


def outer_product(a: NDArray[np.floating], b: NDArray[np.floating]) -> NDArray[np.floating]:
    """Outer product of two vectors, a_i b_j."""
    return np.einsum("...i,...j->...ij", a, b)


def elementwise_product(
    a: NDArray[np.floating], b: NDArray[np.floating]
) -> NDArray[np.floating]:
    """Component-wise product of two vectors."""
    return np.multiply(a, b)


def combine_key(combine: Combine) -> str:
    """
    Stable identity of a combine operator.

    Two partial results can only be merged when they were built with the
    same operator. Module-level functions are keyed by name, so the key
    survives pickling across processes. Lambdas and closures share a
    qualified name between instances and cannot be pickled, so their key
    also carries the object identity. Partials are keyed by the wrapped
    function and the bound arguments.
    """
    if isinstance(combine, functools.partial):
        return f"{combine_key(combine.func)}{combine.args!r}{sorted(combine.keywords.items())!r}"
    module = getattr(combine, "__module__", None) or type(combine).__module__
    name = getattr(combine, "__qualname__", None) or type(combine).__qualname__
    key = f"{module}:{name}"
    if "<locals>" in name or "<lambda>" in name:
        key = f"{key}@{id(combine):#x}"
    return key
