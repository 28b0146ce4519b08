"""Particle selections evaluated frame by frame."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np
from numpy.typing import NDArray

if TYPE_CHECKING:
    from .frame import Frame

Predicate = Callable[["Frame", int], bool]


class _AllParticles:
    """Predicate matching every particle."""

    def __call__(self, frame: Frame, particle_id: int) -> bool:
        return True

    def __repr__(self) -> str:
        return "all"


class _ParticleIds:
    """Predicate matching a fixed set of particle ids."""

    def __init__(self, ids: Iterable[int]) -> None:
        self.ids = frozenset(int(i) for i in ids)

    def __call__(self, frame: Frame, particle_id: int) -> bool:
        return int(particle_id) in self.ids

    def __repr__(self) -> str:
        return "select " + " ".join(str(i) for i in sorted(self.ids))


@dataclass(frozen=True)
class Selection:
    """
    Predicate-defined subset of particles.

    The predicate is evaluated per (frame, particle id), so membership may
    change from frame to frame. Matching ids are returned in frame order,
    which defines the within-frame index used by the extractors.

    ``expression`` is a human-readable label written into output headers;
    it is never parsed.

    Note:
        Selections sent to the multiprocessing backend must be picklable;
        use module-level functions rather than lambdas for ``where``.
    """

    predicate: Predicate
    expression: str = ""

    @classmethod
    def all(cls) -> Selection:
        """Select every particle in every frame."""
        return cls(_AllParticles(), "all")

    @classmethod
    def ids(cls, ids: Iterable[int]) -> Selection:
        """Select a fixed set of particle ids."""
        predicate = _ParticleIds(ids)
        return cls(predicate, repr(predicate))

    @classmethod
    def where(cls, predicate: Predicate, expression: str | None = None) -> Selection:
        """Select particles for which ``predicate(frame, particle_id)`` holds."""
        if expression is None:
            expression = getattr(predicate, "__name__", repr(predicate))
        return cls(predicate, expression)

    def contains(self, frame: Frame, particle_id: int) -> bool:
        """Check whether a particle belongs to the selection in a frame."""
        return frame.has_particle(particle_id) and bool(
            self.predicate(frame, int(particle_id))
        )

    def evaluate(self, frame: Frame) -> NDArray[np.int64]:
        """
        Evaluate the selection on one frame.

        Returns:
            Matching particle ids in frame order.
        """
        matches = [
            int(pid) for pid in frame.particle_ids if self.predicate(frame, int(pid))
        ]
        return np.asarray(matches, dtype=np.int64)

    def __str__(self) -> str:
        return self.expression
