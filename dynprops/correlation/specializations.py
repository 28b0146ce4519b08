"""Concrete correlation functions built on the generic engine."""

from __future__ import annotations

from dataclasses import dataclass

from ..errors import ConfigurationError
from .combine import Combine, dot_product, outer_product
from .extractors import Quantity, body_force, body_torque, velocity


@dataclass(frozen=True)
class Specialization:
    """
    A physical correlation: two quantities, a combine operator and naming.

    Attributes:
        name: Registry key.
        title: Human-readable title written to output headers.
        quantity_a: Quantity sampled on side A.
        quantity_b: Quantity sampled on side B.
        combine: Bilinear combine operator.
        suffix: Output file suffix.
    """

    name: str
    title: str
    quantity_a: Quantity
    quantity_b: Quantity
    combine: Combine
    suffix: str

    def output_name(self, prefix: str) -> str:
        """Return the output file name for a dump file prefix."""
        return f"{prefix}{self.suffix}"

    @property
    def is_auto(self) -> bool:
        """Whether both sides sample the same quantity."""
        return self.quantity_a is self.quantity_b


FORCE_TORQUE = Specialization(
    name="force_torque",
    title="Force - Torque Correlation Function",
    quantity_a=body_force,
    quantity_b=body_torque,
    combine=outer_product,
    suffix=".ftcorr",
)

FORCE_AUTO = Specialization(
    name="force_auto",
    title="Force Auto Correlation Function",
    quantity_a=body_force,
    quantity_b=body_force,
    combine=outer_product,
    suffix=".facorr",
)

TORQUE_AUTO = Specialization(
    name="torque_auto",
    title="Torque Auto Correlation Function",
    quantity_a=body_torque,
    quantity_b=body_torque,
    combine=outer_product,
    suffix=".tacorr",
)

VELOCITY = Specialization(
    name="velocity",
    title="Velocity Correlation Function",
    quantity_a=velocity,
    quantity_b=velocity,
    combine=dot_product,
    suffix=".vcorr",
)

SPECIALIZATIONS: dict[str, Specialization] = {
    s.name: s for s in (FORCE_TORQUE, FORCE_AUTO, TORQUE_AUTO, VELOCITY)
}


def get_specialization(name: str | Specialization) -> Specialization:
    """
    Look up a built-in correlation function.

    Raises:
        ConfigurationError: If the name is unknown.
    """
    if isinstance(name, Specialization):
        return name
    try:
        return SPECIALIZATIONS[name]
    except KeyError:
        raise ConfigurationError(
            f"Unknown correlation: {name}. Available: {', '.join(SPECIALIZATIONS)}"
        ) from None
