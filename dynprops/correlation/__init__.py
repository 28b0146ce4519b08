"""
Two-point time-correlation engine.

The engine is generic over the sampled quantities and the combine operator;
a Specialization plugs concrete choices into it.
"""

from .accumulator import (
    AccumulatorState,
    CorrelationAccumulator,
    pair_by_identity,
    pair_by_rank,
)
from .combine import dot_product, elementwise_product, outer_product, scalar_product
from .correlator import CrossCorrelationFunction, correlate
from .extractors import PropertyExtractor
from .normalize import normalize
from .reduce import merge_states
from .result import CorrelationResult
from .specializations import (
    FORCE_AUTO,
    FORCE_TORQUE,
    SPECIALIZATIONS,
    TORQUE_AUTO,
    VELOCITY,
    Specialization,
    get_specialization,
)
from .store import FrameSample, FrameSampleStore, RunningMean

__all__ = [
    # Storage
    "FrameSample",
    "FrameSampleStore",
    "RunningMean",
    "PropertyExtractor",
    # Combine operators
    "scalar_product",
    "dot_product",
    "outer_product",
    "elementwise_product",
    # Engine
    "AccumulatorState",
    "CorrelationAccumulator",
    "pair_by_rank",
    "pair_by_identity",
    "normalize",
    "merge_states",
    "CorrelationResult",
    # Specializations
    "Specialization",
    "SPECIALIZATIONS",
    "FORCE_TORQUE",
    "FORCE_AUTO",
    "TORQUE_AUTO",
    "VELOCITY",
    "get_specialization",
    # Driver
    "CrossCorrelationFunction",
    "correlate",
]
