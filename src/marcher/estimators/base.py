"""Distance estimator interface.

A distance estimator maps a 3D point to a lower bound on the distance to an
implicit surface. The sphere tracer is written against this interface only:
at the scene-description boundary each estimator is a tagged variant
(EstimatorType), and inside kernels the tag selects the matching
``@ti.func`` through ``estimate_distance`` in the dispatch module.

Adding an estimator variant means:
    1. a new EstimatorType member,
    2. a module with a host dataclass implementing the Estimator protocol and
       a field registry for its parameters,
    3. one branch in ``estimators.dispatch.estimate_distance``.
"""

from enum import IntEnum
from typing import Protocol


class EstimatorType(IntEnum):
    """Enumeration of supported distance estimators.

    Used for estimator dispatch in the sphere tracer.
    """

    JULIA = 0


class Estimator(Protocol):
    """Host-side description of a distance estimator.

    Implementations are immutable value objects. ``register`` copies the
    parameters into the estimator's Taichi field registry and returns the
    type-local index used for dispatch.
    """

    @property
    def estimator_type(self) -> EstimatorType: ...

    def register(self) -> int: ...

    def to_config(self) -> dict: ...
