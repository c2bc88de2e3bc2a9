"""Distance estimator module.

Components:
    base: EstimatorType tag and the host-side Estimator protocol
    julia: Quaternion Julia set estimator
    dispatch: Tag-based dispatch used by the sphere tracer

Each estimator stores its parameters in Taichi fields (one registry per
estimator type) and exposes a ``@ti.func`` evaluating the distance bound.
"""

from .base import Estimator, EstimatorType
from .dispatch import (
    clear_estimators,
    estimate_distance,
    evaluate_estimator,
    register_estimator,
)
from .julia import (
    ESCAPE_RADIUS_SQUARED,
    MAX_JULIA_ESTIMATORS,
    JuliaEstimator,
    add_julia_estimator,
    clear_julia_estimators,
    get_julia_estimator_count,
    julia_distance,
)

__all__ = [
    "Estimator",
    "EstimatorType",
    "estimate_distance",
    "evaluate_estimator",
    "register_estimator",
    "clear_estimators",
    "JuliaEstimator",
    "julia_distance",
    "add_julia_estimator",
    "clear_julia_estimators",
    "get_julia_estimator_count",
    "ESCAPE_RADIUS_SQUARED",
    "MAX_JULIA_ESTIMATORS",
]
