"""Estimator dispatch by type tag.

The sphere tracer calls ``estimate_distance`` with the (type, index) pair
stored for a geometry and never touches estimator-specific fields.
"""

import taichi as ti

from src.marcher.core.ray import vec3
from src.marcher.estimators.base import Estimator, EstimatorType
from src.marcher.estimators.julia import clear_julia_estimators, julia_distance_by_id


@ti.func
def estimate_distance(
    estimator_type: ti.i32,
    estimator_index: ti.i32,
    position: vec3,
    fallback: float,
) -> float:
    """Evaluate the estimator identified by (estimator_type, estimator_index).

    Args:
        estimator_type: The EstimatorType tag as an integer.
        estimator_index: The type-local registry index.
        position: The point to evaluate.
        fallback: Distance returned for undefined estimates and unknown tags.

    Returns:
        A lower bound on the distance from position to the surface.
    """
    distance = fallback
    if estimator_type == int(EstimatorType.JULIA):
        distance = julia_distance_by_id(estimator_index, position, fallback)
    return distance


def register_estimator(estimator: Estimator) -> tuple[EstimatorType, int]:
    """Register an estimator in its type-specific registry.

    Args:
        estimator: Any object implementing the Estimator protocol.

    Returns:
        Tuple of (estimator_type, type_index) used for dispatch.
    """
    index = estimator.register()
    return estimator.estimator_type, index


def clear_estimators() -> None:
    """Clear every estimator registry."""
    clear_julia_estimators()


@ti.kernel
def _evaluate_kernel(
    estimator_type: ti.i32,
    estimator_index: ti.i32,
    x: float,
    y: float,
    z: float,
    fallback: float,
) -> float:
    return estimate_distance(estimator_type, estimator_index, vec3(x, y, z), fallback)


def evaluate_estimator(
    estimator_type: int,
    estimator_index: int,
    position: tuple[float, float, float],
    fallback: float = float("inf"),
) -> float:
    """Evaluate a registered estimator at a single point from Python.

    This is a Python-callable function for testing and inspection. Rendering
    evaluates estimators inside kernels.

    Args:
        estimator_type: The EstimatorType tag.
        estimator_index: The type-local registry index.
        position: The point to evaluate as (x, y, z).
        fallback: Distance returned for undefined estimates.

    Returns:
        The distance estimate.
    """
    return float(
        _evaluate_kernel(
            int(estimator_type),
            int(estimator_index),
            float(position[0]),
            float(position[1]),
            float(position[2]),
            float(fallback),
        )
    )
