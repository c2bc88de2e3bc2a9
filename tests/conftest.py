"""Pytest configuration for renderer tests.

This module provides shared fixtures for all test modules, including
Taichi initialization which must happen once per session.
"""

import pytest
import taichi as ti


@pytest.fixture(scope="session", autouse=True)
def init_taichi_session():
    """Initialize Taichi once for the entire test session.

    Using session scope prevents multiple ti.init() calls which can cause
    segmentation faults due to Taichi runtime conflicts.
    """
    ti.init(arch=ti.cpu, random_seed=42)
    yield


@pytest.fixture(autouse=True)
def clear_all_scene_data():
    """Clear every registry and the render target before and after each test."""
    # Import here so Taichi is initialized before fields are declared
    from src.marcher.core.integrator import reset_render_target, set_background
    from src.marcher.estimators.dispatch import clear_estimators
    from src.marcher.geometry.marcher import clear_geometries
    from src.marcher.materials.blinn_phong import clear_lights, clear_materials
    from src.marcher.scene.intersection import clear_objects

    def _clear_all():
        clear_objects()
        clear_geometries()
        clear_estimators()
        clear_materials()
        clear_lights()
        reset_render_target()
        set_background((0.0, 0.0, 0.0))

    _clear_all()
    yield
    _clear_all()


@pytest.fixture
def julia_geometry_id():
    """Register the reference Julia geometry and return its ID."""
    from src.marcher.estimators.julia import JuliaEstimator
    from src.marcher.geometry.marcher import Geometry, add_geometry

    return add_geometry(
        Geometry(
            estimator=JuliaEstimator(c=(-0.2, 0.6, 0.2, 0.2), iterations=8),
            max_steps=64,
            epsilon=1e-4,
            cutoff=100.0,
        )
    )


@pytest.fixture
def front_viewport():
    """Camera at (0, 0, -5) looking down +z with a 3 x 2 viewport."""
    from src.marcher.camera.viewport import Viewport

    return Viewport(
        position=(0.0, 0.0, -5.0),
        facing=(0.0, 0.0, 1.0),
        right=(-1.0, 0.0, 0.0),
        width=3.0,
        height=2.0,
        focal_len=2.0,
    )
