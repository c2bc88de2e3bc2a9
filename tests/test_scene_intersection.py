"""Tests for closest-hit queries across scene objects.

Note: Imports are done inside test methods to avoid Taichi initialization issues.
The conftest.py fixture initializes Taichi before tests run.
"""

import math

import pytest

ORIGIN = (0.0, 0.0, -5.0)
FORWARD = (0.0, 0.0, 1.0)


def _unit_ball_geometry(**kwargs):
    from src.marcher.estimators.julia import JuliaEstimator
    from src.marcher.geometry.marcher import Geometry, add_geometry

    return add_geometry(Geometry(estimator=JuliaEstimator(c=(0.0, 0.0, 0.0, 0.0), iterations=4), **kwargs))


class TestSceneObjects:
    """Test object registration."""

    def test_add_object(self):
        from src.marcher.scene.intersection import add_object, get_object_count

        assert add_object(geometry_id=0, material_id=3) == 0
        assert add_object(geometry_id=1, material_id=0) == 1
        assert get_object_count() == 2

    def test_clear_objects(self):
        from src.marcher.scene.intersection import add_object, clear_objects, get_object_count

        add_object(0, 0)
        clear_objects()
        assert get_object_count() == 0


class TestTraceSceneRay:
    """Test trace_scene_ray."""

    def test_empty_scene_misses(self):
        from src.marcher.scene.intersection import trace_scene_ray

        assert trace_scene_ray(ORIGIN, FORWARD) is None

    def test_hit_reports_material_and_normal(self):
        from src.marcher.scene.intersection import add_object, trace_scene_ray

        add_object(_unit_ball_geometry(), material_id=2)
        hit = trace_scene_ray(ORIGIN, FORWARD)

        assert hit is not None
        assert hit.object_id == 0
        assert hit.material_id == 2
        assert hit.t == pytest.approx(4.0, abs=0.05)
        assert math.sqrt(sum(n * n for n in hit.normal)) == pytest.approx(1.0, abs=1e-4)
        assert hit.normal[2] == pytest.approx(-1.0, abs=0.05)

    def test_objects_that_miss_are_ignored(self):
        from src.marcher.scene.intersection import add_object, trace_scene_ray

        add_object(_unit_ball_geometry(cutoff=2.0), material_id=0)
        add_object(_unit_ball_geometry(), material_id=1)
        hit = trace_scene_ray(ORIGIN, FORWARD)

        assert hit is not None
        assert hit.object_id == 1
        assert hit.material_id == 1

    def test_closest_hit_wins_regardless_of_order(self):
        """Test the object with the smaller hit distance wins even when added last."""
        from src.marcher.scene.intersection import add_object, trace_scene_ray

        add_object(_unit_ball_geometry(), material_id=0)
        # A large epsilon accepts the very first sample, at t = 0
        add_object(_unit_ball_geometry(epsilon=4.5), material_id=1)
        hit = trace_scene_ray(ORIGIN, FORWARD)

        assert hit is not None
        assert hit.object_id == 1
        assert hit.t == 0.0

    def test_equal_distances_keep_first_object(self):
        from src.marcher.scene.intersection import add_object, trace_scene_ray

        add_object(_unit_ball_geometry(), material_id=0)
        add_object(_unit_ball_geometry(), material_id=1)
        hit = trace_scene_ray(ORIGIN, FORWARD)

        assert hit is not None
        assert hit.object_id == 0

    def test_ray_beside_the_ball_misses(self):
        from src.marcher.scene.intersection import add_object, trace_scene_ray

        add_object(_unit_ball_geometry(max_steps=256), material_id=0)
        assert trace_scene_ray((2.0, 0.0, -5.0), FORWARD) is None
