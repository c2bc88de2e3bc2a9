"""Tests for the sphere tracer and normal estimation.

The unit ball (Julia set of c = 0) has a closed-form estimate r ln(r) / 2,
which makes hit positions and normals predictable.

Note: Imports are done inside test methods to avoid Taichi initialization issues.
The conftest.py fixture initializes Taichi before tests run.
"""

import math

import pytest


def _unit_ball(**kwargs):
    from src.marcher.estimators.julia import JuliaEstimator
    from src.marcher.geometry.marcher import Geometry, add_geometry

    params = {"max_steps": 64, "epsilon": 1e-4, "cutoff": 100.0}
    params.update(kwargs)
    return add_geometry(Geometry(estimator=JuliaEstimator(c=(0.0, 0.0, 0.0, 0.0), iterations=4), **params))


def _norm(v):
    return math.sqrt(sum(x * x for x in v))


class TestGeometryDescriptor:
    """Test Geometry validation."""

    def test_defaults(self):
        from src.marcher.estimators.julia import JuliaEstimator
        from src.marcher.geometry.marcher import Geometry

        geometry = Geometry(estimator=JuliaEstimator(c=(0.0, 0.0, 0.0, 0.0)))
        assert geometry.max_steps == 64
        assert geometry.sample_size == geometry.epsilon

    def test_explicit_sample_size(self):
        from src.marcher.estimators.julia import JuliaEstimator
        from src.marcher.geometry.marcher import Geometry

        geometry = Geometry(estimator=JuliaEstimator(c=(0.0, 0.0, 0.0, 0.0)), normal_sample_size=1e-3)
        assert geometry.sample_size == 1e-3

    @pytest.mark.parametrize(
        "kwargs, message",
        [
            ({"max_steps": 0}, "max_steps"),
            ({"epsilon": 0.0}, "epsilon must be positive"),
            ({"epsilon": 1.0, "cutoff": 1.0}, "smaller than cutoff"),
            ({"epsilon": 5.0, "cutoff": 2.0}, "smaller than cutoff"),
            ({"normal_sample_size": -1.0}, "normal_sample_size"),
        ],
    )
    def test_rejects_invalid_parameters(self, kwargs, message):
        from src.marcher.estimators.julia import JuliaEstimator
        from src.marcher.geometry.marcher import Geometry

        with pytest.raises(ValueError, match=message):
            Geometry(estimator=JuliaEstimator(c=(0.0, 0.0, 0.0, 0.0)), **kwargs)

    def test_to_config_includes_estimator(self):
        from src.marcher.estimators.julia import JuliaEstimator
        from src.marcher.geometry.marcher import Geometry

        config = Geometry(estimator=JuliaEstimator(c=(0.0, 0.0, 0.0, 0.0), iterations=4)).to_config()
        assert config["type"] == "julia"
        assert config["iterations"] == 4
        assert config["cutoff"] == 100.0
        assert config["sample_size"] == 1e-4


class TestGeometryRegistry:
    """Test geometry registration."""

    def test_add_geometry_registers_estimator(self):
        from src.marcher.estimators.julia import get_julia_estimator_count
        from src.marcher.geometry.marcher import get_geometry_count

        assert _unit_ball() == 0
        assert _unit_ball() == 1
        assert get_geometry_count() == 2
        assert get_julia_estimator_count() == 2

    def test_invalid_geometry_id(self):
        from src.marcher.geometry.marcher import march_ray

        with pytest.raises(ValueError, match="Invalid geometry_id"):
            march_ray(0, (0.0, 0.0, -5.0), (0.0, 0.0, 1.0))


class TestSphereTrace:
    """Test sphere tracing termination and results."""

    def test_hits_unit_ball(self):
        """Test a ray aimed at the unit ball hits near its surface."""
        from src.marcher.geometry.marcher import march_ray

        geometry_id = _unit_ball()
        result = march_ray(geometry_id, (0.0, 0.0, -5.0), (0.0, 0.0, 1.0))

        assert result.hit
        assert result.point is not None
        assert _norm(result.point) == pytest.approx(1.0, abs=0.05)
        assert result.point[2] < 0.0
        assert result.t == pytest.approx(5.0 - _norm(result.point), abs=1e-4)

    def test_hit_point_satisfies_epsilon(self):
        """Test the returned point's own estimate is at most epsilon."""
        from src.marcher.estimators.base import EstimatorType
        from src.marcher.estimators.dispatch import evaluate_estimator
        from src.marcher.geometry.marcher import march_ray

        geometry_id = _unit_ball()
        result = march_ray(geometry_id, (0.3, 0.2, -5.0), (0.0, 0.0, 1.0))

        assert result.hit
        assert evaluate_estimator(EstimatorType.JULIA, 0, result.point) <= 1e-4

    def test_ray_pointing_away_misses_at_cutoff(self):
        """Test a ray leaving the set reaches the cutoff and misses."""
        from src.marcher.geometry.marcher import march_ray

        geometry_id = _unit_ball()
        result = march_ray(geometry_id, (0.0, 0.0, -5.0), (0.0, 0.0, -1.0))

        assert not result.hit
        assert result.point is None
        assert result.t >= 100.0
        assert result.steps < 64

    def test_passing_ray_misses(self):
        """Test a ray that passes beside the ball misses."""
        from src.marcher.geometry.marcher import march_ray

        geometry_id = _unit_ball(max_steps=256)
        result = march_ray(geometry_id, (2.0, 0.0, -5.0), (0.0, 0.0, 1.0))

        assert not result.hit

    def test_step_exhaustion_is_a_miss(self):
        """Test running out of steps reports a miss, never an error."""
        from src.marcher.geometry.marcher import march_ray

        geometry_id = _unit_ball(max_steps=1)
        result = march_ray(geometry_id, (0.0, 0.0, -5.0), (0.0, 0.0, 1.0))

        assert not result.hit
        assert result.steps == 1
        assert result.t < 100.0

    def test_small_cutoff_never_returns_distant_points(self):
        """Test a surface beyond the cutoff is reported as a miss."""
        from src.marcher.geometry.marcher import march_ray

        geometry_id = _unit_ball(cutoff=2.0)
        result = march_ray(geometry_id, (0.0, 0.0, -5.0), (0.0, 0.0, 1.0))

        assert not result.hit
        assert result.t >= 2.0

    def test_start_inside_is_immediate_hit(self):
        """Test an origin inside the set (negative estimate) hits at t = 0."""
        from src.marcher.geometry.marcher import march_ray

        geometry_id = _unit_ball()
        result = march_ray(geometry_id, (0.0, 0.5, 0.0), (0.0, 0.0, 1.0))

        assert result.hit
        assert result.t == 0.0
        assert result.steps == 1

    def test_reference_julia_scenario_is_stable(self, julia_geometry_id):
        """Test the reference Julia ray hits within |p| < 5 or misses, identically each run."""
        from src.marcher.geometry.marcher import march_ray

        origin = (0.0, 0.0, -5.0)
        direction = (0.0, 0.0, 1.0)
        first = march_ray(julia_geometry_id, origin, direction)

        if first.hit:
            assert _norm(first.point) < 5.0
            assert first.t < 100.0
        else:
            assert first.point is None

        for _ in range(3):
            assert march_ray(julia_geometry_id, origin, direction) == first

    @pytest.mark.parametrize(
        "origin, direction",
        [
            ((0.0, 0.0, -5.0), (0.0, 0.0, 1.0)),
            ((0.0, 3.0, -3.0), (0.0, -0.7071068, 0.7071068)),
            ((1.0, 1.0, 1.0), (0.5773503, 0.5773503, 0.5773503)),
            ((-4.0, 0.5, 0.0), (1.0, 0.0, 0.0)),
        ],
    )
    def test_hits_stay_within_cutoff(self, julia_geometry_id, origin, direction):
        """Test hit points are never farther than the cutoff from the origin."""
        from src.marcher.geometry.marcher import march_ray

        result = march_ray(julia_geometry_id, origin, direction)
        assert result.steps <= 64
        if result.hit:
            offset = [p - o for p, o in zip(result.point, origin)]
            assert _norm(offset) < 100.0


class TestNormals:
    """Test finite-difference normal estimation."""

    def test_unit_ball_normal_is_radial(self):
        """Test the normal of the unit ball points away from the center."""
        from src.marcher.geometry.marcher import march_ray, surface_normal

        geometry_id = _unit_ball()
        result = march_ray(geometry_id, (0.0, 0.0, -5.0), (0.0, 0.0, 1.0))
        normal = surface_normal(geometry_id, result.point)

        assert normal[0] == pytest.approx(0.0, abs=0.05)
        assert normal[1] == pytest.approx(0.0, abs=0.05)
        assert normal[2] == pytest.approx(-1.0, abs=0.05)

    @pytest.mark.parametrize(
        "position",
        [(1.5, 0.3, -0.7), (0.0, 2.0, 0.0), (-0.8, -0.9, 1.2), (3.0, 3.0, 3.0)],
    )
    def test_normals_are_unit_length(self, julia_geometry_id, position):
        from src.marcher.geometry.marcher import surface_normal

        normal = surface_normal(julia_geometry_id, position)
        assert _norm(normal) == pytest.approx(1.0, abs=1e-4)

    def test_degenerate_gradient_returns_fallback(self, julia_geometry_id):
        """Test a flat (undefined) field yields the fallback normal."""
        from src.marcher.geometry.marcher import surface_normal

        normal = surface_normal(julia_geometry_id, (math.nan, 0.0, 0.0), fallback=(0.0, 1.0, 0.0))
        assert normal == (0.0, 1.0, 0.0)
