"""Sphere-tracing renderer for quaternion Julia fractals.

This package renders implicit distance fields with Taichi, with support for:
- Quaternion Julia set distance estimation
- Sphere tracing (ray marching) with finite-difference normals
- Multi-light Blinn-Phong shading with saturating color blending
- Supersampled rendering of named cameras described in YAML or JSON scene files

Subpackages:
    core: Ray and vector utilities, quaternions, colors, integrator, renderer
    estimators: Distance estimator registry and the Julia estimator
    geometry: Sphere tracing and surface normal reconstruction
    camera: Viewport model with ray generation
    materials: Blinn-Phong materials and lights
    scene: Scene management, intersection and scene file loading
    preview: Tone mapping and image export

Taichi must be initialized (``ti.init``) before importing any subpackage,
since they declare Taichi fields at import time. Floating point fields and
vectors follow ``default_fp`` of that call.
"""

__version__ = "0.1.0"
