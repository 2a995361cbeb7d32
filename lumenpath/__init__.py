"""
LumenPath - A Python Path Tracer

Renders scenes by recursive ray casting:
- Spheres, tori, parallelepipeds and sphere-marched implicit surfaces
- Lambertian, metal and dielectric materials
- Parallel rendering over row bands with reproducible per-row randomness
"""

__version__ = "0.1.0"

from .vec3 import Vec3, Point3, Color
from .ray import Ray
from .shapes import (
    HitRecord, Hittable, HittableList, Sphere, Torus, Parallelogram, ImplicitMarched
)
from .materials import Material, ScatterResult, Lambertian, Metal, Dielectric
from .camera import Camera
from .integrator import ray_color, sky_color, color_to_rgb, MIN_HIT_DISTANCE
from .renderer import Renderer, RenderSettings, partition_rows
