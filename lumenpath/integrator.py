"""
Color integration for the path tracer.

`ray_color` follows a ray through the scene, multiplying in each
surface's attenuation until the ray escapes to the sky, is absorbed, or
runs out of bounces.
"""

from __future__ import annotations
import math

import numpy as np

from .vec3 import Color
from .ray import Ray
from .shapes import Hittable

# Lower bound on hit distances; keeps scattered rays from re-hitting the
# surface they leave (shadow acne).
MIN_HIT_DISTANCE = 0.001

WHITE = Color(1.0, 1.0, 1.0)
SKY_BLUE = Color(0.5, 0.7, 1.0)
BLACK = Color(0.0, 0.0, 0.0)


def sky_color(ray: Ray) -> Color:
    """Vertical white-to-blue gradient seen by rays that hit nothing."""
    unit_direction = ray.direction.normalize()
    t = 0.5 * (unit_direction.y + 1.0)
    return WHITE * (1.0 - t) + SKY_BLUE * t


def ray_color(ray: Ray, scene: Hittable, rng: np.random.Generator, depth: int) -> Color:
    """Compute the color carried back along a ray.

    Equivalent to the recursive definition
    ``attenuation * ray_color(scattered, depth - 1)``, unrolled into a loop
    that keeps the running product of attenuations.

    Args:
        ray: The ray to trace
        scene: The scene to trace against
        rng: Random source for material scattering
        depth: Maximum number of bounces

    Returns:
        The computed color for this ray
    """
    throughput = WHITE

    while depth > 0:
        hit = scene.hit(ray, MIN_HIT_DISTANCE, float('inf'))
        if hit is None:
            return throughput * sky_color(ray)

        if hit.material is None:
            return BLACK

        scatter = hit.material.scatter(ray, hit, rng)
        if scatter is None:
            return BLACK

        throughput = throughput * scatter.attenuation
        ray = scatter.scattered_ray
        depth -= 1

    return BLACK


def color_to_rgb(pixel_color: Color, samples_per_pixel: int) -> tuple[int, int, int]:
    """Average accumulated samples, gamma-correct (gamma 2.0) and quantize.

    Args:
        pixel_color: Sum of all sample colors for the pixel
        samples_per_pixel: Number of samples in the sum

    Returns:
        (r, g, b) with each channel in [0, 255]
    """
    scale = 1.0 / samples_per_pixel
    return tuple(
        int(256.0 * min(math.sqrt(max(c * scale, 0.0)), 0.999))
        for c in pixel_color
    )
