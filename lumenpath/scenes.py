"""
Built-in scenes and matching cameras.

Scene callables are plain module-level functions so scenes stay picklable
for the process backend.
"""

from __future__ import annotations
import math
from functools import partial
from typing import Optional

import numpy as np

from .vec3 import Vec3, Point3, Color
from .camera import Camera
from .shapes import HittableList, Sphere, Torus, Parallelogram, ImplicitMarched
from .materials import Lambertian, Metal, Dielectric


def torus_distance(p: Point3, center: Point3, major_radius: float, minor_radius: float) -> float:
    """Signed distance to a torus around the y axis through `center`."""
    x, y, z = p - center
    ring = math.sqrt(x * x + z * z) - major_radius
    return math.sqrt(ring * ring + y * y) - minor_radius


def torus_reach(p: Point3, center: Point3, major_radius: float, minor_radius: float) -> float:
    """Bound on how far along a ray from `p` the torus can be."""
    return 2.0 * ((p - center).length() + major_radius + minor_radius)


def default_world() -> HittableList:
    """Yellow ground, a blue sphere and a metal ring around a red bead."""
    world = HittableList()

    yellow_diffuse = Lambertian(Color(0.8, 0.8, 0.0))
    red_diffuse = Lambertian(Color(0.8, 0.1, 0.1))
    blue_diffuse = Lambertian(Color(0.1, 0.1, 0.8))
    metal = Metal(Color(1.0, 1.0, 1.0), 0.1)

    # Ground
    world.add(Sphere(Point3(0.0, -100.5, 0.0), 100.0, yellow_diffuse))
    world.add(Sphere(Point3(0.0, 0.0, -1.5), 0.5, blue_diffuse))

    ring_center = Point3(1.0, 0.0, -1.5)
    ring = dict(center=ring_center, major_radius=0.36, minor_radius=0.2)
    world.add(ImplicitMarched(
        dist=partial(torus_distance, **ring),
        max_dist=partial(torus_reach, **ring),
        material=metal,
    ))
    world.add(Sphere(ring_center, 0.05, red_diffuse))

    return world


def default_camera(aspect_ratio: float = 16.0 / 9.0) -> Camera:
    return Camera(
        look_from=Point3(8.0, 2.6, 4.4),
        look_at=Point3(1.0, 0.0, -1.5),
        vup=Vec3(0.0, 1.0, 0.0),
        vfov=20.0,
        aspect_ratio=aspect_ratio,
        aperture=0.0,
        focus_dist=1.0,
    )


def weekend_cover_world(rng: Optional[np.random.Generator] = None) -> HittableList:
    """A field of small random spheres around three large ones."""
    if rng is None:
        rng = np.random.default_rng()
    world = HittableList()

    ground_material = Lambertian(Color(0.5, 0.5, 0.5))
    world.add(Sphere(Point3(0, -1000, 0), 1000, ground_material))

    for a in range(-11, 11):
        for b in range(-11, 11):
            center = Point3(a + 0.9 * rng.random(), 0.2, b + 0.9 * rng.random())
            if (center - Point3(4, 0.2, 0)).length() <= 0.9:
                continue

            choose_mat = rng.random()
            if choose_mat < 0.8:
                # diffuse
                albedo = Vec3.random(rng) * Vec3.random(rng)
                material = Lambertian(albedo)
            elif choose_mat < 0.95:
                # metal
                albedo = Vec3.random(rng) * 0.5 + Color(0.5, 0.5, 0.5)
                material = Metal(albedo, rng.uniform(0.0, 0.5))
            else:
                # glass
                material = Dielectric(1.5)

            world.add(Sphere(center, 0.2, material))

    world.add(Sphere(Point3(0, 1, 0), 1.0, Dielectric(1.5)))
    world.add(Sphere(Point3(-4, 1, 0), 1.0, Lambertian(Color(0.4, 0.2, 0.1))))
    world.add(Sphere(Point3(4, 1, 0), 1.0, Metal(Color(0.7, 0.6, 0.5), 0.0)))

    return world


def weekend_cover_camera(aspect_ratio: float = 16.0 / 9.0) -> Camera:
    return Camera(
        look_from=Point3(13, 2, 3),
        look_at=Point3(0, 0, 0),
        vup=Vec3(0, 1, 0),
        vfov=20.0,
        aspect_ratio=aspect_ratio,
        aperture=0.1,
        focus_dist=10.0,
    )


def simple_world() -> HittableList:
    """Ground, a glass block, a metal torus and a diffuse sphere."""
    world = HittableList()

    world.add(Sphere(Point3(0.0, -100.5, 0.0), 100.0, Lambertian(Color(0.8, 0.8, 0.0))))
    world.add(Parallelogram(
        Point3(0.6, -0.4, -1.1),
        Vec3(0.8, 0.0, 0.0),
        Vec3(0.0, 0.8, 0.0),
        Vec3(0.0, 0.0, -0.8),
        Dielectric(1.5),
    ))
    world.add(Torus(Point3(-1.0, 0.0, -1.5), 0.4, 0.12, Metal(Color(0.8, 0.6, 0.2), 0.05)))
    world.add(Sphere(Point3(0.0, 0.0, -1.5), 0.5, Lambertian(Color(0.1, 0.1, 0.8))))

    return world


def simple_camera(aspect_ratio: float = 16.0 / 9.0) -> Camera:
    return Camera(
        look_from=Point3(0.0, 1.0, 2.0),
        look_at=Point3(0.0, 0.0, -1.2),
        vup=Vec3(0.0, 1.0, 0.0),
        vfov=50.0,
        aspect_ratio=aspect_ratio,
    )


SCENES = {
    'default': (default_world, default_camera),
    'cover': (weekend_cover_world, weekend_cover_camera),
    'simple': (simple_world, simple_camera),
}
