"""Tests for geometric shapes."""

import pytest
import math
import numpy as np

from lumenpath.vec3 import Vec3, Point3, Color
from lumenpath.ray import Ray
from lumenpath.shapes import (
    HitRecord, HittableList, Sphere, Torus, Parallelogram, ImplicitMarched
)
from lumenpath.materials import Lambertian

INF = float('inf')


def assert_unit(v: Vec3):
    assert abs(v.length() - 1.0) < 1e-9


def assert_faces_ray(hit: HitRecord, ray: Ray):
    assert hit.normal.dot(ray.direction) <= 0
    assert_unit(hit.normal)


class TestHitRecord:
    """Test HitRecord.with_face_normal."""

    def test_front_face_keeps_normal(self):
        ray = Ray(Point3(0, 0, 0), Vec3(0, 0, -1))
        hit = HitRecord.with_face_normal(ray, Vec3(0, 0, 1), 2.0, None)
        assert hit.front_face is True
        assert hit.normal == Vec3(0, 0, 1)
        assert hit.point == Point3(0, 0, -2)
        assert hit.t == 2.0

    def test_back_face_flips_normal(self):
        ray = Ray(Point3(0, 0, 0), Vec3(0, 0, -1))
        hit = HitRecord.with_face_normal(ray, Vec3(0, 0, -1), 1.0, None)
        assert hit.front_face is False
        assert hit.normal == Vec3(0, 0, 1)

    def test_material_is_shared_not_copied(self):
        material = Lambertian(Color(1, 0, 0))
        ray = Ray(Point3(0, 0, 0), Vec3(0, 0, -1))
        hit = HitRecord.with_face_normal(ray, Vec3(0, 0, 1), 1.0, material)
        assert hit.material is material


class TestSphere:
    """Test Sphere class."""

    def test_reference_hit(self):
        material = Lambertian(Color(0.8, 0.8, 0.0))
        sphere = Sphere(Point3(0, 0, -1), 0.5, material)
        ray = Ray(Point3(0, 0, 0), Vec3(0, 0, -1))
        hit = sphere.hit(ray, 0.001, INF)

        assert hit is not None
        assert abs(hit.t - 0.5) < 1e-12
        assert hit.point == Point3(0, 0, -0.5)
        assert hit.normal == Vec3(0, 0, 1)
        assert hit.front_face is True
        assert hit.material is material

    def test_hit_from_inside(self):
        sphere = Sphere(Point3(0, 0, 0), 1.0)
        ray = Ray(Point3(0, 0, 0), Vec3(0, 0, 1))
        hit = sphere.hit(ray, 0.001, INF)

        assert hit is not None
        assert hit.front_face is False
        assert hit.normal == Vec3(0, 0, -1)

    def test_miss(self):
        sphere = Sphere(Point3(0, 0, 0), 1.0)
        ray = Ray(Point3(0, 5, -5), Vec3(0, 0, 1))
        assert sphere.hit(ray, 0.001, INF) is None

    def test_behind_ray(self):
        sphere = Sphere(Point3(0, 0, -5), 1.0)
        ray = Ray(Point3(0, 0, 0), Vec3(0, 0, 1))
        assert sphere.hit(ray, 0.001, INF) is None

    def test_far_root_when_near_excluded(self):
        sphere = Sphere(Point3(0, 0, 0), 1.0)
        ray = Ray(Point3(0, 0, -5), Vec3(0, 0, 1))
        hit = sphere.hit(ray, 4.5, INF)
        assert hit is not None
        assert abs(hit.t - 6.0) < 1e-12

    def test_t_max_is_exclusive(self):
        sphere = Sphere(Point3(0, 0, 0), 1.0)
        ray = Ray(Point3(0, 0, -5), Vec3(0, 0, 1))
        # Near root t=4 is excluded; far root t=6 beyond the window
        assert sphere.hit(ray, 0.001, 4.0) is None

    def test_t_min_is_inclusive(self):
        sphere = Sphere(Point3(0, 0, 0), 1.0)
        ray = Ray(Point3(0, 0, -5), Vec3(0, 0, 1))
        hit = sphere.hit(ray, 4.0, INF)
        assert hit is not None
        assert hit.t == 4.0

    def test_unnormalized_direction(self):
        sphere = Sphere(Point3(0, 0, -1), 0.5)
        ray = Ray(Point3(0, 0, 0), Vec3(0, 0, -4))
        hit = sphere.hit(ray, 0.001, INF)
        assert abs(hit.t - 0.125) < 1e-12
        assert hit.point == Point3(0, 0, -0.5)

    def test_zero_direction_is_miss(self):
        sphere = Sphere(Point3(0, 0, 0), 1.0)
        ray = Ray(Point3(0, 0, 0), Vec3(0, 0, 0))
        assert sphere.hit(ray, 0.001, INF) is None

    def test_zero_radius_is_miss(self):
        sphere = Sphere(Point3(0, 0, -1), 0.0)
        ray = Ray(Point3(0, 0, 0), Vec3(0, 0, -1))
        assert sphere.hit(ray, 0.001, INF) is None

    def test_random_hits_lie_on_sphere(self):
        rng = np.random.default_rng(99)
        sphere = Sphere(Point3(0.3, -0.2, -2.0), 0.7)
        hits = 0
        for _ in range(300):
            origin = Vec3.random(rng, -3, 3)
            direction = Vec3.random(rng, -1, 1)
            ray = Ray(origin, direction)
            hit = sphere.hit(ray, 0.001, 100.0)
            if hit is None:
                continue
            hits += 1
            assert abs((ray.at(hit.t) - sphere.center).length() - sphere.radius) < 1e-9
            assert 0.001 <= hit.t < 100.0
            assert_unit(hit.normal)
            assert (hit.normal.dot(ray.direction) < 0) == hit.front_face
        assert hits > 0


class TestHittableList:
    """Test HittableList closest-hit selection."""

    def test_empty(self):
        world = HittableList()
        assert len(world) == 0
        assert world.hit(Ray(Point3(0, 0, 0), Vec3(0, 0, -1)), 0.001, INF) is None

    def test_closest_wins_regardless_of_order(self):
        near = Sphere(Point3(0, 0, -2), 0.5)
        far = Sphere(Point3(0, 0, -5), 0.5)
        ray = Ray(Point3(0, 0, 0), Vec3(0, 0, -1))

        for objects in ([near, far], [far, near]):
            hit = HittableList(objects).hit(ray, 0.001, INF)
            assert abs(hit.t - 1.5) < 1e-12

    def test_respects_t_max(self):
        world = HittableList([Sphere(Point3(0, 0, -5), 0.5)])
        ray = Ray(Point3(0, 0, 0), Vec3(0, 0, -1))
        assert world.hit(ray, 0.001, 3.0) is None

    def test_add_and_iterate(self):
        world = HittableList()
        s = Sphere(Point3(0, 0, 0), 1.0)
        world.add(s)
        assert list(world) == [s]
        world.clear()
        assert len(world) == 0

    def test_does_not_alias_caller_list(self):
        objects = [Sphere(Point3(0, 0, -1), 0.5)]
        world = HittableList(objects)
        world.add(Sphere(Point3(0, 0, -3), 0.5))
        assert len(objects) == 1
        assert len(world) == 2


class TestTorus:
    """Test Torus (axis z) intersection."""

    def test_hit_along_x_axis(self):
        torus = Torus(Point3(0, 0, 0), 2.0, 0.5)
        ray = Ray(Point3(-5, 0, 0), Vec3(1, 0, 0))
        hit = torus.hit(ray, 0.001, INF)

        assert hit is not None
        assert abs(hit.t - 2.5) < 1e-9
        assert hit.point == Point3(-2.5, 0, 0)
        assert hit.normal == Vec3(-1, 0, 0)
        assert hit.front_face is True

    def test_hit_from_above(self):
        torus = Torus(Point3(1, 1, 0), 2.0, 0.5)
        ray = Ray(Point3(3, 1, 5), Vec3(0, 0, -1))
        hit = torus.hit(ray, 0.001, INF)

        assert abs(hit.t - 4.5) < 1e-9
        assert hit.normal == Vec3(0, 0, 1)

    def test_through_hole_misses(self):
        torus = Torus(Point3(0, 0, 0), 2.0, 0.5)
        ray = Ray(Point3(0, 0, 5), Vec3(0, 0, -1))
        assert torus.hit(ray, 0.001, INF) is None

    def test_inside_tube(self):
        torus = Torus(Point3(0, 0, 0), 2.0, 0.5)
        ray = Ray(Point3(2, 0, 0), Vec3(1, 0, 0))
        hit = torus.hit(ray, 0.001, INF)
        assert abs(hit.t - 0.5) < 1e-9
        assert hit.front_face is False

    def test_window_selects_later_root(self):
        torus = Torus(Point3(0, 0, 0), 2.0, 0.5)
        ray = Ray(Point3(-5, 0, 0), Vec3(1, 0, 0))
        # Roots at 2.5, 3.5, 6.5, 7.5
        hit = torus.hit(ray, 3.0, INF)
        assert abs(hit.t - 3.5) < 1e-9
        assert torus.hit(ray, 0.001, 2.4) is None

    def test_real_roots_of_known_quartic(self):
        # (t-1)(t-2)(t-3)(t-4)
        roots = Torus.real_roots([1, -10, 35, -50, 24])
        assert np.allclose(np.sort(roots), [1, 2, 3, 4])

    def test_complex_roots_discarded(self):
        # (t^2 + 1)(t - 2)(t + 3)
        roots = Torus.real_roots([1, 1, -5, 1, -6])
        assert np.allclose(np.sort(roots), [-3, 2])

    def test_zero_direction_is_miss(self):
        torus = Torus(Point3(0, 0, 0), 2.0, 0.5)
        assert torus.hit(Ray(Point3(-5, 0, 0), Vec3(0, 0, 0)), 0.001, INF) is None

    def test_random_hits_lie_on_surface(self):
        rng = np.random.default_rng(5)
        torus = Torus(Point3(0, 0, 0), 1.0, 0.3)
        hits = 0
        for _ in range(200):
            origin = Vec3.random(rng, -3, 3)
            target = Vec3.random(rng, -1, 1)
            ray = Ray(origin, target - origin)
            hit = torus.hit(ray, 0.001, INF)
            if hit is None:
                continue
            hits += 1
            x, y, z = hit.point
            ring = math.sqrt(x * x + y * y) - 1.0
            assert abs(math.sqrt(ring * ring + z * z) - 0.3) < 1e-6
            assert_faces_ray(hit, ray)
        assert hits > 0


class TestParallelogram:
    """Test parallelepiped intersection."""

    def unit_cube(self, material=None):
        return Parallelogram(
            Point3(0, 0, 0), Vec3(1, 0, 0), Vec3(0, 1, 0), Vec3(0, 0, 1), material
        )

    def test_hit_front_face(self):
        cube = self.unit_cube()
        ray = Ray(Point3(0.5, 0.5, 5), Vec3(0, 0, -1))
        hit = cube.hit(ray, 0.001, INF)

        assert abs(hit.t - 4.0) < 1e-9
        assert hit.point == Point3(0.5, 0.5, 1)
        assert hit.normal == Vec3(0, 0, 1)
        assert hit.front_face is True

    def test_hit_corner_face(self):
        cube = self.unit_cube()
        ray = Ray(Point3(-3, 0.25, 0.75), Vec3(1, 0, 0))
        hit = cube.hit(ray, 0.001, INF)

        assert abs(hit.t - 3.0) < 1e-9
        assert hit.normal == Vec3(-1, 0, 0)
        assert hit.front_face is True

    def test_hit_from_inside(self):
        cube = self.unit_cube()
        ray = Ray(Point3(0.5, 0.5, 0.5), Vec3(0, 1, 0))
        hit = cube.hit(ray, 0.001, INF)

        assert abs(hit.t - 0.5) < 1e-9
        assert hit.front_face is False
        assert hit.normal == Vec3(0, -1, 0)

    def test_miss(self):
        cube = self.unit_cube()
        ray = Ray(Point3(2, 2, 5), Vec3(0, 0, -1))
        assert cube.hit(ray, 0.001, INF) is None

    def test_far_face_when_near_excluded(self):
        cube = self.unit_cube()
        ray = Ray(Point3(0.5, 0.5, 5), Vec3(0, 0, -1))
        hit = cube.hit(ray, 4.5, INF)
        assert abs(hit.t - 5.0) < 1e-9
        assert hit.front_face is False

    def test_skewed_prism(self):
        prism = Parallelogram(
            Point3(0, 0, 0), Vec3(2, 0, 0), Vec3(1, 1, 0), Vec3(0, 0, 1)
        )
        # Point (2.0, 0.5) lies inside the sheared base
        ray = Ray(Point3(2.0, 0.5, 3), Vec3(0, 0, -1))
        hit = prism.hit(ray, 0.001, INF)
        assert abs(hit.t - 2.0) < 1e-9
        assert hit.normal == Vec3(0, 0, 1)

        # (0.2, 0.8) lies outside it
        ray = Ray(Point3(0.2, 0.8, 3), Vec3(0, 0, -1))
        assert prism.hit(ray, 0.001, INF) is None

    def test_face_normals_point_outward(self):
        cube = self.unit_cube()
        center = Point3(0.5, 0.5, 0.5)
        for e1, e2, offset, normal in cube.faces:
            # The corner face is on the opposite side of the center
            assert normal.dot(center - cube.corner) < 0
            assert (-normal).dot(center - (cube.corner + offset)) < 0


class TestImplicitMarched:
    """Test sphere-marched implicit surfaces."""

    def sphere_sdf(self, center, radius):
        return (
            lambda p: (p - center).length() - radius,
            lambda p: (p - center).length() + radius,
        )

    def test_matches_analytic_sphere(self):
        dist, max_dist = self.sphere_sdf(Point3(0, 0, -1), 0.5)
        surface = ImplicitMarched(dist, max_dist)
        ray = Ray(Point3(0, 0, 0), Vec3(0, 0, -1))
        hit = surface.hit(ray, 0.001, INF)

        assert hit is not None
        assert abs(hit.t - 0.5) < 1e-5
        assert hit.normal == Vec3(0, 0, 1)
        assert hit.front_face is True

    def test_miss(self):
        dist, max_dist = self.sphere_sdf(Point3(0, 0, -1), 0.5)
        surface = ImplicitMarched(dist, max_dist)
        ray = Ray(Point3(0, 2, 0), Vec3(0, 0, -1))
        assert surface.hit(ray, 0.001, INF) is None

    def test_respects_t_max(self):
        dist, max_dist = self.sphere_sdf(Point3(0, 0, -5), 0.5)
        surface = ImplicitMarched(dist, max_dist)
        ray = Ray(Point3(0, 0, 0), Vec3(0, 0, -1))
        assert surface.hit(ray, 0.001, 2.0) is None

    def test_from_inside(self):
        dist, max_dist = self.sphere_sdf(Point3(0, 0, 0), 1.0)
        surface = ImplicitMarched(dist, max_dist)
        ray = Ray(Point3(0, 0, 0), Vec3(2, 0, 0))
        hit = surface.hit(ray, 0.001, INF)
        assert abs(hit.t - 0.5) < 1e-5
        assert hit.front_face is False
        assert hit.normal == Vec3(-1, 0, 0)

    def test_zero_direction_is_miss(self):
        dist, max_dist = self.sphere_sdf(Point3(0, 0, -1), 0.5)
        surface = ImplicitMarched(dist, max_dist)
        assert surface.hit(Ray(Point3(0, 0, 0), Vec3(0, 0, 0)), 0.001, INF) is None
