"""
Geometric shapes for the path tracer.

Each shape implements the Hittable interface with a `hit` method that
accepts hits whose ray parameter lies in the half-open window
[t_min, t_max). Invalid or degenerate cases are misses, never errors.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Optional, TYPE_CHECKING
import math

import numpy as np

from .vec3 import Vec3, Point3
from .ray import Ray

if TYPE_CHECKING:
    from .materials import Material


@dataclass
class HitRecord:
    """Stores information about a ray-object intersection.

    Attributes:
        point: The intersection point in world space
        normal: Unit surface normal, always pointing against the ray
        t: The ray parameter at intersection
        front_face: True if ray hit from outside the object
        material: The (shared) material of the surface that was hit
    """
    point: Point3
    normal: Vec3
    t: float
    front_face: bool
    material: Optional[Material] = None

    @classmethod
    def with_face_normal(
        cls,
        ray: Ray,
        outward_normal: Vec3,
        t: float,
        material: Optional[Material],
    ) -> HitRecord:
        """Build a hit record with the normal facing against the ray.

        Args:
            ray: The incoming ray
            outward_normal: Unit geometric normal pointing out of the surface
            t: Ray parameter of the hit
            material: Material of the surface
        """
        front_face = ray.direction.dot(outward_normal) < 0
        normal = outward_normal if front_face else -outward_normal
        return cls(
            point=ray.at(t),
            normal=normal,
            t=t,
            front_face=front_face,
            material=material,
        )


class Hittable(ABC):
    """Abstract base class for all objects that can be hit by rays."""

    @abstractmethod
    def hit(self, ray: Ray, t_min: float, t_max: float) -> Optional[HitRecord]:
        """Test if ray intersects this object.

        Args:
            ray: The ray to test
            t_min: Minimum t value to consider (inclusive)
            t_max: Maximum t value to consider (exclusive)

        Returns:
            HitRecord if intersection found, None otherwise
        """


def _in_range(t: float, t_min: float, t_max: float) -> bool:
    return t_min <= t < t_max


class HittableList(Hittable):
    """A collection of hittable objects, scanned linearly."""

    def __init__(self, objects: Optional[list[Hittable]] = None):
        self.objects: list[Hittable] = list(objects) if objects is not None else []

    def add(self, obj: Hittable) -> None:
        """Add an object to the list."""
        self.objects.append(obj)

    def clear(self) -> None:
        """Remove all objects."""
        self.objects.clear()

    def hit(self, ray: Ray, t_min: float, t_max: float) -> Optional[HitRecord]:
        """Find the closest intersection among all objects."""
        closest_hit: Optional[HitRecord] = None
        closest_t = t_max

        for obj in self.objects:
            hit_record = obj.hit(ray, t_min, closest_t)
            if hit_record is not None:
                closest_hit = hit_record
                closest_t = hit_record.t

        return closest_hit

    def __len__(self) -> int:
        return len(self.objects)

    def __iter__(self):
        return iter(self.objects)


class Sphere(Hittable):
    """A sphere defined by center and radius.

    The radius must be positive; negative radii are not supported as
    inside-out spheres, and a zero radius is never hit.
    """

    def __init__(self, center: Point3, radius: float, material: Optional[Material] = None):
        """Create a sphere.

        Args:
            center: Center point of the sphere
            radius: Radius of the sphere (> 0)
            material: Material for shading
        """
        self.center = center
        self.radius = radius
        self.material = material

    def hit(self, ray: Ray, t_min: float, t_max: float) -> Optional[HitRecord]:
        """Test ray-sphere intersection using the quadratic formula.

        The equation (P-C)·(P-C) = r² where P = ray.at(t)
        expands to: t²(d·d) + 2t(d·(O-C)) + (O-C)·(O-C) - r² = 0.
        """
        oc = ray.origin - self.center
        a = ray.direction.length_squared()
        if a == 0 or self.radius == 0:
            return None
        half_b = oc.dot(ray.direction)
        c = oc.length_squared() - self.radius * self.radius

        discriminant = half_b * half_b - a * c
        if discriminant < 0:
            return None

        sqrtd = math.sqrt(discriminant)

        # Find the nearest root in the acceptable range
        root = (-half_b - sqrtd) / a
        if not _in_range(root, t_min, t_max):
            root = (-half_b + sqrtd) / a
            if not _in_range(root, t_min, t_max):
                return None

        outward_normal = (ray.at(root) - self.center) / self.radius
        return HitRecord.with_face_normal(ray, outward_normal, root, self.material)

    def __repr__(self) -> str:
        return f"Sphere(center={self.center}, radius={self.radius})"


class Torus(Hittable):
    """A torus centered at `center` whose axis of symmetry is z.

    Implicit form: (|p|² + R² - r²)² - 4R²(x² + y²) = 0, with R the major
    (ring) radius and r the minor (tube) radius.
    """

    # Roots with a larger imaginary part are treated as complex
    IMAG_TOLERANCE = 1e-15

    def __init__(
        self,
        center: Point3,
        major_radius: float,
        minor_radius: float,
        material: Optional[Material] = None,
    ):
        self.center = center
        self.major_radius = major_radius
        self.minor_radius = minor_radius
        self.material = material

    def coefficients(self, ray: Ray) -> tuple[float, float, float, float, float]:
        """Quartic coefficients (a4, a3, a2, a1, a0) of the ray substituted
        into the implicit torus equation."""
        ox, oy, oz = ray.origin - self.center
        dx, dy, dz = ray.direction
        big_r2 = self.major_radius * self.major_radius
        small_r2 = self.minor_radius * self.minor_radius

        dd = dx * dx + dy * dy + dz * dz
        od = ox * dx + oy * dy + oz * dz
        k = ox * ox + oy * oy + oz * oz + big_r2 - small_r2

        a4 = dd * dd
        a3 = 4.0 * dd * od
        a2 = 2.0 * dd * k + 4.0 * od * od - 4.0 * big_r2 * (dx * dx + dy * dy)
        a1 = 4.0 * od * k - 8.0 * big_r2 * (ox * dx + oy * dy)
        a0 = k * k - 4.0 * big_r2 * (ox * ox + oy * oy)
        return a4, a3, a2, a1, a0

    @classmethod
    def real_roots(cls, coefficients) -> np.ndarray:
        """Real roots of a polynomial, highest degree coefficient first.

        The roots are the eigenvalues of the companion matrix of the monic
        polynomial. An empty array is returned when the leading coefficient
        is zero.
        """
        leading = coefficients[0]
        if leading == 0:
            return np.empty(0)
        monic = np.asarray(coefficients[1:], dtype=np.float64) / leading
        degree = len(monic)

        companion = np.zeros((degree, degree))
        companion[1:, :-1] = np.eye(degree - 1)
        companion[:, -1] = -monic[::-1]

        roots = np.linalg.eigvals(companion)
        return roots[np.abs(roots.imag) <= cls.IMAG_TOLERANCE].real

    def hit(self, ray: Ray, t_min: float, t_max: float) -> Optional[HitRecord]:
        roots = self.real_roots(self.coefficients(ray))
        roots = roots[(roots >= t_min) & (roots < t_max)]
        if roots.size == 0:
            return None

        t = float(roots.min())
        outward_normal = self.normal_at(ray.at(t))
        if outward_normal.near_zero():
            return None
        return HitRecord.with_face_normal(ray, outward_normal, t, self.material)

    def normal_at(self, point: Point3) -> Vec3:
        """Unit gradient of the implicit function at a surface point."""
        x, y, z = point - self.center
        big_r2 = self.major_radius * self.major_radius
        s = x * x + y * y + z * z + big_r2 - self.minor_radius * self.minor_radius
        gradient = Vec3(
            4.0 * s * x - 8.0 * big_r2 * x,
            4.0 * s * y - 8.0 * big_r2 * y,
            4.0 * s * z,
        )
        return gradient.normalize()

    def __repr__(self) -> str:
        return (f"Torus(center={self.center}, major_radius={self.major_radius}, "
                f"minor_radius={self.minor_radius})")


class Parallelogram(Hittable):
    """A parallelepiped spanned by three edge vectors from a corner.

    Each pair of edges spans two parallel faces: one through the corner,
    the other offset by the remaining edge.
    """

    def __init__(
        self,
        corner: Point3,
        a: Vec3,
        b: Vec3,
        c: Vec3,
        material: Optional[Material] = None,
    ):
        self.corner = corner
        self.edges = (a, b, c)
        self.material = material

        # (edge1, edge2, offset edge, outward normal of the face at the corner)
        self.faces = []
        for e1, e2, offset in ((a, b, c), (b, c, a), (c, a, b)):
            normal = e1.cross(e2).normalize()
            if normal.dot(offset) > 0:
                normal = -normal
            self.faces.append((e1, e2, offset, normal))

    def hit(self, ray: Ray, t_min: float, t_max: float) -> Optional[HitRecord]:
        t_best = t_max
        best_normal: Optional[Vec3] = None
        rel = ray.origin - self.corner

        for e1, e2, offset, normal in self.faces:
            system = np.column_stack(
                (e1.to_array(), e2.to_array(), (-ray.direction).to_array())
            )
            rhs = np.column_stack((rel.to_array(), (rel - offset).to_array()))
            try:
                solution = np.linalg.solve(system, rhs)
            except np.linalg.LinAlgError:
                # Ray parallel to this pair of faces
                continue

            for column, face_normal in ((0, normal), (1, -normal)):
                u, v, t = solution[:, column]
                if 0.0 <= u < 1.0 and 0.0 <= v < 1.0 and t_min <= t < t_best:
                    t_best = float(t)
                    best_normal = face_normal

        if best_normal is None:
            return None
        return HitRecord.with_face_normal(ray, best_normal, t_best, self.material)

    def __repr__(self) -> str:
        a, b, c = self.edges
        return f"Parallelogram(corner={self.corner}, a={a}, b={b}, c={c})"


class ImplicitMarched(Hittable):
    """A surface given by a signed distance bound, found by sphere marching.

    Args:
        dist: Signed distance bound; |dist(p)| never exceeds the true
            distance from p to the surface
        max_dist: Upper bound on how far from a ray origin the surface can
            lie along any direction
        material: Material for shading
    """

    HIT_EPSILON = 1e-6
    MAX_STEPS = 256
    NORMAL_DELTA = 1e-6

    def __init__(
        self,
        dist: Callable[[Point3], float],
        max_dist: Callable[[Point3], float],
        material: Optional[Material] = None,
    ):
        self.dist = dist
        self.max_dist = max_dist
        self.material = material

    def hit(self, ray: Ray, t_min: float, t_max: float) -> Optional[HitRecord]:
        speed = ray.direction.length()
        if speed == 0:
            return None

        reach = self.max_dist(ray.origin) / speed
        t = t_min
        for _ in range(self.MAX_STEPS):
            if t >= t_max or t > reach:
                return None
            distance = abs(self.dist(ray.at(t)))
            if distance < self.HIT_EPSILON:
                outward_normal = self.normal_at(ray.at(t))
                if outward_normal.near_zero():
                    return None
                return HitRecord.with_face_normal(ray, outward_normal, t, self.material)
            t += distance / speed

        return None

    def normal_at(self, point: Point3) -> Vec3:
        """Central-difference gradient of the distance function."""
        h = self.NORMAL_DELTA
        gradient = [
            self.dist(point + step) - self.dist(point - step)
            for step in (Vec3(h, 0, 0), Vec3(0, h, 0), Vec3(0, 0, h))
        ]
        return Vec3(*gradient).normalize()
