"""
Materials and their scattering models.

Implements:
- Lambertian diffuse
- Metal (mirror reflection with optional fuzz)
- Dielectric (glass, water - with refraction)

A scatter is a pure function of the incoming ray, the hit record and a
random generator. Returning None means the ray was absorbed.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, TYPE_CHECKING
import math

import numpy as np

from .vec3 import Vec3, Color
from .ray import Ray

if TYPE_CHECKING:
    from .shapes import HitRecord


@dataclass(frozen=True)
class ScatterResult:
    """Result of a material scatter operation."""
    attenuation: Color
    scattered_ray: Ray


class Material(ABC):
    """Abstract base class for materials.

    Materials are immutable once built and may be shared by any number of
    primitives.
    """

    @abstractmethod
    def scatter(self, ray_in: Ray, hit: HitRecord, rng: np.random.Generator) -> Optional[ScatterResult]:
        """Compute the scattered ray and attenuation.

        Args:
            ray_in: The incoming ray
            hit: The intersection being shaded
            rng: Random source owned by the calling worker

        Returns:
            ScatterResult if ray scatters, None if absorbed
        """


class Lambertian(Material):
    """Diffuse material with Lambertian (ideal matte) scattering."""

    def __init__(self, albedo: Color):
        """Create a Lambertian material.

        Args:
            albedo: The base color (RGB, each component 0-1)
        """
        self.albedo = albedo

    def scatter(self, ray_in: Ray, hit: HitRecord, rng: np.random.Generator) -> Optional[ScatterResult]:
        scatter_direction = hit.normal + Vec3.random_unit_vector(rng)

        # Catch degenerate scatter direction
        if scatter_direction.near_zero():
            scatter_direction = hit.normal

        return ScatterResult(
            attenuation=self.albedo,
            scattered_ray=Ray(hit.point, scatter_direction),
        )

    def __repr__(self) -> str:
        return f"Lambertian(albedo={self.albedo})"


class Metal(Material):
    """Metallic material with specular reflection."""

    def __init__(self, albedo: Color, fuzz: float = 0.0):
        """Create a metal material.

        Args:
            albedo: The reflection color
            fuzz: Radius of the random perturbation of the mirror direction
                (0 = perfect mirror); values with |fuzz| >= 1 become 1
        """
        self.albedo = albedo
        self.fuzz = fuzz if abs(fuzz) < 1.0 else 1.0

    def scatter(self, ray_in: Ray, hit: HitRecord, rng: np.random.Generator) -> Optional[ScatterResult]:
        reflected = ray_in.direction.reflect(hit.normal)

        # Grazing or back-facing reflections are absorbed
        if reflected.dot(hit.normal) <= 0:
            return None

        direction = reflected
        if self.fuzz != 0.0:
            direction = reflected + Vec3.random_in_unit_sphere(rng) * self.fuzz

        return ScatterResult(
            attenuation=self.albedo,
            scattered_ray=Ray(hit.point, direction),
        )

    def __repr__(self) -> str:
        return f"Metal(albedo={self.albedo}, fuzz={self.fuzz})"


class Dielectric(Material):
    """Dielectric (glass-like) material with refraction."""

    def __init__(self, ri: float = 1.5):
        """Create a dielectric material.

        Args:
            ri: Index of refraction (1.0 = air, 1.5 = glass, 2.4 = diamond)
        """
        self.ri = ri

    def scatter(self, ray_in: Ray, hit: HitRecord, rng: np.random.Generator) -> Optional[ScatterResult]:
        # Entering the medium on the front face, leaving it on the back face
        refraction_ratio = 1.0 / self.ri if hit.front_face else self.ri

        unit_direction = ray_in.direction.normalize()

        if refraction_ratio == 1.0:
            # Index-matched boundary: nothing to reflect off or bend through
            direction = unit_direction
        else:
            cos_theta = min(-unit_direction.dot(hit.normal), 1.0)
            sin_theta = math.sqrt(max(0.0, 1.0 - cos_theta * cos_theta))

            cannot_refract = refraction_ratio * sin_theta > 1.0
            if cannot_refract or reflectance(cos_theta, refraction_ratio) > rng.random():
                direction = unit_direction.reflect(hit.normal)
            else:
                direction = unit_direction.refract(hit.normal, refraction_ratio)

        return ScatterResult(
            attenuation=Color(1.0, 1.0, 1.0),
            scattered_ray=Ray(hit.point, direction),
        )

    def __repr__(self) -> str:
        return f"Dielectric(ri={self.ri})"


def reflectance(cosine: float, refraction_ratio: float) -> float:
    """Schlick's approximation for reflectance."""
    r0 = (1 - refraction_ratio) / (1 + refraction_ratio)
    r0 = r0 * r0
    return r0 + (1 - r0) * pow(1 - cosine, 5)
