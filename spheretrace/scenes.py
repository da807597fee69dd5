"""
Built-in demo scene, rendered when no scene file is given.
"""

from __future__ import annotations
from typing import Optional

import numpy as np

from .vec3 import Vec3, Point3, Color
from .shapes import Sphere, MovingSphere, HittableList
from .materials import Lambertian, Metal, Dielectric


def random_scene(rng: Optional[np.random.Generator] = None) -> HittableList:
    """Create the classic field of small random spheres around three large ones.

    Small diffuse spheres bounce upward during the shutter interval [0, 1],
    so they show motion blur.

    Args:
        rng: Generator for the layout (a fresh unseeded one if None)
    """
    if rng is None:
        rng = np.random.default_rng()

    world = HittableList()

    ground_material = Lambertian(Color(0.5, 0.5, 0.5))
    world.add(Sphere(Point3(0, -1000, 0), 1000, ground_material))

    for a in range(-11, 11):
        for b in range(-11, 11):
            choose_mat = rng.random()
            center = Point3(a + 0.9 * rng.random(), 0.2, b + 0.9 * rng.random())

            if (center - Point3(4, 0.2, 0)).length() <= 0.9:
                continue

            if choose_mat < 0.8:
                # diffuse
                albedo = Color.random(rng) * Color.random(rng)
                center1 = center + Vec3(0, rng.uniform(0, 0.5), 0)
                world.add(MovingSphere(center, center1, 0.0, 1.0, 0.2, Lambertian(albedo)))
            elif choose_mat < 0.95:
                # metal
                albedo = Color.random(rng, 0.5, 1)
                fuzz = rng.uniform(0, 0.5)
                world.add(Sphere(center, 0.2, Metal(albedo, fuzz)))
            else:
                # glass
                world.add(Sphere(center, 0.2, Dielectric(1.5)))

    world.add(Sphere(Point3(0, 1, 0), 1.0, Dielectric(1.5)))
    world.add(Sphere(Point3(-4, 1, 0), 1.0, Lambertian(Color(0.4, 0.2, 0.1))))
    world.add(Sphere(Point3(4, 1, 0), 1.0, Metal(Color(0.7, 0.6, 0.5), 0.0)))

    return world
