"""Tests for the built-in demo scene."""

import numpy as np

from spheretrace.shapes import Sphere, MovingSphere
from spheretrace.materials import Lambertian, Metal, Dielectric
from spheretrace.scenes import random_scene


class TestRandomScene:
    """Test the random spheres demo scene."""

    def test_landmark_spheres(self):
        world = random_scene(np.random.default_rng(0))
        ground, glass, diffuse, metal = world.objects[0], *world.objects[-3:]

        assert ground.radius == 1000
        assert isinstance(glass.material, Dielectric)
        assert isinstance(diffuse.material, Lambertian)
        assert isinstance(metal.material, Metal)
        assert metal.material.fuzz == 0.0

    def test_small_diffuse_spheres_move(self):
        world = random_scene(np.random.default_rng(0))
        small = world.objects[1:-3]
        assert small
        for obj in small:
            if isinstance(obj.material, Lambertian):
                assert isinstance(obj, MovingSphere)
                assert obj.center1.y >= obj.center0.y
            else:
                assert isinstance(obj, Sphere)
            assert obj.radius == 0.2

    def test_seeded_layout_is_reproducible(self):
        a = random_scene(np.random.default_rng(5))
        b = random_scene(np.random.default_rng(5))
        assert len(a) == len(b)
        assert all(repr(x) == repr(y) for x, y in zip(a, b))
