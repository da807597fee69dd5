"""Tests for Camera class."""

import pytest
import math
import numpy as np

from spheretrace.vec3 import Vec3, Point3
from spheretrace.camera import Camera


def pinhole(**kwargs):
    params = dict(
        look_from=Point3(0, 0, 0),
        look_at=Point3(0, 0, -1),
        vup=Vec3(0, 1, 0),
        vfov=90,
        aspect_ratio=1.0,
        aperture=0.0,
    )
    params.update(kwargs)
    return Camera(**params)


class TestCameraCreation:
    """Test Camera construction."""

    def test_origin(self):
        assert pinhole().origin == Point3(0, 0, 0)

    def test_camera_basis_vectors(self):
        cam = pinhole()
        # w points backward, u right, v up
        assert cam.w == Vec3(0, 0, 1)
        assert cam.u == Vec3(1, 0, 0)
        assert cam.v == Vec3(0, 1, 0)

    def test_viewport_from_fov_and_aspect(self):
        cam = pinhole(vfov=90, aspect_ratio=2.0, focus_dist=1.0)
        # tan(45 deg) = 1, so the viewport is 2 high and 4 wide
        assert abs(cam.vertical.length() - 2.0) < 1e-9
        assert abs(cam.horizontal.length() - 4.0) < 1e-9
        assert cam.lower_left_corner == Point3(-2, -1, -1)

    def test_focus_distance_scales_viewport(self):
        cam = pinhole(focus_dist=10.0)
        assert cam.lower_left_corner == Point3(-10, -10, -10)

    def test_lens_radius(self):
        assert pinhole(aperture=0.5).lens_radius == 0.25


class TestCameraRays:
    """Test Camera.get_ray() method."""

    def test_center_ray(self, rng):
        ray = pinhole().get_ray(0.5, 0.5, rng)
        assert ray.direction == Vec3(0, 0, -1)

    def test_corner_rays(self, rng):
        cam = pinhole()
        assert cam.get_ray(0, 0, rng).direction == Vec3(-1, -1, -1)
        assert cam.get_ray(1, 1, rng).direction == Vec3(1, 1, -1)

    def test_ray_origin_without_dof(self, rng):
        cam = pinhole(look_from=Point3(1, 2, 3), look_at=Point3(0, 0, 0))
        for _ in range(10):
            assert cam.get_ray(0.5, 0.5, rng).origin == cam.origin

    def test_narrow_fov_is_closer_to_axis(self, rng):
        forward = Vec3(0, 0, -1)
        narrow = pinhole(vfov=20).get_ray(1, 1, rng).direction.normalize()
        wide = pinhole(vfov=90).get_ray(1, 1, rng).direction.normalize()
        assert narrow.dot(forward) > wide.dot(forward)

    def test_looking_down(self, rng):
        cam = pinhole(look_from=Point3(0, 10, 0), look_at=Point3(0, 0, 0), vup=Vec3(0, 0, -1))
        assert cam.get_ray(0.5, 0.5, rng).direction.y < 0


class TestDepthOfField:
    """Test Camera depth of field."""

    def test_origins_stay_on_lens(self, rng):
        cam = pinhole(look_at=Point3(0, 0, -10), aperture=2.0, focus_dist=10.0)
        origins = [cam.get_ray(0.5, 0.5, rng).origin for _ in range(200)]

        xs = [o.x for o in origins]
        assert max(xs) - min(xs) > 0.1
        for o in origins:
            assert o.length() < cam.lens_radius
            assert o.z == 0

    def test_rays_converge_on_focus_plane(self, rng):
        cam = pinhole(look_at=Point3(0, 0, -10), aperture=2.0, focus_dist=10.0)
        target = cam.lower_left_corner + cam.horizontal * 0.3 + cam.vertical * 0.7
        for _ in range(20):
            ray = cam.get_ray(0.3, 0.7, rng)
            assert ray.at(1.0) == target


class TestShutter:
    """Test time sampling for motion blur."""

    def test_times_within_shutter(self, rng):
        cam = pinhole(shutter_open=0.25, shutter_close=0.75)
        times = [cam.get_ray(0.5, 0.5, rng).time for _ in range(200)]
        assert all(0.25 <= t <= 0.75 for t in times)
        assert max(times) - min(times) > 0.1

    def test_empty_shutter_uses_open_time(self, rng):
        cam = pinhole(shutter_open=0.4, shutter_close=0.4)
        assert cam.get_ray(0.5, 0.5, rng).time == 0.4

    def test_same_seed_same_rays(self):
        cam = pinhole(aperture=1.0, shutter_open=0.0, shutter_close=1.0)
        a = np.random.default_rng(3)
        b = np.random.default_rng(3)
        for _ in range(5):
            ra, rb = cam.get_ray(0.2, 0.8, a), cam.get_ray(0.2, 0.8, b)
            assert ra.origin == rb.origin
            assert ra.direction == rb.direction
            assert ra.time == rb.time
