"""
spheretrace - A Python Ray Tracing Renderer

Renders scenes of spheres by stochastic path tracing, with support for:
- Diffuse, metal and glass materials
- Depth of field (thin lens camera)
- Motion blur (moving spheres, shutter interval)
- Multi-threaded rendering with reproducible, seeded output
- YAML/JSON scene files
"""

__version__ = "0.1.0"
__author__ = "spheretrace developers"

from .vec3 import Vec3, Point3, Color
from .ray import Ray
from .shapes import Sphere, MovingSphere, HittableList, HitRecord, Hittable
from .materials import Material, ScatterResult, Lambertian, Metal, Dielectric
from .camera import Camera
from .renderer import (
    Renderer, RenderSettings, RenderState, RenderError, ImageWriteError,
    ray_color, sky_color, to_pixel
)
from .scene_parser import SceneParser, SceneParseError, load_scene, parse_scene
from .scenes import random_scene
