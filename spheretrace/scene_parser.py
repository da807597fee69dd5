"""
Scene description parser.

A scene is a YAML (or JSON) sequence of spheres. Object and material kinds
carry no explicit tag; they are recognised by the fields they contain:

```yaml
- center: {x: 0, y: -1000, z: 0}          # sphere
  radius: 1000
  material:
    albedo: {r: 0.5, g: 0.5, b: 0.5}      # lambertian

- center: {x: 4, y: 1, z: 0}
  radius: 1
  material:
    albedo: {r: 0.7, g: 0.6, b: 0.5}      # metal
    fuzz: 0.0

- center: {x: 0, y: 1, z: 0}
  radius: 1
  material: {ir: 1.5}                     # dielectric

- center:                                 # moving sphere
    start: {x: -4, y: 0.2, z: 2}
    end: {x: -4, y: 0.6, z: 2}
  time: {start: 0.0, end: 1.0}
  radius: 0.2
  material:
    albedo: {r: 0.1, g: 0.2, b: 0.5}
```

Fields not listed above are ignored. The source ``-`` reads the scene from
standard input.
"""

from __future__ import annotations
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, Optional, TextIO

import yaml

from .vec3 import Vec3, Point3, Color
from .shapes import Hittable, Sphere, MovingSphere, HittableList
from .materials import Material, Lambertian, Metal, Dielectric

logger = logging.getLogger(__name__)

STDIN_SOURCE = '-'


class SceneParseError(Exception):
    """Error during scene parsing."""


class SceneParser:
    """Parser for scene description files."""

    def parse_file(self, source: str, stdin: Optional[TextIO] = None) -> HittableList:
        """Parse a scene file.

        Args:
            source: Path to the scene file (YAML or JSON), or ``-`` for stdin
            stdin: Stream to read when source is ``-`` (defaults to sys.stdin)

        Returns:
            The scene as a HittableList
        """
        if source == STDIN_SOURCE:
            stream = stdin if stdin is not None else sys.stdin
            try:
                content = stream.read()
            except (OSError, UnicodeDecodeError) as e:
                raise SceneParseError(f"Cannot read scene from standard input: {e}") from e
            return self.parse_text(content, json_format=False)

        path = Path(source)
        if not path.is_file():
            raise SceneParseError(f"Scene file not found: {source}")

        try:
            content = path.read_text(encoding='utf-8')
        except (OSError, UnicodeDecodeError) as e:
            raise SceneParseError(f"Cannot read scene file {source}: {e}") from e

        return self.parse_text(content, json_format=path.suffix.lower() == '.json')

    def parse_text(self, content: str, json_format: bool = False) -> HittableList:
        """Parse scene text. YAML is a superset of JSON, so YAML is the default."""
        try:
            if json_format:
                data = json.loads(content)
            else:
                data = yaml.safe_load(content)
        except (json.JSONDecodeError, yaml.YAMLError) as e:
            raise SceneParseError(f"Malformed scene description: {e}") from e

        return self.parse_data(data)

    def parse_data(self, data: Any) -> HittableList:
        """Build the scene from already decoded data.

        Args:
            data: Sequence of object mappings

        Returns:
            The scene as a HittableList
        """
        if not isinstance(data, list):
            raise SceneParseError(
                f"Scene must be a sequence of objects, got {type(data).__name__}"
            )

        world = HittableList()
        for index, obj_data in enumerate(data):
            try:
                world.add(self._parse_object(obj_data))
            except SceneParseError as e:
                raise SceneParseError(f"Object {index}: {e}") from e

        logger.info("Loaded scene with %d objects", len(world))
        return world

    def _parse_object(self, obj_data: Any) -> Hittable:
        """Parse a sphere or moving sphere."""
        self._expect_mapping(obj_data, 'object')
        radius = self._parse_float(obj_data, 'radius')
        material = self._parse_material(self._require(obj_data, 'material'))
        center = self._require(obj_data, 'center')

        if isinstance(center, dict) and 'start' in center and 'end' in center and 'time' in obj_data:
            time = obj_data['time']
            self._expect_mapping(time, 'time')
            return MovingSphere(
                center0=self._parse_point(center['start']),
                center1=self._parse_point(center['end']),
                time0=self._parse_float(time, 'start'),
                time1=self._parse_float(time, 'end'),
                radius=radius,
                material=material,
            )

        return Sphere(self._parse_point(center), radius, material)

    def _parse_material(self, mat_data: Any) -> Material:
        """Recognise a material by its fields; metal must be tried before lambertian."""
        self._expect_mapping(mat_data, 'material')

        if 'albedo' in mat_data and 'fuzz' in mat_data:
            return Metal(self._parse_color(mat_data['albedo']), self._parse_float(mat_data, 'fuzz'))
        if 'albedo' in mat_data:
            return Lambertian(self._parse_color(mat_data['albedo']))
        if 'ir' in mat_data:
            return Dielectric(self._parse_float(mat_data, 'ir'))

        raise SceneParseError(
            f"Unrecognised material {mat_data}: expected albedo+fuzz, albedo, or ir"
        )

    def _parse_point(self, data: Any) -> Point3:
        self._expect_mapping(data, 'point')
        return Vec3(
            self._parse_float(data, 'x'),
            self._parse_float(data, 'y'),
            self._parse_float(data, 'z'),
        )

    def _parse_color(self, data: Any) -> Color:
        self._expect_mapping(data, 'color')
        return Color(
            self._parse_float(data, 'r'),
            self._parse_float(data, 'g'),
            self._parse_float(data, 'b'),
        )

    def _parse_float(self, data: Dict[str, Any], key: str) -> float:
        value = self._require(data, key)
        # bool is an int subclass, but `true` is not a number in a scene
        if isinstance(value, bool):
            raise SceneParseError(f"Field '{key}' must be a number, got {value!r}")
        # YAML 1.1 loads exponent literals like `1e3` as strings
        try:
            return float(value)
        except (TypeError, ValueError):
            raise SceneParseError(f"Field '{key}' must be a number, got {value!r}")

    @staticmethod
    def _require(data: Dict[str, Any], key: str) -> Any:
        if key not in data:
            raise SceneParseError(f"Missing field '{key}' in {data}")
        return data[key]

    @staticmethod
    def _expect_mapping(data: Any, what: str) -> None:
        if not isinstance(data, dict):
            raise SceneParseError(f"Expected a mapping for {what}, got {data!r}")


def load_scene(source: str, stdin: Optional[TextIO] = None) -> HittableList:
    """Convenience function to load a scene file (``-`` reads stdin).

    Args:
        source: Path to the scene file, or ``-``
        stdin: Stream to use for ``-`` instead of sys.stdin

    Returns:
        The scene as a HittableList
    """
    parser = SceneParser()
    return parser.parse_file(source, stdin)


def parse_scene(data: Any) -> HittableList:
    """Convenience function to build a scene from decoded data."""
    parser = SceneParser()
    return parser.parse_data(data)
