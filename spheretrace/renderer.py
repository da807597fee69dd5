"""
Renderer module - the heart of the ray tracer.

Implements:
- Recursive path tracing with a bounded bounce depth
- Per-pixel supersampling with square-root gamma
- Multi-threaded scanline rendering with deterministic row order
- Image output (Pillow encoders, plain-text PPM)

Rows are statically partitioned: row ``j`` belongs to worker ``j % N``.
Each worker walks its rows top to bottom and streams finished pixels into
its own FIFO queue; the collector walks every row top to bottom and drains
the owning worker's queue. Both sides follow the same row order, so the
image comes out ordered regardless of which worker runs faster.
"""

from __future__ import annotations
import logging
import math
import os
import queue
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Iterator, Optional, TextIO, Tuple
import numpy as np

from .vec3 import Vec3, Point3, Color
from .ray import Ray
from .camera import Camera
from .shapes import Hittable

logger = logging.getLogger(__name__)

# Lower bound of the hit interval, keeps bounced rays off their own surface
T_MIN = 0.001

Pixel = Tuple[int, int, int]


class RenderError(Exception):
    """A render worker failed; no image is produced."""


class ImageWriteError(Exception):
    """The rendered image could not be written to its destination."""


class RenderState(Enum):
    """Lifecycle of a single ``Renderer.render`` call."""
    IDLE = 'idle'
    DISPATCHED = 'dispatched'
    COLLECTING = 'collecting'
    COMPLETE = 'complete'
    FAILED = 'failed'


@dataclass
class RenderSettings:
    """Image, sampling and camera configuration for a render."""
    aspect_ratio: float = 16.0 / 9.0
    image_width: int = 400
    samples_per_pixel: int = 100
    max_depth: int = 50
    vfov: float = 20.0
    aperture: float = 0.1
    focus_dist: float = 10.0
    look_from: Point3 = None
    look_at: Point3 = None
    vup: Vec3 = None
    shutter_open: float = 0.0
    shutter_close: float = 1.0
    num_workers: int = 0  # 0 = auto-detect
    seed: Optional[int] = None

    def __post_init__(self):
        if self.look_from is None:
            self.look_from = Point3(13, 2, 3)
        if self.look_at is None:
            self.look_at = Point3(0, 0, 0)
        if self.vup is None:
            self.vup = Vec3(0, 1, 0)
        if self.num_workers == 0:
            self.num_workers = os.cpu_count() or 4

        if self.aspect_ratio <= 0:
            raise ValueError(f"aspect_ratio must be positive, got {self.aspect_ratio}")
        if self.image_width <= 0:
            raise ValueError(f"image_width must be positive, got {self.image_width}")
        if self.image_height <= 0:
            raise ValueError(
                f"image height is zero for width {self.image_width} "
                f"and aspect ratio {self.aspect_ratio}"
            )
        if self.samples_per_pixel <= 0:
            raise ValueError(f"samples_per_pixel must be positive, got {self.samples_per_pixel}")
        if self.max_depth <= 0:
            raise ValueError(f"max_depth must be positive, got {self.max_depth}")
        if self.aperture < 0:
            raise ValueError(f"aperture must not be negative, got {self.aperture}")
        if self.num_workers < 0:
            raise ValueError(f"num_workers must not be negative, got {self.num_workers}")

    @property
    def image_height(self) -> int:
        return int(self.image_width / self.aspect_ratio)

    def create_camera(self) -> Camera:
        """Build the camera described by these settings."""
        return Camera(
            look_from=self.look_from,
            look_at=self.look_at,
            vup=self.vup,
            vfov=self.vfov,
            aspect_ratio=self.aspect_ratio,
            aperture=self.aperture,
            focus_dist=self.focus_dist,
            shutter_open=self.shutter_open,
            shutter_close=self.shutter_close,
        )


def sky_color(ray: Ray) -> Color:
    """Blend white at the horizon into sky blue overhead."""
    unit_direction = ray.direction.normalize()
    t = 0.5 * (unit_direction.y + 1.0)
    return Color(1.0, 1.0, 1.0) * (1.0 - t) + Color(0.5, 0.7, 1.0) * t


def ray_color(ray: Ray, scene: Hittable, depth: int, rng: np.random.Generator) -> Color:
    """Compute the color carried back along a ray.

    Args:
        ray: The ray to trace
        scene: The scene to trace against
        depth: Remaining bounce budget
        rng: Generator for material scattering

    Returns:
        The radiance arriving along this ray
    """
    # Bounce budget exhausted
    if depth <= 0:
        return Color(0, 0, 0)

    hit_record = scene.hit(ray, T_MIN, math.inf)
    if hit_record is None:
        return sky_color(ray)

    scatter_result = hit_record.material.scatter(ray, hit_record, rng)
    if scatter_result is None:
        return Color(0, 0, 0)

    return scatter_result.attenuation * ray_color(
        scatter_result.scattered_ray, scene, depth - 1, rng
    )


def to_pixel(pixel_color: Color, samples_per_pixel: int) -> Pixel:
    """Average the summed samples, gamma correct (gamma 2) and quantize to 8 bits."""
    scale = 1.0 / samples_per_pixel
    channels = []
    for value in pixel_color.to_tuple():
        corrected = math.sqrt(max(0.0, value * scale))
        channels.append(int(256 * min(corrected, 0.999)))
    return channels[0], channels[1], channels[2]


def assigned_rows(worker: int, num_workers: int, height: int) -> Iterator[int]:
    """Rows owned by ``worker``, top of the image first."""
    for j in range(height - 1, -1, -1):
        if j % num_workers == worker:
            yield j


class _WorkerFailure:
    """Queue marker standing in for the pixels a failed worker never produced."""

    __slots__ = ('worker', 'error')

    def __init__(self, worker: int, error: BaseException):
        self.worker = worker
        self.error = error


class Renderer:
    """Multi-threaded path tracing renderer."""

    def __init__(self, settings: RenderSettings = None):
        """Create a renderer with the given settings.

        Args:
            settings: Render configuration (uses defaults if None)
        """
        self.settings = settings if settings else RenderSettings()
        self.state = RenderState.IDLE
        self._progress_callback: Optional[Callable[[float], None]] = None

    def set_progress_callback(self, callback: Callable[[float], None]) -> None:
        """Set a callback function for progress updates.

        Args:
            callback: Function that takes progress as float (0.0 to 1.0),
                called from the collecting thread once per finished row
        """
        self._progress_callback = callback

    def render(self, scene: Hittable, camera: Camera) -> np.ndarray:
        """Render the scene and return the image.

        Args:
            scene: The scene to render (any Hittable)
            camera: The camera to render from

        Returns:
            8-bit RGB image as numpy array of shape (height, width, 3), top row first

        Raises:
            RenderError: if a worker fails
        """
        width = self.settings.image_width
        height = self.settings.image_height
        num_workers = max(1, min(self.settings.num_workers, height))

        image = np.zeros((height, width, 3), dtype=np.uint8)
        seeds = np.random.SeedSequence(self.settings.seed).spawn(num_workers)
        channels = [queue.Queue() for _ in range(num_workers)]
        stop = threading.Event()

        logger.info(
            "Rendering %dx%d, %d samples/pixel, depth %d, %d workers",
            width, height, self.settings.samples_per_pixel, self.settings.max_depth, num_workers,
        )
        start_time = time.perf_counter()

        with ThreadPoolExecutor(max_workers=num_workers, thread_name_prefix='spheretrace') as executor:
            for worker in range(num_workers):
                executor.submit(
                    self._run_worker, worker, num_workers, scene, camera,
                    np.random.default_rng(seeds[worker]), channels[worker], stop,
                )
            self.state = RenderState.DISPATCHED

            try:
                self._collect(image, channels)
            except BaseException:
                # Nobody reads the queues any more; let the workers wind down
                stop.set()
                self.state = RenderState.FAILED
                raise

        self.state = RenderState.COMPLETE
        logger.info("Render completed in %.2f seconds", time.perf_counter() - start_time)
        return image

    def _collect(self, image: np.ndarray, channels: list) -> None:
        height, width = image.shape[:2]
        num_workers = len(channels)
        self.state = RenderState.COLLECTING

        for rows_done, j in enumerate(range(height - 1, -1, -1), start=1):
            channel = channels[j % num_workers]
            for i in range(width):
                item = channel.get()
                if isinstance(item, _WorkerFailure):
                    raise RenderError(f"render worker {item.worker} failed on row {j}: {item.error}") from item.error
                image[height - 1 - j, i] = item

            if self._progress_callback:
                self._progress_callback(rows_done / height)

    def _run_worker(
        self,
        worker: int,
        num_workers: int,
        scene: Hittable,
        camera: Camera,
        rng: np.random.Generator,
        channel: queue.Queue,
        stop: threading.Event,
    ) -> None:
        """Render every row owned by ``worker`` into its channel."""
        height = self.settings.image_height
        try:
            for j in assigned_rows(worker, num_workers, height):
                if stop.is_set():
                    return
                for i in range(self.settings.image_width):
                    channel.put(self.render_pixel(i, j, scene, camera, rng))
        except Exception as exc:
            logger.exception("Render worker %d failed", worker)
            channel.put(_WorkerFailure(worker, exc))

    def render_pixel(
        self,
        i: int,
        j: int,
        scene: Hittable,
        camera: Camera,
        rng: np.random.Generator,
    ) -> Pixel:
        """Supersample pixel (i, j), counting j from the bottom row."""
        width = self.settings.image_width
        height = self.settings.image_height
        samples = self.settings.samples_per_pixel
        max_depth = self.settings.max_depth

        pixel_color = Color(0, 0, 0)
        for _ in range(samples):
            u = (i + rng.random()) / max(width - 1, 1)
            v = (j + rng.random()) / max(height - 1, 1)
            ray = camera.get_ray(u, v, rng)
            pixel_color = pixel_color + ray_color(ray, scene, max_depth, rng)

        return to_pixel(pixel_color, samples)

    def save_image(self, image: np.ndarray, filename: str) -> None:
        """Save image to file.

        Args:
            image: 8-bit RGB image from ``render``
            filename: Output filename; ``.ppm`` writes plain-text P3, any
                other extension is encoded by Pillow

        Raises:
            ImageWriteError: if the file cannot be written
        """
        from PIL import Image as PILImage

        try:
            if Path(filename).suffix.lower() == '.ppm':
                with open(filename, 'w', encoding='ascii') as f:
                    self.write_ppm(image, f)
            else:
                PILImage.fromarray(image).save(filename)
        except (OSError, ValueError) as e:
            raise ImageWriteError(f"Cannot write image {filename}: {e}") from e

        logger.info("Saved %s", filename)

    @staticmethod
    def write_ppm(image: np.ndarray, stream: TextIO) -> None:
        """Stream the image as plain-text PPM (P3), one pixel per line."""
        height, width = image.shape[:2]
        stream.write(f"P3\n{width} {height}\n255\n")
        for row in image:
            stream.write(''.join(f"{r} {g} {b}\n" for r, g, b in row))
