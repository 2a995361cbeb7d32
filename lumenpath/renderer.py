"""
Renderer module - the parallel pixel scheduler.

Implements:
- Per-pixel averaging of jittered camera samples
- Static partitioning of the image into contiguous row bands
- Thread or process pools with one band per worker
- 8-bit image output through Pillow
"""

from __future__ import annotations
import logging
import os
import threading
from concurrent.futures import ThreadPoolExecutor, ProcessPoolExecutor, as_completed
from dataclasses import dataclass
from typing import Optional, Callable
import numpy as np

from .vec3 import Color
from .camera import Camera
from .shapes import Hittable
from .integrator import ray_color, color_to_rgb

logger = logging.getLogger(__name__)

BACKENDS = ('thread', 'process')


@dataclass
class RenderSettings:
    """Configuration for the renderer."""
    image_width: int = 800
    aspect_ratio: float = 16.0 / 9.0
    samples_per_pixel: int = 500
    max_depth: int = 50
    num_threads: int = 0  # 0 = auto-detect
    seed: Optional[int] = None  # None = fresh entropy per render
    backend: str = 'thread'

    def __post_init__(self):
        if self.num_threads == 0:
            self.num_threads = os.cpu_count() or 1
        if self.image_width < 1:
            raise ValueError(f"image_width must be positive, got {self.image_width}")
        if self.aspect_ratio <= 0:
            raise ValueError(f"aspect_ratio must be positive, got {self.aspect_ratio}")
        if self.image_height < 1:
            raise ValueError(
                f"image height derived from width {self.image_width} and "
                f"aspect ratio {self.aspect_ratio} is less than one pixel"
            )
        if self.samples_per_pixel < 1:
            raise ValueError(f"samples_per_pixel must be positive, got {self.samples_per_pixel}")
        if self.num_threads < 1:
            raise ValueError(f"num_threads must be positive, got {self.num_threads}")
        if self.backend not in BACKENDS:
            raise ValueError(f"Unknown backend: {self.backend}")

    @property
    def image_height(self) -> int:
        return int(self.image_width / self.aspect_ratio)


class ProgressCounter:
    """Thread-safe count of rows still to be rendered."""

    def __init__(self, total: int, callback: Optional[Callable[[int], None]] = None):
        self.remaining = total
        self._callback = callback
        self._lock = threading.Lock()

    def decrement(self, rows: int = 1) -> int:
        with self._lock:
            self.remaining -= rows
            remaining = self.remaining
            if self._callback:
                self._callback(remaining)
        return remaining


def partition_rows(height: int, workers: int) -> list[range]:
    """Split rows 0..height-1 into at most `workers` contiguous bands.

    Band sizes differ by at most one row. Empty bands are dropped.
    """
    base, extra = divmod(height, workers)
    bands = []
    start = 0
    for k in range(workers):
        size = base + (1 if k < extra else 0)
        if size:
            bands.append(range(start, start + size))
        start += size
    return bands


def row_generator(entropy: int, row: int) -> np.random.Generator:
    """Random generator for one image row, independent of the worker that
    renders it."""
    return np.random.default_rng(np.random.SeedSequence(entropy, spawn_key=(row,)))


def render_row(
    scene: Hittable,
    camera: Camera,
    settings: RenderSettings,
    row: int,
    entropy: int,
) -> np.ndarray:
    """Render one row of pixels.

    Args:
        row: Row index counted from the bottom of the image

    Returns:
        uint8 array of shape (width, 3)
    """
    width = settings.image_width
    height = settings.image_height
    samples = settings.samples_per_pixel
    max_depth = settings.max_depth
    rng = row_generator(entropy, row)

    # Guard the single-pixel axes against dividing by zero
    u_span = max(width - 1, 1)
    v_span = max(height - 1, 1)

    pixels = np.empty((width, 3), dtype=np.uint8)
    for i in range(width):
        pixel_color = Color(0, 0, 0)
        for _ in range(samples):
            u = (i + rng.random()) / u_span
            v = (row + rng.random()) / v_span
            ray = camera.get_ray(u, v, rng)
            pixel_color = pixel_color + ray_color(ray, scene, rng, max_depth)
        pixels[i] = color_to_rgb(pixel_color, samples)
    return pixels


def render_band(
    scene: Hittable,
    camera: Camera,
    settings: RenderSettings,
    band: range,
    entropy: int,
    on_row: Optional[Callable[[int, np.ndarray], None]] = None,
) -> np.ndarray:
    """Render a contiguous band of rows in raster order.

    Args:
        band: Row indices counted from the bottom of the image
        on_row: Called with (row, pixels) as each row completes

    Returns:
        uint8 array of shape (len(band), width, 3), ordered like `band`
    """
    rows = np.empty((len(band), settings.image_width, 3), dtype=np.uint8)
    for k, row in enumerate(band):
        rows[k] = render_row(scene, camera, settings, row, entropy)
        if on_row is not None:
            on_row(row, rows[k])
    return rows


class Renderer:
    """Path tracing renderer with multi-threading support."""

    def __init__(self, settings: RenderSettings = None):
        """Create a renderer with the given settings.

        Args:
            settings: Render configuration (uses defaults if None)
        """
        self.settings = settings if settings else RenderSettings()
        self._progress_callback: Optional[Callable[[int], None]] = None

    def set_progress_callback(self, callback: Callable[[int], None]) -> None:
        """Set a callback function for progress updates.

        Args:
            callback: Function that takes the number of rows still to be
                rendered. It may be called from worker threads.
        """
        self._progress_callback = callback

    def render(self, scene: Hittable, camera: Camera) -> np.ndarray:
        """Render the scene and return the image as a numpy array.

        Args:
            scene: The scene to render (any Hittable)
            camera: The camera to render from

        Returns:
            uint8 image of shape (height, width, 3), row 0 at the top
        """
        settings = self.settings
        width = settings.image_width
        height = settings.image_height

        if settings.seed is None:
            entropy = np.random.SeedSequence().entropy
        else:
            entropy = settings.seed

        image = np.zeros((height, width, 3), dtype=np.uint8)
        progress = ProgressCounter(height, self._progress_callback)
        bands = partition_rows(height, settings.num_threads)

        logger.info(
            "Rendering %dx%d, %d samples, depth %d on %d %s worker(s)",
            width, height, settings.samples_per_pixel, settings.max_depth,
            len(bands), settings.backend,
        )

        def store_row(row: int, pixels: np.ndarray) -> None:
            # Rows are counted from the bottom; the image starts at the top
            image[height - 1 - row] = pixels
            progress.decrement()

        if len(bands) == 1:
            render_band(scene, camera, settings, bands[0], entropy, store_row)
        elif settings.backend == 'process':
            with ProcessPoolExecutor(max_workers=len(bands)) as executor:
                futures = {
                    executor.submit(render_band, scene, camera, settings, band, entropy): band
                    for band in bands
                }
                for future in as_completed(futures):
                    band = futures[future]
                    rows = future.result()
                    for k, row in enumerate(band):
                        image[height - 1 - row] = rows[k]
                    progress.decrement(len(band))
                    logger.debug("Band %d-%d done", band.start, band.stop - 1)
        else:
            with ThreadPoolExecutor(max_workers=len(bands)) as executor:
                futures = [
                    executor.submit(render_band, scene, camera, settings, band, entropy, store_row)
                    for band in bands
                ]
                for future in futures:
                    future.result()

        logger.info("Render finished")
        return image

    @staticmethod
    def save_image(image: np.ndarray, filename: str) -> None:
        """Save an 8-bit RGB image; the extension selects the format.

        Raises:
            OSError: If the file cannot be written
        """
        from PIL import Image as PILImage

        PILImage.fromarray(np.ascontiguousarray(image, dtype=np.uint8)).save(filename)
        logger.info("Saved %s", filename)
