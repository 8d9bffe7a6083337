"""Camera model: viewport geometry, sample rays and the render loop.

The camera sits at the origin looking down -z at a viewport one unit away.
The viewport is 2.0 units tall and as wide as the realized image aspect
ratio allows. Pixel (i, j) has its center at

    pixel00_loc + i * pixel_delta_u + j * pixel_delta_v

with j growing downwards, so rows come out in raster order.

Configuration is fixed at construction. The derived state (image height,
sample scale and the pixel grid basis) is computed once on the Python side
and uploaded into Taichi fields before each render.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from skytrace.camera.camera import Camera, CameraConfig
    >>> from skytrace.output.ppm import PPMSink
    >>> from skytrace.scene.presets import create_default_scene
    >>>
    >>> scene = create_default_scene()
    >>> camera = Camera(CameraConfig(image_width=400, samples_per_pixel=100))
    >>> with open("image.ppm", "w") as out:
    ...     image = camera.render(scene, PPMSink(out))
"""

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

from skytrace.core.ray import Ray, make_ray
from skytrace.core.sampling import STREAM_CAMERA, sample_square, seed_sampler

if TYPE_CHECKING:
    from skytrace.output.ppm import ImageSink
    from skytrace.scene.manager import SceneManager

logger = logging.getLogger(__name__)

vec3 = tm.vec3

# Callback receives (rows_done, total_rows)
ProgressCallback = Callable[[int, int], None]

VIEWPORT_HEIGHT = 2.0
FOCAL_LENGTH = 1.0


# =============================================================================
# Camera Data Structures
# =============================================================================


@dataclass(frozen=True)
class CameraConfig:
    """Configuration for the camera and renderer.

    Attributes:
        aspect_ratio: Ideal ratio of image width over height (positive).
        image_width: Rendered image width in pixels (positive).
        samples_per_pixel: Number of jittered samples averaged per pixel.
        max_depth: Maximum number of ray bounces (0 renders black).
        seed: Seed for the random streams. None draws fresh entropy,
            so two renders with the same non-None seed are identical.

    Raises:
        ValueError: If any value is out of range.
    """

    aspect_ratio: float = 16.0 / 9.0
    image_width: int = 400
    samples_per_pixel: int = 100
    max_depth: int = 10
    seed: int | None = None

    def __post_init__(self) -> None:
        if not self.aspect_ratio > 0.0:
            raise ValueError(f"aspect_ratio must be positive, got {self.aspect_ratio}")
        if self.image_width < 1:
            raise ValueError(f"image_width must be at least 1, got {self.image_width}")
        if self.samples_per_pixel < 1:
            raise ValueError(
                f"samples_per_pixel must be at least 1, got {self.samples_per_pixel}"
            )
        if self.max_depth < 0:
            raise ValueError(f"max_depth must be non-negative, got {self.max_depth}")


@dataclass(frozen=True)
class CameraState:
    """Render state derived from a CameraConfig.

    Attributes:
        image_width: Image width in pixels.
        image_height: Image height in pixels, never below 1.
        pixel_samples_scale: 1 / samples_per_pixel.
        center: Camera center (eye point).
        pixel00_loc: Center of the top-left pixel.
        pixel_delta_u: Offset from a pixel to its right neighbour.
        pixel_delta_v: Offset from a pixel to the one below it.
    """

    image_width: int
    image_height: int
    pixel_samples_scale: float
    center: tuple[float, float, float]
    pixel00_loc: tuple[float, float, float]
    pixel_delta_u: tuple[float, float, float]
    pixel_delta_v: tuple[float, float, float]


def _as_tuple(v: npt.NDArray[np.float64]) -> tuple[float, float, float]:
    return (float(v[0]), float(v[1]), float(v[2]))


def compute_camera_state(config: CameraConfig) -> CameraState:
    """Derive image size and the pixel grid from a configuration.

    The image height is floor(width / aspect_ratio), but at least 1. The
    viewport width uses the realized ratio width / height rather than the
    ideal one, so pixels stay square after rounding.

    Args:
        config: Camera configuration.

    Returns:
        The derived, immutable camera state.
    """
    image_width = config.image_width
    image_height = max(1, int(image_width / config.aspect_ratio))

    viewport_height = VIEWPORT_HEIGHT
    viewport_width = viewport_height * (image_width / image_height)

    center = np.zeros(3)

    # Vectors across the horizontal and down the vertical viewport edges
    viewport_u = np.array([viewport_width, 0.0, 0.0])
    viewport_v = np.array([0.0, -viewport_height, 0.0])

    pixel_delta_u = viewport_u / image_width
    pixel_delta_v = viewport_v / image_height

    viewport_upper_left = (
        center - np.array([0.0, 0.0, FOCAL_LENGTH]) - viewport_u / 2.0 - viewport_v / 2.0
    )
    pixel00_loc = viewport_upper_left + 0.5 * (pixel_delta_u + pixel_delta_v)

    return CameraState(
        image_width=image_width,
        image_height=image_height,
        pixel_samples_scale=1.0 / config.samples_per_pixel,
        center=_as_tuple(center),
        pixel00_loc=_as_tuple(pixel00_loc),
        pixel_delta_u=_as_tuple(pixel_delta_u),
        pixel_delta_v=_as_tuple(pixel_delta_v),
    )


# =============================================================================
# Taichi Fields for Camera State
# =============================================================================

_camera_center = ti.Vector.field(3, dtype=ti.f32, shape=())
_pixel00_loc = ti.Vector.field(3, dtype=ti.f32, shape=())
_pixel_delta_u = ti.Vector.field(3, dtype=ti.f32, shape=())
_pixel_delta_v = ti.Vector.field(3, dtype=ti.f32, shape=())


def setup_camera(state: CameraState) -> None:
    """Upload derived camera state into the fields get_ray() reads.

    This function writes to Taichi fields and should be called from
    Python (not from within a Taichi kernel).
    """
    _camera_center[None] = list(state.center)
    _pixel00_loc[None] = list(state.pixel00_loc)
    _pixel_delta_u[None] = list(state.pixel_delta_u)
    _pixel_delta_v[None] = list(state.pixel_delta_v)


@ti.func
def get_ray(pixel_i: ti.i32, pixel_j: ti.i32) -> Ray:
    """Generate a jittered camera ray through pixel (i, j).

    The sample point is the pixel center offset uniformly within
    [-0.5, 0.5]^2 pixels (box filter antialiasing).

    Args:
        pixel_i: Pixel column (0 = left).
        pixel_j: Pixel row (0 = top).

    Returns:
        A ray from the camera center toward the sample point. The
        direction is not normalized.
    """
    offset = sample_square(STREAM_CAMERA)
    pixel_sample = (
        _pixel00_loc[None]
        + (ti.cast(pixel_i, ti.f32) + offset.x) * _pixel_delta_u[None]
        + (ti.cast(pixel_j, ti.f32) + offset.y) * _pixel_delta_v[None]
    )
    origin = _camera_center[None]
    return make_ray(origin, pixel_sample - origin)


# =============================================================================
# Camera
# =============================================================================


class Camera:
    """Renders a scene into an image sink.

    Attributes:
        config: The configuration the camera was built from.
        state: Derived state (image height, pixel grid).
    """

    def __init__(self, config: CameraConfig | None = None) -> None:
        self._config = config if config is not None else CameraConfig()
        self._state = compute_camera_state(self._config)

    @property
    def config(self) -> CameraConfig:
        return self._config

    @property
    def state(self) -> CameraState:
        return self._state

    @property
    def image_width(self) -> int:
        return self._state.image_width

    @property
    def image_height(self) -> int:
        return self._state.image_height

    def render(
        self,
        scene: "SceneManager",
        sink: "ImageSink | None" = None,
        progress: "ProgressCallback | None" = None,
    ) -> npt.NDArray[np.float32]:
        """Render the scene one scanline at a time.

        Rows are rendered top to bottom and each finished row is written to
        the sink before the next starts. The random streams are reseeded
        from config.seed first.

        Args:
            scene: The scene to render. It is uploaded into the render
                fields first, so it need not be the most recently built one.
            sink: Optional image sink receiving the rows in raster order.
            progress: Optional callback called after each row with
                (rows_done, total_rows).

        Returns:
            The linear (un-encoded) image, shape (height, width, 3).

        Raises:
            ValueError: If the image is wider than the render target.
        """
        # Deferred: the integrator imports get_ray from this module
        from skytrace.core.integrator import check_render_width, render_row

        width = self._state.image_width
        height = self._state.image_height
        check_render_width(width)

        scene.upload()
        seed_sampler(self._config.seed)
        setup_camera(self._state)

        logger.info(
            "Rendering %dx%d, %d samples/pixel, max depth %d, %d spheres",
            width,
            height,
            self._config.samples_per_pixel,
            self._config.max_depth,
            scene.get_sphere_count(),
        )
        start_time = time.time()

        if sink is not None:
            sink.begin(width, height)

        image = np.zeros((height, width, 3), dtype=np.float32)
        for j in range(height):
            logger.debug("Scanlines remaining: %d", height - j)
            row = render_row(
                j,
                width,
                self._config.samples_per_pixel,
                self._config.max_depth,
                self._state.pixel_samples_scale,
            )
            image[j] = row
            if sink is not None:
                sink.write_row(row)
            if progress is not None:
                progress(j + 1, height)

        if sink is not None:
            sink.end()

        logger.info("Done in %.2fs", time.time() - start_time)
        return image

    def __repr__(self) -> str:
        return (
            f"Camera(width={self.image_width}, height={self.image_height}, "
            f"samples={self._config.samples_per_pixel}, max_depth={self._config.max_depth})"
        )
