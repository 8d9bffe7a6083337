"""In-memory image sink, PNG export and the sample gradient image.

Example:
    >>> from skytrace.output.export import ArraySink, save_png_from_array, write_sample_image
    >>> sink = ArraySink()
    >>> write_sample_image(sink)
    >>> save_png_from_array(sink.image, "gradient.png")
"""

from __future__ import annotations

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage

from skytrace.output.encoding import encode_colors
from skytrace.output.ppm import ImageSink


class ArraySink:
    """Collects rows into a (height, width, 3) float32 NumPy image."""

    def __init__(self) -> None:
        self._image: npt.NDArray[np.float32] | None = None
        self._next_row = 0

    def begin(self, width: int, height: int) -> None:
        self._image = np.zeros((height, width, 3), dtype=np.float32)
        self._next_row = 0

    def write_row(self, row: npt.NDArray[np.float32]) -> None:
        """Store the next row.

        Raises:
            RuntimeError: If begin() was not called or the image is full.
        """
        image = self.image
        if self._next_row >= image.shape[0]:
            raise RuntimeError(f"Image already holds all {image.shape[0]} rows")
        image[self._next_row] = row
        self._next_row += 1

    def end(self) -> None:
        pass

    @property
    def image(self) -> npt.NDArray[np.float32]:
        """The linear image collected so far.

        Raises:
            RuntimeError: If begin() has not been called.
        """
        if self._image is None:
            raise RuntimeError("ArraySink has no image; call begin() first")
        return self._image

    @property
    def rows_written(self) -> int:
        return self._next_row


def image_to_uint8(image: npt.NDArray[np.float32]) -> npt.NDArray[np.uint8]:
    """Convert a linear float image to 8-bit display values.

    Args:
        image: Linear image array of shape (H, W, 3).

    Returns:
        8-bit image array of shape (H, W, 3) with dtype uint8.
    """
    return encode_colors(image)


def save_png_from_array(image: npt.NDArray[np.float32], filepath: str) -> None:
    """Save a linear image as an 8-bit PNG file.

    Uses the same gamma 2 encoding as the PPM writer.

    Args:
        image: Linear image array of shape (H, W, 3).
        filepath: Output file path (should end in .png).
    """
    pil_image = PILImage.fromarray(image_to_uint8(image))
    pil_image.save(filepath)


def compute_rmse(
    image_a: npt.NDArray[np.floating[npt.NBitBase]],
    image_b: npt.NDArray[np.floating[npt.NBitBase]],
) -> float:
    """Compute root mean squared error between two images.

    Raises:
        ValueError: If image shapes don't match.
    """
    if image_a.shape != image_b.shape:
        raise ValueError(
            f"Image shapes must match: {image_a.shape} vs {image_b.shape}"
        )

    diff = image_a.astype(np.float64) - image_b.astype(np.float64)
    return float(np.sqrt(np.mean(diff**2)))


def write_sample_image(sink: ImageSink, width: int = 256, height: int = 256) -> None:
    """Stream the red/green gradient test pattern through a sink.

    Red grows from left to right and green from top to bottom; blue is 0.
    The values are written as linear colors, so the sink's gamma encoding
    applies to them like any render.

    Args:
        sink: Destination sink.
        width: Image width in pixels (at least 1).
        height: Image height in pixels (at least 1).

    Raises:
        ValueError: If width or height is less than 1.
    """
    if width < 1 or height < 1:
        raise ValueError(f"Image size must be positive, got {width}x{height}")

    if width > 1:
        red = np.linspace(0.0, 1.0, width, dtype=np.float32)
    else:
        red = np.zeros(1, dtype=np.float32)

    sink.begin(width, height)
    for j in range(height):
        green = j / (height - 1) if height > 1 else 0.0
        row = np.zeros((width, 3), dtype=np.float32)
        row[:, 0] = red
        row[:, 1] = green
        sink.write_row(row)
    sink.end()
