"""Conversion from linear color to 8-bit display values.

Each component goes through three steps:

    1. gamma 2: sqrt for positive values, 0 otherwise
    2. clamp into [0.000, 0.999]
    3. quantize to int(256 * x), giving 0..255
"""

import numpy as np
import numpy.typing as npt

INTENSITY_MIN = 0.000
INTENSITY_MAX = 0.999


def linear_to_gamma(linear: npt.ArrayLike) -> npt.NDArray[np.float32]:
    """Apply gamma 2 to linear color components.

    Non-positive components (and NaN) map to 0.

    Args:
        linear: Linear color values of any shape.

    Returns:
        Gamma encoded values with the same shape.
    """
    values = np.asarray(linear, dtype=np.float32)
    positive = values > 0.0
    return np.where(positive, np.sqrt(np.where(positive, values, 0.0)), 0.0).astype(
        np.float32
    )


def encode_colors(linear: npt.ArrayLike) -> npt.NDArray[np.uint8]:
    """Encode linear colors to 8-bit display values.

    Args:
        linear: Linear color values, typically of shape (..., 3).

    Returns:
        Byte values in 0..255 with the same shape.
    """
    gamma = linear_to_gamma(linear)
    clamped = np.clip(gamma, INTENSITY_MIN, INTENSITY_MAX)
    return (256.0 * clamped).astype(np.uint8)
