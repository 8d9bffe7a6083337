"""Output module: color encoding and image sinks.

Components:
    encoding: Gamma 2 encoding and 8-bit quantization
    ppm: ImageSink protocol and the ASCII PPM writer
    export: In-memory sink, PNG export (Pillow) and the sample gradient
"""

from .encoding import encode_colors, linear_to_gamma
from .export import (
    ArraySink,
    compute_rmse,
    image_to_uint8,
    save_png_from_array,
    write_sample_image,
)
from .ppm import ImageSink, PPMSink

__all__ = [
    "encode_colors",
    "linear_to_gamma",
    "ImageSink",
    "PPMSink",
    "ArraySink",
    "image_to_uint8",
    "save_png_from_array",
    "compute_rmse",
    "write_sample_image",
]
