"""Image sinks and the plain-text PPM writer.

A sink receives an image one scanline at a time, top row first:

    sink.begin(width, height)
    for row in rows:
        sink.write_row(row)  # (width, 3) linear colors
    sink.end()

PPMSink encodes each row as it arrives and writes it to a text stream in
the ASCII "P3" format, so a render can be piped straight to a file:

    P3
    400 225
    255
    r g b
    ...
"""

from __future__ import annotations

import logging
from typing import Protocol, TextIO

import numpy as np
import numpy.typing as npt

from skytrace.output.encoding import encode_colors

logger = logging.getLogger(__name__)

PPM_MAX_VALUE = 255


class ImageSink(Protocol):
    """Receiver of rendered scanlines."""

    def begin(self, width: int, height: int) -> None: ...

    def write_row(self, row: npt.NDArray[np.float32]) -> None: ...

    def end(self) -> None: ...


class PPMSink:
    """Writes rows as an ASCII PPM image to a text stream.

    The stream is not closed by end(); the caller owns it.

    Args:
        stream: Writable text stream (an open file, sys.stdout, StringIO).
    """

    def __init__(self, stream: TextIO) -> None:
        self._stream = stream
        self._width = 0
        self._height = 0
        self._rows_written = 0

    def begin(self, width: int, height: int) -> None:
        """Write the PPM header."""
        self._width = width
        self._height = height
        self._rows_written = 0
        self._stream.write(f"P3\n{width} {height}\n{PPM_MAX_VALUE}\n")

    def write_row(self, row: npt.NDArray[np.float32]) -> None:
        """Encode one row of linear colors and write one line per pixel.

        Raises:
            ValueError: If the row does not hold width RGB triples.
        """
        row = np.asarray(row)
        if row.shape != (self._width, 3):
            raise ValueError(
                f"Expected a row of shape ({self._width}, 3), got {row.shape}"
            )
        encoded = encode_colors(row)
        self._stream.write("".join(f"{r} {g} {b}\n" for r, g, b in encoded.tolist()))
        self._rows_written += 1

    def end(self) -> None:
        """Flush the stream."""
        if self._rows_written != self._height:
            logger.warning(
                "PPM image ended after %d of %d rows", self._rows_written, self._height
            )
        self._stream.flush()
