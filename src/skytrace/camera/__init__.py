"""Camera module for view setup, ray generation and rendering.

The camera is fixed at the origin looking down -z with a viewport one unit
away. CameraConfig holds the user-facing parameters; Camera derives the
pixel grid from them and renders a scene scanline by scanline into an
image sink.
"""

from .camera import (
    Camera,
    CameraConfig,
    CameraState,
    compute_camera_state,
    get_ray,
    setup_camera,
)

__all__ = [
    "Camera",
    "CameraConfig",
    "CameraState",
    "compute_camera_state",
    "setup_camera",
    "get_ray",
]
