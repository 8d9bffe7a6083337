"""Integration tests for the end-to-end rendering pipeline.

These tests go from scene creation through the camera to encoded output and
check image-level properties of the result rather than exact pixels.

Note: Imports are done inside test methods to avoid Taichi initialization issues.
The conftest.py fixture initializes Taichi before tests run.
"""

from __future__ import annotations

import io
from pathlib import Path

import numpy as np
import pytest


def _sky(direction):
    d = np.asarray(direction, dtype=np.float64)
    a = 0.5 * (d[1] / np.linalg.norm(d) + 1.0)
    return (1.0 - a) * np.ones(3) + a * np.array([0.5, 0.7, 1.0])


class TestDefaultSceneRender:
    """The two-sphere scene at the standard 400x225 resolution."""

    @pytest.mark.slow
    def test_reference_configuration(self) -> None:
        from skytrace.camera.camera import Camera, CameraConfig
        from skytrace.scene.presets import create_default_scene

        scene = create_default_scene()
        config = CameraConfig(
            aspect_ratio=16.0 / 9.0,
            image_width=400,
            samples_per_pixel=100,
            max_depth=10,
            seed=2024,
        )
        camera = Camera(config)
        image = camera.render(scene)

        assert image.shape == (225, 400, 3)
        assert np.all(np.isfinite(image))
        assert image.min() >= 0.0

        # Top center looks up past every sphere, onto the sky gradient
        state = camera.state
        top_center = (
            np.array(state.pixel00_loc) + 200 * np.array(state.pixel_delta_u)
        )
        np.testing.assert_allclose(image[0, 200], _sky(top_center), atol=0.01)

        # The lower half of the small sphere is shadowed by the ground
        sphere_pixels = image[140:165, 190:211]
        assert sphere_pixels.mean() < 0.5 * image[0, 200].mean()

        # Ground below the sphere is lit but darker than the sky
        assert image[200, 300].mean() < image[0, 200].mean()


class TestPipeline:
    def test_ppm_output(self) -> None:
        from skytrace.camera.camera import Camera, CameraConfig
        from skytrace.output.ppm import PPMSink
        from skytrace.scene.presets import create_default_scene

        scene = create_default_scene()
        camera = Camera(CameraConfig(image_width=40, samples_per_pixel=4, seed=1))
        stream = io.StringIO()
        camera.render(scene, PPMSink(stream))

        lines = stream.getvalue().splitlines()
        assert lines[:3] == ["P3", "40 22", "255"]
        assert len(lines) == 3 + 40 * 22
        for line in lines[3:]:
            values = [int(v) for v in line.split()]
            assert len(values) == 3
            assert all(0 <= v <= 255 for v in values)

    def test_small_render_structure(self) -> None:
        """Sky on top, sphere darker in the middle, matching the full render."""
        from skytrace.camera.camera import Camera, CameraConfig
        from skytrace.scene.presets import create_default_scene

        scene = create_default_scene()
        image = Camera(CameraConfig(image_width=80, samples_per_pixel=8, seed=3)).render(scene)

        assert image.shape == (45, 80, 3)
        top = image[0].mean(axis=0)
        # Sky: blue channel brightest
        assert top[2] > top[0]
        # Lower part of the small sphere (rows ~28..33, columns ~38..42)
        assert image[28:33, 38:43].mean() < top.mean()

    def test_zero_depth_renders_black(self) -> None:
        from skytrace.camera.camera import Camera, CameraConfig
        from skytrace.output.export import ArraySink
        from skytrace.scene.presets import create_material_scene

        scene = create_material_scene()
        sink = ArraySink()
        Camera(CameraConfig(image_width=32, samples_per_pixel=2, max_depth=0)).render(scene, sink)
        np.testing.assert_array_equal(sink.image, 0.0)

    def test_material_scene_renders(self) -> None:
        from skytrace.camera.camera import Camera, CameraConfig
        from skytrace.scene.presets import create_material_scene

        scene = create_material_scene()
        image = Camera(CameraConfig(image_width=48, samples_per_pixel=4, seed=9)).render(scene)
        assert image.shape == (27, 48, 3)
        assert np.all(np.isfinite(image))
        assert image.max() <= 1.0 + 1e-5

    def test_png_export(self, tmp_path: Path) -> None:
        from PIL import Image as PILImage

        from skytrace.camera.camera import Camera, CameraConfig
        from skytrace.output.export import save_png_from_array
        from skytrace.scene.presets import create_default_scene

        scene = create_default_scene()
        image = Camera(CameraConfig(image_width=32, samples_per_pixel=2, seed=4)).render(scene)
        output_path = tmp_path / "spheres.png"
        save_png_from_array(image, str(output_path))

        assert output_path.exists()
        with PILImage.open(output_path) as loaded:
            assert loaded.size == (32, 18)

    def test_reseeding_reproduces_image(self) -> None:
        from skytrace.camera.camera import Camera, CameraConfig
        from skytrace.output.export import compute_rmse
        from skytrace.scene.presets import create_material_scene

        scene = create_material_scene()
        config = CameraConfig(image_width=24, samples_per_pixel=3, seed=77)
        first = Camera(config).render(scene)
        second = Camera(config).render(scene)
        assert compute_rmse(first, second) == 0.0
