"""Unit tests for the camera.

Tests cover:
- CameraConfig validation
- Derived image height and pixel grid
- Camera ray generation and jitter
- Render loop wiring (sink, progress, seeding)
- Rendering the scene passed in rather than the last one built
"""

from dataclasses import replace

import numpy as np
import pytest
import taichi as ti


class TestCameraConfig:
    def test_defaults(self):
        from skytrace.camera.camera import CameraConfig

        config = CameraConfig()
        assert config.aspect_ratio == pytest.approx(16.0 / 9.0)
        assert config.image_width == 400
        assert config.samples_per_pixel == 100
        assert config.max_depth == 10
        assert config.seed is None

    @pytest.mark.parametrize(
        "kwargs, match",
        [
            ({"aspect_ratio": 0.0}, "aspect_ratio"),
            ({"aspect_ratio": -1.0}, "aspect_ratio"),
            ({"aspect_ratio": float("nan")}, "aspect_ratio"),
            ({"image_width": 0}, "image_width"),
            ({"samples_per_pixel": 0}, "samples_per_pixel"),
            ({"max_depth": -1}, "max_depth"),
        ],
    )
    def test_invalid_values_rejected(self, kwargs, match):
        from skytrace.camera.camera import CameraConfig

        with pytest.raises(ValueError, match=match):
            CameraConfig(**kwargs)

    def test_zero_depth_allowed(self):
        from skytrace.camera.camera import CameraConfig

        assert CameraConfig(max_depth=0).max_depth == 0

    def test_frozen(self):
        from dataclasses import FrozenInstanceError

        from skytrace.camera.camera import CameraConfig

        config = CameraConfig()
        with pytest.raises(FrozenInstanceError):
            config.image_width = 10


class TestCameraState:
    def test_default_geometry(self):
        from skytrace.camera.camera import CameraConfig, compute_camera_state

        state = compute_camera_state(CameraConfig())
        assert state.image_width == 400
        assert state.image_height == 225
        assert state.pixel_samples_scale == pytest.approx(0.01)
        assert state.center == (0.0, 0.0, 0.0)

        viewport_width = 2.0 * 400 / 225
        assert state.pixel_delta_u == pytest.approx((viewport_width / 400, 0.0, 0.0))
        assert state.pixel_delta_v == pytest.approx((0.0, -2.0 / 225, 0.0))
        assert state.pixel00_loc == pytest.approx(
            (
                -viewport_width / 2 + 0.5 * viewport_width / 400,
                1.0 - 0.5 * 2.0 / 225,
                -1.0,
            )
        )

    def test_pixels_are_square(self):
        from skytrace.camera.camera import CameraConfig, compute_camera_state

        state = compute_camera_state(CameraConfig(image_width=401, aspect_ratio=1.7))
        assert state.pixel_delta_u[0] == pytest.approx(-state.pixel_delta_v[1])

    @pytest.mark.parametrize("aspect_ratio", [16.0 / 9.0, 4.0, 100.0, 0.5])
    def test_width_one_height_at_least_one(self, aspect_ratio):
        from skytrace.camera.camera import CameraConfig, compute_camera_state

        state = compute_camera_state(CameraConfig(image_width=1, aspect_ratio=aspect_ratio))
        assert state.image_height >= 1

    def test_height_truncates(self):
        from skytrace.camera.camera import CameraConfig, compute_camera_state

        state = compute_camera_state(CameraConfig(image_width=100, aspect_ratio=3.0))
        assert state.image_height == 33

    def test_camera_properties(self):
        from skytrace.camera.camera import Camera, CameraConfig

        camera = Camera(CameraConfig(image_width=64, aspect_ratio=2.0, samples_per_pixel=4))
        assert camera.image_width == 64
        assert camera.image_height == 32
        assert "width=64" in repr(camera)


class TestGetRay:
    def _rays(self, config, pixel_i, pixel_j, count):
        from skytrace.camera.camera import compute_camera_state, get_ray, setup_camera

        setup_camera(compute_camera_state(config))
        origins = ti.Vector.field(3, dtype=ti.f32, shape=count)
        directions = ti.Vector.field(3, dtype=ti.f32, shape=count)

        @ti.kernel
        def test_kernel(i: ti.i32, j: ti.i32):
            ti.loop_config(serialize=True)
            for k in range(count):
                ray = get_ray(i, j)
                origins[k] = ray.origin
                directions[k] = ray.direction

        test_kernel(pixel_i, pixel_j)
        return origins.to_numpy(), directions.to_numpy()

    def test_rays_start_at_camera_center(self):
        from skytrace.camera.camera import CameraConfig

        origins, _ = self._rays(CameraConfig(), 10, 20, 50)
        np.testing.assert_allclose(origins, 0.0)

    def test_rays_stay_within_pixel(self):
        """Jittered targets fall within half a pixel of the pixel center."""
        from skytrace.camera.camera import CameraConfig, compute_camera_state

        config = CameraConfig()
        state = compute_camera_state(config)
        i, j = 200, 100
        _, directions = self._rays(config, i, j, 200)

        center = (
            np.array(state.pixel00_loc)
            + i * np.array(state.pixel_delta_u)
            + j * np.array(state.pixel_delta_v)
        )
        offsets = directions - center
        half_u = 0.5 * state.pixel_delta_u[0] + 1e-6
        half_v = 0.5 * -state.pixel_delta_v[1] + 1e-6
        assert np.all(np.abs(offsets[:, 0]) <= half_u)
        assert np.all(np.abs(offsets[:, 1]) <= half_v)
        np.testing.assert_allclose(directions[:, 2], -1.0, atol=1e-6)
        # Jitter actually moves the samples around
        assert np.std(offsets[:, 0]) > 0.0

    def test_top_left_pixel_points_up_and_left(self):
        from skytrace.camera.camera import CameraConfig

        _, directions = self._rays(CameraConfig(), 0, 0, 10)
        assert np.all(directions[:, 0] < 0.0)
        assert np.all(directions[:, 1] > 0.0)


class TestCameraRender:
    def test_render_shape_and_sink(self):
        from skytrace.camera.camera import Camera, CameraConfig
        from skytrace.output.export import ArraySink
        from skytrace.scene.presets import create_default_scene

        scene = create_default_scene()
        config = CameraConfig(image_width=16, aspect_ratio=2.0, samples_per_pixel=2, seed=1)
        sink = ArraySink()
        progress = []

        def on_progress(done, total):
            progress.append((done, total))

        image = Camera(config).render(scene, sink, progress=on_progress)

        assert image.shape == (8, 16, 3)
        assert image.dtype == np.float32
        np.testing.assert_array_equal(sink.image, image)
        assert progress == [(row, 8) for row in range(1, 9)]

    def test_render_without_sink(self):
        from skytrace.camera.camera import Camera, CameraConfig
        from skytrace.scene.presets import create_default_scene

        scene = create_default_scene()
        config = CameraConfig(image_width=8, aspect_ratio=1.0, samples_per_pixel=1)
        image = Camera(config).render(scene)
        assert image.shape == (8, 8, 3)

    def test_same_seed_same_image(self):
        from skytrace.camera.camera import Camera, CameraConfig
        from skytrace.scene.presets import create_default_scene

        scene = create_default_scene()
        config = CameraConfig(image_width=16, aspect_ratio=2.0, samples_per_pixel=4, seed=5)
        first = Camera(config).render(scene)
        second = Camera(config).render(scene)
        np.testing.assert_array_equal(first, second)

    def test_different_seed_different_image(self):
        from skytrace.camera.camera import Camera, CameraConfig
        from skytrace.scene.presets import create_default_scene

        scene = create_default_scene()
        config = CameraConfig(image_width=16, aspect_ratio=2.0, samples_per_pixel=4, seed=5)
        first = Camera(config).render(scene)
        second = Camera(replace(config, seed=6)).render(scene)
        assert not np.array_equal(first, second)

    def test_too_wide_rejected(self):
        from skytrace.camera.camera import Camera, CameraConfig
        from skytrace.core.integrator import MAX_IMAGE_WIDTH
        from skytrace.scene.manager import SceneManager

        camera = Camera(CameraConfig(image_width=MAX_IMAGE_WIDTH + 1, samples_per_pixel=1))
        with pytest.raises(ValueError, match="exceeds maximum"):
            camera.render(SceneManager())

    def test_render_logs_start_and_finish(self, caplog):
        import logging

        from skytrace.camera.camera import Camera, CameraConfig
        from skytrace.scene.manager import SceneManager

        with caplog.at_level(logging.INFO, logger="skytrace.camera.camera"):
            config = CameraConfig(image_width=4, aspect_ratio=1.0, samples_per_pixel=1)
            Camera(config).render(SceneManager())
        assert "Rendering 4x4" in caplog.text
        assert "Done in" in caplog.text

    def test_renders_the_scene_it_is_given(self):
        """A scene built before another one still renders its own spheres."""
        from skytrace.camera.camera import Camera, CameraConfig
        from skytrace.scene.manager import SceneManager
        from skytrace.scene.presets import create_default_scene

        scene = create_default_scene()
        SceneManager()

        config = CameraConfig(image_width=40, samples_per_pixel=4, seed=11)
        image = Camera(config).render(scene)

        assert scene.get_sphere_count() == 2
        # The sky is fully blue everywhere; the grey sphere halves it at most
        assert image[11, 20, 2] < 0.6
        assert image[0, 20, 2] == pytest.approx(1.0, abs=1e-5)


class TestModuleImport:
    def test_camera_and_integrator_import(self):
        import inspect

        from skytrace.camera.camera import Camera
        from skytrace.core.integrator import render_row

        assert callable(render_row)
        annotations = inspect.signature(Camera.render).parameters
        assert annotations["scene"].annotation == "SceneManager"
