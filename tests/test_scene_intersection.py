"""Unit tests for scene-level intersection.

Tests cover:
- Primitive storage, counts and clearing
- Empty scene misses
- Closest hit selection among overlapping spheres
- Insertion order independence
- Material id propagation
"""

import math

import pytest
import taichi as ti


def _intersect(origin, direction, t_min=0.001, t_max=float("inf")):
    """Intersect one ray with the current scene and return the record fields."""
    from skytrace.core.interval import make_interval
    from skytrace.core.ray import make_ray
    from skytrace.scene.intersection import intersect_scene, vec3

    hit = ti.field(dtype=ti.i32, shape=())
    t_val = ti.field(dtype=ti.f32, shape=())
    material_id = ti.field(dtype=ti.i32, shape=())

    @ti.kernel
    def test_kernel(o: vec3, d: vec3, lo: ti.f32, hi: ti.f32):
        rec = intersect_scene(make_ray(o, d), make_interval(lo, hi))
        hit[None] = rec.hit
        t_val[None] = rec.t
        material_id[None] = rec.material_id

    test_kernel(vec3(*origin), vec3(*direction), t_min, t_max)
    return hit[None], t_val[None], material_id[None]


class TestScenePrimitiveStorage:
    """Tests for scene primitive storage and management."""

    def test_add_sphere(self):
        from skytrace.scene.intersection import add_sphere, get_sphere_count, vec3

        assert get_sphere_count() == 0
        idx = add_sphere(vec3(1.0, 2.0, 3.0), 0.5, material_id=1)
        assert idx == 0
        assert get_sphere_count() == 1

    def test_add_sphere_accepts_tuple(self):
        from skytrace.scene.intersection import add_sphere, sphere_centers

        idx = add_sphere((1.0, 2.0, 3.0), 0.5)
        assert list(sphere_centers[idx].to_numpy()) == pytest.approx([1.0, 2.0, 3.0])

    def test_add_sphere_clamps_negative_radius(self):
        from skytrace.scene.intersection import add_sphere, sphere_radii

        idx = add_sphere((0.0, 0.0, 0.0), -2.0)
        assert sphere_radii[idx] == 0.0

    def test_clear_scene(self):
        from skytrace.scene.intersection import add_sphere, clear_scene, get_sphere_count

        add_sphere((0.0, 0.0, -1.0), 0.5)
        add_sphere((0.0, 0.0, -2.0), 0.5)
        assert get_sphere_count() == 2
        clear_scene()
        assert get_sphere_count() == 0

    def test_capacity_exceeded(self):
        from skytrace.scene.intersection import MAX_SPHERES, add_sphere, num_spheres

        num_spheres[None] = MAX_SPHERES
        with pytest.raises(RuntimeError, match="Maximum number of spheres"):
            add_sphere((0.0, 0.0, 0.0), 1.0)


class TestSceneIntersection:
    def test_empty_scene_misses(self):
        hit, _, material_id = _intersect((0, 0, 0), (0, 0, -1))
        assert hit == 0
        assert material_id == -1

    def test_single_sphere_hit(self):
        from skytrace.scene.intersection import add_sphere

        add_sphere((0.0, 0.0, -1.0), 0.5, material_id=3)
        hit, t, material_id = _intersect((0, 0, 0), (0, 0, -1))
        assert hit == 1
        assert t == pytest.approx(0.5, abs=1e-5)
        assert material_id == 3

    def test_ray_missing_all_spheres(self):
        from skytrace.scene.intersection import add_sphere

        add_sphere((0.0, 0.0, -1.0), 0.5)
        add_sphere((0.0, -100.5, -1.0), 100.0)
        hit, _, _ = _intersect((0, 0, 0), (0, 1, 0))
        assert hit == 0

    @pytest.mark.parametrize("near_first", [True, False])
    def test_closest_hit_wins(self, near_first):
        """Overlapping spheres report the smaller t regardless of order."""
        from skytrace.scene.intersection import add_sphere

        near = ((0.0, 0.0, -2.0), 0.5, 1)
        far = ((0.0, 0.0, -5.0), 0.5, 2)
        for center, radius, mat in (near, far) if near_first else (far, near):
            add_sphere(center, radius, material_id=mat)

        hit, t, material_id = _intersect((0, 0, 0), (0, 0, -1))
        assert hit == 1
        assert t == pytest.approx(1.5, abs=1e-5)
        assert material_id == 1

    def test_nested_spheres_hit_outer_first(self):
        from skytrace.scene.intersection import add_sphere

        add_sphere((-1.0, 0.0, -1.0), 0.4, material_id=5)
        add_sphere((-1.0, 0.0, -1.0), 0.5, material_id=4)
        hit, t, material_id = _intersect((-1, 0, 0), (0, 0, -1))
        assert hit == 1
        assert t == pytest.approx(0.5, abs=1e-5)
        assert material_id == 4

    def test_interval_upper_bound_respected(self):
        from skytrace.scene.intersection import add_sphere

        add_sphere((0.0, 0.0, -5.0), 0.5)
        hit, _, _ = _intersect((0, 0, 0), (0, 0, -1), t_max=4.0)
        assert hit == 0

    def test_ground_sphere_below_camera(self):
        from skytrace.scene.intersection import add_sphere

        add_sphere((0.0, -100.5, -1.0), 100.0)
        hit, t, _ = _intersect((0, 0, 0), (0, -1, 0))
        assert hit == 1
        # Sphere top sits at y = -(100.5 - sqrt(100^2 - 1^2)) below the camera
        assert t == pytest.approx(100.5 - math.sqrt(9999.0), abs=1e-3)
