"""Geometry module for shape primitives.

Components:
    sphere: Sphere primitive with ray-sphere intersection and hit records

Intersection routines are Taichi functions (@ti.func) and return a
HitRecord by value; its hit flag tells whether the other fields are valid.
"""

from .sphere import (
    HitRecord,
    Sphere,
    hit_sphere,
    make_miss_record,
    make_sphere,
    set_face_normal,
)

__all__ = [
    "Sphere",
    "HitRecord",
    "hit_sphere",
    "make_sphere",
    "make_miss_record",
    "set_face_normal",
]
