"""A Monte Carlo ray tracer for sky-lit sphere scenes, built on Taichi.

Rays leave a fixed pinhole camera, bounce off spheres made of diffuse,
metal or glass materials and gather light from a white-to-blue sky.

Subpackages:
    core: Ray and interval types, random streams, and the light transport loop
    geometry: Sphere primitive and hit records
    materials: Lambertian, metal and dielectric scattering
    scene: Scene storage, the scene manager and named preset scenes
    camera: Camera configuration, ray generation and the render loop
    output: Color encoding and image sinks (PPM, in-memory, PNG)
"""

__version__ = "0.1.0"
