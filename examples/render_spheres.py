#!/usr/bin/env python3
"""Render a sky-lit sphere scene.

The image is written as ASCII PPM (or PNG, chosen by the output suffix).
With --output - the PPM goes to standard output, so it can be redirected:

    python -m examples.render_spheres --output - > image.ppm

Usage:
    python -m examples.render_spheres [options]

Options:
    --width WIDTH           Image width in pixels (default: 400)
    --aspect-ratio RATIO    Width over height (default: 16/9)
    --samples SAMPLES       Samples per pixel (default: 100)
    --max-depth DEPTH       Maximum ray bounces (default: 10)
    --seed SEED             Random seed for a reproducible image
    --scene NAME            Scene preset: default or materials
    --output OUTPUT         Output file path, .ppm or .png (default: image.ppm)
    --sample-image          Write the 256x256 gradient test image instead
    --quiet                 Only log warnings and errors
    --verbose               Log scene building and every scanline

Example:
    python -m examples.render_spheres --scene materials --samples 50 --output spheres.png
"""

from __future__ import annotations

import argparse
import contextlib
import logging
import sys
from fractions import Fraction
from pathlib import Path

import taichi as ti

logger = logging.getLogger("render_spheres")


def parse_aspect_ratio(value: str) -> float:
    """Parse an aspect ratio given as a number or a fraction like 16/9."""
    try:
        ratio = float(Fraction(value))
    except (ValueError, ZeroDivisionError) as e:
        raise argparse.ArgumentTypeError(f"invalid aspect ratio {value!r}") from e
    if ratio <= 0.0:
        raise argparse.ArgumentTypeError(f"aspect ratio must be positive, got {value!r}")
    return ratio


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Render a sky-lit sphere scene.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--width",
        type=int,
        default=400,
        help="Image width in pixels (default: 400)",
    )
    parser.add_argument(
        "--aspect-ratio",
        type=parse_aspect_ratio,
        default=16.0 / 9.0,
        help="Image width over height, e.g. 16/9 or 1.5 (default: 16/9)",
    )
    parser.add_argument(
        "--samples",
        type=int,
        default=100,
        help="Number of samples per pixel (default: 100)",
    )
    parser.add_argument(
        "--max-depth",
        type=int,
        default=10,
        help="Maximum number of ray bounces (default: 10)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Random seed; omit for a different image each run",
    )
    parser.add_argument(
        "--scene",
        choices=["default", "materials"],
        default="default",
        help="Scene preset (default: default)",
    )
    parser.add_argument(
        "--output",
        type=str,
        default="image.ppm",
        help="Output path ending in .ppm or .png, or - for PPM on stdout",
    )
    parser.add_argument(
        "--sample-image",
        action="store_true",
        help="Write the 256x256 red/green gradient test image and exit",
    )
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument(
        "--quiet",
        action="store_true",
        help="Only log warnings and errors",
    )
    verbosity.add_argument(
        "--verbose",
        action="store_true",
        help="Log scene building and per-scanline progress",
    )
    return parser.parse_args(argv)


def configure_logging(quiet: bool, verbose: bool) -> None:
    if quiet:
        level = logging.WARNING
    elif verbose:
        level = logging.DEBUG
    else:
        level = logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


@contextlib.contextmanager
def open_ppm_output(output_path: str):
    """Yield a text stream for PPM output; "-" means stdout."""
    if output_path == "-":
        yield sys.stdout
    else:
        with open(output_path, "w", encoding="ascii") as stream:
            yield stream


def render_spheres(
    width: int = 400,
    aspect_ratio: float = 16.0 / 9.0,
    num_samples: int = 100,
    max_depth: int = 10,
    seed: int | None = None,
    scene_name: str = "default",
    output_path: str = "image.ppm",
) -> None:
    """Render a preset scene and save it.

    Args:
        width: Image width in pixels.
        aspect_ratio: Ideal width over height.
        num_samples: Number of samples per pixel.
        max_depth: Maximum number of ray bounces.
        seed: Random seed, or None for fresh entropy.
        scene_name: Name of the preset scene.
        output_path: .ppm or .png file path, or "-" for PPM on stdout.

    Raises:
        ValueError: On an invalid configuration, scene or output suffix.
    """
    # Lazy imports to allow Taichi initialization first
    from skytrace.camera.camera import Camera, CameraConfig
    from skytrace.output.export import save_png_from_array
    from skytrace.output.ppm import PPMSink
    from skytrace.scene.presets import create_scene

    suffix = Path(output_path).suffix.lower() if output_path != "-" else ".ppm"
    if suffix not in (".ppm", ".png"):
        raise ValueError(f"Output must end in .ppm or .png, got {output_path!r}")

    config = CameraConfig(
        aspect_ratio=aspect_ratio,
        image_width=width,
        samples_per_pixel=num_samples,
        max_depth=max_depth,
        seed=seed,
    )
    camera = Camera(config)

    logger.info("Building scene %r", scene_name)
    scene = create_scene(scene_name)

    if suffix == ".ppm":
        with open_ppm_output(output_path) as stream:
            camera.render(scene, PPMSink(stream))
    else:
        image = camera.render(scene)
        save_png_from_array(image, output_path)

    if output_path != "-":
        logger.info("Saved to: %s", Path(output_path).absolute())


def write_sample(output_path: str) -> None:
    """Write the gradient test image as PPM or PNG."""
    from skytrace.output.export import ArraySink, save_png_from_array, write_sample_image
    from skytrace.output.ppm import PPMSink

    if output_path != "-" and Path(output_path).suffix.lower() == ".png":
        sink = ArraySink()
        write_sample_image(sink)
        save_png_from_array(sink.image, output_path)
    else:
        with open_ppm_output(output_path) as stream:
            write_sample_image(PPMSink(stream))
    logger.info("Wrote sample image to %s", output_path)


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)
    configure_logging(args.quiet, args.verbose)

    # Rendering is serialized, so the CPU backend is used throughout
    ti.init(arch=ti.cpu)

    try:
        if args.sample_image:
            write_sample(args.output)
        else:
            render_spheres(
                width=args.width,
                aspect_ratio=args.aspect_ratio,
                num_samples=args.samples,
                max_depth=args.max_depth,
                seed=args.seed,
                scene_name=args.scene,
                output_path=args.output,
            )
        return 0
    except Exception as e:
        logger.error("Error: %s", e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
