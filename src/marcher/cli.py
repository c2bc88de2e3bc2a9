"""Command line entry point for rendering quaternion Julia sets.

Usage:
    julia-marcher [SCENE] [options]

Options:
    -r, --resolution WIDTH [HEIGHT]  Output resolution in pixels
    -a, --antialiasing N             Sub-pixel grid; 2 renders 4 samples per pixel (default: 1)
    -o, --output PATTERN             PNG filename; strftime directives are replaced
                                     with the current UTC time
    -i, --iterations N               Julia iterations
    -q, --quaternion W X Y Z         Julia constant, real component first
    --precision {f32,f64}            Floating point precision (default: f32)
    --arch {auto,cpu,gpu}            Taichi backend (default: auto)
    --band-rows N                    Rows per progress update (default: 64)
    --tone-map {none,reinhard,exposure}
    --gamma G                        Gamma applied before writing (default: 1.0)
    -v, --verbose                    More logging; repeat for debug output
    --quiet                          Suppress progress output

Without SCENE the built-in Julia scene is rendered.

Example:
    julia-marcher -r 600 -a 2 -q -0.2 0.6 0.2 0.2 -o julia.png
    julia-marcher examples/scenes/julia.json -r 800
    julia-marcher examples/scenes/julia.yaml -a 2
"""

from __future__ import annotations

import argparse
import logging
import re
import sys
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import taichi as ti

logger = logging.getLogger(__name__)

DEFAULT_OUTPUT = "ray-marcher-%Y-%m-%dT%H_%M_%S.png"
DEFAULT_BAND_ROWS = 64


def positive_int(value: str) -> int:
    """argparse type for integers > 0."""
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"must be a valid integer > 0, got {value!r}") from None
    if number <= 0:
        raise argparse.ArgumentTypeError(f"must be a valid integer > 0, got {value!r}")
    return number


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="julia-marcher",
        description="Render a quaternion Julia set by sphere tracing.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "scene",
        nargs="?",
        default=None,
        help="YAML or JSON scene file (default: built-in Julia scene)",
    )
    parser.add_argument(
        "-r",
        "--resolution",
        nargs="+",
        type=positive_int,
        metavar=("WIDTH", "HEIGHT"),
        help="Output resolution in pixels",
    )
    parser.add_argument(
        "-a",
        "--antialiasing",
        type=positive_int,
        default=1,
        help="Subpixel antialiasing; 2 renders 4 samples per pixel (default: 1)",
    )
    parser.add_argument(
        "-o",
        "--output",
        default=DEFAULT_OUTPUT,
        help="PNG output filename; accepts strftime date/time directives "
        f"(default: {DEFAULT_OUTPUT.replace('%', '%%')})",
    )
    parser.add_argument(
        "-i",
        "--iterations",
        type=positive_int,
        default=None,
        help="Number of Julia iterations (default: 64)",
    )
    parser.add_argument(
        "-q",
        "--quaternion",
        nargs=4,
        type=float,
        metavar=("W", "X", "Y", "Z"),
        default=None,
        help="Quaternion to render, real component first, then i, j and k",
    )
    parser.add_argument(
        "--precision",
        choices=("f32", "f64"),
        default="f32",
        help="Floating point precision (default: f32)",
    )
    parser.add_argument(
        "--arch",
        choices=("auto", "cpu", "gpu"),
        default="auto",
        help="Taichi backend (default: auto)",
    )
    parser.add_argument(
        "--band-rows",
        type=positive_int,
        default=DEFAULT_BAND_ROWS,
        help=f"Rows rendered per progress update (default: {DEFAULT_BAND_ROWS})",
    )
    parser.add_argument(
        "--tone-map",
        choices=("none", "reinhard", "exposure"),
        default="none",
        help="Tone mapping applied before writing (default: none)",
    )
    parser.add_argument(
        "--gamma",
        type=float,
        default=1.0,
        help="Gamma correction applied before writing (default: 1.0)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase logging verbosity (-v info, -vv debug)",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress progress output",
    )
    return parser


STRFTIME_DIRECTIVE = re.compile(r"%(.?)")
STRFTIME_CODES = frozenset("aAwdbBmyYHIpMSfzZjUWcxXGuV%")


def is_valid_pattern(pattern: str) -> bool:
    """Return True if every '%' in pattern starts a known strftime directive."""
    return all(code in STRFTIME_CODES for code in STRFTIME_DIRECTIVE.findall(pattern))


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.resolution is not None and len(args.resolution) > 2:
        parser.error("-r/--resolution takes WIDTH and an optional HEIGHT")
    if not args.gamma > 0.0:
        parser.error(f"--gamma must be positive, got {args.gamma}")
    if not is_valid_pattern(args.output):
        parser.error(f"-o/--output has an invalid strftime directive: {args.output!r}")
    return args


def format_filename(pattern: str, now: datetime | None = None) -> str:
    """Substitute strftime directives in pattern with the current UTC time."""
    if now is None:
        now = datetime.now(timezone.utc)
    return now.strftime(pattern)


def output_paths(filename: str, count: int) -> list[Path]:
    """Output path per render target; several targets get -<index> before the suffix."""
    path = Path(filename)
    if count == 1:
        return [path]
    return [path.with_name(f"{path.stem}-{index}{path.suffix}") for index in range(count)]


def apply_overrides(
    data: dict[str, Any],
    *,
    pixel_width: int | None = None,
    c: tuple[float, float, float, float] | None = None,
    iterations: int | None = None,
) -> dict[str, Any]:
    """Apply command line overrides to a scene dictionary.

    Every render target takes pixel_width, and every Julia geometry takes
    c and iterations, when given.
    """
    if pixel_width is not None:
        for render in data.get("renders", []):
            render["width"] = pixel_width
    for entry in data.get("geometry", []):
        if str(entry.get("type", "")).lower() != "julia":
            continue
        if c is not None:
            entry["c"] = list(c)
        if iterations is not None:
            entry["iterations"] = iterations
    return data


def init_taichi(arch: str, precision: str, quiet: bool = False) -> None:
    """Initialize Taichi; must run before any src.marcher module with fields is imported."""
    default_fp = ti.f64 if precision == "f64" else ti.f32

    if arch == "cpu":
        ti.init(arch=ti.cpu, default_fp=default_fp)
        return
    if arch == "gpu":
        ti.init(arch=ti.gpu, default_fp=default_fp)
        return

    # Use GPU if available, fall back to CPU
    try:
        ti.init(arch=ti.gpu, default_fp=default_fp)
        if not quiet:
            print("Using GPU backend")
    except Exception:
        ti.init(arch=ti.cpu, default_fp=default_fp)
        if not quiet:
            print("Using CPU backend")


def build_scene(args: argparse.Namespace):
    """Build the scene described by the command line.

    Raises:
        SceneError: If the scene file or an override is invalid.
        OSError: If the scene file cannot be read.
    """
    # Lazy imports to allow Taichi initialization first
    from src.marcher.scene.default_scene import (
        DEFAULT_PIXEL_WIDTH,
        JuliaSceneParams,
        create_julia_scene,
    )
    from src.marcher.scene.loader import load_scene

    pixel_width = args.resolution[0] if args.resolution else None
    pixel_height = args.resolution[1] if args.resolution and len(args.resolution) == 2 else None

    if args.scene is None:
        params = JuliaSceneParams()
        if args.quaternion is not None:
            params.c = tuple(args.quaternion)
        if args.iterations is not None:
            params.iterations = args.iterations
        if pixel_width is not None and pixel_height is not None:
            # Reshape the viewport so the pixel grid has the requested aspect
            params.viewport_height = params.viewport_width * pixel_height / pixel_width
        return create_julia_scene(params, pixel_width=pixel_width or DEFAULT_PIXEL_WIDTH)

    scene = load_scene(args.scene)
    if pixel_height is not None:
        logger.warning("HEIGHT is ignored for scene files; heights follow each camera's aspect")
    if pixel_width is not None or args.quaternion is not None or args.iterations is not None:
        data = apply_overrides(
            scene.to_dict(),
            pixel_width=pixel_width,
            c=tuple(args.quaternion) if args.quaternion is not None else None,
            iterations=args.iterations,
        )
        scene.from_dict(data)
    return scene


def render(args: argparse.Namespace) -> list[Path]:
    """Render every target of the scene and write one PNG per target.

    Returns:
        Paths of the written images.
    """
    from src.marcher.core.renderer import render_scene_targets
    from src.marcher.preview.export import save_png_from_array

    scene = build_scene(args)
    targets = scene.render_targets
    if not targets:
        logger.warning("Scene has no render targets; nothing to do")
        return []

    paths = output_paths(format_filename(args.output), len(targets))
    start_time = time.time()

    def progress_callback(index: int, target: Any, done: int, total: int) -> None:
        if not args.quiet:
            elapsed = time.time() - start_time
            print(
                f"\r  Target {index} ({target.pixel_width}x{target.pixel_height}): "
                f"{done}/{total} rows ({done / total * 100:.1f}%) - {elapsed:.1f}s",
                end="",
                flush=True,
            )

    written = []
    for (_target, image), path in zip(
        render_scene_targets(scene, args.antialiasing, args.band_rows, progress_callback),
        paths,
    ):
        save_png_from_array(image, path, tone_map=args.tone_map, gamma=args.gamma)
        written.append(path)
        if not args.quiet:
            print()
            print(f"Saved to: {path.absolute()}")

    if not args.quiet:
        print(f"Total time: {time.time() - start_time:.2f}s")
    return written


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    level = logging.WARNING
    if args.verbose == 1:
        level = logging.INFO
    elif args.verbose >= 2:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")

    init_taichi(args.arch, args.precision, quiet=args.quiet)

    try:
        render(args)
        return 0
    except (ValueError, OSError) as e:
        # SceneError is a ValueError
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
