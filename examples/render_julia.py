#!/usr/bin/env python3
"""Render a sequence of quaternion Julia sets.

This script sweeps the Julia constant along a straight line between two
quaternions and writes one PNG per frame, using the library API directly
rather than the julia-marcher command.

Usage:
    python -m examples.render_julia [options]

Options:
    --width WIDTH       Image width in pixels (default: 300)
    --frames N          Number of frames (default: 8)
    --start W X Y Z     First Julia constant (default: -0.2 0.6 0.2 0.2)
    --end W X Y Z       Last Julia constant (default: -0.2 0.6 0.2 -0.4)
    --antialiasing N    Sub-pixel grid per axis (default: 1)
    --output-dir DIR    Directory for the frames (default: julia_frames)
    --quiet             Suppress progress output

Example:
    python -m examples.render_julia --width 200 --frames 4
"""

from __future__ import annotations

import argparse
import sys
import time
from pathlib import Path

import taichi as ti


def parse_args() -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Render a sequence of quaternion Julia sets.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--width",
        type=int,
        default=300,
        help="Image width in pixels (default: 300)",
    )
    parser.add_argument(
        "--frames",
        type=int,
        default=8,
        help="Number of frames (default: 8)",
    )
    parser.add_argument(
        "--start",
        type=float,
        nargs=4,
        default=[-0.2, 0.6, 0.2, 0.2],
        metavar=("W", "X", "Y", "Z"),
        help="First Julia constant (default: -0.2 0.6 0.2 0.2)",
    )
    parser.add_argument(
        "--end",
        type=float,
        nargs=4,
        default=[-0.2, 0.6, 0.2, -0.4],
        metavar=("W", "X", "Y", "Z"),
        help="Last Julia constant (default: -0.2 0.6 0.2 -0.4)",
    )
    parser.add_argument(
        "--antialiasing",
        type=int,
        default=1,
        help="Sub-pixel grid per axis (default: 1)",
    )
    parser.add_argument(
        "--output-dir",
        type=str,
        default="julia_frames",
        help="Directory for the frames (default: julia_frames)",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress progress output",
    )
    return parser.parse_args()


def interpolate(
    start: tuple[float, ...],
    end: tuple[float, ...],
    frames: int,
) -> list[tuple[float, float, float, float]]:
    """Evenly spaced constants from start to end, both included."""
    if frames == 1:
        return [tuple(start)]
    steps = []
    for k in range(frames):
        s = k / (frames - 1)
        steps.append(tuple(a + (b - a) * s for a, b in zip(start, end)))
    return steps


def render_julia_frames(
    width: int = 300,
    frames: int = 8,
    start: tuple[float, ...] = (-0.2, 0.6, 0.2, 0.2),
    end: tuple[float, ...] = (-0.2, 0.6, 0.2, -0.4),
    antialiasing: int = 1,
    output_dir: str = "julia_frames",
    quiet: bool = False,
) -> list[Path]:
    """Render one frame per interpolated Julia constant.

    Args:
        width: Image width in pixels.
        frames: Number of frames to render.
        start: Julia constant of the first frame, real component first.
        end: Julia constant of the last frame.
        antialiasing: Sub-pixel grid per axis.
        output_dir: Directory that receives frame_000.png, frame_001.png, ...
        quiet: If True, suppress progress output.

    Returns:
        Paths to the saved frames.
    """
    # Lazy imports to allow Taichi initialization first
    from src.marcher.core.renderer import render_scene_targets
    from src.marcher.preview.export import save_png_from_array
    from src.marcher.scene.default_scene import JuliaSceneParams, create_julia_scene

    directory = Path(output_dir)
    directory.mkdir(parents=True, exist_ok=True)

    paths = []
    start_time = time.time()
    for index, c in enumerate(interpolate(start, end, frames)):
        scene = create_julia_scene(JuliaSceneParams(c=c), pixel_width=width)
        for _target, image in render_scene_targets(scene, antialiasing):
            path = directory / f"frame_{index:03d}.png"
            save_png_from_array(image, path)
            paths.append(path)

        if not quiet:
            elapsed = time.time() - start_time
            print(
                f"\r  Frame {index + 1}/{frames} c=({c[0]:.3f}, {c[1]:.3f}, {c[2]:.3f}, {c[3]:.3f}) - {elapsed:.1f}s",
                end="",
                flush=True,
            )

    if not quiet:
        print()
        print(f"Saved {len(paths)} frame(s) to: {directory.absolute()}")
    return paths


def main() -> int:
    """Main entry point."""
    args = parse_args()

    if args.width < 1 or args.frames < 1 or args.antialiasing < 1:
        print("Error: width, frames and antialiasing must be positive", file=sys.stderr)
        return 1

    # Use GPU if available, fall back to CPU
    try:
        ti.init(arch=ti.gpu)
        if not args.quiet:
            print("Using GPU backend")
    except Exception:
        ti.init(arch=ti.cpu)
        if not args.quiet:
            print("Using CPU backend")

    try:
        render_julia_frames(
            width=args.width,
            frames=args.frames,
            start=tuple(args.start),
            end=tuple(args.end),
            antialiasing=args.antialiasing,
            output_dir=args.output_dir,
            quiet=args.quiet,
        )
        return 0
    except (ValueError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
