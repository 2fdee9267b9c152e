#!/usr/bin/env python3
"""Render the Cook-Torrance reference scene.

This script renders the reference scene (Cook-Torrance spheres, culling-mode
triangles, three colored point lights) for a number of animated frames and
saves the last frame.

Usage:
    python -m examples.render_reference_scene [options]

Options:
    --width WIDTH       Image width in pixels (default: 640)
    --height HEIGHT     Image height in pixels (default: 480)
    --frames FRAMES     Number of animated frames to render (default: 1)
    --mode MODE         Lighting mode: observed_area, radiance, brdf, combined
    --no-shadows        Disable shadow rays
    --scene SCENE       Scene preset: reference, material_test, basic
    --threads N         CPU worker threads (default: all)
    --output OUTPUT     Output file path (default: reference_scene.png)
    --quiet             Suppress progress output

Example:
    python -m examples.render_reference_scene --frames 30 --mode brdf --output brdf.png
"""

from __future__ import annotations

import argparse
import sys
import time
from pathlib import Path

from rtcore.config import LIGHTING_MODE_NAMES, RenderConfig, init_taichi, setup_logging

SCENES = ("reference", "material_test", "basic")


def parse_args() -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Render the Cook-Torrance reference scene.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--width",
        type=int,
        default=640,
        help="Image width in pixels (default: 640)",
    )
    parser.add_argument(
        "--height",
        type=int,
        default=480,
        help="Image height in pixels (default: 480)",
    )
    parser.add_argument(
        "--frames",
        type=int,
        default=1,
        help="Number of animated frames to render (default: 1)",
    )
    parser.add_argument(
        "--mode",
        choices=LIGHTING_MODE_NAMES,
        default="combined",
        help="Lighting mode (default: combined)",
    )
    parser.add_argument(
        "--no-shadows",
        action="store_true",
        help="Disable shadow rays",
    )
    parser.add_argument(
        "--scene",
        choices=SCENES,
        default="reference",
        help="Scene preset (default: reference)",
    )
    parser.add_argument(
        "--threads",
        type=int,
        default=None,
        help="CPU worker threads (default: all hardware threads)",
    )
    parser.add_argument(
        "--output",
        type=str,
        default="reference_scene.png",
        help="Output file path (default: reference_scene.png)",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress progress output",
    )
    return parser.parse_args()


def render_scene(
    config: RenderConfig,
    scene_name: str = "reference",
    num_frames: int = 1,
    output_path: str = "reference_scene.png",
    quiet: bool = False,
) -> Path:
    """Render a preset scene and save the last frame.

    Args:
        config: Render settings (size, lighting mode, shadows).
        scene_name: One of SCENES.
        num_frames: Number of frames to render. The reference scene is
            animated between frames.
        output_path: Output file path.
        quiet: If True, suppress progress output.

    Returns:
        Path to the saved image file.
    """
    # Lazy imports to allow Taichi initialization first
    from rtcore.core.frame_loop import FrameRenderer
    from rtcore.scene.presets import (
        animate_reference_scene,
        create_basic_scene,
        create_material_test_scene,
        create_reference_scene,
    )

    if not quiet:
        print(f"Creating {scene_name} scene ({config.width}x{config.height})...")

    update = None
    if scene_name == "reference":
        scene = create_reference_scene()
        update = animate_reference_scene
    elif scene_name == "material_test":
        scene = create_material_test_scene()
    else:
        scene = create_basic_scene()

    renderer = FrameRenderer.from_config(config)

    if not quiet:
        print(f"Rendering {num_frames} frame(s), {renderer!r}...")

    start_time = time.time()

    def progress_callback(index: int, frame_seconds: float) -> None:
        if not quiet:
            print(
                f"\r  Frame {index + 1}/{num_frames} ({frame_seconds * 1000:.1f} ms)",
                end="",
                flush=True,
            )

    renderer.run(scene, num_frames=num_frames, update=update, callback=progress_callback)

    if not quiet:
        print()  # Newline after progress

    output_file = Path(output_path)
    renderer.save_image(str(output_file))

    total_time = time.time() - start_time
    if not quiet:
        print(f"Saved to: {output_file.absolute()}")
        print(f"Total time: {total_time:.2f}s")

    return output_file


def main() -> int:
    """Main entry point."""
    args = parse_args()

    try:
        config = RenderConfig(
            width=args.width,
            height=args.height,
            num_threads=args.threads,
            lighting_mode=args.mode,
            shadows_enabled=not args.no_shadows,
            log_level="WARNING" if args.quiet else "INFO",
        )
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    setup_logging(config.log_level)
    init_taichi(config)

    try:
        render_scene(
            config,
            scene_name=args.scene,
            num_frames=args.frames,
            output_path=args.output,
            quiet=args.quiet,
        )
        return 0
    except (ValueError, RuntimeError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
