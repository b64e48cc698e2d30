#!/usr/bin/env python3
"""
Render a composed scene to a PNG for debugging.

Shows the grid, forbidden cells, the rows below the used area and every
placed footprint coloured by variant.

Usage:
    python scripts/preview_layout.py --signal 0.01 --width 1280 --height 800 --output preview.png
"""

import argparse
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from scene_field.catalog import SceneMode
from scene_field.grid import build_layout, round_half_up
from scene_field.pipeline import EngineConfig, compose_field
from scene_field.pool import device_class, make_default_pool, target_pool_size
from scene_field.preview import save_preview
from scene_field.utils.config import load_config
from scene_field.utils.logging import setup_logging


def main():
    parser = argparse.ArgumentParser(description="Preview a scene layout as PNG")
    parser.add_argument("--signal", type=float, default=None, help="Control signal in [0, 1]")
    parser.add_argument("--width", type=float, required=True, help="Viewport width (px)")
    parser.add_argument("--height", type=float, required=True, help="Viewport height (px)")
    parser.add_argument(
        "--mode",
        type=str,
        default=SceneMode.START.value,
        choices=[m.value for m in SceneMode],
        help="Scene mode",
    )
    parser.add_argument("--salt", type=int, default=None, help="Jitter salt")
    parser.add_argument("--cell-px", type=int, default=16, help="Pixels per grid cell")
    parser.add_argument(
        "--config-dir",
        type=Path,
        default=Path(__file__).parent.parent / "config",
        help="Configuration directory",
    )
    parser.add_argument("--output", type=Path, required=True, help="Output PNG path")
    parser.add_argument(
        "--log-level", type=str, default="INFO", help="Log level (DEBUG, INFO, WARNING, ERROR)"
    )
    args = parser.parse_args()

    setup_logging(level=args.log_level)

    config = EngineConfig.from_dict(load_config(args.config_dir, "engine"))
    rules = config.load_rules()
    mode = SceneMode(args.mode)

    width = round_half_up(args.width)
    height = round_half_up(args.height)
    pool = make_default_pool(target_pool_size(mode, width, rules))

    result = compose_field(args.signal, width, height, mode, pool, salt=args.salt, rules=rules, config=config)
    layout = build_layout(width, height, rules.grid_spec(mode, device_class(width)))

    if layout.geometry.is_degenerate:
        print(f"Degenerate grid for {width}x{height}; nothing to preview")
        sys.exit(1)

    save_preview(result.placed, layout.mask, args.output, args.cell_px, result.meta.used_rows)
    print(f"Success: {args.output} ({len(result.placed)} items, {len(result.meta.dropped)} dropped)")


if __name__ == "__main__":
    main()
