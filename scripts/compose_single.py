#!/usr/bin/env python3
"""
Compose a single scene and print it as JSON.

Usage:
    python scripts/compose_single.py --signal 0.3 --width 1280 --height 800 --mode start
"""

import argparse
import json
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from scene_field.catalog import SceneMode
from scene_field.grid import build_layout, round_half_up
from scene_field.pipeline import EngineConfig, compose_field
from scene_field.pool import device_class, make_default_pool, target_pool_size
from scene_field.utils.config import load_config
from scene_field.utils.logging import setup_logging
from scene_field.utils.validation import validate_layout


def main():
    parser = argparse.ArgumentParser(description="Compose a single scene layout")
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
    parser.add_argument("--pool-size", type=int, default=None, help="Override pool size")
    parser.add_argument("--salt", type=int, default=None, help="Jitter salt")
    parser.add_argument(
        "--config-dir",
        type=Path,
        default=Path(__file__).parent.parent / "config",
        help="Configuration directory",
    )
    parser.add_argument("--output", type=Path, default=None, help="Write JSON here instead of stdout")
    parser.add_argument(
        "--log-level", type=str, default="INFO", help="Log level (DEBUG, INFO, WARNING, ERROR)"
    )
    args = parser.parse_args()

    setup_logging(level=args.log_level, format_style="simple")

    config = EngineConfig.from_dict(load_config(args.config_dir, "engine"))
    rules = config.load_rules()
    mode = SceneMode(args.mode)

    size = args.pool_size
    if size is None:
        size = target_pool_size(mode, round_half_up(args.width), rules)
    pool = make_default_pool(size)

    result = compose_field(
        args.signal,
        args.width,
        args.height,
        mode,
        pool,
        salt=args.salt,
        rules=rules,
        config=config,
    )

    # Re-derive the mask to check the result independently of the placer
    spec = rules.grid_spec(mode, device_class(round_half_up(args.width)))
    layout = build_layout(round_half_up(args.width), round_half_up(args.height), spec)
    if not validate_layout(result.placed, layout.mask):
        print("Layout validation failed", file=sys.stderr)
        sys.exit(1)

    payload = json.dumps(result.to_dict(), indent=2)
    if args.output:
        args.output.parent.mkdir(parents=True, exist_ok=True)
        args.output.write_text(payload)
        print(f"Success: {args.output}")
    else:
        print(payload)


if __name__ == "__main__":
    main()
