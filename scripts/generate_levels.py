#!/usr/bin/env python3
from __future__ import annotations

import argparse
from concurrent.futures import ProcessPoolExecutor
from pathlib import Path

from snake_puzzle.config import settings
from snake_puzzle.services.board_shape import BoardShape, ImageBoardShape, MaskBoardShape
from snake_puzzle.services.generator import generate_solvable_level
from snake_puzzle.services.level_loader import level_file_path, save_level_to_file
from snake_puzzle.services.solvability import validate_level


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Pre-generate solvable snake levels into level_<n>.json files."
    )
    parser.add_argument("--count", type=int, default=10, help="Number of levels to generate.")
    parser.add_argument("--start-level", type=int, default=1, help="Number of the first level file.")
    parser.add_argument("--width", type=int, required=True)
    parser.add_argument("--height", type=int, required=True)
    parser.add_argument("--max-length", type=int, required=True, help="Maximum snake length.")
    parser.add_argument("--fill", action="store_true", help="Fill the board after the frontier phase.")
    parser.add_argument(
        "--seed",
        type=int,
        default=0,
        help="Base seed; level n uses seed + n, so reruns produce identical files.",
    )
    shape = parser.add_mutually_exclusive_group()
    shape.add_argument("--mask", type=Path, default=None, help="ASCII wall mask file ('#' = wall).")
    shape.add_argument("--image", type=Path, default=None, help="Silhouette image; dark pixels are playable.")
    parser.add_argument("--out-dir", type=Path, default=settings.LEVELS_DIR)
    parser.add_argument("--workers", type=int, default=1, help="Parallel worker processes.")
    return parser.parse_args()


def load_shape(args: argparse.Namespace) -> BoardShape | None:
    if args.mask:
        return MaskBoardShape.from_file(args.mask)
    if args.image:
        return ImageBoardShape(args.image)
    return None


def build_level(job: tuple) -> tuple[int, Path, int, float, list[str]]:
    level_num, args = job
    shape = load_shape(args)

    level = generate_solvable_level(
        width=args.width,
        height=args.height,
        max_snake_length=args.max_length,
        fill_the_board=args.fill,
        board_shape=shape,
        seed=args.seed + level_num,
    )
    walls = shape.get_walls(level.width, level.height) if shape else None
    report = validate_level(level, walls=walls)

    path = save_level_to_file(level, level_file_path(level_num, args.out_dir))
    return level_num, path, len(level.snakes), report["coverage"], report["errors"]


def main() -> int:
    args = parse_args()
    if args.count <= 0 or args.width <= 0 or args.height <= 0 or args.max_length <= 0:
        raise SystemExit("count, width, height and max-length must be positive")
    for shape_file in (args.mask, args.image):
        if shape_file and not shape_file.exists():
            raise SystemExit(f"Shape file not found: {shape_file}")

    jobs = [(n, args) for n in range(args.start_level, args.start_level + args.count)]
    failed = 0

    with ProcessPoolExecutor(max_workers=max(1, args.workers)) as pool:
        for level_num, path, snakes, coverage, errors in pool.map(build_level, jobs):
            status = "ok" if not errors else "INVALID"
            print(f"{path.name}: {status}, snakes={snakes}, coverage={coverage:.1f}%")
            for err in errors[:5]:
                print(f"  - {err}")
            if errors:
                failed += 1

    print(f"Generated {len(jobs)} level file(s) in {args.out_dir}, {failed} invalid.")
    return 1 if failed else 0


if __name__ == "__main__":
    raise SystemExit(main())
