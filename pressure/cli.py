"""Command-line tools for level verification, solving and generation.

Usage:
    pressure verify                          # check the built-in classic levels
    pressure verify pack.json level.png      # check level files
    pressure solve level.json                # print a minimum solution
    pressure generate --difficulty hard --seed 7 --count 5 -o pack.json
    pressure generate --grid-size 7 --nodes 3 --decoys 4 -o level.png
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from .generate import DIFFICULTIES, GenerateOptions, generate_level
from .level_io import load_level, load_levels, save_level, save_levels_json
from .levels import CLASSIC_LEVELS, LevelService, verify_level
from .prng import PCG32
from .solver import search

PASS = "PASS"
WARN = "WARN"
FAIL = "FAIL"


def _decoys_arg(value: str):
    lower = value.lower()
    if lower in ("on", "true", "yes"):
        return True
    if lower in ("off", "false", "no"):
        return False
    try:
        return int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(
            f"expected on/off or a count, got {value!r}"
        ) from None


def verify_status(solvable: bool, min_moves: int, max_moves: int) -> str:
    if not solvable or min_moves > max_moves:
        return FAIL
    if min_moves == max_moves:
        return WARN
    return PASS


def cmd_verify(args) -> int:
    """Solve every level and grade it against its move limit."""
    if args.files:
        # Ids in separate files may collide, so nothing is cached.
        levels = []
        for path in args.files:
            levels.extend(load_levels(path))
        check = verify_level
    else:
        levels = list(CLASSIC_LEVELS)
        check = LevelService(levels).verify_level

    counts = {PASS: 0, WARN: 0, FAIL: 0}
    for level in levels:
        result = check(level)
        status = verify_status(result.solvable, result.min_moves, level.max_moves)
        counts[status] += 1
        print(
            f"{status}  Level {level.id}: {level.name!r} "
            f"({level.grid_size}x{level.grid_size}, "
            f"{level.rotatable_count()} rotatable)"
        )
        if result.solvable:
            margin = level.max_moves - result.min_moves
            print(
                f"      {result.min_moves} rotations "
                f"(max_moves: {level.max_moves}, margin: {margin})"
            )
            for move in result.moves:
                print(f"        ({move.x}, {move.y}): {move.rotations}")
        else:
            print(f"      not solvable within {level.max_moves} rotations")

    print()
    print(f"PASSED: {counts[PASS]}")
    print(f"WARNED: {counts[WARN]}")
    print(f"FAILED: {counts[FAIL]}")
    return 1 if counts[FAIL] else 0


def cmd_solve(args) -> int:
    """Print the cheapest solution for one level file."""
    level = load_level(args.file)
    budget = args.max_moves if args.max_moves is not None else level.max_moves
    result = search(level.tiles, level.goal_nodes, budget)
    if args.json:
        print(
            json.dumps(
                {
                    "solvable": result.solved,
                    "cost": result.cost,
                    "exact": result.exact,
                    "moves": [m.to_dict() for m in result.moves or []],
                },
                indent=2,
            )
        )
        return 0 if result.solved else 1

    print(f"Level {level.id}: {level.name!r}")
    if not result.solved:
        reason = "proved" if result.exhausted else "search gave up"
        print(f"No solution within {budget} rotations ({reason})")
        return 1
    kind = "exact" if result.exact else "heuristic"
    print(f"{result.cost} rotations ({kind}, {result.expansions} expansions)")
    for move in result.moves:
        print(f"  ({move.x}, {move.y}): {move.rotations}")
    return 0


def cmd_generate(args) -> int:
    """Generate levels and write them to a file or stdout."""
    rng = PCG32(args.seed) if args.seed is not None else PCG32.from_entropy()
    levels = []
    for i in range(args.count):
        opts = GenerateOptions(
            grid_size=args.grid_size,
            node_count=args.nodes,
            difficulty=args.difficulty,
            decoys=args.decoys,
            id=args.start_id + i if args.start_id is not None else None,
            world=args.world,
        )
        levels.append(generate_level(opts, rng))

    if not args.output:
        data = [lv.to_dict() for lv in levels]
        print(json.dumps(data[0] if len(data) == 1 else data, indent=2))
        return 0

    out = Path(args.output)
    if out.suffix.lower() == ".png" and len(levels) > 1:
        for i, level in enumerate(levels):
            path = out.with_name(f"{out.stem}-{i + 1}{out.suffix}")
            save_level(level, path)
            print(f"Wrote {path}")
    elif out.suffix.lower() == ".json" and len(levels) > 1:
        save_levels_json(levels, out)
        print(f"Wrote {len(levels)} levels to {out}")
    else:
        save_level(levels[0], out)
        print(f"Wrote {out}")
    return 0


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(
        prog="pressure", description="Pressure puzzle level tools"
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Enable debug logging"
    )
    sub = parser.add_subparsers(dest="command")

    p_verify = sub.add_parser("verify", help="Solve and grade levels")
    p_verify.add_argument(
        "files", nargs="*", help="Level files (default: built-in levels)"
    )

    p_solve = sub.add_parser("solve", help="Print a minimum solution")
    p_solve.add_argument("file", help="Level file (.json or .png)")
    p_solve.add_argument(
        "--max-moves", type=int, help="Rotation budget (default: level's)"
    )
    p_solve.add_argument("--json", action="store_true", help="JSON output")

    p_gen = sub.add_parser("generate", help="Generate procedural levels")
    p_gen.add_argument("--grid-size", type=int, default=5)
    p_gen.add_argument("--nodes", type=int, default=2)
    p_gen.add_argument(
        "--difficulty", choices=sorted(DIFFICULTIES), default="medium"
    )
    p_gen.add_argument(
        "--decoys",
        type=_decoys_arg,
        help="on, off, or a decoy count (default: difficulty's)",
    )
    p_gen.add_argument("--seed", type=int, help="PRNG seed")
    p_gen.add_argument("--count", type=int, default=1)
    p_gen.add_argument("--start-id", type=int, help="Id of the first level")
    p_gen.add_argument("--world", type=int, default=4)
    p_gen.add_argument(
        "--output", "-o", help="Write to .json or .png instead of stdout"
    )

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.command == "verify":
        return cmd_verify(args)
    elif args.command == "solve":
        return cmd_solve(args)
    elif args.command == "generate":
        return cmd_generate(args)
    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main())
