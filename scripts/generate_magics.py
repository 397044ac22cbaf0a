#!/usr/bin/env python3
# ruff: noqa: E402
"""Search rook and bishop magic multipliers and write them as JSON.

The library ships verified multipliers in ``chesscore/engine/magics.py``; this
script is the only place the search runs. Its output can be loaded with
``attacks.load_magics`` or pasted into ``magics.py``.
"""
from __future__ import annotations

import argparse
import json
import logging
import os
import sys

REPO_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
SRC_PATH = os.path.join(REPO_ROOT, "src")
if SRC_PATH not in sys.path:
    sys.path.insert(0, SRC_PATH)

from chesscore.engine.attacks import BISHOP_SEED, ROOK_SEED, AttackTables


logger = logging.getLogger("generate_magics")


def main() -> None:
    parser = argparse.ArgumentParser(description="Generate magic bitboard multipliers")
    parser.add_argument("--out", type=str, default="-", help="Output JSON path (default: stdout)")
    parser.add_argument("--rook-seed", type=lambda s: int(s, 0), default=ROOK_SEED)
    parser.add_argument("--bishop-seed", type=lambda s: int(s, 0), default=BISHOP_SEED)
    parser.add_argument("--verbose", action="store_true", help="Log per-square attempt counts")
    args = parser.parse_args()

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)

    tables = AttackTables.build(rook_seed=args.rook_seed, bishop_seed=args.bishop_seed)
    payload = {
        "rook_seed": args.rook_seed,
        "bishop_seed": args.bishop_seed,
        "rook": [hex(m) for m in tables.rook.magics],
        "bishop": [hex(m) for m in tables.bishop.magics],
        "rook_entries": len(tables.rook.table),
        "bishop_entries": len(tables.bishop.table),
    }
    text = json.dumps(payload, indent=2)
    if args.out == "-":
        print(text)
    else:
        with open(args.out, "w", encoding="utf-8") as f:
            f.write(text + "\n")
        logger.info("wrote %s", args.out)


if __name__ == "__main__":
    main()
