#!/usr/bin/env python3
# ruff: noqa: E402
from __future__ import annotations

import argparse
import logging
import os
import sys
import time

# Allow running this script directly via `python scripts/perft.py`
# by adding the repo's `src/` directory to sys.path.
REPO_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
SRC_PATH = os.path.join(REPO_ROOT, "src")
if SRC_PATH not in sys.path:
    sys.path.insert(0, SRC_PATH)

from chesscore.engine.attacks import default_tables
from chesscore.engine.perft import divide, perft
from chesscore.engine.position import STARTPOS_FEN, Position


def main() -> None:
    parser = argparse.ArgumentParser(description="Run perft on a given FEN and depth")
    parser.add_argument(
        "--fen", type=str, default=STARTPOS_FEN, help="FEN string (default: startpos)"
    )
    parser.add_argument("--depth", type=int, default=3, help="Perft depth (default: 3)")
    parser.add_argument(
        "--divide", action="store_true", help="Print the node count below every root move"
    )
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO)
    tables = default_tables()

    position = Position.from_fen(args.fen, tables)
    start = time.perf_counter()
    if args.divide:
        split = divide(position, args.depth)
        for uci in sorted(split):
            print(f"{uci}: {split[uci]}")
        nodes = sum(split.values())
    else:
        nodes = perft(position, args.depth)
    dt = time.perf_counter() - start
    print(f"nodes={nodes} depth={args.depth} time_ms={int(dt*1000)} nps={int(nodes/max(dt,1e-9))}")


if __name__ == "__main__":
    main()
