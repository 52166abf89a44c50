"""
Interactive blackjack console.

Usage:
    python -m blackjack.cli --name Bob
    python -m blackjack.cli --name Bob --seed 7 --verbose
"""

from __future__ import annotations

import argparse
import logging

import numpy as np

from blackjack.session import TableSession


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Play blackjack at the console.")
    parser.add_argument("--name", default="unknown", help="Character name (one profile per name).")
    parser.add_argument("--config-dir", default=None, help="Directory holding profile files.")
    parser.add_argument("--seed", type=int, default=None, help="Seed for the shuffle.")
    parser.add_argument("--verbose", action="store_true", help="Log engine transitions.")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    session = TableSession.open(
        args.name,
        config_dir=args.config_dir,
        rng=np.random.default_rng(args.seed),
    )
    print("[Blackjack] Type 'help' for commands, 'quit' to leave.")
    for line in session.status_lines():
        print(f"[Blackjack] {line}")

    while True:
        try:
            text = input("> ")
        except EOFError:
            break
        if text.strip().lower() in ("quit", "exit"):
            break
        for line in session.handle_command(text):
            print(f"[Blackjack] {line}")

    print("[Blackjack] Stopping.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
