#!/usr/bin/env python3
"""Print one cycle of every clue type for a code.

Examples:
    python scripts/replay_clues.py
    python scripts/replay_clues.py --code 'abcdefghijklmnop' --seed 7

Encoders that keep a saved state are run a second time from the state
captured at the end of the first cycle, which should pick up where the
first run stopped.
"""
from __future__ import annotations

import argparse
import random
import sys
from pathlib import Path
from typing import Any, Dict, Optional

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from puzzle_master.clues import ClueType, clue_help, make_encoder, random_code

MAX_STEPS = 256


def run_cycle(code: str, clue_type: ClueType, rng: random.Random, state: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    encoder = make_encoder(clue_type, code, state=state, rng=rng)
    for _ in range(MAX_STEPS):
        clue, done = encoder.next_clue()
        if clue is not None:
            print(clue.text)
        if done:
            print("Done")
            break
        if clue is not None and clue.cycle_end:
            print("Cycle end")
            break
    return encoder.snapshot()


def main() -> int:
    parser = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
    parser.add_argument("--code", help="Secret to encode (random if omitted)")
    parser.add_argument("--seed", type=int, help="Seed for a reproducible run")
    parser.add_argument("--type", dest="types", action="append", choices=[t.name for t in ClueType], help="Limit to these clue types")
    args = parser.parse_args()

    rng = random.Random(args.seed) if args.seed is not None else random.SystemRandom()
    code = args.code or random_code(rng)
    print(f'Testing with code "{code}"')

    selected = [ClueType[name] for name in args.types] if args.types else list(ClueType)
    for clue_type in selected:
        print(f"\n== {clue_type.name} ({clue_type.value}): {clue_help(clue_type)}")
        state = run_cycle(code, clue_type, rng)
        if clue_type in (ClueType.LetterCube, ClueType.Mastermind):
            print("Second run with state from previous run")
            print(state)
            run_cycle(code, clue_type, rng, state)
    return 0


if __name__ == "__main__":
    sys.exit(main())
