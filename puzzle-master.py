#!/usr/bin/env python3
"""Puzzle Master console entry point.

    python puzzle-master.py --admin
    /puzzle start
    /puzzle force
    /answer <code>
"""
import sys

from puzzle_master.console import main

if __name__ == "__main__":
    sys.exit(main())
