from __future__ import annotations

import math
import random
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from ..logs import LogFn
from .base import Clue, ClueEncoder, ClueType, Step, shuffled

BROKEN_CUBE_TEXT = "Puzzle broke, send help :("


@dataclass
class LetterCubeState:
    path: List[List[int]] = field(default_factory=list)
    grid: List[str] = field(default_factory=list)
    step: int = 0
    reveal_at: Optional[int] = None
    x: int = 0
    y: int = 0


def cube_side(answer: str) -> Optional[int]:
    """Side length of the square grid for ``answer``, or None if it isn't square."""
    if not answer:
        return None
    side = math.isqrt(len(answer))
    return side if side * side == len(answer) else None


def describe_offset(offx: int, offy: int) -> str:
    parts = []
    if offx:
        parts.append(f"{abs(offx)} {'left' if offx < 0 else 'right'}")
    if offy:
        parts.append(f"{abs(offy)} {'up' if offy < 0 else 'down'}")
    return ", ".join(parts) or "Stay put"


def render_grid(grid: List[str], size: int) -> str:
    rows = [" ".join(grid[row * size:(row + 1) * size]) for row in range(size)]
    return "\n".join(rows)


class LetterCubeEncoder(ClueEncoder):
    """Letters scattered over a square grid, revealed as a walking trail.

    Every cycle walks the placement path from the top-left corner, one
    relative move per clue. Somewhere in each walk (chosen at random) the
    whole grid is shown once, ahead of that step's move.
    """

    kind = ClueType.LetterCube

    def __init__(
        self,
        answer: str,
        state: Optional[Dict[str, Any]] = None,
        rng: Optional[random.Random] = None,
        clean_log: Optional[LogFn] = None,
    ) -> None:
        super().__init__(answer, rng, clean_log)
        self.size = cube_side(answer)
        self._broken_sent = False
        self.state: Optional[LetterCubeState] = None
        if self.size is not None:
            self.state = self._restore(state) or self._new_layout()

    def _new_layout(self) -> LetterCubeState:
        size = self.size
        coords = [[x, y] for y in range(size) for x in range(size)]
        path = shuffled(self.rng, coords)
        grid = [""] * (size * size)
        for i, (x, y) in enumerate(path):
            grid[x + y * size] = self.answer[i]
        return LetterCubeState(path=path, grid=grid)

    def _restore(self, data: Optional[Dict[str, Any]]) -> Optional[LetterCubeState]:
        data = self._untag(data)
        if data is None:
            return None
        size = self.size
        cells = size * size
        path = data.get("path")
        grid = data.get("grid")
        if not isinstance(path, list) or not isinstance(grid, list):
            return None
        if len(path) != cells or len(grid) != cells:
            return None
        try:
            path = [[int(x), int(y)] for x, y in path]
        except (TypeError, ValueError):
            return None
        if sorted(map(tuple, path)) != sorted((x, y) for y in range(size) for x in range(size)):
            return None
        for i, (x, y) in enumerate(path):
            if grid[x + y * size] != self.answer[i]:
                return None
        state = LetterCubeState(path=path, grid=list(grid))
        step = data.get("step", 0)
        reveal_at = data.get("reveal_at")
        if isinstance(step, int) and 0 <= step < cells:
            state.step = step
            if isinstance(reveal_at, int) and -1 <= reveal_at < cells:
                state.reveal_at = reveal_at
            x, y = data.get("x", 0), data.get("y", 0)
            if isinstance(x, int) and isinstance(y, int):
                state.x, state.y = x, y
        if state.step and state.reveal_at is None:
            state.reveal_at = -1
        return state

    @property
    def layout(self) -> Tuple[List[List[int]], List[str]]:
        if self.state is None:
            return [], []
        return self.state.path, self.state.grid

    def next_clue(self) -> Step:
        if self.state is None:
            if self._broken_sent:
                return None, True
            self._broken_sent = True
            return Clue(BROKEN_CUBE_TEXT, cycle_end=True), True

        state = self.state
        cells = self.size * self.size
        if state.step == 0 and state.reveal_at is None:
            state.reveal_at = self.rng.randrange(cells)
            state.x = state.y = 0

        if state.step == state.reveal_at:
            state.reveal_at = -1
            return Clue(render_grid(state.grid, self.size), encoder_state=self.snapshot()), False

        cx, cy = state.path[state.step]
        text = describe_offset(cx - state.x, cy - state.y)
        state.x, state.y = cx, cy
        state.step += 1
        cycle_end = state.step == cells
        if cycle_end:
            state.step = 0
            state.reveal_at = None
            state.x = state.y = 0
        return Clue(text, cycle_end=cycle_end, encoder_state=self.snapshot()), False

    def snapshot(self) -> Dict[str, Any]:
        if self.state is None:
            return self._tagged({})
        return self._tagged(asdict(self.state))
