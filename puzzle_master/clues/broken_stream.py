from __future__ import annotations

import random
from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional

from ..logs import LogFn
from .base import Clue, ClueEncoder, ClueType, Step, random_letter

MAX_IGNORE_RUN = 4


@dataclass
class BrokenStreamState:
    index: int = 0
    accept_left: int = 0
    ignore_left: int = 0
    last_ignore: int = 0


class BrokenStreamEncoder(ClueEncoder):
    """Answer letters in order, interrupted by runs of noise.

    ``Ignore n`` announces n junk letters; ``Accept n`` announces the next n
    real ones. An accept run always follows an ignore run.
    """

    kind = ClueType.BrokenStream

    def __init__(
        self,
        answer: str,
        state: Optional[Dict[str, Any]] = None,
        rng: Optional[random.Random] = None,
        clean_log: Optional[LogFn] = None,
    ) -> None:
        super().__init__(answer, rng, clean_log)
        self.state = self._restore(state) or BrokenStreamState()

    def _restore(self, data: Optional[Dict[str, Any]]) -> Optional[BrokenStreamState]:
        data = self._untag(data)
        if data is None:
            return None
        try:
            state = BrokenStreamState(
                index=int(data.get("index", 0)),
                accept_left=int(data.get("accept_left", 0)),
                ignore_left=int(data.get("ignore_left", 0)),
                last_ignore=int(data.get("last_ignore", 0)),
            )
        except (TypeError, ValueError):
            return None
        if not 0 <= state.index < len(self.answer):
            return None
        if state.accept_left < 0 or state.index + state.accept_left > len(self.answer):
            return None
        if not 0 <= state.ignore_left <= MAX_IGNORE_RUN or not 0 <= state.last_ignore <= MAX_IGNORE_RUN:
            return None
        return state

    def next_clue(self) -> Step:
        state = self.state
        if state.index >= len(self.answer):
            return None, True

        if not state.accept_left and not state.ignore_left:
            if not state.last_ignore:
                state.ignore_left = state.last_ignore = self.rng.randint(1, MAX_IGNORE_RUN)
                return Clue(f"Ignore {state.ignore_left}"), False
            extra = self.rng.randint(1, max(1, MAX_IGNORE_RUN - state.last_ignore))
            state.accept_left = min(state.last_ignore + extra, len(self.answer) - state.index)
            state.last_ignore = 0
            return Clue(f"Accept {state.accept_left}"), False

        if state.accept_left:
            state.accept_left -= 1
            letter = self.answer[state.index]
            state.index += 1
            return Clue(letter), state.index >= len(self.answer)

        state.ignore_left -= 1
        return Clue(random_letter(self.rng)), False

    def snapshot(self) -> Dict[str, Any]:
        return self._tagged(asdict(self.state))
