from __future__ import annotations

import random
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

from ..logs import LogFn
from .base import Clue, ClueEncoder, ClueType, Step, shuffled


@dataclass
class LetterPositionState:
    order: List[int] = field(default_factory=list)
    cursor: int = 0


class LetterPositionEncoder(ClueEncoder):
    """One clue per position, in a shuffled order: ``"<position> <letter>"``."""

    kind = ClueType.LetterPosition

    def __init__(
        self,
        answer: str,
        state: Optional[Dict[str, Any]] = None,
        rng: Optional[random.Random] = None,
        clean_log: Optional[LogFn] = None,
    ) -> None:
        super().__init__(answer, rng, clean_log)
        self.state = self._restore(state) or LetterPositionState(
            order=shuffled(self.rng, range(len(answer)))
        )

    def _restore(self, data: Optional[Dict[str, Any]]) -> Optional[LetterPositionState]:
        data = self._untag(data)
        if data is None:
            return None
        order = data.get("order")
        if not isinstance(order, list) or not all(isinstance(i, int) for i in order):
            return None
        if sorted(order) != list(range(len(self.answer))):
            return None
        cursor = data.get("cursor", 0)
        if not isinstance(cursor, int) or not 0 <= cursor < len(order):
            cursor = 0
        return LetterPositionState(order=list(order), cursor=cursor)

    def next_clue(self) -> Step:
        state = self.state
        if state.cursor >= len(state.order):
            return None, True
        position = state.order[state.cursor]
        state.cursor += 1
        done = state.cursor >= len(state.order)
        return Clue(f"{position + 1} {self.answer[position]}"), done

    def snapshot(self) -> Dict[str, Any]:
        return self._tagged(asdict(self.state))
