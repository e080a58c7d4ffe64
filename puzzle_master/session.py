from __future__ import annotations

import asyncio
import hashlib
import random
from collections import deque
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Deque, Dict, List, Optional, Tuple

from .clues import CODE_ALPHABET, DEFAULT_CODE_LENGTH, ClueEncoder, ClueType, clue_help, make_encoder, random_code
from .logs import LogFn, clean_log as default_clean_log
from .persist import StateStore

CLUE_COOLDOWN = timedelta(hours=1)
REFILL_LIMIT = 128
EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


class PuzzleFatalError(RuntimeError):
    """The clue buffer stayed empty after a refill; the session has been paused."""


def puzzle_id_for(answer: str) -> str:
    return hashlib.md5(answer.encode("utf-8")).hexdigest()[:16]


def cooldown_elapsed(last_clue_time: datetime, now: datetime, cooldown: timedelta = CLUE_COOLDOWN) -> bool:
    return now - last_clue_time >= cooldown


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _parse_time(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        # Epoch values larger than this are milliseconds.
        seconds = value / 1000.0 if abs(value) > 1e11 else float(value)
        return datetime.fromtimestamp(seconds, tz=timezone.utc)
    if isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            dt = datetime.fromisoformat(text)
        except ValueError:
            return EPOCH
        return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)
    return EPOCH


class PuzzleSession:
    """The single running puzzle: secret, clue encoder, buffer and flags.

    Idle while ``answer`` is empty. ``start_clues`` begins (or resumes) a
    puzzle, ``get_clue`` hands out clues subject to the cooldown, and a
    correct ``check_answer`` is followed by ``end_puzzle``.
    """

    def __init__(
        self,
        *,
        rng: Optional[random.Random] = None,
        clock: Callable[[], datetime] = _utc_now,
        clean_log: LogFn = default_clean_log,
        cooldown: timedelta = CLUE_COOLDOWN,
        code_length: int = DEFAULT_CODE_LENGTH,
        refill_limit: int = REFILL_LIMIT,
    ) -> None:
        if not 1 <= code_length <= len(CODE_ALPHABET):
            raise ValueError(f"code_length must be between 1 and {len(CODE_ALPHABET)}, got {code_length}")
        self.rng = rng or random.SystemRandom()
        self.clock = clock
        self.clean_log = clean_log
        self.cooldown = cooldown
        self.code_length = code_length
        self.refill_limit = refill_limit

        self.answer = ""
        self.puzzle_type = ClueType.LetterPosition
        self.puzzle_id = ""
        self.clue_buffer: Deque[str] = deque()
        self.encoder_state: Optional[Dict[str, Any]] = None
        self.clue_count = 0
        self.last_clue_time = EPOCH
        self.paused = False
        self.encoder: Optional[ClueEncoder] = None

    # ------------------------
    # State helpers
    # ------------------------
    @property
    def active(self) -> bool:
        return bool(self.answer)

    @property
    def running(self) -> bool:
        return self.active and not self.paused

    def _reset(self) -> None:
        self.answer = ""
        self.puzzle_type = ClueType.LetterPosition
        self.puzzle_id = ""
        self.clue_buffer.clear()
        self.encoder_state = None
        self.clue_count = 0
        self.encoder = None

    def _attach_encoder(self, fresh: bool = False) -> None:
        state = None if fresh else self.encoder_state
        self.encoder = make_encoder(self.puzzle_type, self.answer, state=state, rng=self.rng, clean_log=self.clean_log)
        self.encoder_state = self.encoder.snapshot()

    def _status(self, verb: str) -> str:
        return f"Puzzle {verb}: `{self.answer}`. ID: `{self.puzzle_id}`. Puzzle type is: `{self.puzzle_type.name}`"

    def snapshot(self) -> Dict[str, Any]:
        return {
            "answer": self.answer,
            "puzzle_type": self.puzzle_type.name,
            "clue_buffer": list(self.clue_buffer),
            "encoder_state": self.encoder_state,
            "clue_count": self.clue_count,
            "last_clue_time": self.last_clue_time.isoformat(),
            "puzzle_id": self.puzzle_id,
            "paused": self.paused,
        }

    # ------------------------
    # Public operations
    # ------------------------
    def start_clues(self) -> str:
        if self.answer:
            self._attach_encoder()
            self.clean_log(f"Puzzle {self.puzzle_id} resumed ({self.puzzle_type.name})", "🧩")
            return self._status("resumed")

        self.answer = random_code(self.rng, self.code_length)
        self.puzzle_type = self.rng.choice(list(ClueType))
        self.clue_buffer.clear()
        self.encoder_state = None
        self.clue_count = 0
        self.puzzle_id = puzzle_id_for(self.answer)
        self._attach_encoder(fresh=True)
        self.clean_log(f"Puzzle {self.puzzle_id} started ({self.puzzle_type.name})", "🧩", show_always=True)
        return self._status("started")

    def can_get_clue(self) -> bool:
        return not self.paused and cooldown_elapsed(self.last_clue_time, self.clock(), self.cooldown)

    def _refill(self) -> None:
        for _ in range(self.refill_limit):
            clue, done = self.encoder.next_clue()
            if clue is not None:
                self.clue_buffer.append(clue.text)
            if done:
                self._attach_encoder(fresh=True)
                if clue is None:
                    # Finished encoder gave nothing; keep pulling from the fresh one.
                    continue
                break
            if clue is not None and clue.cycle_end:
                break
        if self.encoder is not None:
            self.encoder_state = self.encoder.snapshot()

    def get_clue(self, forced: bool = False) -> Optional[str]:
        if not self.answer:
            return None
        if not forced and not self.can_get_clue():
            self.clean_log("No clue yet", "⏳")
            return None

        if self.encoder is None:
            self._attach_encoder()
        if not self.clue_buffer:
            self._refill()

        if not self.clue_buffer:
            self.paused = True
            self.clean_log(f"Puzzle stopped, clue buffer empty after refill: {self.snapshot()}", "💥", show_always=True, rate_limit=False)
            raise PuzzleFatalError("Puzzle stopped while calling get_clue(), catastrophic error happened")

        clue = self.clue_buffer.popleft()
        self.last_clue_time = self.clock()
        self.clue_count += 1
        return clue

    def check_answer(self, candidate: str) -> bool:
        if not self.running:
            return False
        return candidate == self.answer

    def end_puzzle(self) -> None:
        if self.puzzle_id:
            self.clean_log(f"Puzzle {self.puzzle_id} ended after {self.clue_count} clues", "🏁")
        self._reset()

    def toggle_paused(self) -> bool:
        self.paused = not self.paused
        return self.paused

    def get_help(self) -> Tuple[bool, bool, str]:
        if not self.answer:
            return False, False, ""
        if self.paused:
            return True, False, ""
        return True, True, clue_help(self.puzzle_type)

    # ------------------------
    # Persistence
    # ------------------------
    async def load(self, store: StateStore) -> bool:
        """Restore from ``store``; on any failure fall back to an idle session."""
        try:
            answer = await store.get("answer", "")
            puzzle_type = await store.get("puzzle_type", ClueType.LetterPosition.name)
            clue_buffer = await store.get("clue_buffer", [])
            encoder_state = await store.get("encoder_state", None)
            clue_count = await store.get("clue_count", 0)
            last_clue_time = await store.get("last_clue_time", 0)
            puzzle_id = await store.get("puzzle_id", "")
            paused = await store.get("paused", False)

            self.answer = answer if isinstance(answer, str) else ""
            self.puzzle_type = ClueType.coerce(puzzle_type)
            self.clue_buffer = deque(str(item) for item in clue_buffer) if isinstance(clue_buffer, list) else deque()
            self.encoder_state = encoder_state if isinstance(encoder_state, dict) else None
            self.clue_count = max(0, int(clue_count))
            self.last_clue_time = _parse_time(last_clue_time)
            self.paused = bool(paused)
            self.puzzle_id = puzzle_id if isinstance(puzzle_id, str) and puzzle_id else ""
            if self.answer and self.puzzle_id != puzzle_id_for(self.answer):
                self.puzzle_id = puzzle_id_for(self.answer)
            if not self.answer:
                self._reset()
            self.encoder = None
        except Exception as exc:
            self.clean_log(f"Failed to load puzzle state; starting fresh: {exc}", "⚠️", show_always=True, rate_limit=False)
            self._reset()
            self.last_clue_time = EPOCH
            self.paused = False
            return False
        return True

    async def save(self, store: StateStore) -> bool:
        data = self.snapshot()
        try:
            await asyncio.gather(*(store.set(key, value) for key, value in data.items()))
        except Exception as exc:
            self.clean_log(f"Puzzle state save failed: {exc}", "⚠️", show_always=True, rate_limit=False)
            return False
        return True


__all__ = [
    "CLUE_COOLDOWN",
    "PuzzleFatalError",
    "PuzzleSession",
    "cooldown_elapsed",
    "puzzle_id_for",
]
