"""JSON-backed history of past and current puzzles."""

from __future__ import annotations

import json
import os
import threading
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from .persist import _write_atomic

MAX_CLUES_PER_PUZZLE = 500


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class PuzzleArchive:
    """Record of every puzzle: answer, type, clues posted and who solved it."""

    def __init__(self, path: str) -> None:
        self._path = path
        self._lock = threading.Lock()
        self._data: Dict[str, Dict[str, Any]] = {}
        self._load()

    def _load(self) -> None:
        if not os.path.exists(self._path):
            self._data = {}
            return
        try:
            with open(self._path, "r", encoding="utf-8") as fh:
                raw = json.load(fh)
        except Exception:
            self._data = {}
            return
        if isinstance(raw, dict):
            self._data = {key: value for key, value in raw.items() if isinstance(key, str) and isinstance(value, dict)}
        else:
            self._data = {}

    def _persist(self) -> None:
        _write_atomic(self._path, json.dumps(self._data, ensure_ascii=True, indent=2))

    def get(self, puzzle_id: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            record = self._data.get(puzzle_id)
            return dict(record) if record else None

    def add_puzzle(self, puzzle_id: str, answer: str, puzzle_type: str) -> bool:
        """Register a puzzle. Returns False if it was already known."""
        if not puzzle_id:
            raise ValueError("Puzzle id cannot be empty")
        with self._lock:
            if puzzle_id in self._data:
                return False
            self._data[puzzle_id] = {
                "answer": answer,
                "type": puzzle_type,
                "started": _now_iso(),
                "clues": [],
                "winner": None,
                "ended": None,
            }
            self._persist()
        return True

    def add_clue(self, puzzle_id: str, count: int, text: str) -> None:
        with self._lock:
            record = self._data.get(puzzle_id)
            if record is None:
                return
            clues: List[Dict[str, Any]] = record.setdefault("clues", [])
            clues.append({"count": count, "text": text, "time": _now_iso()})
            if len(clues) > MAX_CLUES_PER_PUZZLE:
                del clues[:-MAX_CLUES_PER_PUZZLE]
            self._persist()

    def record_end(self, puzzle_id: str, winner_key: Optional[str] = None, winner_name: Optional[str] = None) -> None:
        with self._lock:
            record = self._data.get(puzzle_id)
            if record is None:
                return
            if winner_key:
                record["winner"] = {"sender_key": winner_key, "player": winner_name or winner_key}
            record["ended"] = _now_iso()
            self._persist()

    def summary(self) -> Dict[str, Any]:
        with self._lock:
            records = list(self._data.values())
        solved = [r for r in records if r.get("winner")]
        winners: Dict[str, int] = {}
        for record in solved:
            name = record["winner"].get("player") or record["winner"].get("sender_key") or "Unknown"
            winners[name] = winners.get(name, 0) + 1
        return {
            "puzzles": len(records),
            "solved": len(solved),
            "open": sum(1 for r in records if not r.get("ended")),
            "clues": sum(len(r.get("clues") or []) for r in records),
            "top_solvers": sorted(winners.items(), key=lambda item: (-item[1], item[0]))[:5],
        }


__all__ = ["PuzzleArchive"]
