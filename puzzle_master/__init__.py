"""Core helpers for the Puzzle Master clue game."""

from .archive import PuzzleArchive
from .clues import Clue, ClueType, make_encoder
from .config import PuzzleConfig, load_config
from .persist import JsonStateStore, MemoryStateStore, StateStore
from .puzzle_manager import PuzzleManager
from .replies import PendingReply
from .session import PuzzleFatalError, PuzzleSession, cooldown_elapsed, puzzle_id_for

__all__ = [
    "Clue",
    "ClueType",
    "JsonStateStore",
    "MemoryStateStore",
    "PendingReply",
    "PuzzleArchive",
    "PuzzleConfig",
    "PuzzleFatalError",
    "PuzzleManager",
    "PuzzleSession",
    "StateStore",
    "cooldown_elapsed",
    "load_config",
    "make_encoder",
    "puzzle_id_for",
]
