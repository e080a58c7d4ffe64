"""Clue encoders: resumable generators that leak a secret a bit at a time."""

from __future__ import annotations

import random
from typing import Any, Dict, Optional, Type

from ..logs import LogFn
from .base import (
    CODE_ALPHABET,
    DEFAULT_CODE_LENGTH,
    Clue,
    ClueEncoder,
    ClueType,
    clue_help,
    random_code,
)
from .broken_stream import BrokenStreamEncoder
from .letter_cube import LetterCubeEncoder
from .letter_position import LetterPositionEncoder
from .mastermind import MastermindEncoder

ENCODERS: Dict[ClueType, Type[ClueEncoder]] = {
    ClueType.LetterPosition: LetterPositionEncoder,
    ClueType.LetterCube: LetterCubeEncoder,
    ClueType.BrokenStream: BrokenStreamEncoder,
    ClueType.Mastermind: MastermindEncoder,
}


def make_encoder(
    clue_type: ClueType,
    answer: str,
    state: Optional[Dict[str, Any]] = None,
    rng: Optional[random.Random] = None,
    clean_log: Optional[LogFn] = None,
) -> ClueEncoder:
    """Build the encoder for ``clue_type``; a state saved for another kind is ignored."""
    return ENCODERS[clue_type](answer, state=state, rng=rng, clean_log=clean_log)


__all__ = [
    "CODE_ALPHABET",
    "DEFAULT_CODE_LENGTH",
    "ENCODERS",
    "BrokenStreamEncoder",
    "Clue",
    "ClueEncoder",
    "ClueType",
    "LetterCubeEncoder",
    "LetterPositionEncoder",
    "MastermindEncoder",
    "clue_help",
    "make_encoder",
    "random_code",
]
