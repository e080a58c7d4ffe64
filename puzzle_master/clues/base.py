from __future__ import annotations

import random
import string
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple

from ..logs import LogFn, clean_log as default_clean_log


CODE_ALPHABET = string.ascii_letters + string.digits + "!#$%&*+-=?@"
DEFAULT_CODE_LENGTH = 16


class ClueType(Enum):
    LetterPosition = 0
    LetterCube = 1
    BrokenStream = 2
    Mastermind = 3

    @classmethod
    def coerce(cls, value: Any) -> "ClueType":
        """Accept an enum member, its name, or its numeric value."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls[value]
            except KeyError:
                pass
            if value.strip().isdigit():
                return cls(int(value))
        if isinstance(value, int) and not isinstance(value, bool):
            return cls(value)
        raise ValueError(f"Unknown clue type: {value!r}")


CLUE_HELP = {
    ClueType.LetterPosition: "Put them in order",
    ClueType.LetterCube: "Follow the path. Start top left",
    ClueType.BrokenStream: "Order correct, content maybe not",
    ClueType.Mastermind: "Play mastermind with me",
}


def clue_help(clue_type: ClueType) -> str:
    return CLUE_HELP.get(clue_type, "")


@dataclass
class Clue:
    text: str
    cycle_end: bool = False
    encoder_state: Optional[Dict[str, Any]] = None


Step = Tuple[Optional[Clue], bool]


def random_code(rng: random.Random, length: int = DEFAULT_CODE_LENGTH, alphabet: str = CODE_ALPHABET) -> str:
    """Shuffle the alphabet and keep a prefix, so letters never repeat."""
    letters = list(alphabet)
    rng.shuffle(letters)
    return "".join(letters[:length])


def random_letter(rng: random.Random, alphabet: str = CODE_ALPHABET) -> str:
    return rng.choice(alphabet)


def shuffled(rng: random.Random, items: Sequence[Any]) -> List[Any]:
    out = list(items)
    rng.shuffle(out)
    return out


class ClueEncoder:
    """Resumable clue producer for a single secret.

    Subclasses keep every piece of suspended state on ``self.state`` (a
    dataclass) so ``snapshot()`` can be persisted and handed back to the
    constructor later.
    """

    kind: ClueType

    def __init__(self, answer: str, rng: Optional[random.Random] = None, clean_log: Optional[LogFn] = None) -> None:
        self.answer = answer
        self.rng = rng or random.SystemRandom()
        self.clean_log = clean_log or default_clean_log

    def next_clue(self) -> Step:
        raise NotImplementedError

    def snapshot(self) -> Dict[str, Any]:
        raise NotImplementedError

    def _tagged(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        data = {"kind": self.kind.name}
        data.update(payload)
        return data

    @classmethod
    def _untag(cls, data: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
        """Return the payload if ``data`` belongs to this encoder kind."""
        if not isinstance(data, dict):
            return None
        if data.get("kind") != cls.kind.name:
            return None
        return data
