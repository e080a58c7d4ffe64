from dataclasses import dataclass
from typing import Optional


@dataclass
class PendingReply:
    text: str
    reason: str = "puzzle"
    puzzle_id: Optional[str] = None
    is_error: bool = False
    private: bool = False
