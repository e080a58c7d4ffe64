"""Helpers for lightweight subcommand parsing and normalization."""

from __future__ import annotations

import difflib
import string
from typing import Dict, Iterable, Optional, Sequence, Tuple

from unidecode import unidecode

# Characters to trim from bare command tokens (common punctuation + whitespace)
_COMMAND_PUNCT = string.punctuation + "–—"  # include dash variants


def _sanitize_token(token: str) -> str:
    """Strip punctuation around a token, fold accents and lowercase it."""
    return unidecode(token or "").strip(_COMMAND_PUNCT + " ").lower()


def _pick_best_match(candidate: str, options: Sequence[str]) -> Tuple[Optional[str], float]:
    """Return the best matching option and the similarity score."""
    if not options:
        return None, 0.0
    best_name = None
    best_ratio = 0.0
    for opt in options:
        ratio = difflib.SequenceMatcher(None, candidate, opt).ratio()
        if ratio > best_ratio:
            best_ratio = ratio
            best_name = opt
    return best_name, best_ratio


def _min_ratio(length: int) -> float:
    if length <= 3:
        return 1.0
    if length == 4:
        return 0.92
    return 0.75


def resolve_subcommand(
    text: str,
    known: Iterable[str],
    aliases: Optional[Dict[str, str]] = None,
    *,
    fuzzy: bool = True,
) -> Tuple[Optional[str], str]:
    """Split ``text`` into (canonical subcommand, remainder).

    The first word is matched against ``known`` names (then ``aliases``),
    exactly first and fuzzily second. Returns ``(None, text)`` when nothing
    matches, and ``("", "")`` for empty input.
    """
    stripped = (text or "").strip()
    if not stripped:
        return "", ""

    parts = stripped.split(None, 1)
    token = _sanitize_token(parts[0])
    remainder = parts[1].strip() if len(parts) > 1 else ""
    if not token:
        return None, stripped

    names = {name.lower(): name for name in known}
    alias_map = {k.lower(): v for k, v in (aliases or {}).items()}

    if token in names:
        return names[token], remainder
    if token in alias_map:
        return alias_map[token], remainder
    if not fuzzy:
        return None, stripped

    best_name, score = _pick_best_match(token, list(names) + list(alias_map))
    if best_name and score >= _min_ratio(len(token)):
        return names.get(best_name) or alias_map[best_name], remainder
    return None, stripped


__all__ = ["resolve_subcommand"]
