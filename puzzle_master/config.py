from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, List

from .clues import CODE_ALPHABET

CONFIG_FILE = "config.json"


def safe_load_json(path, default_value):
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except FileNotFoundError:
        print(f"⚠️ {path} not found. Using defaults.")
    except Exception as e:
        print(f"⚠️ Could not load {path}: {e}")
    return default_value


def _int_setting(value: Any, default: int, minimum: int) -> int:
    try:
        return max(minimum, int(value))
    except (TypeError, ValueError):
        return default


@dataclass
class PuzzleConfig:
    state_path: str = "data/puzzle_state.json"
    archive_path: str = "data/puzzle_archive.json"
    cooldown_minutes: int = 60
    code_length: int = 16
    refill_limit: int = 128
    admin_keys: List[str] = field(default_factory=list)
    clean_logs: bool = True
    debug: bool = False

    @classmethod
    def from_dict(cls, data: Any) -> "PuzzleConfig":
        """Build from a parsed config.json; the ``puzzle`` section wins over top-level keys."""
        cfg = cls()
        if not isinstance(data, dict):
            return cfg
        section = data.get("puzzle")
        if not isinstance(section, dict):
            section = {}

        cfg.debug = bool(data.get("debug", cfg.debug))
        cfg.clean_logs = bool(data.get("clean_logs", cfg.clean_logs))

        state_path = section.get("state_path")
        if isinstance(state_path, str) and state_path.strip():
            cfg.state_path = state_path.strip()
        archive_path = section.get("archive_path")
        if isinstance(archive_path, str) and archive_path.strip():
            cfg.archive_path = archive_path.strip()

        cfg.cooldown_minutes = _int_setting(section.get("cooldown_minutes", cfg.cooldown_minutes), cfg.cooldown_minutes, 0)
        cfg.code_length = _int_setting(section.get("code_length", cfg.code_length), cfg.code_length, 1)
        cfg.code_length = min(cfg.code_length, len(CODE_ALPHABET))
        cfg.refill_limit = _int_setting(section.get("refill_limit", cfg.refill_limit), cfg.refill_limit, 1)

        admins = section.get("admin_keys")
        if isinstance(admins, list):
            cfg.admin_keys = [str(key).strip() for key in admins if str(key).strip()]
        return cfg


def load_config(path: str = CONFIG_FILE) -> PuzzleConfig:
    return PuzzleConfig.from_dict(safe_load_json(path, {}))


__all__ = ["CONFIG_FILE", "PuzzleConfig", "load_config", "safe_load_json"]
