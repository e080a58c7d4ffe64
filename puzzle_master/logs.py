from __future__ import annotations

import logging
import time
from collections import defaultdict
from typing import Callable, Dict

LogFn = Callable[..., None]

logger = logging.getLogger("puzzle_master")

DEBUG_ENABLED = False
CLEAN_LOGS = True

_rate_limit_seconds = 5.0
_last_message_time: Dict[str, float] = defaultdict(float)
_message_counts: Dict[str, int] = defaultdict(int)


def configure(*, debug: bool = False, clean_logs: bool = True) -> None:
    global DEBUG_ENABLED, CLEAN_LOGS
    DEBUG_ENABLED = bool(debug)
    CLEAN_LOGS = bool(clean_logs)
    if not logging.getLogger().handlers:
        logging.basicConfig(format="%(message)s")
    logger.setLevel(logging.DEBUG if DEBUG_ENABLED else logging.INFO)


def clean_log(message, emoji="📝", show_always=False, rate_limit=True):
    """Emoji-prefixed log line with rate limiting for repeated chatter."""
    message = str(message)
    if rate_limit and not DEBUG_ENABLED:
        message_key = f"{emoji}_{message[:50]}"
        current_time = time.time()
        if current_time - _last_message_time[message_key] < _rate_limit_seconds:
            _message_counts[message_key] += 1
            return
        if _message_counts[message_key] > 0:
            suppressed_count = _message_counts[message_key]
            _message_counts[message_key] = 0
            if suppressed_count > 1:
                message += f" (suppressed {suppressed_count} similar messages)"
        _last_message_time[message_key] = current_time

    level = logging.WARNING if show_always else logging.INFO
    if DEBUG_ENABLED or not CLEAN_LOGS:
        logger.log(level, "[Info] %s", message)
    else:
        logger.log(level, "%s %s", emoji, message)


def reset_rate_limits() -> None:
    _last_message_time.clear()
    _message_counts.clear()


__all__ = ["LogFn", "clean_log", "configure", "logger", "reset_rate_limits"]
