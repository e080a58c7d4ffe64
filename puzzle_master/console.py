"""Local console for driving the puzzle without a chat transport."""

from __future__ import annotations

import argparse
import asyncio
import sys
from datetime import timedelta
from typing import Optional, Sequence, TextIO

from .archive import PuzzleArchive
from .config import CONFIG_FILE, PuzzleConfig, load_config
from .logs import clean_log, configure
from .persist import JsonStateStore
from .puzzle_manager import PuzzleManager
from .session import PuzzleSession


def build_manager(cfg: PuzzleConfig) -> PuzzleManager:
    session = PuzzleSession(
        clean_log=clean_log,
        cooldown=timedelta(minutes=cfg.cooldown_minutes),
        code_length=cfg.code_length,
        refill_limit=cfg.refill_limit,
    )
    return PuzzleManager(
        session=session,
        archive=PuzzleArchive(cfg.archive_path),
        store=JsonStateStore(cfg.state_path),
        clean_log=clean_log,
        admin_keys=cfg.admin_keys,
    )


async def run(manager: PuzzleManager, stream: TextIO, *, sender: str, admin: bool) -> None:
    await manager.load()
    try:
        for raw in stream:
            line = raw.strip()
            if not line:
                continue
            if line in ("/quit", "/exit"):
                break
            cmd, _, arguments = line.partition(" ")
            reply = manager.handle_command(cmd, arguments, sender, sender, is_admin=admin)
            print(reply.text)
            await manager.save()
    finally:
        await manager.save()


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Drive the puzzle from stdin: /puzzle <sub>, /answer <code>, /quit")
    parser.add_argument("--config", default=CONFIG_FILE, help="Path to config.json")
    parser.add_argument("--sender", default="console", help="Sender key used for commands")
    parser.add_argument("--admin", action="store_true", help="Treat the console user as a puzzle admin")
    args = parser.parse_args(argv)

    cfg = load_config(args.config)
    configure(debug=cfg.debug, clean_logs=cfg.clean_logs)
    manager = build_manager(cfg)
    asyncio.run(run(manager, sys.stdin, sender=args.sender, admin=args.admin))
    return 0


__all__ = ["build_manager", "main", "run"]
