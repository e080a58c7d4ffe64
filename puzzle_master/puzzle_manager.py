from __future__ import annotations

from datetime import timezone
from typing import Iterable, List, Optional

from .archive import PuzzleArchive
from .command_utils import resolve_subcommand
from .logs import LogFn, clean_log as default_clean_log
from .persist import StateStore
from .replies import PendingReply
from .session import PuzzleFatalError, PuzzleSession


SUBCOMMANDS = ("help", "clue", "force", "start", "pause", "end", "stats", "status")
SUBCOMMAND_ALIASES = {
    "hint": "clue",
    "resume": "start",
    "stop": "end",
    "info": "status",
}

NOTHING_TEXT = "Nothing going on at the moment"
STOPPED_TEXT = "Puzzling has been temporarily stopped"
GOAL_TEXT = "Complete the passphrase and tell it to me for prizes"


def _format_lines(lines: List[str]) -> str:
    return "\n".join([line.rstrip() for line in lines if line is not None])


class PuzzleManager:
    """Chat command front end for the single running puzzle."""

    def __init__(
        self,
        *,
        session: PuzzleSession,
        archive: PuzzleArchive,
        store: StateStore,
        clean_log: LogFn = default_clean_log,
        admin_keys: Optional[Iterable[str]] = None,
    ) -> None:
        self.session = session
        self.archive = archive
        self.store = store
        self.clean_log = clean_log
        self.admin_keys = {key for key in (admin_keys or []) if key}

    # ------------------------
    # Persistence
    # ------------------------
    async def load(self) -> bool:
        ok = await self.session.load(self.store)
        if self.session.active:
            self.session.start_clues()
            self.archive.add_puzzle(self.session.puzzle_id, self.session.answer, self.session.puzzle_type.name)
        return ok

    async def save(self) -> bool:
        return await self.session.save(self.store)

    def _is_admin(self, sender_key: str, is_admin: bool) -> bool:
        return bool(is_admin) or sender_key in self.admin_keys

    # ------------------------
    # Public dispatcher
    # ------------------------
    def handle_command(
        self,
        cmd: str,
        arguments: str,
        sender_key: str,
        sender_short: str,
        is_admin: bool = False,
    ) -> PendingReply:
        cmd = cmd.lower()
        args = (arguments or "").strip()
        admin = self._is_admin(sender_key, is_admin)
        if cmd == "/answer":
            return self._handle_answer(args, sender_key, sender_short)
        if cmd != "/puzzle":
            return PendingReply("Command not recognized.", "puzzle")

        sub, _ = resolve_subcommand(args, SUBCOMMANDS, SUBCOMMAND_ALIASES)
        if sub is None:
            return PendingReply(
                "Commands: `help`, `clue`, `stats`, or `/answer <code>`.",
                "puzzle help",
            )
        if sub in ("", "help"):
            return PendingReply(self.help_text(), "puzzle help", self.session.puzzle_id or None)
        if sub == "clue":
            return self._handle_clue(forced=False)
        if sub == "stats":
            return PendingReply(_format_lines(self._stats_lines()), "puzzle stats")
        if not admin:
            return PendingReply("⛔ Only puzzle admins can do that.", f"puzzle {sub}", private=True)
        if sub == "force":
            return self._handle_clue(forced=True)
        if sub == "start":
            return self._handle_start()
        if sub == "pause":
            return self._handle_pause()
        if sub == "end":
            return self._handle_end()
        return PendingReply(_format_lines(self._status_lines()), "puzzle status", self.session.puzzle_id or None, private=True)

    # ------------------------
    # Handlers
    # ------------------------
    def help_text(self) -> str:
        active, running, help_text = self.session.get_help()
        if not active:
            return NOTHING_TEXT
        if not running:
            return STOPPED_TEXT
        return _format_lines([
            f"{GOAL_TEXT}. The clue is: {help_text}",
            f"{self.session.clue_count} clues have appeared so far",
            f"Puzzle ID is {self.session.puzzle_id}",
        ])

    def _handle_start(self) -> PendingReply:
        text = self.session.start_clues()
        self.archive.add_puzzle(self.session.puzzle_id, self.session.answer, self.session.puzzle_type.name)
        return PendingReply(text, "puzzle start", self.session.puzzle_id, private=True)

    def _handle_clue(self, *, forced: bool) -> PendingReply:
        session = self.session
        reason = "puzzle force" if forced else "puzzle clue"
        try:
            clue = session.get_clue(forced)
        except PuzzleFatalError as exc:
            return PendingReply(f"⚠️ {exc}", "puzzle error", session.puzzle_id or None, is_error=True, private=True)

        if clue is None:
            if not session.active:
                return PendingReply(NOTHING_TEXT, reason)
            if session.paused:
                return PendingReply(STOPPED_TEXT, reason, session.puzzle_id)
            ready_at = (session.last_clue_time + session.cooldown).astimezone(timezone.utc)
            return PendingReply(f"⏳ No new clue yet. Next one after {ready_at:%H:%M} UTC.", reason, session.puzzle_id)

        self.archive.add_clue(session.puzzle_id, session.clue_count, clue)
        separator = "\n" if "\n" in clue else " "
        text = f"#{session.clue_count}:{separator}{clue}\nPuzzle ID is {session.puzzle_id}"
        return PendingReply(text, reason, session.puzzle_id)

    def _handle_pause(self) -> PendingReply:
        if not self.session.active:
            return PendingReply(NOTHING_TEXT, "puzzle pause")
        paused = self.session.toggle_paused()
        state = "paused" if paused else "running again"
        self.clean_log(f"Puzzle {self.session.puzzle_id} {state}", "⏸️" if paused else "▶️")
        return PendingReply(f"Puzzle {state}.", "puzzle pause", self.session.puzzle_id)

    def _handle_end(self) -> PendingReply:
        puzzle_id = self.session.puzzle_id
        if not puzzle_id:
            return PendingReply(NOTHING_TEXT, "puzzle end")
        self.archive.record_end(puzzle_id)
        self.session.end_puzzle()
        return PendingReply(f"Puzzle {puzzle_id} ended without a winner.", "puzzle end", puzzle_id)

    def _handle_answer(self, guess: str, sender_key: str, sender_short: str) -> PendingReply:
        if not guess:
            return PendingReply("Use `/answer <code>`.", "puzzle answer", private=True)
        session = self.session
        if not session.running:
            return PendingReply(NOTHING_TEXT if not session.active else STOPPED_TEXT, "puzzle answer", private=True)
        if not session.check_answer(guess):
            return PendingReply("❌ That's not it.", "puzzle answer", session.puzzle_id, private=True)

        puzzle_id = session.puzzle_id
        clues = session.clue_count
        self.archive.record_end(puzzle_id, sender_key, sender_short)
        session.end_puzzle()
        self.clean_log(f"Puzzle {puzzle_id} solved by {sender_short or sender_key} after {clues} clues", "🏆", show_always=True)
        return PendingReply("🎉 You got it!", "puzzle answer", puzzle_id, private=True)

    # ------------------------
    # Reports
    # ------------------------
    def _stats_lines(self) -> List[str]:
        summary = self.archive.summary()
        lines = [
            "📊 Puzzle stats",
            f"Puzzles: {summary['puzzles']} · Solved: {summary['solved']} · Open: {summary['open']}",
            f"Clues posted: {summary['clues']}",
        ]
        if summary["top_solvers"]:
            lines.append("Top solvers:")
            for idx, (name, wins) in enumerate(summary["top_solvers"], start=1):
                lines.append(f"{idx}. {name} — {wins}")
        else:
            lines.append("No solves yet.")
        return lines

    def _status_lines(self) -> List[str]:
        session = self.session
        if not session.active:
            return [NOTHING_TEXT]
        return [
            f"🧩 Puzzle {session.puzzle_id} ({session.puzzle_type.name})",
            f"State: {'paused' if session.paused else 'running'}",
            f"Clues delivered: {session.clue_count} · Buffered: {len(session.clue_buffer)}",
            f"Last clue: {session.last_clue_time.isoformat()}",
        ]


__all__ = ["PuzzleManager", "SUBCOMMANDS"]
