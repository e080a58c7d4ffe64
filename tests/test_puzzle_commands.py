from __future__ import annotations

import random
import sys
import tempfile
import unittest
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from puzzle_master.archive import PuzzleArchive
from puzzle_master.persist import JsonStateStore, MemoryStateStore
from puzzle_master.puzzle_manager import NOTHING_TEXT, STOPPED_TEXT, PuzzleManager
from puzzle_master.session import PuzzleSession

ADMIN = "!admin01"
PLAYER = "!player7"


class SilentEncoder:
    def next_clue(self):
        return None, False

    def snapshot(self):
        return {}


class PuzzleCommandTests(unittest.TestCase):
    def setUp(self) -> None:
        self.tmpdir = tempfile.TemporaryDirectory(prefix="puzzle_manager_test_")
        self.addCleanup(self.tmpdir.cleanup)
        self.manager = self._make_manager()

    def _make_manager(self, store=None, seed: int = 0) -> PuzzleManager:
        base = Path(self.tmpdir.name)
        return PuzzleManager(
            session=PuzzleSession(rng=random.Random(seed), clean_log=lambda *args, **kwargs: None),
            archive=PuzzleArchive(str(base / "archive.json")),
            store=store or MemoryStateStore(),
            clean_log=lambda *args, **kwargs: None,
            admin_keys=[ADMIN],
        )

    def _cmd(self, cmd: str, args: str = "", sender: str = PLAYER):
        return self.manager.handle_command(cmd, args, sender, sender.strip("!"))

    def test_help_when_idle(self):
        self.assertEqual(self._cmd("/puzzle").text, NOTHING_TEXT)
        self.assertEqual(self._cmd("/puzzle", "clue").text, NOTHING_TEXT)

    def test_start_requires_admin(self):
        reply = self._cmd("/puzzle", "start")
        self.assertIn("Only puzzle admins", reply.text)
        self.assertFalse(self.manager.session.active)

    def test_admin_flag_also_grants_access(self):
        reply = self.manager.handle_command("/puzzle", "start", PLAYER, "player7", is_admin=True)
        self.assertTrue(reply.text.startswith("Puzzle started"))

    def test_start_is_private_and_archived(self):
        reply = self._cmd("/puzzle", "start", ADMIN)
        session = self.manager.session
        self.assertTrue(reply.private)
        self.assertIn(session.answer, reply.text)
        record = self.manager.archive.get(session.puzzle_id)
        self.assertEqual(record["answer"], session.answer)
        self.assertEqual(record["type"], session.puzzle_type.name)

    def test_clue_then_cooldown(self):
        self._cmd("/puzzle", "start", ADMIN)
        first = self._cmd("/puzzle", "clue")
        self.assertTrue(first.text.startswith("#1:"))
        self.assertIn(self.manager.session.puzzle_id, first.text)
        second = self._cmd("/puzzle", "clue")
        self.assertIn("No new clue yet", second.text)
        forced = self._cmd("/puzzle", "force", ADMIN)
        self.assertTrue(forced.text.startswith("#2:"))
        record = self.manager.archive.get(self.manager.session.puzzle_id)
        self.assertEqual([c["count"] for c in record["clues"]], [1, 2])

    def test_force_requires_admin(self):
        self._cmd("/puzzle", "start", ADMIN)
        self.assertIn("Only puzzle admins", self._cmd("/puzzle", "force").text)

    def test_help_while_running(self):
        self._cmd("/puzzle", "start", ADMIN)
        self._cmd("/puzzle", "force", ADMIN)
        _, _, help_text = self.manager.session.get_help()
        reply = self._cmd("/puzzle", "help")
        self.assertIn(help_text, reply.text)
        self.assertIn("1 clues have appeared so far", reply.text)

    def test_subcommand_typos_and_accents(self):
        self._cmd("/puzzle", "start", ADMIN)
        self.assertTrue(self._cmd("/puzzle", "forcee", ADMIN).text.startswith("#1:"))
        self.assertTrue(self._cmd("/puzzle", "FÓRCE!", ADMIN).text.startswith("#2:"))
        self.assertIn("Commands:", self._cmd("/puzzle", "xyzzy").text)

    def test_wrong_then_right_answer(self):
        self._cmd("/puzzle", "start", ADMIN)
        session = self.manager.session
        answer = session.answer
        puzzle_id = session.puzzle_id
        self.assertIn("not it", self._cmd("/answer", answer.swapcase()).text)
        reply = self._cmd("/answer", answer)
        self.assertIn("You got it", reply.text)
        self.assertFalse(session.active)
        record = self.manager.archive.get(puzzle_id)
        self.assertEqual(record["winner"]["sender_key"], PLAYER)
        self.assertIsNotNone(record["ended"])
        stats = self._cmd("/puzzle", "stats").text
        self.assertIn("Solved: 1", stats)
        self.assertIn("player7", stats)

    def test_answer_while_paused(self):
        self._cmd("/puzzle", "start", ADMIN)
        answer = self.manager.session.answer
        self.assertEqual(self._cmd("/puzzle", "pause", ADMIN).text, "Puzzle paused.")
        self.assertEqual(self._cmd("/answer", answer).text, STOPPED_TEXT)
        self.assertEqual(self._cmd("/puzzle", "help").text, STOPPED_TEXT)
        self.assertEqual(self._cmd("/puzzle", "pause", ADMIN).text, "Puzzle running again.")
        self.assertIn("You got it", self._cmd("/answer", answer).text)

    def test_end_without_winner(self):
        self._cmd("/puzzle", "start", ADMIN)
        puzzle_id = self.manager.session.puzzle_id
        reply = self._cmd("/puzzle", "stop", ADMIN)
        self.assertIn("without a winner", reply.text)
        record = self.manager.archive.get(puzzle_id)
        self.assertIsNone(record["winner"])
        self.assertIsNotNone(record["ended"])

    def test_fatal_error_is_reported(self):
        self._cmd("/puzzle", "start", ADMIN)
        self.manager.session.clue_buffer.clear()
        self.manager.session.encoder = SilentEncoder()
        reply = self._cmd("/puzzle", "force", ADMIN)
        self.assertTrue(reply.is_error)
        self.assertEqual(reply.reason, "puzzle error")
        self.assertTrue(self.manager.session.paused)

    def test_fatal_error_is_logged_once(self):
        logged = []

        def record(message, emoji="📝", show_always=False, rate_limit=True):
            logged.append((message, emoji))

        self.manager = PuzzleManager(
            session=PuzzleSession(rng=random.Random(3), clean_log=record),
            archive=PuzzleArchive(str(Path(self.tmpdir.name) / "archive.json")),
            store=MemoryStateStore(),
            clean_log=record,
            admin_keys=[ADMIN],
        )
        self._cmd("/puzzle", "start", ADMIN)
        self.manager.session.clue_buffer.clear()
        self.manager.session.encoder = SilentEncoder()
        self.assertTrue(self._cmd("/puzzle", "force", ADMIN).is_error)
        self.assertEqual([emoji for _, emoji in logged].count("💥"), 1)

    def test_status_for_admin(self):
        self._cmd("/puzzle", "start", ADMIN)
        reply = self._cmd("/puzzle", "status", ADMIN)
        self.assertIn(self.manager.session.puzzle_id, reply.text)
        self.assertIn("running", reply.text)

    def test_unknown_command(self):
        self.assertEqual(self._cmd("/chess").text, "Command not recognized.")


class PuzzleManagerPersistenceTests(unittest.IsolatedAsyncioTestCase):
    async def test_save_and_resume(self):
        tmpdir = tempfile.TemporaryDirectory(prefix="puzzle_manager_state_")
        self.addCleanup(tmpdir.cleanup)
        base = Path(tmpdir.name)

        def build(seed):
            return PuzzleManager(
                session=PuzzleSession(rng=random.Random(seed), clean_log=lambda *a, **k: None),
                archive=PuzzleArchive(str(base / "archive.json")),
                store=JsonStateStore(str(base / "state.json")),
                clean_log=lambda *a, **k: None,
                admin_keys=[ADMIN],
            )

        first = build(1)
        self.assertTrue(await first.load())
        first.handle_command("/puzzle", "start", ADMIN, "admin")
        first.handle_command("/puzzle", "force", ADMIN, "admin")
        self.assertTrue(await first.save())

        second = build(2)
        self.assertTrue(await second.load())
        self.assertEqual(second.session.answer, first.session.answer)
        self.assertEqual(second.session.clue_count, 1)
        self.assertIsNotNone(second.session.encoder)
        reply = second.handle_command("/puzzle", "force", ADMIN, "admin")
        self.assertTrue(reply.text.startswith("#2:"))


if __name__ == "__main__":
    unittest.main()
