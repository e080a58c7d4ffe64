from __future__ import annotations

import hashlib
import random
import sys
import unittest
from datetime import datetime, timedelta, timezone
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from puzzle_master.clues import CODE_ALPHABET, ClueType
from puzzle_master.session import PuzzleFatalError, PuzzleSession, cooldown_elapsed, puzzle_id_for


class FakeClock:
    def __init__(self) -> None:
        self.now = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class SilentEncoder:
    def next_clue(self):
        return None, False

    def snapshot(self):
        return {"kind": "LetterPosition"}


class FinishedEncoder:
    def next_clue(self):
        return None, True

    def snapshot(self):
        return {"kind": "LetterPosition"}


def make_session(seed: int = 0, clock: FakeClock | None = None) -> PuzzleSession:
    return PuzzleSession(
        rng=random.Random(seed),
        clock=clock or FakeClock(),
        clean_log=lambda *args, **kwargs: None,
    )


def use_type(session: PuzzleSession, clue_type: ClueType) -> None:
    session.puzzle_type = clue_type
    session.encoder_state = None
    session.clue_buffer.clear()
    session.start_clues()


class CooldownTests(unittest.TestCase):
    def test_gate(self):
        last = datetime(2026, 1, 1, tzinfo=timezone.utc)
        self.assertFalse(cooldown_elapsed(last, last + timedelta(minutes=59, seconds=59)))
        self.assertTrue(cooldown_elapsed(last, last + timedelta(hours=1)))
        self.assertTrue(cooldown_elapsed(last, last + timedelta(days=2)))

    def test_custom_cooldown(self):
        last = datetime(2026, 1, 1, tzinfo=timezone.utc)
        self.assertTrue(cooldown_elapsed(last, last + timedelta(minutes=5), timedelta(minutes=5)))


class PuzzleSessionTests(unittest.TestCase):
    def setUp(self) -> None:
        self.clock = FakeClock()
        self.session = make_session(clock=self.clock)

    def test_start_from_idle(self):
        status = self.session.start_clues()
        answer = self.session.answer
        self.assertTrue(status.startswith("Puzzle started"))
        self.assertIn(answer, status)
        self.assertEqual(len(answer), 16)
        self.assertEqual(len(set(answer)), 16)
        self.assertEqual(self.session.puzzle_id, hashlib.md5(answer.encode()).hexdigest()[:16])
        self.assertEqual(self.session.clue_count, 0)
        self.assertIn(self.session.puzzle_type, list(ClueType))
        self.assertTrue(self.session.active)

    def test_start_again_resumes(self):
        self.session.start_clues()
        answer = self.session.answer
        status = self.session.start_clues()
        self.assertTrue(status.startswith("Puzzle resumed"))
        self.assertEqual(self.session.answer, answer)

    def test_puzzle_id_is_stable(self):
        self.assertEqual(puzzle_id_for("abc"), puzzle_id_for("abc"))
        self.assertNotEqual(puzzle_id_for("abc"), puzzle_id_for("abd"))
        self.assertEqual(len(puzzle_id_for("abc")), 16)

    def test_letter_position_scenario_restarts_after_full_cycle(self):
        self.session.start_clues()
        use_type(self.session, ClueType.LetterPosition)
        answer = self.session.answer
        clues = [self.session.get_clue(True) for _ in range(16)]
        self.assertEqual(len(set(clues)), 16)
        positions = sorted(int(c.split(" ")[0]) for c in clues)
        self.assertEqual(positions, list(range(1, 17)))
        for clue in clues:
            position, letter = clue.split(" ")
            self.assertEqual(answer[int(position) - 1], letter)

        seventeenth = self.session.get_clue(True)
        position, letter = seventeenth.split(" ")
        self.assertEqual(answer[int(position) - 1], letter)
        self.assertEqual(self.session.clue_count, 17)
        self.assertFalse(self.session.paused)

    def test_refill_stops_at_cycle_end(self):
        self.session.start_clues()
        use_type(self.session, ClueType.LetterCube)
        self.session.get_clue(True)
        self.assertEqual(len(self.session.clue_buffer), 16)

    def test_cooldown_blocks_unforced_clues(self):
        self.session.start_clues()
        self.assertIsNotNone(self.session.get_clue(False))
        self.clock.advance(minutes=30)
        self.assertIsNone(self.session.get_clue(False))
        self.assertIsNotNone(self.session.get_clue(True))
        self.clock.advance(minutes=59)
        self.assertIsNone(self.session.get_clue(False))
        self.clock.advance(minutes=1)
        self.assertIsNotNone(self.session.get_clue(False))
        self.assertEqual(self.session.clue_count, 3)

    def test_paused_session_only_gives_forced_clues(self):
        self.session.start_clues()
        self.assertTrue(self.session.toggle_paused())
        self.assertIsNone(self.session.get_clue(False))
        self.assertIsNotNone(self.session.get_clue(True))
        self.assertFalse(self.session.toggle_paused())

    def test_idle_session_gives_nothing(self):
        self.assertIsNone(self.session.get_clue(False))
        self.assertIsNone(self.session.get_clue(True))

    def test_check_answer(self):
        self.assertFalse(self.session.check_answer(""))
        self.session.start_clues()
        answer = self.session.answer
        self.assertTrue(self.session.check_answer(answer))
        self.assertFalse(self.session.check_answer(answer.swapcase()))
        self.assertFalse(self.session.check_answer(f" {answer}"))
        self.assertFalse(self.session.check_answer(answer[:-1]))
        self.session.toggle_paused()
        self.assertFalse(self.session.check_answer(answer))

    def test_end_puzzle_returns_to_idle(self):
        self.session.start_clues()
        self.session.get_clue(True)
        self.session.end_puzzle()
        self.assertEqual(self.session.answer, "")
        self.assertEqual(self.session.puzzle_id, "")
        self.assertEqual(self.session.clue_count, 0)
        self.assertEqual(len(self.session.clue_buffer), 0)
        self.assertIsNone(self.session.encoder_state)
        self.assertEqual(self.session.puzzle_type, ClueType.LetterPosition)
        self.assertEqual(self.session.get_help(), (False, False, ""))

    def test_new_puzzle_resets_count(self):
        self.session.start_clues()
        self.session.get_clue(True)
        self.session.get_clue(True)
        self.session.end_puzzle()
        self.session.start_clues()
        self.assertEqual(self.session.clue_count, 0)

    def test_help(self):
        self.assertEqual(self.session.get_help(), (False, False, ""))
        self.session.start_clues()
        use_type(self.session, ClueType.BrokenStream)
        self.assertEqual(self.session.get_help(), (True, True, "Order correct, content maybe not"))
        self.session.toggle_paused()
        self.assertEqual(self.session.get_help(), (True, False, ""))

    def test_empty_refill_is_fatal_and_pauses(self):
        self.session.start_clues()
        self.session.clue_buffer.clear()
        self.session.encoder = SilentEncoder()
        with self.assertRaises(PuzzleFatalError):
            self.session.get_clue(True)
        self.assertTrue(self.session.paused)
        self.assertEqual(self.session.clue_count, 0)

    def test_finished_encoder_restarts_within_one_refill(self):
        self.session.start_clues()
        use_type(self.session, ClueType.LetterPosition)
        answer = self.session.answer
        self.session.encoder = FinishedEncoder()
        clue = self.session.get_clue(True)
        position, letter = clue.split(" ")
        self.assertEqual(answer[int(position) - 1], letter)
        self.assertFalse(self.session.paused)
        self.assertEqual(len(self.session.clue_buffer), len(answer) - 1)
        self.assertEqual(self.session.clue_count, 1)

    def test_code_length_must_fit_the_alphabet(self):
        longest = PuzzleSession(rng=random.Random(1), clean_log=lambda *args, **kwargs: None, code_length=len(CODE_ALPHABET))
        longest.start_clues()
        self.assertEqual(len(longest.answer), len(CODE_ALPHABET))
        for bad in (0, len(CODE_ALPHABET) + 1, 80):
            with self.assertRaises(ValueError):
                PuzzleSession(code_length=bad)


if __name__ == "__main__":
    unittest.main()
