from __future__ import annotations

import random
from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Optional, Tuple

from ..logs import LogFn
from .base import Clue, ClueEncoder, ClueType, Step, random_code

DEAD_VALUE = 3
HURT_VALUE = 2
STARTING_SCORE = 5
DEAD_BIAS = 0.1


@dataclass
class MastermindState:
    score: int = STARTING_SCORE
    pending_pattern: Optional[str] = None
    pending_solved: bool = False


def score_guess(answer: str, guess: str) -> Tuple[int, List[int], List[int]]:
    """Score ``guess``: dead pegs are exact hits, hurt pegs are letters the
    answer contains somewhere else. Returns (score, dead positions, hurt positions).
    """
    letters = set(answer)
    score = 0
    dead: List[int] = []
    hurt: List[int] = []
    for i, ch in enumerate(guess):
        if i < len(answer) and answer[i] == ch:
            score += DEAD_VALUE
            dead.append(i)
        elif ch in letters:
            score += HURT_VALUE
            hurt.append(i)
    return score, dead, hurt


def peg_pattern(answer: str, guess: str) -> str:
    _, dead, hurt = score_guess(answer, guess)
    if len(dead) == len(guess):
        return "Bingo"
    marks = []
    for i in range(len(guess)):
        if i in dead:
            marks.append("X")
        elif i in hurt:
            marks.append("x")
        else:
            marks.append(" ")
    return "".join(marks)


def _replace(text: str, index: int, letter: str) -> str:
    return text[:index] + letter + text[index + 1:]


def fit_to_score(answer: str, guess: str, target: int, rng: random.Random) -> str:
    """Nudge ``guess`` so its score lands near ``target``.

    Inexact on purpose. Positions that already score are kept; extra pegs
    are added on untouched positions, mostly as hurt pegs.
    """
    if target > len(guess) * DEAD_VALUE:
        return answer

    guess_score, deads, hurts = score_guess(answer, guess)
    missing = target - guess_score
    if missing <= 1:
        return guess

    dead = max(0, int((missing / DEAD_VALUE) // 2))
    dead_score = dead * DEAD_VALUE
    hurt = 0
    hurt_score = 0
    while target - (guess_score + dead_score + hurt_score) > 2:
        if rng.random() < DEAD_BIAS:
            dead += 1
            dead_score += DEAD_VALUE
        else:
            hurt += 1
            hurt_score += HURT_VALUE
    if target - (guess_score + dead_score + hurt_score) == 2:
        hurt += 1

    dead += len(deads)
    hurt += len(hurts)
    if dead + hurt > len(guess):
        dead -= 1
        hurt -= 1

    touched = set(deads) | set(hurts)
    untouched = [i for i in range(len(guess)) if i not in touched]
    rng.shuffle(untouched)
    new_dead_count = max(0, dead - len(deads))
    new_deads = untouched[:new_dead_count]
    untouched = untouched[new_dead_count:]
    new_hurts = untouched[:max(0, hurt - len(hurts))] + hurts

    for pos in new_deads:
        guess = _replace(guess, pos, answer[pos])
        deads.append(pos)

    taken = {guess[pos] for pos in deads}
    untaken = [ch for ch in dict.fromkeys(answer) if ch not in taken]

    for pos in new_hurts:
        if not untaken:
            continue
        choices = list(untaken)
        rng.shuffle(choices)
        letter = choices[0]
        if len(choices) == 1:
            if answer[pos] == letter:
                untaken.remove(letter)
                guess = _replace(guess, pos, letter)
                deads.append(pos)
                continue
        elif answer[pos] == letter:
            letter = choices[1]
        untaken.remove(letter)
        guess = _replace(guess, pos, letter)
        hurts.append(pos)

    return guess


class MastermindEncoder(ClueEncoder):
    """Rounds of guess + peg pattern, drifting towards the answer.

    The target score grows every round; how fast depends on how close the
    last guess was. Never ends by itself.
    """

    kind = ClueType.Mastermind

    def __init__(
        self,
        answer: str,
        state: Optional[Dict[str, Any]] = None,
        rng: Optional[random.Random] = None,
        clean_log: Optional[LogFn] = None,
    ) -> None:
        super().__init__(answer, rng, clean_log)
        self.state = self._restore(state) or MastermindState()

    def _restore(self, data: Optional[Dict[str, Any]]) -> Optional[MastermindState]:
        data = self._untag(data)
        if data is None:
            return None
        score = data.get("score")
        if not isinstance(score, int) or isinstance(score, bool):
            return None
        pending = data.get("pending_pattern")
        if pending is not None and not isinstance(pending, str):
            pending = None
        return MastermindState(
            score=score,
            pending_pattern=pending,
            pending_solved=bool(data.get("pending_solved")) and pending is not None,
        )

    def next_clue(self) -> Step:
        state = self.state
        if state.pending_pattern is not None:
            clue = Clue(state.pending_pattern, cycle_end=state.pending_solved)
            state.pending_pattern = None
            state.pending_solved = False
            return clue, False

        length = len(self.answer)
        guess = random_code(self.rng, length)
        guess = fit_to_score(self.answer, guess, state.score, self.rng)
        _, deads, hurts = score_guess(self.answer, guess)

        roll = int(self.rng.random() * (length + 10))
        state.score += max(1, roll - (length - (len(deads) - len(hurts))))

        if len(set(guess)) != len(guess):
            self.clean_log(f"Mastermind guess repeats letters: {guess}", "⚠️")

        state.pending_pattern = peg_pattern(self.answer, guess)
        state.pending_solved = guess == self.answer
        return Clue(guess), False

    def snapshot(self) -> Dict[str, Any]:
        return self._tagged(asdict(self.state))
