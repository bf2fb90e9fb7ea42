import logging
import random
import re
from typing import List, Optional, Sequence, Set

from pydantic import BaseModel, ConfigDict

from .config import settings
from .judges import judge_blanks

logger = logging.getLogger(__name__)


class FillInCheck(BaseModel):
    model_config = ConfigDict(frozen=True)

    filled: bool
    all_correct: Optional[bool]


def shuffle_options(options: Sequence[str], rng: Optional[random.Random] = None) -> List[str]:
    """Return a shuffled copy of ``options``; the input is left untouched."""
    shuffled = list(options)
    (rng or random).shuffle(shuffled)
    return shuffled


class FillInGap:
    """Word-bank placement for one fill-in exercise.

    Options are shuffled once when the matcher is built. Each option fills at
    most one blank at a time; placing it elsewhere requires clearing it first.
    """

    def __init__(
        self,
        content: str,
        options: Sequence[str],
        correct_answers: Optional[Sequence[str]] = None,
        rng: Optional[random.Random] = None,
    ):
        self.content = content
        self.segments: List[str] = re.split(settings.BLANK_PATTERN, content)
        self.blank_count = len(self.segments) - 1
        self.correct_answers = list(correct_answers) if correct_answers is not None else None
        self.options = shuffle_options(options, rng)
        self.blanks: List[str] = [""] * self.blank_count
        self.checked = False
        self.selected_option: Optional[str] = None

    @classmethod
    def from_exercise(cls, exercise, rng: Optional[random.Random] = None) -> "FillInGap":
        return cls(exercise.content, exercise.options, exercise.expected_blanks(), rng=rng)

    @property
    def used_options(self) -> Set[str]:
        return {value for value in self.blanks if value}

    @property
    def filled(self) -> bool:
        return all(self.blanks)

    @property
    def is_correct(self) -> Optional[bool]:
        return judge_blanks(self.blanks, self.correct_answers, self.blank_count)

    def _set_blank(self, blank_index: int, value: str) -> None:
        self.checked = False
        self.blanks[blank_index] = value

    def assign(self, blank_index: int, option: str) -> bool:
        """Put ``option`` into a blank. Returns False when the move is refused."""
        if not 0 <= blank_index < self.blank_count:
            logger.warning(f"Ignoring assignment to missing blank {blank_index}")
            return False
        if not option:
            return self.clear(blank_index)
        if option not in self.options:
            return False
        if option in self.used_options and self.blanks[blank_index] != option:
            return False
        self._set_blank(blank_index, option)
        return True

    def clear(self, blank_index: int) -> bool:
        if not 0 <= blank_index < self.blank_count or not self.blanks[blank_index]:
            return False
        self._set_blank(blank_index, "")
        return True

    def select(self, option: str) -> Optional[str]:
        """Toggle the tapped option as the one to place next."""
        if option in self.used_options:
            return self.selected_option
        self.selected_option = None if self.selected_option == option else option
        return self.selected_option

    def place(self, blank_index: int) -> bool:
        """Tap on a blank: drop the selected option there, or empty the blank."""
        if self.selected_option and self.selected_option not in self.used_options:
            placed = self.assign(blank_index, self.selected_option)
            if placed:
                self.selected_option = None
            return placed
        return self.clear(blank_index)

    def check(self) -> FillInCheck:
        self.checked = True
        return FillInCheck(filled=self.filled, all_correct=self.is_correct)

    def blank_state(self, blank_index: int) -> str:
        """Display state of one blank: default, empty, correct or incorrect."""
        if not self.checked or self.is_correct is None:
            return "default"
        if not self.blanks[blank_index]:
            return "empty"
        if self.blanks[blank_index] == self.correct_answers[blank_index]:
            return "correct"
        return "incorrect"

    def reset(self) -> None:
        self.blanks = [""] * self.blank_count
        self.checked = False
        self.selected_option = None

    def joined(self) -> str:
        return settings.FILL_IN_SEPARATOR.join(self.blanks)
