import logging
import random
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from .analytics import aggregate
from .fill_in import FillInCheck, FillInGap
from .judges import FlashcardJudge, judge
from .models import EXERCISE_TYPES, AnalyticsSnapshot, Exam, FillInExercise, SessionLedger

logger = logging.getLogger(__name__)

CORRECT = "correct"
INCORRECT = "incorrect"
PENDING = "pending"
UNANSWERED = "unanswered"


class ExamSession:
    """Drives one learner through an exam.

    States are in progress and complete. Every operation is synchronous and
    out-of-range requests are logged and ignored; the cursor never leaves
    the exam.
    """

    def __init__(
        self,
        exam: Exam,
        on_view_lesson: Optional[Callable[[Exam], Any]] = None,
        rng: Optional[random.Random] = None,
    ):
        self.exam = exam
        self.on_view_lesson = on_view_lesson
        self._rng = rng
        self._matchers: Dict[int, FillInGap] = {}
        self.ledger = self._new_ledger()
        logger.info(
            f"Session started for exam '{exam.id}' "
            f"[{len(exam.exercises)} exercises, mode: {exam.mode}]"
        )

    def _new_ledger(self) -> SessionLedger:
        ledger = SessionLedger()
        if not self.exam.exercises:
            # Nothing to play: the session is over before it starts.
            ledger.is_complete = True
            ledger.completed_at = ledger.started_at
        return ledger

    # --- Read-only state ---
    @property
    def total(self) -> int:
        return len(self.exam.exercises)

    @property
    def current_index(self) -> int:
        return self.ledger.current_index

    @property
    def is_complete(self) -> bool:
        return self.ledger.is_complete

    @property
    def current_exercise(self):
        if 0 <= self.ledger.current_index < self.total:
            return self.exam.exercises[self.ledger.current_index]
        return None

    @property
    def is_first(self) -> bool:
        return self.ledger.current_index == 0

    @property
    def is_last(self) -> bool:
        return self.ledger.current_index >= self.total - 1

    @property
    def can_go_previous(self) -> bool:
        return not self.ledger.is_complete and self.ledger.current_index > 0

    @property
    def can_go_next(self) -> bool:
        """Next is offered once the current question has an answer; skip is always offered."""
        return not self.ledger.is_complete and self.ledger.current_index in self.ledger.answers

    def progress(self) -> List[str]:
        statuses = []
        for index in range(self.total):
            if index in self.ledger.correctness:
                statuses.append(CORRECT if self.ledger.correctness[index] else INCORRECT)
            elif index in self.ledger.answers:
                statuses.append(PENDING)
            else:
                statuses.append(UNANSWERED)
        return statuses

    # --- Submission ---
    def submit_answer(self, value: str, correct: Optional[bool] = None) -> Optional[bool]:
        """Record ``value`` for the current question and judge it.

        ``correct`` carries a verdict the caller already knows (flashcard
        self-grading). A ``None`` verdict is never stored; it also drops any
        earlier verdict for the question so stale results are not reported.
        """
        index = self.ledger.current_index
        if self.ledger.is_complete:
            logger.warning(f"Ignoring answer for question {index}: exam '{self.exam.id}' is complete")
            return None
        exercise = self.current_exercise
        if exercise is None:
            logger.warning(f"Ignoring answer for missing question {index} in exam '{self.exam.id}'")
            return None

        self.ledger.answers[index] = value
        if correct is None and self.exam.is_flashcard_mode and exercise.type in EXERCISE_TYPES:
            # Every card is flipped and self-graded in flashcard mode.
            verdict = FlashcardJudge().judge(exercise, value)
        else:
            verdict = judge(exercise, value, correct)

        if verdict is None:
            self.ledger.correctness.pop(index, None)
        else:
            self.ledger.correctness[index] = verdict
        return verdict

    # --- Navigation ---
    def go_to_next(self) -> None:
        if self.ledger.is_complete:
            return
        if self.ledger.current_index < self.total - 1:
            self.ledger.current_index += 1
        else:
            self.finish()

    def go_to_previous(self) -> None:
        if self.can_go_previous:
            self.ledger.current_index -= 1

    def skip(self) -> None:
        """Move on whether or not the current question was answered."""
        self.go_to_next()

    def jump_to(self, index: int) -> bool:
        """Reopen question ``index``, e.g. from the results grid. Answers are kept."""
        if not 0 <= index < self.total:
            logger.warning(f"Ignoring jump to question {index} in exam '{self.exam.id}'")
            return False
        self.ledger.current_index = index
        self.ledger.is_complete = False
        self.ledger.completed_at = None
        logger.info(f"Jumped to question {index} in exam '{self.exam.id}'")
        return True

    def finish(self) -> None:
        if self.ledger.is_complete:
            return
        self.ledger.is_complete = True
        self.ledger.completed_at = datetime.now()
        logger.info(
            f"Exam '{self.exam.id}' complete: "
            f"{len(self.ledger.answers)}/{self.total} answered"
        )

    def retry(self) -> None:
        self.ledger = self._new_ledger()
        self._matchers = {}
        logger.info(f"Exam '{self.exam.id}' restarted")

    # --- Fill-in ---
    def fill_in(self) -> Optional[FillInGap]:
        """Matcher for the current question, built once per question.

        None when the exam is complete, and in flashcard mode where every
        exercise is shown as a card.
        """
        if self.ledger.is_complete or self.exam.is_flashcard_mode:
            return None
        exercise = self.current_exercise
        if not isinstance(exercise, FillInExercise):
            return None
        index = self.ledger.current_index
        if index not in self._matchers:
            self._matchers[index] = FillInGap.from_exercise(exercise, rng=self._rng)
        return self._matchers[index]

    def check_fill_in(self) -> Optional[FillInCheck]:
        matcher = self.fill_in()
        if matcher is None:
            return None
        result = matcher.check()
        # Only a fully filled sentence is recorded.
        if result.filled:
            self.submit_answer(matcher.joined(), result.all_correct)
        return result

    # --- Results ---
    def analytics(self) -> AnalyticsSnapshot:
        return aggregate(self.exam, self.ledger)

    def view_lesson(self) -> Any:
        """Hand the exam to the host's lesson viewer; the session does not interpret it."""
        logger.info(f"View lesson requested for exam '{self.exam.id}'")
        if self.on_view_lesson is None:
            return None
        return self.on_view_lesson(self.exam)
