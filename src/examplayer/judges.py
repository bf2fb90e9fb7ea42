import logging
from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Sequence, Union

from .config import settings
from .models import FILL_IN, FLASHCARD, MCQ, YES_NO

logger = logging.getLogger(__name__)

# Self-assessment value a learner sends when they knew a flashcard.
FLASHCARD_KNOWN = "right"

Submission = Union[str, Sequence[str]]


# --- Strategy Pattern: Judges ---
class Judge(ABC):
    """Decides whether a submission answers an exercise.

    Returns ``True`` or ``False``, or ``None`` when the exercise cannot be
    judged. Callers must keep ``None`` distinct from ``False``.
    """

    @abstractmethod
    def judge(self, exercise, submission: Submission) -> Optional[bool]:
        pass


class ExactMatchJudge(Judge):
    """mcq and yes/no: case-sensitive equality with the stored answer."""

    def judge(self, exercise, submission: Submission) -> Optional[bool]:
        if not isinstance(submission, str):
            return False
        return submission == exercise.answer


class FlashcardJudge(Judge):
    """The learner grades themselves after seeing the back of the card."""

    def judge(self, exercise, submission: Submission) -> Optional[bool]:
        return submission == FLASHCARD_KNOWN


class FillInJudge(Judge):
    def judge(self, exercise, submission: Submission) -> Optional[bool]:
        return judge_blanks(
            split_blanks(submission), exercise.expected_blanks(), exercise.blank_count()
        )


class UnjudgeableJudge(Judge):
    def judge(self, exercise, submission: Submission) -> Optional[bool]:
        logger.warning(f"Cannot judge exercise of type '{getattr(exercise, 'type', None)}'")
        return None


class JudgeFactory:
    """Selects the judge for an exercise type."""

    _judges: Dict[str, Judge] = {
        MCQ: ExactMatchJudge(),
        YES_NO: ExactMatchJudge(),
        FLASHCARD: FlashcardJudge(),
        FILL_IN: FillInJudge(),
    }

    @classmethod
    def create(cls, exercise_type: str) -> Judge:
        # Unknown types fail closed instead of raising.
        return cls._judges.get(exercise_type, UnjudgeableJudge())


def split_blanks(submission: Submission) -> List[str]:
    if isinstance(submission, str):
        if not submission:
            return []
        return [part.strip() for part in submission.split(settings.FILL_IN_SEPARATOR)]
    return [str(part) for part in submission]


def judge_blanks(
    blanks: Sequence[str], expected: Optional[Sequence[str]], blank_count: int
) -> Optional[bool]:
    """Compare per-blank submissions in order.

    ``None`` when no expected list is given or its length differs from the
    number of blanks in the template.
    """
    if expected is None or len(expected) != blank_count:
        return None
    if len(blanks) != blank_count:
        return False
    return all(given == wanted for given, wanted in zip(blanks, expected))


def judge(exercise, submission: Submission, self_assessment: Optional[bool] = None) -> Optional[bool]:
    """Judge ``submission`` against ``exercise``.

    An explicit ``self_assessment`` (flashcard grading, or a fill-in check
    already computed by the matcher) wins over the type's judge.
    """
    if self_assessment is not None:
        return bool(self_assessment)
    return JudgeFactory.create(getattr(exercise, "type", None)).judge(exercise, submission)
