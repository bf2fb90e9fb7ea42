"""examplayer: exam session engine for quizzes and flashcard review."""

from .analytics import AnalyticsSnapshot, aggregate
from .fill_in import FillInGap
from .judges import judge
from .models import Exam, SessionLedger
from .session import ExamSession

__version__ = "0.1.0"

__all__ = [
    "AnalyticsSnapshot",
    "Exam",
    "ExamSession",
    "FillInGap",
    "SessionLedger",
    "aggregate",
    "judge",
    "__version__",
]
