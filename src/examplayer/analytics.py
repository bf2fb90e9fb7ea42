"""Reduce a session ledger into the results summary."""

from collections import Counter
from typing import Dict, Optional

import pandas as pd

from .models import (
    DIFFICULTY_SCORES,
    AnalyticsSnapshot,
    Exam,
    QuestionResult,
    SessionLedger,
    TypeBreakdown,
)


def accuracy_percent(correct_count: int, total_questions: int) -> int:
    """Share of *all* questions answered correctly, rounded half up.

    Unanswered questions count against accuracy, so an exam with skipped
    questions cannot reach 100.
    """
    if total_questions <= 0:
        return 0
    return int(correct_count * 100 / total_questions + 0.5)


def _average_difficulty(exam: Exam) -> Optional[float]:
    scores = [
        DIFFICULTY_SCORES[exercise.meta.difficulty]
        for exercise in exam.exercises
        if exercise.meta is not None
    ]
    if not scores:
        return None
    return round(sum(scores) / len(scores), 2)


def _by_type(exam: Exam, correctness: Dict[int, bool]) -> Dict[str, TypeBreakdown]:
    totals: Counter = Counter()
    correct: Counter = Counter()
    incorrect: Counter = Counter()
    for index, exercise in enumerate(exam.exercises):
        totals[exercise.type] += 1
        if index in correctness:
            if correctness[index]:
                correct[exercise.type] += 1
            else:
                incorrect[exercise.type] += 1
    return {
        kind: TypeBreakdown(total=count, correct=correct[kind], incorrect=incorrect[kind])
        for kind, count in totals.items()
    }


def aggregate(exam: Exam, ledger: SessionLedger) -> AnalyticsSnapshot:
    """Build the results snapshot. Counts come from judged questions only."""
    total = len(exam.exercises)
    correctness = {
        index: verdict for index, verdict in ledger.correctness.items() if 0 <= index < total
    }
    answers = {index: value for index, value in ledger.answers.items() if 0 <= index < total}
    correct_count = sum(1 for verdict in correctness.values() if verdict)
    incorrect_count = len(correctness) - correct_count

    details = [
        QuestionResult(
            index=index,
            type=exercise.type,
            content=exercise.content,
            user_answer=answers.get(index),
            correct_answer=exercise.answer,
            is_correct=correctness.get(index),
        )
        for index, exercise in enumerate(exam.exercises)
    ]

    time_spent = None
    if ledger.completed_at is not None:
        time_spent = (ledger.completed_at - ledger.started_at).total_seconds()

    return AnalyticsSnapshot(
        exam_id=exam.id,
        exam_name=exam.name,
        total_questions=total,
        accuracy=accuracy_percent(correct_count, total),
        correct_count=correct_count,
        incorrect_count=incorrect_count,
        answers=answers,
        correctness=correctness,
        details=details,
        by_type=_by_type(exam, correctness),
        average_difficulty=_average_difficulty(exam),
        time_spent_seconds=time_spent,
    )


def snapshot_to_frame(snapshot: AnalyticsSnapshot) -> pd.DataFrame:
    """One row per question, for export or further analysis."""
    rows = [
        {
            "index": result.index,
            "type": result.type,
            "content": result.content,
            "user_answer": result.user_answer,
            "correct_answer": result.correct_answer,
            "is_correct": result.is_correct,
            "answered": result.answered,
        }
        for result in snapshot.details
    ]
    return pd.DataFrame(
        rows,
        columns=["index", "type", "content", "user_answer", "correct_answer", "is_correct", "answered"],
    )
