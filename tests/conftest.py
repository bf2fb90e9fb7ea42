import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from examplayer.models import Exam  # noqa: E402


def make_exam(exercises, mode="exercise", exam_id="exam-1"):
    return Exam.model_validate({"id": exam_id, "name": "Sample Exam", "exercises": exercises, "mode": mode})


def mcq(answer="a", options=("a", "b", "c"), content="Pick one"):
    return {"type": "mcq", "content": content, "options": list(options), "answer": answer}


@pytest.fixture
def mixed_exam():
    return make_exam(
        [
            mcq(answer="b", content="2 + 2 = ?"),
            {"type": "yes/no", "content": "Paris is in France.", "answer": "yes"},
            {
                "type": "fill-in",
                "content": "The ___ jumps over the ___",
                "options": ["fox", "dog", "lazy"],
                "answer": "fox,dog",
            },
            {"type": "flashcard", "content": "Hund", "answer": "dog", "meta": {"difficulty": "hard"}},
        ]
    )


@pytest.fixture
def mcq_exam():
    return make_exam([mcq(answer="a") for _ in range(4)])
