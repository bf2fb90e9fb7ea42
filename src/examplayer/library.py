import glob
import json
import logging
import os
from typing import Any, Dict, List, Optional

import pandas as pd
from pydantic import ValidationError

from .models import Exam

logger = logging.getLogger(__name__)

CSV_COLUMNS = ("type", "content", "options", "answer")
CSV_OPTION_SEPARATOR = "|"


def _required_cell(row: Dict[str, Any], column: str, line: int) -> str:
    value = row.get(column)
    if value is None or not str(value).strip():
        raise ValueError(f"Row {line}: empty '{column}' cell")
    return str(value)


def _exercise_from_row(row: Dict[str, Any], line: int) -> Dict[str, Any]:
    options = row.get("options")
    if isinstance(options, str) and options.strip():
        option_list = [part.strip() for part in options.split(CSV_OPTION_SEPARATOR)]
    else:
        option_list = []

    exercise: Dict[str, Any] = {
        "type": _required_cell(row, "type", line).strip(),
        "content": _required_cell(row, "content", line),
        "answer": _required_cell(row, "answer", line).strip(),
    }
    # yes/no carries fixed options; flashcards carry none.
    if option_list or exercise["type"] not in ("yes/no", "flashcard"):
        exercise["options"] = option_list
    difficulty = row.get("difficulty")
    if isinstance(difficulty, str) and difficulty.strip():
        exercise["meta"] = {"difficulty": difficulty.strip().lower()}
    return exercise


def exam_from_frame(exam_id: str, df: pd.DataFrame, mode: str = "exercise") -> Exam:
    """Build an exam from a table with one exercise per row."""
    missing = [column for column in CSV_COLUMNS if column not in df.columns]
    if missing:
        raise ValueError(f"Missing columns: {', '.join(missing)}")
    rows = df.astype(object).where(pd.notna(df), None).to_dict("records")
    return Exam(
        id=exam_id,
        name=exam_id.replace("_", " ").title(),
        exercises=[_exercise_from_row(row, line) for line, row in enumerate(rows, start=2)],
        mode=mode,
    )


class ExamLibrary:
    """Loads exams handed over by the content side: JSON documents and CSV tables."""

    def __init__(self, directory: str):
        self.directory = directory
        self.exams: Dict[str, Exam] = {}

    def load_all(self) -> None:
        self.exams = {}
        if not os.path.exists(self.directory):
            os.makedirs(self.directory, exist_ok=True)
            logger.warning(f"Created directory {self.directory}. Please add exam files.")

        for file_path in sorted(glob.glob(os.path.join(self.directory, "*.json"))):
            try:
                with open(file_path, "r", encoding="utf-8") as f:
                    exam = Exam.model_validate(json.load(f))
                self.add(exam)
                logger.info(f"Loaded exam '{exam.id}' ({len(exam.exercises)} exercises)")
            except (OSError, ValueError, ValidationError) as e:
                logger.error(f"Failed to load {file_path}: {e}")

        for file_path in sorted(glob.glob(os.path.join(self.directory, "*.csv"))):
            exam_id = os.path.splitext(os.path.basename(file_path))[0]
            try:
                df = pd.read_csv(file_path, encoding="utf-8", dtype=str)
                exam = exam_from_frame(exam_id, df)
                self.add(exam)
                logger.info(f"Loaded {len(df)} exercises from {exam_id}")
            except (OSError, ValueError, ValidationError) as e:
                logger.error(f"Skipping {exam_id}: {e}")

        if not self.exams:
            logger.warning("No exam files found. Loading dummy exam.")
            self.add(
                Exam(
                    id="default_dummy",
                    name="Default Dummy",
                    exercises=[
                        {"type": "mcq", "content": "Hund", "options": ["dog", "cat", "tree"], "answer": "dog"},
                        {"type": "yes/no", "content": "Katze means cat.", "answer": "yes"},
                        {
                            "type": "fill-in",
                            "content": "The ____ is green.",
                            "options": ["tree", "house", "water"],
                            "answer": "tree",
                        },
                        {"type": "flashcard", "content": "Wasser", "answer": "water"},
                    ],
                )
            )

    def add(self, exam: Exam) -> None:
        if exam.id in self.exams:
            logger.warning(f"Duplicate exam id '{exam.id}', keeping the last one loaded")
        self.exams[exam.id] = exam

    def get_exam(self, exam_id: str) -> Optional[Exam]:
        return self.exams.get(exam_id)

    def get_exams(self) -> List[Dict[str, Any]]:
        summaries = [
            {
                "id": exam.id,
                "name": exam.name,
                "mode": exam.mode,
                "count": len(exam.exercises),
            }
            for exam in self.exams.values()
        ]
        summaries.sort(key=lambda x: x["name"])
        return summaries
