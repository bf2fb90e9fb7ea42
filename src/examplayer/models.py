import re
from datetime import datetime
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Discriminator,
    Field,
    Tag,
    field_validator,
    model_validator,
)

from .config import settings

FILL_IN = "fill-in"
YES_NO = "yes/no"
MCQ = "mcq"
FLASHCARD = "flashcard"
UNKNOWN = "unknown"

EXERCISE_TYPES = (FILL_IN, YES_NO, MCQ, FLASHCARD)

FLASHCARD_MODE = "flashcard"
EXERCISE_MODE = "exercise"

# Spellings produced by the course editor and older exports.
_MODE_ALIASES = {
    "flashcard": FLASHCARD_MODE,
    "flashcards": FLASHCARD_MODE,
    "exercise": EXERCISE_MODE,
    "exercice": EXERCISE_MODE,
    "exercises": EXERCISE_MODE,
}

DIFFICULTY_SCORES = {"easy": 1, "medium": 2, "hard": 3}


# --- Exercise Models ---
class CognitiveMetadata(BaseModel):
    difficulty: Literal["easy", "medium", "hard"] = "medium"
    tags: List[str] = Field(default_factory=list)


class FillInExercise(BaseModel):
    """Sentence with blanks; ``answer`` holds the per-blank words joined by the separator."""

    type: Literal["fill-in"] = FILL_IN
    content: str
    options: List[str]
    answer: str
    meta: Optional[CognitiveMetadata] = None

    def segments(self) -> List[str]:
        """Text around the blanks; always one more segment than blanks."""
        return re.split(settings.BLANK_PATTERN, self.content)

    def blank_count(self) -> int:
        return len(re.findall(settings.BLANK_PATTERN, self.content))

    def expected_blanks(self) -> List[str]:
        if not self.answer:
            return []
        return [part.strip() for part in self.answer.split(settings.FILL_IN_SEPARATOR)]

    @model_validator(mode="after")
    def _check_blanks_in_options(self):
        for word in self.expected_blanks():
            if word not in self.options:
                raise ValueError(f"fill-in answer '{word}' is not one of the options")
        return self


class YesNoExercise(BaseModel):
    type: Literal["yes/no"] = YES_NO
    content: str
    options: List[str] = Field(default_factory=lambda: ["yes", "no"])
    answer: Literal["yes", "no"]
    meta: Optional[CognitiveMetadata] = None

    @field_validator("options")
    @classmethod
    def _fixed_options(cls, value: List[str]) -> List[str]:
        if value != ["yes", "no"]:
            raise ValueError('yes/no options must be exactly ["yes", "no"]')
        return value


class McqExercise(BaseModel):
    type: Literal["mcq"] = MCQ
    content: str
    options: List[str] = Field(min_length=1)
    answer: str
    meta: Optional[CognitiveMetadata] = None

    @model_validator(mode="after")
    def _answer_in_options(self):
        if self.answer not in self.options:
            raise ValueError(f"mcq answer '{self.answer}' is not one of the options")
        return self


class FlashcardExercise(BaseModel):
    type: Literal["flashcard"] = FLASHCARD
    content: str
    options: List[str] = Field(default_factory=list, max_length=0)
    answer: str
    meta: Optional[CognitiveMetadata] = None


class UnknownExercise(BaseModel):
    """Any exercise whose ``type`` is not recognised. Never judged."""

    type: str = UNKNOWN
    content: str = ""
    options: List[str] = Field(default_factory=list)
    answer: str = ""
    meta: Optional[CognitiveMetadata] = None

    @field_validator("type", mode="before")
    @classmethod
    def _coerce_type(cls, value: Any) -> str:
        if value is None:
            return UNKNOWN
        return str(value)


def _exercise_tag(value: Any) -> str:
    if isinstance(value, dict):
        kind = value.get("type")
    else:
        kind = getattr(value, "type", None)
    return kind if kind in EXERCISE_TYPES else UNKNOWN


Exercise = Annotated[
    Union[
        Annotated[FillInExercise, Tag(FILL_IN)],
        Annotated[YesNoExercise, Tag(YES_NO)],
        Annotated[McqExercise, Tag(MCQ)],
        Annotated[FlashcardExercise, Tag(FLASHCARD)],
        Annotated[UnknownExercise, Tag(UNKNOWN)],
    ],
    Discriminator(_exercise_tag),
]


class Exam(BaseModel):
    id: str
    name: str
    exercises: List[Exercise] = Field(
        default_factory=list,
        validation_alias=AliasChoices("exercises", "exercices"),
    )
    mode: Literal["flashcard", "exercise"] = EXERCISE_MODE
    lesson_id: Optional[str] = None

    @field_validator("mode", mode="before")
    @classmethod
    def _normalize_mode(cls, value: Any) -> Any:
        if isinstance(value, str):
            return _MODE_ALIASES.get(value.strip().lower(), value)
        return value

    @property
    def is_flashcard_mode(self) -> bool:
        return self.mode == FLASHCARD_MODE


# --- Session Models ---
class SessionLedger(BaseModel):
    """Mutable record of one learner's pass through an exam."""

    current_index: int = 0
    answers: Dict[int, str] = Field(default_factory=dict)
    correctness: Dict[int, bool] = Field(default_factory=dict)
    is_complete: bool = False
    started_at: datetime = Field(default_factory=datetime.now)
    completed_at: Optional[datetime] = None

    # Players used to keep one cursor per mode although an exam never
    # switches mode mid-session. Both names read the same cursor here; split
    # them again if mode switching is ever supported.
    @property
    def current_exercise_index(self) -> int:
        return self.current_index

    @property
    def current_flashcard_index(self) -> int:
        return self.current_index


# --- Analytics Models ---
class QuestionResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    index: int
    type: str
    content: str
    user_answer: Optional[str]
    correct_answer: str
    is_correct: Optional[bool]

    @property
    def answered(self) -> bool:
        return self.user_answer is not None


class TypeBreakdown(BaseModel):
    model_config = ConfigDict(frozen=True)

    total: int
    correct: int
    incorrect: int


class AnalyticsSnapshot(BaseModel):
    model_config = ConfigDict(frozen=True)

    exam_id: str
    exam_name: str
    total_questions: int
    accuracy: int
    correct_count: int
    incorrect_count: int
    answers: Dict[int, str]
    correctness: Dict[int, bool]
    details: List[QuestionResult]
    by_type: Dict[str, TypeBreakdown]
    average_difficulty: Optional[float] = None
    time_spent_seconds: Optional[float] = None

    @property
    def unanswered_count(self) -> int:
        return self.total_questions - len(self.answers)
