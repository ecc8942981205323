from enum import Enum
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from .config import settings


ALL_TIERS = "ALL"


class Tier(str, Enum):
    N5 = "N5"
    N4 = "N4"
    N3 = "N3"
    MY_LEVEL = "My Level"


class QuizMode(str, Enum):
    TRANSLATION = "translation"
    READING = "reading"


# --- Domain ---
class Card(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    term: str
    reading: str
    romanized: str = ""
    translation_primary: str
    translation_secondary: Optional[str] = None
    tier: Optional[Tier] = None  # None means unassigned

    @property
    def translation(self) -> str:
        return self.translation_secondary or self.translation_primary


class Question(BaseModel):
    card: Card
    options: List[str]
    option_hints: Optional[List[str]] = None  # reading mode only
    correct_index: int
    mode: QuizMode

    @property
    def correct_answer(self) -> str:
        return self.options[self.correct_index]


class AnswerRecord(BaseModel):
    index: int
    question: Question
    selected_index: int
    is_correct: bool


class QuizSession(BaseModel):
    pool: List[Card]
    sequence: List[Question]
    mode: QuizMode
    tier: Union[Tier, str, None]
    cursor: int = 0
    score: int = 0
    history: List[AnswerRecord] = Field(default_factory=list)
    active: bool = True


class QuizResults(BaseModel):
    total: int = 0
    correct: int = 0
    wrong: int = 0
    percentage: int = 0
    history: List[AnswerRecord] = Field(default_factory=list)


class QuizProgress(BaseModel):
    current: int = 0
    total: int = 0
    score: int = 0


# --- API payloads ---
class StartRequest(BaseModel):
    tier: Union[Tier, str, None] = ALL_TIERS
    count: int = Field(default=settings.DEFAULT_COUNT, ge=0)
    mode: QuizMode = QuizMode.TRANSLATION


class AnswerRequest(BaseModel):
    selected_index: int


class QuestionView(BaseModel):
    term: str
    reading: Optional[str]
    options: List[str]
    option_hints: Optional[List[str]] = None
    mode: QuizMode
    current_index: int
    total_questions: int


class AnswerResult(BaseModel):
    is_correct: bool
    selected_index: int
    correct_index: int
    correct_answer: str
    translation: str
