from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from quizloop.domain import Question, QuestionType


class QuestionRead(BaseModel):
    """Question as shown to a quiz taker; the answer key is left out."""

    id: str
    text: str
    type: QuestionType
    options: List[str]


class QuizCreate(BaseModel):
    title: str
    description: Optional[str] = None
    category: str = "General Knowledge"
    time_limit_minutes: Optional[int] = Field(default=None, ge=0)
    passing_score_percent: Optional[int] = Field(default=None, ge=0, le=100)
    published: bool = True
    questions: List[Question] = []


class QuizRead(BaseModel):
    id: int
    title: str
    description: Optional[str]
    category: str
    time_limit_minutes: int
    passing_score_percent: int
    published: bool
    question_count: int
    total_attempts: int
    pass_count: int
    average_score: float
    created_at: datetime


class QuizDetail(QuizRead):
    questions: List[QuestionRead]
