from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel

from quizloop.domain import AttemptStatus, Badge, Result, SubmitReason


class AttemptStart(BaseModel):
    quiz_id: int
    user_id: str


class AttemptState(BaseModel):
    attempt_id: str
    quiz_id: int
    user_id: str
    status: AttemptStatus
    started_at: datetime
    question_count: int
    remaining_seconds: Optional[int]
    unlimited: bool
    unanswered_indices: List[int]
    progress_percent: int
    needs_confirmation: bool
    selections: Dict[int, List[int]]


class AnswerUpdate(BaseModel):
    selection: List[int]


class AnswerRecorded(BaseModel):
    attempt_id: str
    question_index: int
    unanswered_count: int


class SubmitRequest(BaseModel):
    reason: SubmitReason = SubmitReason.MANUAL


class SubmitResponse(BaseModel):
    attempt_id: str
    status: AttemptStatus
    result: Result
    new_badges: List[Badge]


class RemainingTime(BaseModel):
    attempt_id: str
    remaining_seconds: Optional[int]
    unlimited: bool


class AttemptRead(BaseModel):
    attempt_id: str
    quiz_id: int
    category: str
    status: str
    started_at: datetime
    submitted_at: datetime
    score: int
    correct_count: int
    incorrect_count: int
    unanswered_count: int
    passed: bool
    time_taken_seconds: int

    class Config:
        from_attributes = True
