"""Routes for browsing and adding quizzes to the catalog."""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from quizloop.database import get_session
from quizloop.models import QuizRecord
from quizloop.schemas import QuizCreate, QuizRead, QuizDetail, QuestionRead
from quizloop.crud import (
    create_quiz,
    get_quiz,
    get_published_quizzes,
    get_settings,
)

router = APIRouter(prefix="/quizzes", tags=["quizzes"])


def _quiz_read(quiz: QuizRecord) -> dict:
    return dict(
        id=quiz.id,
        title=quiz.title,
        description=quiz.description,
        category=quiz.category,
        time_limit_minutes=quiz.time_limit_minutes,
        passing_score_percent=quiz.passing_score_percent,
        published=quiz.published,
        question_count=len(quiz.questions),
        total_attempts=quiz.total_attempts,
        pass_count=quiz.pass_count,
        average_score=quiz.average_score,
        created_at=quiz.created_at,
    )


@router.get("/", response_model=list[QuizRead])
async def list_quizzes(db: AsyncSession = Depends(get_session)):
    quizzes = await get_published_quizzes(db)
    return [QuizRead(**_quiz_read(q)) for q in quizzes]


@router.get("/{quiz_id}", response_model=QuizDetail)
async def read_quiz(quiz_id: int, db: AsyncSession = Depends(get_session)):
    """Return a quiz with its questions but without the answer key."""
    quiz = await get_quiz(db, quiz_id)
    if not quiz:
        raise HTTPException(status_code=404, detail="Quiz not found")
    return QuizDetail(
        **_quiz_read(quiz),
        questions=[
            QuestionRead(id=q["id"], text=q["text"], type=q["type"], options=q["options"])
            for q in quiz.questions
        ],
    )


@router.post("/", response_model=QuizDetail)
async def add_quiz(data: QuizCreate, db: AsyncSession = Depends(get_session)):
    settings = await get_settings(db)
    time_limit = data.time_limit_minutes
    if time_limit is None:
        time_limit = settings.default_time_limit_minutes
    passing_score = data.passing_score_percent
    if passing_score is None:
        passing_score = settings.default_passing_score_percent
    quiz = await create_quiz(
        db,
        QuizRecord(
            title=data.title,
            description=data.description,
            category=data.category,
            time_limit_minutes=time_limit,
            passing_score_percent=passing_score,
            published=data.published,
            questions=[q.model_dump(mode="json") for q in data.questions],
        ),
    )
    return await read_quiz(quiz.id, db)
