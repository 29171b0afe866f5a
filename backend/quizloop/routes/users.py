"""Read-only views of a user's attempt history and badges."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from quizloop.database import get_session
from quizloop.schemas import AttemptRead, BadgeRead
from quizloop.crud import get_attempts_by_user, get_user_badges

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/{user_id}/attempts", response_model=list[AttemptRead])
async def list_attempts(user_id: str, db: AsyncSession = Depends(get_session)):
    """Recorded attempts for a user, newest first."""
    attempts = await get_attempts_by_user(db, user_id)
    return [AttemptRead.model_validate(a) for a in attempts]


@router.get("/{user_id}/badges", response_model=list[BadgeRead])
async def list_badges(user_id: str, db: AsyncSession = Depends(get_session)):
    badges = await get_user_badges(db, user_id)
    return [BadgeRead.model_validate(b) for b in badges]
