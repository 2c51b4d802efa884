import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.auth import to_user_response
from app.api.deps import get_current_user
from app.core.db import get_session
from app.models.user import User
from app.schemas.auth import ProfileUpdateRequest, ProfileUpdateResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["users"])


@router.put("/profile", response_model=ProfileUpdateResponse)
async def update_profile(
    payload: ProfileUpdateRequest,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> ProfileUpdateResponse:
    current_user.name = payload.name
    current_user.monthly_budget = payload.monthly_budget
    session.add(current_user)
    await session.commit()
    await session.refresh(current_user)

    logger.info("Updated profile user=%s monthly_budget=%s", current_user.id, payload.monthly_budget)
    return ProfileUpdateResponse(
        message="Profile updated successfully",
        user=to_user_response(current_user),
    )
