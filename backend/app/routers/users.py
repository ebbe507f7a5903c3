from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.dependencies import get_current_user
from app.models.user import User
from app.schemas.auth import UpdateProfileRequest, UserResponse

router = APIRouter()


@router.get("/me", response_model=UserResponse)
async def get_current_user_profile(user: User = Depends(get_current_user)):
    return UserResponse.model_validate(user)


@router.patch("/me", response_model=UserResponse)
async def update_current_user_profile(
    req: UpdateProfileRequest,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Update name, username or nickname of the current user."""
    if req.username is not None and req.username != user.username:
        taken = await db.execute(select(User.id).where(User.username == req.username))
        if taken.scalar_one_or_none():
            raise HTTPException(status_code=409, detail="Username already taken")
        user.username = req.username
    if req.name is not None:
        user.name = req.name
    if req.nickname is not None:
        user.nickname = req.nickname
    await db.commit()
    await db.refresh(user)
    return UserResponse.model_validate(user)
