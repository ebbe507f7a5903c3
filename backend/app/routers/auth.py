from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.dependencies import get_current_user
from app.models.user import User
from app.schemas.auth import AuthResponse, LoginRequest, RegisterRequest, UserResponse
from app.services.auth_service import create_access_token, hash_password, verify_password

router = APIRouter()


@router.post("/register", status_code=201, response_model=AuthResponse)
async def register(req: RegisterRequest, db: AsyncSession = Depends(get_db)):
    # Check if email or username already exists
    conditions = [User.email == req.email]
    if req.username:
        conditions.append(User.username == req.username)
    result = await db.execute(select(User).where(or_(*conditions)))
    existing = result.scalars().first()
    if existing:
        field = "Email" if existing.email == req.email else "Username"
        raise HTTPException(status_code=409, detail=f"{field} already registered")

    user = User(
        email=req.email,
        password_hash=hash_password(req.password),
        name=req.name,
        username=req.username,
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)

    token = create_access_token(user_id=str(user.id))
    return AuthResponse(token=token, user=UserResponse.model_validate(user))


@router.post("/login", response_model=AuthResponse)
async def login(req: LoginRequest, db: AsyncSession = Depends(get_db)):
    result = await db.execute(select(User).where(User.email == req.email))
    user = result.scalar_one_or_none()

    if not user or not verify_password(req.password, user.password_hash):
        raise HTTPException(status_code=401, detail="Invalid email or password")

    if not user.is_active:
        raise HTTPException(status_code=403, detail="Account is disabled")

    token = create_access_token(user_id=str(user.id))
    return AuthResponse(token=token, user=UserResponse.model_validate(user))


@router.get("/profile", response_model=UserResponse)
async def profile(user: User = Depends(get_current_user)):
    return UserResponse.model_validate(user)
