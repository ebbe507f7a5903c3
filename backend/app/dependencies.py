import uuid
from dataclasses import dataclass

from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.models.user import User
from app.services.auth_service import decode_access_token
from app.services.recommendation_coordinator import RecommendationCoordinator

bearer_scheme = HTTPBearer(auto_error=False)


@dataclass
class Session:
    """Authenticated caller: a user, a visitor attendee, or both."""
    user: User | None
    attendee_id: uuid.UUID | None


def _parse_uuid(value) -> uuid.UUID | None:
    if not value:
        return None
    try:
        return uuid.UUID(str(value))
    except ValueError:
        return None


async def get_optional_session(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> Session | None:
    if credentials is None:
        return None
    payload = decode_access_token(credentials.credentials)
    if payload is None:
        raise HTTPException(status_code=401, detail="Invalid or expired token")

    user = None
    user_id = _parse_uuid(payload.get("sub"))
    if user_id:
        result = await db.execute(select(User).where(User.id == user_id))
        user = result.scalar_one_or_none()
        if not user:
            raise HTTPException(status_code=401, detail="User not found")
        if not user.is_active:
            raise HTTPException(status_code=403, detail="Account is disabled")

    attendee_id = _parse_uuid(payload.get("attendee_id"))
    if user is None and attendee_id is None:
        raise HTTPException(status_code=401, detail="Invalid or expired token")
    return Session(user=user, attendee_id=attendee_id)


async def get_session(session: Session | None = Depends(get_optional_session)) -> Session:
    if session is None:
        raise HTTPException(status_code=401, detail="Authentication required")
    return session


async def get_current_user(session: Session = Depends(get_session)) -> User:
    if session.user is None:
        raise HTTPException(status_code=401, detail="User account required")
    return session.user


def get_coordinator(request: Request) -> RecommendationCoordinator:
    return request.app.state.coordinator
