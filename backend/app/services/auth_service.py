"""Password hashing and JWT helpers."""

import logging
from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt
from passlib.context import CryptContext

from app.config import settings

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    return pwd_context.verify(password, password_hash)


def create_access_token(user_id: str | None = None, attendee_id: str | None = None) -> str:
    """Issue a token for a user, an attendee, or a user acting as an attendee.

    Visitors without an account get a token carrying only attendee_id.
    """
    if not user_id and not attendee_id:
        raise ValueError("Token needs a user id or an attendee id")
    expire = datetime.now(timezone.utc) + timedelta(minutes=settings.access_token_expire_minutes)
    payload: dict = {"exp": expire}
    if user_id:
        payload["sub"] = user_id
    if attendee_id:
        payload["attendee_id"] = attendee_id
    return jwt.encode(payload, settings.secret_key, algorithm=settings.algorithm)


def decode_access_token(token: str) -> dict | None:
    try:
        return jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except JWTError as e:
        logger.info(f"Rejected access token: {e}")
        return None
