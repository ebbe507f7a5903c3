import uuid
from datetime import datetime

from pydantic import BaseModel, EmailStr, Field


class RegisterRequest(BaseModel):
    name: str = Field(min_length=1, max_length=120)
    email: EmailStr
    password: str = Field(min_length=8, max_length=72)
    username: str | None = Field(default=None, min_length=3, max_length=60)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class UserResponse(BaseModel):
    id: uuid.UUID
    email: str
    name: str
    username: str | None = None
    nickname: str | None = None
    profile_photo: str | None = None
    created_at: datetime | None = None

    model_config = {"from_attributes": True}


class UpdateProfileRequest(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=120)
    username: str | None = Field(default=None, min_length=3, max_length=60)
    nickname: str | None = Field(default=None, min_length=1, max_length=60)


class AuthResponse(BaseModel):
    token: str
    user: UserResponse
