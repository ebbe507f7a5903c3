import uuid
from datetime import date

from pydantic import BaseModel, EmailStr, Field


class AttendeeCreate(BaseModel):
    event_id: uuid.UUID
    nickname: str = Field(min_length=1, max_length=60)
    profession_id: uuid.UUID
    user_email: EmailStr | None = None
    linkedin_username: str | None = Field(default=None, max_length=100)
    photo_link: str | None = Field(default=None, max_length=500)


class GoalsCategoryUpdate(BaseModel):
    goals_category_id: uuid.UUID


class AnswerSubmission(BaseModel):
    """One stored answer. Choice questions send one entry per selected option."""
    question_id: uuid.UUID
    answer_option_id: uuid.UUID | None = None
    text_value: str | None = Field(default=None, max_length=2000)
    number_value: float | None = None
    date_value: date | None = None
    rank: int | None = Field(default=None, ge=1)
    weight: float | None = Field(default=None, ge=0, le=1)


class AnswersSubmit(BaseModel):
    answers: list[AnswerSubmission] = Field(min_length=1)
