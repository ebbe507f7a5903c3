"""Request/response shapes exchanged with the AI matching service.

Field names are snake_case in Python and camelCase on the wire (aliases).
"""

from enum import Enum

from pydantic import BaseModel, Field


class QuestionType(str, Enum):
    MULTI_SELECT = "MULTI_SELECT"
    FREE_TEXT = "FREE_TEXT"
    NUMBER = "NUMBER"
    SCALE = "SCALE"
    DATE = "DATE"


class AttendeeAnswer(BaseModel):
    question: str
    question_type: QuestionType = Field(alias="questionType")
    answer_label: str | None = Field(default=None, alias="answerLabel")
    rank: int | None = None
    weight: float | None = None
    text_value: str | None = Field(default=None, alias="textValue")
    number_value: float | None = Field(default=None, alias="numberValue")
    date_value: str | None = Field(default=None, alias="dateValue")  # ISO date

    model_config = {"populate_by_name": True}


class ProfessionInfo(BaseModel):
    name: str | None = None
    category_name: str | None = Field(default=None, alias="categoryName")

    model_config = {"populate_by_name": True}


class GoalsCategoryInfo(BaseModel):
    name: str | None = None


class AttendeePayload(BaseModel):
    attendee_id: str = Field(alias="attendeeId")
    nickname: str = "Guest"
    profession: ProfessionInfo | None = None
    goals_category: GoalsCategoryInfo | None = Field(default=None, alias="goalsCategory")
    answers: list[AttendeeAnswer] = []

    model_config = {"populate_by_name": True}


class RecommendationRequest(BaseModel):
    event_id: str = Field(alias="eventId")
    attendee: AttendeePayload

    model_config = {"populate_by_name": True}

    @property
    def cache_key(self) -> str:
        return f"{self.event_id}:{self.attendee.attendee_id}"


class ProcessAttendeeResponse(BaseModel):
    message: str = ""
    status: str = "success"


class RecommendationItem(BaseModel):
    source_attendee_id: str = Field(alias="sourceAttendeeId")
    target_attendee_id: str = Field(alias="targetAttendeeId")
    score: float
    reasoning: str

    model_config = {"populate_by_name": True}


class RecommendationsResponse(BaseModel):
    event_id: str = Field(alias="eventId")
    recommendations: list[RecommendationItem]

    model_config = {"populate_by_name": True}
