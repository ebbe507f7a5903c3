from app.models.user import User
from app.models.event import Event
from app.models.questionnaire import (
    AnswerOption,
    GoalsCategory,
    Profession,
    ProfessionCategory,
    Question,
)
from app.models.attendee import Attendee, AttendeeAnswer
from app.models.recommendation import Recommendation

__all__ = [
    "AnswerOption",
    "Attendee",
    "AttendeeAnswer",
    "Event",
    "GoalsCategory",
    "Profession",
    "ProfessionCategory",
    "Question",
    "Recommendation",
    "User",
]
