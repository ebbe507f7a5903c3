"""Profile assembler — turns stored attendee records into an AI request."""

import logging
import uuid
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.models.attendee import Attendee, AttendeeAnswer
from app.models.questionnaire import Profession
from app.schemas.recommendation import (
    AttendeeAnswer as AnswerPayload,
    AttendeePayload,
    GoalsCategoryInfo,
    ProfessionInfo,
    QuestionType,
    RecommendationRequest,
)
from app.services.errors import RecommendationValidationError

logger = logging.getLogger(__name__)

GUEST_NICKNAME = "Guest"

# Stored question type → type the AI service understands
QUESTION_TYPE_MAP: dict[str, QuestionType] = {
    "SINGLE_CHOICE": QuestionType.MULTI_SELECT,
    "MULTI_SELECT": QuestionType.MULTI_SELECT,
    "RANKING": QuestionType.MULTI_SELECT,
    "FREE_TEXT": QuestionType.FREE_TEXT,
    "NUMBER": QuestionType.NUMBER,
    "SCALE": QuestionType.SCALE,
    "DATE": QuestionType.DATE,
}


def _to_float(value: Decimal | float | None) -> float | None:
    return float(value) if value is not None else None


def _answer_payload(answer: AttendeeAnswer) -> AnswerPayload | None:
    question = answer.question
    if question is None:
        return None
    question_type = QUESTION_TYPE_MAP.get(question.type)
    if question_type is None:
        logger.warning(f"Skipping answer {answer.id}: unsupported question type {question.type}")
        return None

    fields: dict = {"question": question.question, "question_type": question_type}
    if question_type is QuestionType.MULTI_SELECT:
        # "Other" answers carry free text instead of an option
        label = answer.answer_option.label if answer.answer_option else answer.text_value
        fields["answer_label"] = label
        fields["rank"] = answer.rank
        fields["weight"] = _to_float(answer.weight)
    elif question_type is QuestionType.FREE_TEXT:
        fields["text_value"] = answer.text_value
    elif question_type in (QuestionType.NUMBER, QuestionType.SCALE):
        fields["number_value"] = _to_float(answer.number_value)
    elif question_type is QuestionType.DATE:
        fields["date_value"] = answer.date_value.isoformat() if answer.date_value else None
    return AnswerPayload(**fields)


def _answer_order(answer: AttendeeAnswer) -> tuple:
    question = answer.question
    return (
        (question.display_order or 0) if question is not None else 0,
        answer.rank if answer.rank is not None else 0,
    )


def _profession_info(profession: Profession | None) -> ProfessionInfo | None:
    if profession is None:
        return None
    category = profession.category
    return ProfessionInfo(
        name=profession.name,
        category_name=category.category if category is not None else None,
    )


def build_recommendation_request(attendee: Attendee | None) -> RecommendationRequest:
    """Build the normalized AI payload for an attendee.

    The attendee must have its profession (with category), goals category
    and answers (with question and option) loaded. Only a missing attendee
    or event identifier is an error; every other field is optional.
    """
    if attendee is None or not attendee.id:
        raise RecommendationValidationError("attendee id is required")
    if not attendee.event_id:
        raise RecommendationValidationError("event id is required")

    nickname = (attendee.nickname or "").strip() or GUEST_NICKNAME

    goals_category = None
    if attendee.goals_category is not None:
        goals_category = GoalsCategoryInfo(name=attendee.goals_category.name)

    answers = []
    for answer in sorted(attendee.answers or [], key=_answer_order):
        payload = _answer_payload(answer)
        if payload is not None:
            answers.append(payload)

    return RecommendationRequest(
        event_id=str(attendee.event_id),
        attendee=AttendeePayload(
            attendee_id=str(attendee.id),
            nickname=nickname,
            profession=_profession_info(attendee.profession),
            goals_category=goals_category,
            answers=answers,
        ),
    )


async def load_attendee_profile(db: AsyncSession, attendee_id: uuid.UUID) -> Attendee | None:
    """Load an active attendee with everything build_recommendation_request reads."""
    result = await db.execute(
        select(Attendee)
        .where(Attendee.id == attendee_id, Attendee.is_active == True)
        .options(
            selectinload(Attendee.profession).selectinload(Profession.category),
            selectinload(Attendee.goals_category),
            selectinload(Attendee.answers).selectinload(AttendeeAnswer.question),
            selectinload(Attendee.answers).selectinload(AttendeeAnswer.answer_option),
        )
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()
