"""Attendees router — registration, questionnaire and AI recommendations."""

import logging
import uuid
from collections import defaultdict

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.database import get_db
from app.dependencies import Session, get_coordinator, get_optional_session, get_session
from app.models.attendee import Attendee, AttendeeAnswer
from app.models.event import Event
from app.models.questionnaire import (
    AnswerOption,
    GoalsCategory,
    Profession,
    ProfessionCategory,
    Question,
)
from app.schemas.attendee import AnswersSubmit, AnswerSubmission, AttendeeCreate, GoalsCategoryUpdate
from app.services.auth_service import create_access_token
from app.services.errors import RecommendationError
from app.services.profile_assembler import build_recommendation_request, load_attendee_profile
from app.services.recommendation_coordinator import RecommendationCoordinator
from app.services.recommendation_store import recommendation_store

logger = logging.getLogger(__name__)

router = APIRouter()

CHOICE_TYPES = {"SINGLE_CHOICE", "MULTI_SELECT", "RANKING"}
NUMERIC_TYPES = {"NUMBER", "SCALE"}


# ---------- Helpers ----------

async def _get_authorized_attendee(
    db: AsyncSession, session: Session, attendee_id: uuid.UUID
) -> Attendee:
    """Load an attendee the caller may act as (own visitor token or own user)."""
    attendee = await load_attendee_profile(db, attendee_id)
    if session.attendee_id is not None and session.attendee_id == attendee_id:
        if not attendee:
            raise HTTPException(status_code=404, detail="Attendee not found")
        return attendee
    if session.user is not None:
        if not attendee or attendee.user_id != session.user.id:
            raise HTTPException(status_code=404, detail="Attendee not found or does not belong to user")
        return attendee
    raise HTTPException(status_code=403, detail="Attendee ID does not match token")


def _question_to_dict(question: Question) -> dict:
    return {
        "id": str(question.id),
        "question": question.question,
        "type": question.type,
        "placeholder": question.placeholder,
        "display_order": question.display_order,
        "is_required": question.is_required,
        "is_shareable": question.is_shareable,
        "constraints": {
            "min_select": question.min_select,
            "max_select": question.max_select,
            "require_ranking": question.require_ranking,
            "is_using_other": question.is_using_other,
            "text_max_len": question.text_max_len,
            "number_min": float(question.number_min) if question.number_min is not None else None,
            "number_max": float(question.number_max) if question.number_max is not None else None,
            "number_step": float(question.number_step) if question.number_step is not None else None,
        },
        "answer_options": [
            {
                "id": str(opt.id),
                "label": opt.label,
                "value": opt.value,
                "display_order": opt.display_order,
            }
            for opt in question.answer_options
            if opt.is_active and opt.deleted_at is None
        ],
    }


async def _active_questions(db: AsyncSession, goals_category_id: uuid.UUID) -> list[Question]:
    result = await db.execute(
        select(Question)
        .where(
            Question.goals_category_id == goals_category_id,
            Question.is_active == True,
            Question.deleted_at.is_(None),
        )
        .options(selectinload(Question.answer_options))
        .order_by(Question.display_order)
    )
    return list(result.scalars().all())


def _validate_answer(question: Question, sub: AnswerSubmission) -> AttendeeAnswer:
    """Check a submitted answer against its question; keep only the fields its type uses."""
    answer = AttendeeAnswer(question_id=question.id)
    qid = str(question.id)

    if question.type in CHOICE_TYPES:
        option_ids = {opt.id for opt in question.answer_options if opt.is_active}
        if sub.answer_option_id is not None:
            if sub.answer_option_id not in option_ids:
                raise HTTPException(status_code=400, detail=f"Invalid answer option for question {qid}")
            answer.answer_option_id = sub.answer_option_id
        elif question.is_using_other and sub.text_value and sub.text_value.strip():
            answer.text_value = sub.text_value.strip()
        else:
            raise HTTPException(status_code=400, detail=f"Question {qid} requires an answer option")
        if question.type == "RANKING" or question.require_ranking:
            if sub.rank is None:
                raise HTTPException(status_code=400, detail=f"Question {qid} requires a rank")
        answer.rank = sub.rank
        answer.weight = sub.weight
    elif question.type == "FREE_TEXT":
        text = (sub.text_value or "").strip()
        if not text:
            raise HTTPException(status_code=400, detail=f"Question {qid} requires a text answer")
        if question.text_max_len and len(text) > question.text_max_len:
            raise HTTPException(
                status_code=400,
                detail=f"Answer to question {qid} exceeds {question.text_max_len} characters",
            )
        answer.text_value = text
    elif question.type in NUMERIC_TYPES:
        if sub.number_value is None:
            raise HTTPException(status_code=400, detail=f"Question {qid} requires a number")
        if question.number_min is not None and sub.number_value < float(question.number_min):
            raise HTTPException(status_code=400, detail=f"Answer to question {qid} is below the minimum")
        if question.number_max is not None and sub.number_value > float(question.number_max):
            raise HTTPException(status_code=400, detail=f"Answer to question {qid} is above the maximum")
        answer.number_value = sub.number_value
    elif question.type == "DATE":
        if sub.date_value is None:
            raise HTTPException(status_code=400, detail=f"Question {qid} requires a date")
        answer.date_value = sub.date_value
    else:
        raise HTTPException(status_code=400, detail=f"Question {qid} has unsupported type {question.type}")
    return answer


async def _recommendations_view(
    db: AsyncSession, coordinator: RecommendationCoordinator, attendee: Attendee
) -> dict:
    """Fresh AI recommendations, or the last stored ones when the AI call fails."""
    source = "ai"
    try:
        request = build_recommendation_request(attendee)
        result = await coordinator.get_recommendations(request)
    except RecommendationError as e:
        logger.warning(f"AI recommendations unavailable for attendee {attendee.id}, serving stored: {e}")
        result = await recommendation_store.load_active(db, attendee.event_id, attendee.id)
        source = "stored"
    else:
        await recommendation_store.save(db, result)

    own_id = str(attendee.id)
    items = [
        item for item in result.recommendations
        if item.target_attendee_id not in (item.source_attendee_id, own_id)
    ]

    target_ids = set()
    for item in items:
        try:
            target_ids.add(uuid.UUID(item.target_attendee_id))
        except ValueError:
            continue
    targets: dict[str, Attendee] = {}
    if target_ids:
        rows = await db.execute(
            select(Attendee)
            .where(Attendee.id.in_(target_ids), Attendee.is_active == True)
            .options(selectinload(Attendee.profession))
        )
        targets = {str(a.id): a for a in rows.scalars().all()}

    recommendations = []
    for item in items:
        target = targets.get(item.target_attendee_id)
        if target is None:
            continue
        recommendations.append({
            "attendee_id": item.target_attendee_id,
            "nickname": target.nickname,
            "profession": target.profession.name if target.profession else None,
            "linkedin_username": target.linkedin_username,
            "photo_link": target.photo_link,
            "score": item.score,
            "reasoning": item.reasoning,
        })

    return {
        "attendee_id": own_id,
        "event_id": str(attendee.event_id),
        "source": source,
        "recommendations": recommendations,
    }


# ---------- Routes ----------

@router.get("/professions")
async def get_professions(db: AsyncSession = Depends(get_db)):
    """All active professions grouped by category."""
    result = await db.execute(
        select(ProfessionCategory)
        .where(ProfessionCategory.is_active == True, ProfessionCategory.deleted_at.is_(None))
        .options(selectinload(ProfessionCategory.professions))
        .order_by(ProfessionCategory.category)
    )
    return [
        {
            "category_id": str(category.id),
            "category_name": category.category,
            "professions": [
                {"id": str(p.id), "name": p.name}
                for p in category.professions
                if p.is_active and p.deleted_at is None
            ],
        }
        for category in result.scalars().all()
    ]


@router.get("/goals-categories")
async def get_goals_categories(db: AsyncSession = Depends(get_db)):
    result = await db.execute(
        select(GoalsCategory)
        .where(GoalsCategory.is_active == True, GoalsCategory.deleted_at.is_(None))
        .order_by(GoalsCategory.name)
    )
    return [{"id": str(c.id), "name": c.name} for c in result.scalars().all()]


@router.post("", status_code=201)
async def create_attendee(
    req: AttendeeCreate,
    db: AsyncSession = Depends(get_db),
    session: Session | None = Depends(get_optional_session),
):
    """Register for an event as a user or as an anonymous visitor."""
    user = session.user if session else None

    event = await db.get(Event, req.event_id)
    if not event or not event.is_active:
        raise HTTPException(status_code=404, detail="Event not found or inactive")

    profession = await db.get(Profession, req.profession_id)
    if not profession or not profession.is_active:
        raise HTTPException(status_code=404, detail="Profession not found or inactive")

    attendee = Attendee(
        event_id=event.id,
        user_id=user.id if user else None,
        user_email=req.user_email or (user.email if user else None),
        nickname=req.nickname,
        profession_id=profession.id,
        linkedin_username=req.linkedin_username or (user.linkedin_username if user else None),
        photo_link=req.photo_link,
        is_active=True,
    )
    db.add(attendee)
    await db.execute(
        update(Event)
        .where(Event.id == event.id)
        .values(current_participants=Event.current_participants + 1)
    )
    await db.commit()

    token = create_access_token(
        user_id=str(user.id) if user else None,
        attendee_id=str(attendee.id),
    )
    logger.info(f"Attendee {attendee.id} registered for event {event.id}")
    return {"attendee_id": str(attendee.id), "access_token": token}


@router.patch("/{attendee_id}/goals-category")
async def update_goals_category(
    attendee_id: uuid.UUID,
    req: GoalsCategoryUpdate,
    db: AsyncSession = Depends(get_db),
    session: Session = Depends(get_session),
):
    """Set the attendee's goals category and return its questionnaire."""
    attendee = await _get_authorized_attendee(db, session, attendee_id)

    goals_category = await db.get(GoalsCategory, req.goals_category_id)
    if not goals_category or not goals_category.is_active:
        raise HTTPException(status_code=404, detail="Goals category not found or inactive")

    if attendee.goals_category_id != goals_category.id:
        # Answers belong to the previous category's questions
        await db.execute(delete(AttendeeAnswer).where(AttendeeAnswer.attendee_id == attendee.id))
    attendee.goals_category_id = goals_category.id
    await db.commit()

    questions = await _active_questions(db, goals_category.id)
    return {
        "attendee_id": str(attendee.id),
        "goals_category": {"id": str(goals_category.id), "name": goals_category.name},
        "questions": [_question_to_dict(q) for q in questions],
    }


@router.post("/{attendee_id}/answers")
async def submit_answers(
    attendee_id: uuid.UUID,
    req: AnswersSubmit,
    db: AsyncSession = Depends(get_db),
    session: Session = Depends(get_session),
    coordinator: RecommendationCoordinator = Depends(get_coordinator),
):
    """Replace the attendee's answers, then return fresh recommendations."""
    attendee = await _get_authorized_attendee(db, session, attendee_id)
    if attendee.goals_category_id is None:
        raise HTTPException(status_code=400, detail="Select a goals category before answering")

    questions = {q.id: q for q in await _active_questions(db, attendee.goals_category_id)}

    answers: list[AttendeeAnswer] = []
    per_question: dict[uuid.UUID, int] = defaultdict(int)
    for sub in req.answers:
        question = questions.get(sub.question_id)
        if question is None:
            raise HTTPException(
                status_code=400,
                detail=f"Question {sub.question_id} does not belong to the attendee's goals category",
            )
        answers.append(_validate_answer(question, sub))
        per_question[question.id] += 1

    for question in questions.values():
        count = per_question.get(question.id, 0)
        if question.is_required and count == 0:
            raise HTTPException(status_code=400, detail=f"Question {question.id} is required")
        if count > 1 and question.type not in CHOICE_TYPES:
            raise HTTPException(status_code=400, detail=f"Question {question.id} accepts a single answer")
        if question.type == "SINGLE_CHOICE" and count > 1:
            raise HTTPException(status_code=400, detail=f"Question {question.id} accepts a single option")
        if question.max_select and count > question.max_select:
            raise HTTPException(
                status_code=400,
                detail=f"Question {question.id} accepts at most {question.max_select} options",
            )

    await db.execute(delete(AttendeeAnswer).where(AttendeeAnswer.attendee_id == attendee.id))
    for answer in answers:
        answer.attendee_id = attendee.id
        db.add(answer)
    await db.commit()
    logger.info(f"Stored {len(answers)} answers for attendee {attendee.id}")

    attendee = await load_attendee_profile(db, attendee.id)
    return await _recommendations_view(db, coordinator, attendee)


@router.get("/{attendee_id}/recommendations")
async def get_recommendations(
    attendee_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    session: Session = Depends(get_session),
    coordinator: RecommendationCoordinator = Depends(get_coordinator),
):
    attendee = await _get_authorized_attendee(db, session, attendee_id)
    return await _recommendations_view(db, coordinator, attendee)
