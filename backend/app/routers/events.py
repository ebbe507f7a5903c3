"""Events router — create, browse and manage networking events."""

import logging
import math
import secrets
import string
from datetime import timedelta

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.database import get_db
from app.dependencies import get_current_user
from app.models.event import Event
from app.models.user import User
from app.schemas.event import EventCreate, EventUpdate

logger = logging.getLogger(__name__)

router = APIRouter()

CODE_ALPHABET = string.ascii_uppercase + string.digits
CODE_LENGTH = 6
DEFAULT_DURATION = timedelta(hours=2)
SORT_FIELDS = {
    "name": Event.name,
    "start": Event.start,
    "created_at": Event.created_at,
    "current_participants": Event.current_participants,
}


def _event_to_dict(event: Event) -> dict:
    creator = event.creator
    return {
        "id": str(event.id),
        "code": event.code,
        "name": event.name,
        "start": event.start.isoformat(),
        "end": event.end.isoformat(),
        "description": event.detail,
        "location": event.location_name,
        "latitude": float(event.latitude) if event.latitude is not None else None,
        "longitude": float(event.longitude) if event.longitude is not None else None,
        "status": event.status,
        "current_participants": event.current_participants,
        "creator": {
            "id": str(creator.id),
            "name": creator.name,
            "username": creator.username,
            "email": creator.email,
        } if creator else None,
    }


async def _generate_code(db: AsyncSession) -> str:
    while True:
        code = "".join(secrets.choice(CODE_ALPHABET) for _ in range(CODE_LENGTH))
        taken = await db.execute(select(Event.id).where(Event.code == code))
        if taken.scalar_one_or_none() is None:
            return code


async def _get_active_event(db: AsyncSession, code: str) -> Event:
    result = await db.execute(
        select(Event)
        .where(Event.code == code.upper(), Event.is_active == True)
        .options(selectinload(Event.creator))
        .execution_options(populate_existing=True)
    )
    event = result.scalar_one_or_none()
    if not event:
        raise HTTPException(status_code=404, detail="Event not found")
    return event


@router.post("", status_code=201)
async def create_event(
    req: EventCreate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    event = Event(
        code=await _generate_code(db),
        name=req.name,
        start=req.starts_at,
        end=req.starts_at + DEFAULT_DURATION,
        detail=req.description,
        location_name=req.location,
        latitude=req.latitude,
        longitude=req.longitude,
        status="UPCOMING",
        current_participants=0,
        created_by=user.id,
    )
    db.add(event)
    await db.commit()
    logger.info(f"Event {event.code} created by user {user.id}")
    return _event_to_dict(await _get_active_event(db, event.code))


@router.get("")
async def list_events(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    search: str | None = Query(None, max_length=100),
    sort_by: str = Query("created_at"),
    sort_order: str = Query("desc", pattern="^(asc|desc)$"),
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(get_current_user),
):
    """Paginated list of active events."""
    if sort_by not in SORT_FIELDS:
        raise HTTPException(status_code=400, detail=f"sort_by must be one of {', '.join(SORT_FIELDS)}")

    conditions = [Event.is_active == True]
    if search:
        conditions.append(Event.name.ilike(f"%{search}%"))

    total = (await db.execute(select(func.count(Event.id)).where(*conditions))).scalar_one()

    column = SORT_FIELDS[sort_by]
    result = await db.execute(
        select(Event)
        .where(*conditions)
        .options(selectinload(Event.creator))
        .order_by(column.asc() if sort_order == "asc" else column.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    events = result.scalars().all()

    return {
        "total_data": total,
        "total_page": math.ceil(total / limit) if total else 0,
        "page": page,
        "entries": [_event_to_dict(e) for e in events],
    }


@router.get("/{code}")
async def get_event(
    code: str,
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(get_current_user),
):
    return _event_to_dict(await _get_active_event(db, code))


@router.put("/{code}")
async def update_event(
    code: str,
    req: EventUpdate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    event = await _get_active_event(db, code)
    if event.created_by != user.id:
        raise HTTPException(status_code=403, detail="Only the event creator can update this event")

    if req.name is not None:
        event.name = req.name
    if req.starts_at is not None:
        event.start = req.starts_at
        event.end = req.starts_at + DEFAULT_DURATION
    if req.description is not None:
        event.detail = req.description
    if req.location is not None:
        event.location_name = req.location
    if req.latitude is not None:
        event.latitude = req.latitude
    if req.longitude is not None:
        event.longitude = req.longitude
    if req.status is not None:
        event.status = req.status
    await db.commit()
    return _event_to_dict(await _get_active_event(db, event.code))


@router.delete("/{code}")
async def delete_event(
    code: str,
    hard_delete: bool = Query(False),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Disable an event, or remove it permanently with hard_delete=true."""
    event = await _get_active_event(db, code)
    if event.created_by != user.id:
        raise HTTPException(status_code=403, detail="Only the event creator can delete this event")

    if hard_delete:
        await db.execute(delete(Event).where(Event.id == event.id))
    else:
        event.is_active = False
    await db.commit()
    logger.info(f"Event {code} {'deleted' if hard_delete else 'disabled'} by user {user.id}")
    return {"code": event.code, "deleted": True, "hard_delete": hard_delete}
