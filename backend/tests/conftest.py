import os
import tempfile
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from pathlib import Path
from types import SimpleNamespace

# Settings are read at import time; configure them before anything imports app.*
_TMP = tempfile.mkdtemp(prefix="meetmatch-tests-")
os.environ.setdefault("DATABASE_URL", f"sqlite+aiosqlite:///{_TMP}/app.db")
os.environ.setdefault("AI_SERVICE_URL", "http://ai.test")
os.environ.setdefault("AI_SERVICE_TOKEN", "test-token")
os.environ.setdefault("SECRET_KEY", "test-secret")
os.environ.setdefault("SCHEDULER_ENABLED", "false")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.orm import Session
from sqlalchemy.pool import NullPool

from app.database import Base, get_db
from app.dependencies import get_coordinator
from app.main import app
from app.models import (
    AnswerOption,
    Attendee,
    Event,
    GoalsCategory,
    Profession,
    ProfessionCategory,
    Question,
    User,
)
from app.services.auth_service import create_access_token
from app.services.errors import RecommendationError


@dataclass
class Database:
    path: Path
    engine: Engine

    @property
    def async_url(self) -> str:
        return f"sqlite+aiosqlite:///{self.path}"

    def session(self) -> Session:
        return Session(self.engine, expire_on_commit=False)

    def async_engine(self):
        return create_async_engine(self.async_url, poolclass=NullPool)


class StubCoordinator:
    """Stands in for RecommendationCoordinator in API tests."""

    def __init__(self):
        self.requests = []
        self.result = None
        self.error: RecommendationError | None = None

    async def get_recommendations(self, request):
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return self.result


@pytest.fixture
def database(tmp_path) -> Database:
    path = tmp_path / "meetmatch.db"
    engine = create_engine(f"sqlite:///{path}")
    Base.metadata.create_all(engine)
    yield Database(path=path, engine=engine)
    engine.dispose()


@pytest.fixture
def coordinator() -> StubCoordinator:
    return StubCoordinator()


@pytest.fixture
def client(database, coordinator):
    engine = database.async_engine()
    factory = async_sessionmaker(engine, expire_on_commit=False)

    async def override_get_db():
        async with factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_coordinator] = lambda: coordinator
    yield TestClient(app)
    app.dependency_overrides.clear()


def auth_header(user_id=None, attendee_id=None) -> dict:
    token = create_access_token(
        user_id=str(user_id) if user_id else None,
        attendee_id=str(attendee_id) if attendee_id else None,
    )
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def world(database):
    """An organizer, an event with two attendees, professions and a questionnaire."""
    with database.session() as db:
        organizer = User(email="organizer@meetmatch.dev", password_hash="x", name="Organizer", username="organizer")
        db.add(organizer)
        db.flush()

        event = Event(
            code="ABC123",
            name="Founders Meetup",
            start=datetime.now(timezone.utc) + timedelta(days=1),
            end=datetime.now(timezone.utc) + timedelta(days=1, hours=2),
            status="UPCOMING",
            current_participants=2,
            created_by=organizer.id,
        )
        tech = ProfessionCategory(category="Technology")
        db.add_all([event, tech])
        db.flush()

        engineer = Profession(category_id=tech.id, name="Software Engineer")
        designer = Profession(category_id=tech.id, name="UX Designer")
        networking = GoalsCategory(name="Networking")
        investing = GoalsCategory(name="Investing")
        db.add_all([engineer, designer, networking, investing])
        db.flush()

        interests = Question(
            goals_category_id=networking.id,
            question="What are you interested in?",
            type="MULTI_SELECT",
            display_order=1,
            max_select=2,
            is_required=True,
            is_using_other=True,
        )
        about = Question(
            goals_category_id=networking.id,
            question="Tell us about yourself",
            type="FREE_TEXT",
            display_order=2,
            text_max_len=200,
        )
        openness = Question(
            goals_category_id=networking.id,
            question="How open are you to meeting new people?",
            type="SCALE",
            display_order=3,
            number_min=1,
            number_max=10,
        )
        funding = Question(
            goals_category_id=investing.id,
            question="What kind of funding do you provide?",
            type="SINGLE_CHOICE",
            display_order=1,
        )
        db.add_all([interests, about, openness, funding])
        db.flush()

        options = [
            AnswerOption(question_id=interests.id, label=label, display_order=i)
            for i, label in enumerate(["AI", "Fintech", "Climate"], start=1)
        ]
        equity = AnswerOption(question_id=funding.id, label="Equity", display_order=1)
        db.add_all(options + [equity])

        bob = Attendee(event_id=event.id, nickname="Bob", profession_id=designer.id,
                       linkedin_username="bob-design", is_active=True)
        cara = Attendee(event_id=event.id, nickname="Cara", profession_id=engineer.id, is_active=True)
        db.add_all([bob, cara])
        db.commit()

        return SimpleNamespace(
            organizer_id=organizer.id,
            event_id=event.id,
            event_code=event.code,
            engineer_id=engineer.id,
            designer_id=designer.id,
            networking_id=networking.id,
            investing_id=investing.id,
            interests_id=interests.id,
            about_id=about.id,
            openness_id=openness.id,
            funding_id=funding.id,
            option_ids={opt.label: opt.id for opt in options},
            equity_id=equity.id,
            bob_id=bob.id,
            cara_id=cara.id,
        )


def new_uuid() -> str:
    return str(uuid.uuid4())
