"""Seed script for MeetMatch development database."""

import asyncio
import logging

from sqlalchemy import select

from app.database import Base, async_session_factory, engine
from app.models.questionnaire import (
    AnswerOption,
    GoalsCategory,
    Profession,
    ProfessionCategory,
    Question,
)
from app.models.user import User
from app.services.auth_service import hash_password

logger = logging.getLogger(__name__)

# ── Users ──────────────────────────────────────────────────────────────────────

USERS = [
    {
        "email": "organizer@meetmatch.dev",
        "password": "password123",
        "name": "Event Organizer",
        "username": "organizer",
    },
]

# ── Professions ────────────────────────────────────────────────────────────────

PROFESSIONS = {
    "Technology": ["Software Engineer", "Product Manager", "Data Scientist", "UX Designer"],
    "Business": ["Founder", "Sales Manager", "Consultant", "Marketing Lead"],
    "Finance": ["Investor", "Financial Analyst", "Accountant"],
    "Education": ["Teacher", "Researcher", "Student"],
}

# ── Goals categories and their questionnaires ─────────────────────────────────
# (question, type, options, extra column values)

QUESTIONNAIRES = {
    "Job Seeking & Career Growth": [
        ("What kind of work experience do you bring?", "MULTI_SELECT",
         ["Tech & Product", "Design & Creative", "Marketing & Growth", "Business & Strategy"],
         {"min_select": 1}),
        ("Tell us a bit more about your experience", "FREE_TEXT", [],
         {"placeholder": "Your role, years of experience, or a key highlight", "text_max_len": 500}),
        ("Nice! Which industries are you most interested in?", "SINGLE_CHOICE",
         ["Tech & Software", "Finance & Fintech", "Healthcare & Medtech", "Education",
          "Retail & E-commerce", "Media & Entertainment"],
         {"min_select": 1, "max_select": 1}),
        ("Last one, who would you most like to meet today?", "SINGLE_CHOICE",
         ["Potential employers", "Recruiters", "Mentors", "Industry peers", "Collaborators"],
         {"min_select": 1, "max_select": 1}),
    ],
    "Business Development": [
        ("Tell us a little about your business, what do you do?", "FREE_TEXT", [],
         {"text_max_len": 500}),
        ("Who would you like most to meet here?", "SINGLE_CHOICE",
         ["Potential clients", "Partners", "Distributors", "Investors", "Media / PR contacts"],
         {"min_select": 1, "max_select": 1}),
        ("Which industries or markets are you focusing on right now?", "MULTI_SELECT",
         ["Technology", "Finance", "Healthcare", "Retail / E-commerce", "Education", "Manufacturing"],
         {"min_select": 1, "is_using_other": True}),
    ],
    "Investing": [
        ("What kind of funding or investment do you provide?", "SINGLE_CHOICE",
         ["Equity investment", "Debt financing / loans", "Grants", "Convertible notes"],
         {"min_select": 1, "max_select": 1, "is_using_other": True}),
        ("How many investments do you make per year?", "NUMBER", [],
         {"number_min": 0, "number_max": 500, "number_step": 1}),
        ("Who would you most like to meet here?", "SINGLE_CHOICE",
         ["Founders / Startups", "Co-investors", "Venture capital firms",
          "Accelerators / Incubators", "Advisors / Mentors"],
         {"min_select": 1, "max_select": 1}),
    ],
    "Networking": [
        ("How open are you to meeting new people today?", "SCALE", [],
         {"number_min": 1, "number_max": 10, "number_step": 1}),
        ("Rank what you want out of this event", "RANKING",
         ["Learn something new", "Find collaborators", "Expand my professional circle"],
         {"require_ranking": True}),
    ],
}


async def seed():
    async with async_session_factory() as db:
        # Check if already seeded
        result = await db.execute(select(GoalsCategory).limit(1))
        if result.scalar_one_or_none():
            logger.info("Database already seeded. Skipping.")
            return

        # ── Users ──
        for u in USERS:
            db.add(User(
                email=u["email"],
                password_hash=hash_password(u["password"]),
                name=u["name"],
                username=u["username"],
            ))

        # ── Professions ──
        for category_name, names in PROFESSIONS.items():
            category = ProfessionCategory(category=category_name)
            db.add(category)
            await db.flush()  # get category.id
            for name in names:
                db.add(Profession(category_id=category.id, name=name))

        # ── Goals categories + questions ──
        for category_name, questions in QUESTIONNAIRES.items():
            goals = GoalsCategory(name=category_name)
            db.add(goals)
            await db.flush()
            for order, (text, qtype, options, extra) in enumerate(questions, start=1):
                question = Question(
                    goals_category_id=goals.id,
                    question=text,
                    type=qtype,
                    display_order=order,
                    **extra,
                )
                db.add(question)
                await db.flush()
                for opt_order, label in enumerate(options, start=1):
                    db.add(AnswerOption(question_id=question.id, label=label, display_order=opt_order))

        await db.commit()
        logger.info(
            f"Seeded {len(USERS)} users, {sum(len(v) for v in PROFESSIONS.values())} professions, "
            f"{len(QUESTIONNAIRES)} goals categories"
        )


async def _main():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    await seed()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    asyncio.run(_main())
