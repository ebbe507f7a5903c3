"""Professions, goals categories and the questionnaire attached to them."""

import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, Numeric, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base


class ProfessionCategory(Base):
    __tablename__ = "profession_categories"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    category: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    professions: Mapped[list["Profession"]] = relationship(
        back_populates="category", order_by="Profession.name"
    )


class Profession(Base):
    __tablename__ = "professions"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    category_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("profession_categories.id"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    category: Mapped["ProfessionCategory"] = relationship(back_populates="professions")


class GoalsCategory(Base):
    __tablename__ = "goals_categories"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))


class Question(Base):
    __tablename__ = "questions"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    goals_category_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("goals_categories.id"), nullable=False
    )
    question: Mapped[str] = mapped_column(Text, nullable=False)
    # SINGLE_CHOICE, MULTI_SELECT, RANKING, FREE_TEXT, NUMBER, SCALE or DATE
    type: Mapped[str] = mapped_column(String(20), nullable=False)
    placeholder: Mapped[str | None] = mapped_column(Text)
    display_order: Mapped[int] = mapped_column(Integer, default=0)
    min_select: Mapped[int] = mapped_column(Integer, default=0)
    max_select: Mapped[int | None] = mapped_column(Integer)
    require_ranking: Mapped[bool] = mapped_column(Boolean, default=False)
    is_using_other: Mapped[bool] = mapped_column(Boolean, default=False)
    text_max_len: Mapped[int | None] = mapped_column(Integer)
    number_min: Mapped[Decimal | None] = mapped_column(Numeric(12, 4))
    number_max: Mapped[Decimal | None] = mapped_column(Numeric(12, 4))
    number_step: Mapped[Decimal | None] = mapped_column(Numeric(12, 4))
    is_required: Mapped[bool] = mapped_column(Boolean, default=False)
    is_shareable: Mapped[bool] = mapped_column(Boolean, default=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    answer_options: Mapped[list["AnswerOption"]] = relationship(
        back_populates="question", order_by="AnswerOption.display_order"
    )


class AnswerOption(Base):
    __tablename__ = "answer_options"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    question_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("questions.id", ondelete="CASCADE"), nullable=False
    )
    label: Mapped[str] = mapped_column(String(200), nullable=False)
    value: Mapped[str | None] = mapped_column(String(200))
    display_order: Mapped[int] = mapped_column(Integer, default=0)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    question: Mapped["Question"] = relationship(back_populates="answer_options")
