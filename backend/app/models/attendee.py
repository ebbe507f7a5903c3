import uuid
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import Boolean, Date, DateTime, ForeignKey, Integer, Numeric, String, Text, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base


class Attendee(Base):
    __tablename__ = "attendees"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    event_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("users.id"))
    user_email: Mapped[str | None] = mapped_column(String(255))
    nickname: Mapped[str | None] = mapped_column(String(60))
    profession_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("professions.id"))
    goals_category_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("goals_categories.id")
    )
    linkedin_username: Mapped[str | None] = mapped_column(String(100))
    photo_link: Mapped[str | None] = mapped_column(String(500))
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    profession: Mapped["Profession"] = relationship()
    goals_category: Mapped["GoalsCategory"] = relationship()
    answers: Mapped[list["AttendeeAnswer"]] = relationship(
        back_populates="attendee", cascade="all, delete-orphan"
    )


class AttendeeAnswer(Base):
    __tablename__ = "attendee_answers"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    attendee_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("attendees.id", ondelete="CASCADE"), nullable=False, index=True
    )
    question_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("questions.id"), nullable=False)
    answer_option_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("answer_options.id")
    )
    text_value: Mapped[str | None] = mapped_column(Text)
    number_value: Mapped[Decimal | None] = mapped_column(Numeric(12, 4))
    date_value: Mapped[date | None] = mapped_column(Date)
    rank: Mapped[int | None] = mapped_column(Integer)
    weight: Mapped[Decimal | None] = mapped_column(Numeric(4, 3))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    attendee: Mapped["Attendee"] = relationship(back_populates="answers")
    question: Mapped["Question"] = relationship()
    answer_option: Mapped["AnswerOption"] = relationship()
