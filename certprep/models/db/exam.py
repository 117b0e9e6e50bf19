"""
Question bank models: exams, their ordered questions and answer options.

The bank is maintained by external CRUD tooling; this service only reads it.
"""

from __future__ import annotations

import enum
import uuid
from datetime import datetime, timezone

import sqlalchemy as sa
from sqlalchemy import ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from certprep.config import DEFAULT_EXAM_DURATION_MINUTES, DEFAULT_PASSING_SCORE
from certprep.database import Base


def _new_id() -> str:
    return str(uuid.uuid4())


class QuestionType(str, enum.Enum):
    """How many options a question accepts."""

    SINGLE = "single"
    MULTIPLE = "multiple"


class Exam(Base):
    """A timed practice exam."""

    __tablename__ = "exams"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    category_id: Mapped[str | None] = mapped_column(String(36), index=True, nullable=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, default="", nullable=False)
    duration: Mapped[int] = mapped_column(
        default=DEFAULT_EXAM_DURATION_MINUTES, nullable=False
    )  # minutes
    difficulty: Mapped[str] = mapped_column(String(20), default="Beginner", nullable=False)
    passing_score: Mapped[int] = mapped_column(default=DEFAULT_PASSING_SCORE, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    deleted_at: Mapped[datetime | None] = mapped_column(
        sa.DateTime(timezone=True), nullable=True
    )

    questions: Mapped[list["ExamQuestion"]] = relationship(
        "ExamQuestion",
        back_populates="exam",
        cascade="all, delete-orphan",
        order_by="ExamQuestion.order_index",
    )


class ExamQuestion(Base):
    """A multiple-choice question inside an exam."""

    __tablename__ = "questions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    exam_id: Mapped[str] = mapped_column(
        ForeignKey("exams.id", ondelete="CASCADE"), nullable=False, index=True
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)
    type: Mapped[str] = mapped_column(
        String(20), default=QuestionType.SINGLE.value, nullable=False
    )
    explanation: Mapped[str | None] = mapped_column(Text, nullable=True)
    order_index: Mapped[int] = mapped_column(default=0, nullable=False)

    exam: Mapped["Exam"] = relationship("Exam", back_populates="questions")
    options: Mapped[list["AnswerOption"]] = relationship(
        "AnswerOption",
        back_populates="question",
        cascade="all, delete-orphan",
        order_by="AnswerOption.order_index",
    )


class AnswerOption(Base):
    """One selectable option; ``is_correct`` options form the answer key."""

    __tablename__ = "answer_options"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    question_id: Mapped[str] = mapped_column(
        ForeignKey("questions.id", ondelete="CASCADE"), nullable=False, index=True
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)
    is_correct: Mapped[bool] = mapped_column(default=False, nullable=False)
    order_index: Mapped[int] = mapped_column(default=0, nullable=False)

    question: Mapped["ExamQuestion"] = relationship("ExamQuestion", back_populates="options")
