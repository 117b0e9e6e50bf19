"""
Attempt and AttemptAnswer database models.

An Attempt is written once, by the grading service, together with one
AttemptAnswer per question of the exam. Rows are never updated afterwards.
"""

from __future__ import annotations

import json
import uuid
from datetime import datetime, timezone
from typing import TYPE_CHECKING

import sqlalchemy as sa
from sqlalchemy import ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from certprep.database import Base
from certprep.utils.math_utils import round_half_up
from certprep.utils.time_utils import ensure_utc

if TYPE_CHECKING:
    from certprep.models.db.exam import Exam
    from certprep.models.db.user import User


class Attempt(Base):
    """
    Graded exam submission.
    """

    __tablename__ = "attempts"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )

    exam_id: Mapped[str] = mapped_column(
        ForeignKey("exams.id", ondelete="CASCADE"), index=True, nullable=False
    )
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False
    )
    # Idempotency key of the client exam session that produced this attempt
    session_key: Mapped[str | None] = mapped_column(String(64), nullable=True)

    score: Mapped[int] = mapped_column(default=0, nullable=False)
    total_questions: Mapped[int] = mapped_column(default=0, nullable=False)
    correct_answers: Mapped[int] = mapped_column(default=0, nullable=False)

    started_at: Mapped[datetime] = mapped_column(sa.DateTime(timezone=True), nullable=False)
    completed_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        index=True,
        nullable=False,
    )

    __table_args__ = (
        UniqueConstraint("user_id", "session_key", name="uq_attempt_session_key"),
    )

    user: Mapped["User"] = relationship("User", back_populates="attempts")
    exam: Mapped["Exam"] = relationship("Exam")
    answers: Mapped[list["AttemptAnswer"]] = relationship(
        "AttemptAnswer",
        back_populates="attempt",
        cascade="all, delete-orphan",
        order_by="AttemptAnswer.question_index",
    )

    @property
    def duration_minutes(self) -> int:
        """Minutes between start and completion, rounded half up."""
        seconds = (ensure_utc(self.completed_at) - ensure_utc(self.started_at)).total_seconds()
        return max(0, round_half_up(seconds / 60))

    def selected_options(self) -> dict[str, list[str]]:
        """Answered questions mapped to their selected option ids."""
        return {
            answer.question_id: answer.selected_option_ids
            for answer in self.answers
            if answer.selected_option_ids
        }


class AttemptAnswer(Base):
    """
    Per-question grading record inside an attempt.
    """

    __tablename__ = "attempt_answers"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    attempt_id: Mapped[str] = mapped_column(
        ForeignKey("attempts.id", ondelete="CASCADE"), nullable=False, index=True
    )

    question_id: Mapped[str] = mapped_column(String(36), nullable=False)
    question_index: Mapped[int] = mapped_column(nullable=False)  # Order in the exam

    selected_option_ids_json: Mapped[str] = mapped_column(Text, default="[]", nullable=False)
    is_correct: Mapped[bool] = mapped_column(default=False, nullable=False)

    __table_args__ = (
        UniqueConstraint("attempt_id", "question_id", name="uq_attempt_question"),
    )

    attempt: Mapped["Attempt"] = relationship("Attempt", back_populates="answers")

    @property
    def selected_option_ids(self) -> list[str]:
        """Parse selected option ids from JSON."""
        if not self.selected_option_ids_json:
            return []
        return json.loads(self.selected_option_ids_json)

    @selected_option_ids.setter
    def selected_option_ids(self, value: list[str]) -> None:
        """Serialize selected option ids to JSON."""
        self.selected_option_ids_json = json.dumps(sorted(value))
