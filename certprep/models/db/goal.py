"""
Study goal model.

Progress and award tier are never stored; they are derived from the owner's
attempts each time a goal is read (see ``services.goal_service``).
"""

from __future__ import annotations

import enum
import uuid
from datetime import date, datetime, timezone
from typing import TYPE_CHECKING

import sqlalchemy as sa
from sqlalchemy import ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from certprep.config import DEFAULT_PASSING_SCORE
from certprep.database import Base
from certprep.utils.json_utils import decode_exam_ids, encode_exam_ids

if TYPE_CHECKING:
    from certprep.models.db.user import User


class GoalTargetType(str, enum.Enum):
    """What the goal's exam list was built from."""

    CATEGORY = "category"  # every exam of one category, resolved at creation
    EXAMS = "exams"  # explicit exam list


class GoalStatus(str, enum.Enum):
    """Lifecycle status, set by the user (never computed here)."""

    DRAFT = "draft"
    ACTIVE = "active"
    COMPLETED = "completed"
    OVERDUE = "overdue"
    CANCELLED = "cancelled"


class GoalPriority(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Goal(Base):
    """A user's target of passing a set of exams within a date range."""

    __tablename__ = "goals"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, default="", nullable=False)
    target_type: Mapped[str] = mapped_column(
        String(20), default=GoalTargetType.EXAMS.value, nullable=False
    )
    category_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    # Always a JSON array of exam ids; read through ``exam_ids``
    exam_ids_json: Mapped[str] = mapped_column(Text, default="[]", nullable=False)
    passing_score: Mapped[int] = mapped_column(default=DEFAULT_PASSING_SCORE, nullable=False)
    start_date: Mapped[date | None] = mapped_column(sa.Date, nullable=True)
    end_date: Mapped[date | None] = mapped_column(sa.Date, nullable=True)
    status: Mapped[str] = mapped_column(
        String(20), default=GoalStatus.ACTIVE.value, index=True, nullable=False
    )
    priority: Mapped[str] = mapped_column(
        String(20), default=GoalPriority.MEDIUM.value, nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    deleted_at: Mapped[datetime | None] = mapped_column(
        sa.DateTime(timezone=True), nullable=True
    )

    user: Mapped["User"] = relationship("User", back_populates="goals")

    @property
    def exam_ids(self) -> list[str]:
        """Decode the stored exam id list (raises ExamIdsDecodeError if corrupt)."""
        return decode_exam_ids(self.exam_ids_json)

    @exam_ids.setter
    def exam_ids(self, value: list[str]) -> None:
        self.exam_ids_json = encode_exam_ids(value)
