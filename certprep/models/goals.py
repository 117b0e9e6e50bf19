"""Goal-related Pydantic models."""
from datetime import date

from pydantic import BaseModel, Field

from certprep.models.db.goal import GoalPriority, GoalStatus, GoalTargetType


class GoalCreate(BaseModel):
    """Model for creating a goal."""

    name: str = Field(..., min_length=1, max_length=255)
    description: str = ""
    targetType: GoalTargetType = GoalTargetType.EXAMS
    categoryId: str | None = None
    examIds: list[str] = Field(default_factory=list)
    passingScore: int | None = Field(None, ge=0, le=100)
    startDate: date | None = None
    endDate: date | None = None
    priority: GoalPriority = GoalPriority.MEDIUM


class GoalUpdate(BaseModel):
    """Partial goal update; omitted fields keep their value."""

    name: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = None
    passingScore: int | None = Field(None, ge=0, le=100)
    startDate: date | None = None
    endDate: date | None = None
    priority: GoalPriority | None = None
    status: GoalStatus | None = None
