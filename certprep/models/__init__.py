"""Pydantic models."""
from certprep.models.attempts import ExamSubmitRequest
from certprep.models.auth import (
    MessageResponse,
    TokenResponse,
    UserLogin,
    UserRegister,
    UserResponse,
)
from certprep.models.goals import GoalCreate, GoalUpdate

__all__ = [
    "ExamSubmitRequest",
    "GoalCreate",
    "GoalUpdate",
    "MessageResponse",
    "TokenResponse",
    "UserLogin",
    "UserRegister",
    "UserResponse",
]
