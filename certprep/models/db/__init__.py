"""Database models."""
from certprep.models.db.user import User, Session
from certprep.models.db.exam import AnswerOption, Exam, ExamQuestion, QuestionType
from certprep.models.db.attempt import Attempt, AttemptAnswer
from certprep.models.db.goal import Goal, GoalPriority, GoalStatus, GoalTargetType

__all__ = [
    "User",
    "Session",
    "AnswerOption",
    "Exam",
    "ExamQuestion",
    "QuestionType",
    "Attempt",
    "AttemptAnswer",
    "Goal",
    "GoalPriority",
    "GoalStatus",
    "GoalTargetType",
]
