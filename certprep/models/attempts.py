"""Exam submission Pydantic models."""
from pydantic import BaseModel, Field


class ExamSubmitRequest(BaseModel):
    """Answers of one finished exam session.

    ``answers`` is optional at the schema level so that a missing map is
    reported as a 400 by the grading route rather than scored as all-wrong.
    """

    testId: str = Field(..., min_length=1, max_length=64)
    answers: dict[str, list[str]] | None = None
    startedAt: str | None = None
    sessionKey: str | None = Field(None, min_length=1, max_length=64)
