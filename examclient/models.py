"""Client-side data structures for an exam session."""
from __future__ import annotations

import enum
from dataclasses import dataclass, field


class QuestionType(str, enum.Enum):
    SINGLE = "single"
    MULTIPLE = "multiple"


@dataclass
class AnswerOption:
    id: str
    content: str
    is_correct: bool = False  # only populated in review payloads


@dataclass
class Question:
    id: str
    content: str
    type: QuestionType
    options: list[AnswerOption]
    explanation: str | None = None

    @classmethod
    def from_dict(cls, payload: dict) -> Question:
        return cls(
            id=str(payload["id"]),
            content=payload.get("content", ""),
            type=QuestionType(payload.get("type", QuestionType.SINGLE.value)),
            options=[
                AnswerOption(
                    id=str(option["id"]),
                    content=option.get("content", ""),
                    is_correct=bool(option.get("isCorrect", False)),
                )
                for option in payload.get("options", [])
            ],
            explanation=payload.get("explanation"),
        )

    def has_option(self, option_id: str) -> bool:
        return any(option.id == option_id for option in self.options)


@dataclass
class ExamPaper:
    """A test as fetched for taking: ordered questions plus its time limit."""

    id: str
    title: str
    duration_minutes: int
    questions: list[Question]
    passing_score: int = 70

    @classmethod
    def from_dict(cls, payload: dict) -> ExamPaper:
        return cls(
            id=str(payload["id"]),
            title=payload.get("title", ""),
            duration_minutes=int(payload.get("duration", 0)),
            questions=[Question.from_dict(q) for q in payload.get("questions", [])],
            passing_score=int(payload.get("passingScore", 70)),
        )


@dataclass(frozen=True)
class SubmissionPayload:
    """Frozen snapshot of a session handed to the grader."""

    test_id: str
    user_id: int
    answers: dict[str, list[str]]
    started_at: str
    session_key: str

    def to_request(self) -> dict[str, object]:
        return {
            "testId": self.test_id,
            "answers": self.answers,
            "startedAt": self.started_at,
            "sessionKey": self.session_key,
        }


@dataclass
class GradingResult:
    attempt_id: str
    score: int
    total_questions: int
    correct_answers: int
    correct_answer_map: dict[str, list[str]] = field(default_factory=dict)

    @classmethod
    def from_response(cls, payload: dict) -> GradingResult:
        attempt = payload["attempt"]
        return cls(
            attempt_id=str(attempt["id"]),
            score=int(attempt["score"]),
            total_questions=int(attempt["totalQuestions"]),
            correct_answers=int(attempt["correctAnswers"]),
            correct_answer_map=dict(payload.get("correctAnswerMap", {})),
        )


# Upper bounds of heatmap intensity levels 1..3; anything above is level 4
HEATMAP_LEVEL_BOUNDS = (5, 15, 30)


@dataclass(frozen=True)
class HeatmapEntry:
    date: str
    count: int

    @property
    def level(self) -> int:
        if self.count <= 0:
            return 0
        for level, bound in enumerate(HEATMAP_LEVEL_BOUNDS, start=1):
            if self.count <= bound:
                return level
        return len(HEATMAP_LEVEL_BOUNDS) + 1
