"""Exact-match grading of exam submissions.

``grade_answers`` is pure: the same questions, answer keys and submitted
answers always produce the same result. ``submit_attempt`` wraps it with
validation and persists the Attempt plus its per-question rows in one commit.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Mapping, Protocol, Sequence

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session as DbSession

from certprep.errors import BadRequest, Conflict
from certprep.models.db.attempt import Attempt, AttemptAnswer
from certprep.services.exam_service import get_exam
from certprep.utils import parse_iso_timestamp, percentage, utc_now

logger = logging.getLogger(__name__)


class GradableOption(Protocol):
    id: str
    is_correct: bool


class GradableQuestion(Protocol):
    id: str
    options: Sequence[GradableOption]


@dataclass(frozen=True)
class QuestionGrade:
    question_id: str
    index: int
    selected: frozenset[str]
    is_correct: bool


@dataclass(frozen=True)
class GradeResult:
    total_questions: int
    correct_answers: int
    score: int
    grades: tuple[QuestionGrade, ...]


def correct_answer_set(question: GradableQuestion) -> frozenset[str]:
    """Ids of the options flagged correct."""
    return frozenset(option.id for option in question.options if option.is_correct)


def correct_answer_map(questions: Iterable[GradableQuestion]) -> dict[str, list[str]]:
    """Question id -> sorted correct option ids, for review rendering."""
    return {q.id: sorted(correct_answer_set(q)) for q in questions}


def is_exact_match(correct: frozenset[str], submitted: frozenset[str]) -> bool:
    """Credit only for the exact correct set; an empty key never matches."""
    if not correct:
        return False
    return len(correct) == len(submitted) and submitted <= correct


def grade_answers(
    questions: Sequence[GradableQuestion],
    answers: Mapping[str, Iterable[str]],
) -> GradeResult:
    """Score submitted answers against the questions' answer keys."""
    grades = []
    for index, question in enumerate(questions):
        correct = correct_answer_set(question)
        if not correct:
            logger.warning(f"Question {question.id} has no correct option; it cannot be scored correct")
        submitted = frozenset(answers.get(question.id, ()))
        grades.append(
            QuestionGrade(
                question_id=question.id,
                index=index,
                selected=submitted,
                is_correct=is_exact_match(correct, submitted),
            )
        )

    total = len(grades)
    correct_count = sum(1 for grade in grades if grade.is_correct)
    return GradeResult(
        total_questions=total,
        correct_answers=correct_count,
        score=percentage(correct_count, total),
        grades=tuple(grades),
    )


def _find_by_session_key(db: DbSession, user_id: int, session_key: str) -> Attempt | None:
    return db.execute(
        select(Attempt).where(Attempt.user_id == user_id, Attempt.session_key == session_key)
    ).scalar_one_or_none()


def _replayed(existing: Attempt, exam_id: str) -> Attempt:
    if existing.exam_id != exam_id:
        raise Conflict("Session key was already used for a different test")
    logger.info(f"Replayed submission for attempt {existing.id}; returning stored result")
    return existing


def _resolve_started_at(raw: str | None, completed_at: datetime) -> datetime:
    started_at = parse_iso_timestamp(raw)
    if raw is not None and started_at is None:
        raise BadRequest("startedAt must be an ISO timestamp")
    if started_at is None or started_at > completed_at:
        return completed_at
    return started_at


def submit_attempt(
    db: DbSession,
    user_id: int,
    exam_id: str,
    answers: Mapping[str, list[str]] | None,
    started_at: str | None = None,
    session_key: str | None = None,
) -> Attempt:
    """Grade a submission and persist exactly one Attempt for it.

    Raises:
        BadRequest: ``answers`` missing or ``startedAt`` malformed.
        NotFound: unknown test; nothing is written.
        Conflict: ``session_key`` already produced an attempt for another test.
    """
    if answers is None:
        raise BadRequest("Answers are required")

    exam = get_exam(db, exam_id)

    if session_key:
        existing = _find_by_session_key(db, user_id, session_key)
        if existing is not None:
            return _replayed(existing, exam.id)

    question_ids = {q.id for q in exam.questions}
    unknown = sorted(set(answers) - question_ids)
    if unknown:
        logger.warning(f"Ignoring answers for unknown questions of test {exam.id}: {unknown}")
    known_answers = {qid: ids for qid, ids in answers.items() if qid in question_ids}

    result = grade_answers(exam.questions, known_answers)
    completed_at = utc_now()

    attempt = Attempt(
        exam_id=exam.id,
        user_id=user_id,
        session_key=session_key,
        score=result.score,
        total_questions=result.total_questions,
        correct_answers=result.correct_answers,
        started_at=_resolve_started_at(started_at, completed_at),
        completed_at=completed_at,
    )
    for grade in result.grades:
        answer = AttemptAnswer(
            question_id=grade.question_id,
            question_index=grade.index,
            is_correct=grade.is_correct,
        )
        answer.selected_option_ids = list(grade.selected)
        attempt.answers.append(answer)

    db.add(attempt)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        # A concurrent request with the same session key won the insert
        existing = _find_by_session_key(db, user_id, session_key) if session_key else None
        if existing is None:
            raise
        return _replayed(existing, exam.id)

    db.refresh(attempt)
    logger.info(
        f"User {user_id} scored {attempt.score} on test {exam.id} "
        f"({attempt.correct_answers}/{attempt.total_questions}), attempt {attempt.id}"
    )
    return attempt
