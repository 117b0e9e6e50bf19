"""Read access to the question bank, plus JSON bank loading for development."""
import logging
from pathlib import Path

from sqlalchemy import func, select
from sqlalchemy.orm import Session as DbSession, selectinload

from certprep.errors import BadRequest, NotFound
from certprep.models.db.attempt import Attempt
from certprep.models.db.exam import AnswerOption, Exam, ExamQuestion, QuestionType
from certprep.utils import isoformat, json_load

logger = logging.getLogger(__name__)


def get_exam(db: DbSession, exam_id: str) -> Exam:
    """Load an exam with its ordered questions and options.

    Raises:
        NotFound: unknown or deleted exam.
    """
    exam = db.execute(
        select(Exam)
        .options(selectinload(Exam.questions).selectinload(ExamQuestion.options))
        .where(Exam.id == exam_id, Exam.deleted_at.is_(None))
    ).scalar_one_or_none()
    if exam is None:
        raise NotFound("Test not found")
    return exam


def count_participants(db: DbSession, exam_id: str) -> int:
    return db.execute(
        select(func.count(Attempt.id)).where(Attempt.exam_id == exam_id)
    ).scalar() or 0


def serialize_question(question: ExamQuestion, include_answers: bool) -> dict[str, object]:
    """Question payload; ``isCorrect`` only when answers may be revealed."""
    options = []
    for option in question.options:
        item: dict[str, object] = {"id": option.id, "content": option.content}
        if include_answers:
            item["isCorrect"] = option.is_correct
        options.append(item)
    return {
        "id": question.id,
        "content": question.content,
        "type": question.type,
        "explanation": question.explanation if include_answers else None,
        "options": options,
    }


def serialize_exam(
    exam: Exam,
    include_answers: bool = False,
    participants: int = 0,
) -> dict[str, object]:
    """Exam summary with its questions (answer key hidden unless requested)."""
    questions = [serialize_question(q, include_answers) for q in exam.questions]
    return {
        "id": exam.id,
        "categoryId": exam.category_id,
        "title": exam.title,
        "description": exam.description,
        "duration": exam.duration,
        "questionCount": len(questions),
        "questions": questions,
        "difficulty": exam.difficulty,
        "participants": participants,
        "passingScore": exam.passing_score,
        "createdAt": isoformat(exam.created_at),
    }


def list_exams_by_category(db: DbSession, category_id: str) -> list[dict[str, object]]:
    """Exam summaries of a category, newest first (questions omitted)."""
    question_counts = (
        select(ExamQuestion.exam_id, func.count(ExamQuestion.id).label("n"))
        .group_by(ExamQuestion.exam_id)
        .subquery()
    )
    participant_counts = (
        select(Attempt.exam_id, func.count(Attempt.id).label("n"))
        .group_by(Attempt.exam_id)
        .subquery()
    )
    rows = db.execute(
        select(Exam, question_counts.c.n, participant_counts.c.n)
        .outerjoin(question_counts, question_counts.c.exam_id == Exam.id)
        .outerjoin(participant_counts, participant_counts.c.exam_id == Exam.id)
        .where(Exam.category_id == category_id, Exam.deleted_at.is_(None))
        .order_by(Exam.created_at.desc())
    ).all()

    summaries = []
    for exam, question_count, participants in rows:
        summary = {
            "id": exam.id,
            "categoryId": exam.category_id,
            "title": exam.title,
            "description": exam.description,
            "duration": exam.duration,
            "questionCount": question_count or 0,
            "questions": [],
            "difficulty": exam.difficulty,
            "participants": participants or 0,
            "passingScore": exam.passing_score,
            "createdAt": isoformat(exam.created_at),
        }
        summaries.append(summary)
    return summaries


def exam_ids_in_category(db: DbSession, category_id: str) -> list[str]:
    return list(
        db.execute(
            select(Exam.id)
            .where(Exam.category_id == category_id, Exam.deleted_at.is_(None))
            .order_by(Exam.created_at)
        ).scalars().all()
    )


def exam_titles(db: DbSession, exam_ids: list[str]) -> dict[str, str]:
    """Map of exam id to title for the existing (non-deleted) ids."""
    if not exam_ids:
        return {}
    rows = db.execute(
        select(Exam.id, Exam.title).where(Exam.id.in_(exam_ids), Exam.deleted_at.is_(None))
    ).all()
    return {exam_id: title for exam_id, title in rows}


def build_exam(payload: dict[str, object]) -> Exam:
    """Build an unsaved Exam from a bank entry.

    Expected shape::

        {"title": ..., "categoryId": ..., "duration": 30, "passingScore": 70,
         "questions": [{"content": ..., "type": "single"|"multiple",
                        "explanation": ..., "options": [
                            {"content": ..., "isCorrect": true}, ...]}]}
    """
    title = payload.get("title")
    if not isinstance(title, str) or not title.strip():
        raise BadRequest("Exam title is required")

    questions = payload.get("questions") or []
    if not isinstance(questions, list):
        raise BadRequest("questions must be a list")

    exam = Exam(
        title=title.strip(),
        category_id=payload.get("categoryId"),
        description=payload.get("description") or "",
    )
    for key, attr in (("duration", "duration"), ("passingScore", "passing_score"), ("difficulty", "difficulty")):
        if payload.get(key) is not None:
            setattr(exam, attr, payload[key])

    for q_index, entry in enumerate(questions):
        if not isinstance(entry, dict) or not entry.get("content"):
            raise BadRequest(f"Question {q_index + 1} has no content")
        q_type = entry.get("type") or QuestionType.SINGLE.value
        if q_type not in {t.value for t in QuestionType}:
            raise BadRequest(f"Question {q_index + 1} has unknown type {q_type!r}")
        question = ExamQuestion(
            content=entry["content"],
            type=q_type,
            explanation=entry.get("explanation"),
            order_index=q_index,
        )
        for o_index, option in enumerate(entry.get("options") or []):
            question.options.append(
                AnswerOption(
                    content=option.get("content", ""),
                    is_correct=bool(option.get("isCorrect")),
                    order_index=o_index,
                )
            )
        exam.questions.append(question)
    return exam


def load_bank_file(db: DbSession, path: Path) -> list[Exam]:
    """Insert every exam of a JSON bank file (a list of exam entries)."""
    payload = json_load(path.read_text(encoding="utf-8"))
    entries = payload if isinstance(payload, list) else [payload]
    exams = [build_exam(entry) for entry in entries]
    db.add_all(exams)
    db.commit()
    for exam in exams:
        logger.info(f"Loaded exam {exam.id} '{exam.title}' ({len(exam.questions)} questions)")
    return exams
