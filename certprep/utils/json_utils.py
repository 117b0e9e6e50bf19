"""JSON serialization utilities."""
import json


class ExamIdsDecodeError(ValueError):
    """Stored goal exam-id list is not a JSON array of ids."""


def json_load(data: str) -> object:
    """Deserialize JSON string to object."""
    return json.loads(data)


def encode_exam_ids(exam_ids: list[str]) -> str:
    """Serialize a goal's exam ids for storage (deduplicated, order kept)."""
    unique = list(dict.fromkeys(str(exam_id) for exam_id in exam_ids))
    return json.dumps(unique)


def decode_exam_ids(raw: str | None) -> list[str]:
    """Decode a stored goal exam-id list.

    The only accepted form is a JSON array of non-empty strings; an empty or
    missing value decodes to ``[]``.

    Raises:
        ExamIdsDecodeError: the value is anything else.
    """
    if raw is None or raw == "":
        return []
    try:
        value = json.loads(raw)
    except (json.JSONDecodeError, TypeError) as exc:
        raise ExamIdsDecodeError(f"exam ids are not valid JSON: {raw!r}") from exc
    if not isinstance(value, list):
        raise ExamIdsDecodeError(f"exam ids must be a JSON array, got {type(value).__name__}")
    for item in value:
        if not isinstance(item, str) or not item:
            raise ExamIdsDecodeError(f"invalid exam id {item!r}")
    return value
