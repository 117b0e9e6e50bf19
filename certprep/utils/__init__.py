"""Utility modules."""
from certprep.utils.json_utils import (
    ExamIdsDecodeError,
    decode_exam_ids,
    encode_exam_ids,
    json_load,
)
from certprep.utils.math_utils import percentage, round_half_up
from certprep.utils.time_utils import (
    ensure_utc,
    isoformat,
    local_date,
    local_today,
    parse_iso_timestamp,
    parse_utc_offset,
    utc_now,
)
from certprep.utils.validation import validate_id, validate_timezone

__all__ = [
    "ExamIdsDecodeError",
    "decode_exam_ids",
    "encode_exam_ids",
    "json_load",
    "percentage",
    "round_half_up",
    "ensure_utc",
    "isoformat",
    "local_date",
    "local_today",
    "parse_iso_timestamp",
    "parse_utc_offset",
    "utc_now",
    "validate_id",
    "validate_timezone",
]
