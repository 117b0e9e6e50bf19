from datetime import date, datetime, timedelta, timezone

import pytest
from fastapi import HTTPException

from certprep.utils import json_utils, math_utils, time_utils, validation


def test_exam_ids_round_trip_deduplicates() -> None:
    stored = json_utils.encode_exam_ids(["b", "a", "b"])
    assert json_utils.decode_exam_ids(stored) == ["b", "a"]


def test_exam_ids_empty_values() -> None:
    assert json_utils.decode_exam_ids(None) == []
    assert json_utils.decode_exam_ids("") == []
    assert json_utils.decode_exam_ids("[]") == []


@pytest.mark.parametrize("raw", ["e1,e2", "e1;e2", '{"ids": []}', "[1, 2]", '["ok", ""]'])
def test_exam_ids_reject_other_shapes(raw: str) -> None:
    with pytest.raises(json_utils.ExamIdsDecodeError):
        json_utils.decode_exam_ids(raw)


def test_round_half_up() -> None:
    assert math_utils.round_half_up(81.67) == 82
    assert math_utils.round_half_up(82.5) == 83
    assert math_utils.round_half_up(0.49) == 0
    assert math_utils.percentage(2, 3) == 67
    assert math_utils.percentage(1, 0) == 0


def test_time_utils_parsing() -> None:
    timestamp = time_utils.utc_now().isoformat()
    parsed = time_utils.parse_iso_timestamp(timestamp)
    assert parsed is not None

    zulu = "2024-01-01T12:00:00Z"
    parsed_zulu = time_utils.parse_iso_timestamp(zulu)
    assert parsed_zulu == datetime(2024, 1, 1, 12, tzinfo=timezone.utc)

    naive = time_utils.parse_iso_timestamp("2024-01-01T12:00:00")
    assert naive.tzinfo is not None

    assert time_utils.parse_iso_timestamp("") is None
    assert time_utils.parse_iso_timestamp("not a date") is None
    assert time_utils.parse_iso_timestamp(123) is None


def test_parse_utc_offset() -> None:
    assert time_utils.parse_utc_offset("+05:30").utcoffset(None) == timedelta(hours=5, minutes=30)
    assert time_utils.parse_utc_offset("-08:00").utcoffset(None) == timedelta(hours=-8)
    for bad in ("05:30", "+5:30", "+15:00", "+01:75", "UTC"):
        with pytest.raises(ValueError):
            time_utils.parse_utc_offset(bad)


def test_local_today_uses_offset() -> None:
    now = datetime(2026, 3, 14, 22, 0, tzinfo=timezone.utc)
    assert time_utils.local_today(timezone.utc, now) == date(2026, 3, 14)
    assert time_utils.local_today(time_utils.parse_utc_offset("+03:00"), now) == date(2026, 3, 15)


def test_ensure_utc_handles_naive_values() -> None:
    naive = datetime(2026, 1, 1, 8, 0)
    assert time_utils.ensure_utc(naive).tzinfo == timezone.utc
    assert time_utils.isoformat(naive) == "2026-01-01T08:00:00+00:00"
    assert time_utils.isoformat(None) is None


def test_validate_id() -> None:
    assert validation.validate_id("test", " abc ") == "abc"
    with pytest.raises(HTTPException):
        validation.validate_id("test", "")
    with pytest.raises(HTTPException):
        validation.validate_id("test", "../bad")


def test_validate_timezone() -> None:
    assert validation.validate_timezone("+02:00").utcoffset(None) == timedelta(hours=2)
    # "+" decoded as a space from an unescaped query string
    assert validation.validate_timezone(" 02:00").utcoffset(None) == timedelta(hours=2)
    with pytest.raises(HTTPException) as exc_info:
        validation.validate_timezone("Europe/Paris")
    assert exc_info.value.status_code == 400
