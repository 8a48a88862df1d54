"""Incident list filter tests."""

from libs.core.application.incident_filter import filter_incidents
from libs.core.domain.entities import AlertRecord, StatusFilter

INCIDENTS = [
    AlertRecord(
        timestamp="2025-05-10T10:00:00Z",
        video_url="https://x/a.mp4",
        video_id="1",
        is_drowning="true",
    ),
    AlertRecord(
        timestamp="2025-05-10T12:00:00Z",
        video_url="https://x/b.mp4",
        video_id="2",
        is_drowning="false",
    ),
    AlertRecord(
        timestamp="2025-05-11T08:00:00Z",
        video_url="https://x/c.mp4",
        video_id="3",
        is_drowning="true",
    ),
    AlertRecord(timestamp="", video_url="https://x/d.mp4", video_id="4"),
]


def test_no_predicates_is_identity() -> None:
    assert filter_incidents(INCIDENTS) == INCIDENTS
    assert filter_incidents(INCIDENTS, StatusFilter.ALL, "") == INCIDENTS


def test_status_predicate_uses_exact_value() -> None:
    confirmed = filter_incidents(INCIDENTS, status=StatusFilter.CONFIRMED)
    rejected = filter_incidents(INCIDENTS, status=StatusFilter.REJECTED)

    assert [item.video_id for item in confirmed] == ["1", "3"]
    assert [item.video_id for item in rejected] == ["2"]


def test_day_predicate_uses_derived_day_key() -> None:
    same_day = filter_incidents(INCIDENTS, day_key="2025-05-10")

    assert [item.video_id for item in same_day] == ["1", "2"]


def test_predicates_combine_with_and() -> None:
    result = filter_incidents(
        INCIDENTS, status=StatusFilter.CONFIRMED, day_key="2025-05-10"
    )

    assert [item.video_id for item in result] == ["1"]


def test_filter_is_idempotent() -> None:
    once = filter_incidents(INCIDENTS, status=StatusFilter.CONFIRMED)
    twice = filter_incidents(once, status=StatusFilter.CONFIRMED)

    assert once == twice


def test_pending_incidents_only_pass_without_status_filter() -> None:
    pending = [item for item in INCIDENTS if item.is_pending]

    assert [item.video_id for item in pending] == ["4"]
    assert filter_incidents(pending, status=StatusFilter.CONFIRMED) == []
