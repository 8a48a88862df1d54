from __future__ import annotations

from typing import Sequence

from libs.core.domain.entities import AlertRecord, StatusFilter


def filter_incidents(
    incidents: Sequence[AlertRecord],
    status: StatusFilter = StatusFilter.ALL,
    day_key: str | None = None,
) -> list[AlertRecord]:
    """Incidents matching both the status and the day predicate."""
    return [
        incident
        for incident in incidents
        if _matches_status(incident, status) and _matches_day(incident, day_key)
    ]


def _matches_status(incident: AlertRecord, status: StatusFilter) -> bool:
    if status is StatusFilter.ALL:
        return True
    return incident.is_drowning == status.value


def _matches_day(incident: AlertRecord, day_key: str | None) -> bool:
    if not day_key:
        return True
    return incident.day_key == day_key
