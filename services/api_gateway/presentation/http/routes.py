from typing import Literal

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel

from libs.core.application.errors import (
    EmptyFeed,
    NoUsableRows,
    NoValidDates,
    TransportFailure,
    WriteFailure,
)
from libs.core.application.monitor_service import MonitorService
from libs.core.domain.entities import AlertRecord, DayBucket, StatusFilter
from libs.core.domain.timestamps import DAY_KEY_PATTERN
from services.api_gateway.dependencies import get_monitor_service

router = APIRouter()


class FeedbackRequest(BaseModel):
    response: Literal["yes", "no"]
    video_id: str | None = None
    video_url: str | None = None
    timestamp: str | None = None


@router.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/ready")
def ready() -> dict[str, str]:
    return {"status": "ready"}


@router.get("/version")
def version() -> dict[str, str]:
    return {"version": "0.1.0"}


@router.get("/v1/analytics/daily")
async def get_daily_series(
    service: MonitorService = Depends(get_monitor_service),
) -> dict[str, object]:
    try:
        series = await service.load_daily_series()
    except TransportFailure as error:
        raise HTTPException(status_code=502, detail=str(error)) from error
    except EmptyFeed:
        return _series_payload("empty", [])
    except NoUsableRows:
        return _series_payload("no_data", [])
    except NoValidDates:
        return _series_payload("no_valid_dates", [])
    return _series_payload("ok", series)


@router.get("/v1/feed/alerts")
async def get_feed_alerts(
    service: MonitorService = Depends(get_monitor_service),
) -> dict[str, object]:
    try:
        alerts = await service.load_feed_alerts()
    except TransportFailure as error:
        raise HTTPException(status_code=502, detail=str(error)) from error
    except EmptyFeed:
        return {"status": "empty", "total": 0, "alerts": []}
    except NoUsableRows:
        return {"status": "no_data", "total": 0, "alerts": []}
    return {
        "status": "ok",
        "total": len(alerts),
        "alerts": [_alert_to_dict(alert) for alert in alerts],
    }


@router.get("/v1/incidents")
async def get_incidents(
    status: StatusFilter = StatusFilter.ALL,
    day: str | None = Query(default=None, pattern=DAY_KEY_PATTERN.pattern),
    service: MonitorService = Depends(get_monitor_service),
) -> dict[str, object]:
    try:
        incidents = await service.list_incidents(status=status, day_key=day)
    except TransportFailure as error:
        raise HTTPException(status_code=502, detail=str(error)) from error
    return {
        "total": len(incidents),
        "incidents": [_alert_to_dict(incident) for incident in incidents],
    }


@router.post("/v1/feedback")
async def submit_feedback(
    payload: FeedbackRequest,
    service: MonitorService = Depends(get_monitor_service),
) -> dict[str, object]:
    try:
        record = await service.submit_feedback(
            is_drowning=payload.response == "yes",
            video_id=payload.video_id,
            video_url=payload.video_url,
            timestamp=payload.timestamp,
        )
    except WriteFailure as error:
        raise HTTPException(status_code=503, detail=str(error)) from error

    message = "Marked as drowning" if payload.response == "yes" else "Marked as false alarm"
    return {
        "message": message,
        "video_id": record.video_id,
        "video_url": record.video_url,
        "timestamp": record.timestamp,
        "is_drowning": record.is_drowning,
        "created_at": record.created_at.isoformat() if record.created_at else None,
    }


def _series_payload(status: str, series: list[DayBucket]) -> dict[str, object]:
    return {
        "status": status,
        "series": [
            {"day": bucket.day_key, "count": bucket.count, "label": bucket.label}
            for bucket in series
        ],
    }


def _alert_to_dict(alert: AlertRecord) -> dict[str, object]:
    instant = alert.instant
    return {
        "id": alert.record_id,
        "timestamp": alert.timestamp,
        "instant": instant.isoformat() if instant else None,
        "day": alert.day_key,
        "video_id": alert.video_id,
        "video_url": alert.video_url,
        "frame_id": alert.frame_id,
        "is_drowning": alert.is_drowning,
    }
