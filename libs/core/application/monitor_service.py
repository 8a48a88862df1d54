from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, Mapping

from libs.common.logger import get_logger
from libs.core.application.aggregation import aggregate_by_day
from libs.core.application.contracts import FeedbackStore, FeedTransport
from libs.core.application.errors import EmptyFeed, TransportFailure, WriteFailure
from libs.core.application.feed_parser import (
    AGGREGATION_FIELDS,
    ALERT_LIST_FIELDS,
    parse_feed,
)
from libs.core.application.incident_filter import filter_incidents
from libs.core.domain.entities import (
    DROWNING_CONFIRMED,
    DROWNING_REJECTED,
    UNKNOWN_VIDEO_ID,
    AlertRecord,
    DayBucket,
    FeedbackRecord,
    StatusFilter,
)

logger = get_logger(__name__)


class MonitorService:
    """Application service behind the incident dashboard and analytics views."""

    def __init__(
        self,
        feed_transport: FeedTransport,
        feedback_store: FeedbackStore,
        default_video_url: str,
    ) -> None:
        self._feed = feed_transport
        self._store = feedback_store
        self._default_video_url = default_video_url

    async def load_daily_series(self) -> list[DayBucket]:
        text = await self._fetch_feed()
        rows = parse_feed(text, required=AGGREGATION_FIELDS)
        return aggregate_by_day(rows)

    async def load_feed_alerts(self) -> list[AlertRecord]:
        text = await self._fetch_feed()
        rows = parse_feed(text, required=ALERT_LIST_FIELDS)
        return [self._record_from_mapping(row) for row in rows]

    async def list_incidents(
        self,
        status: StatusFilter = StatusFilter.ALL,
        day_key: str | None = None,
    ) -> list[AlertRecord]:
        documents = await self._store.list_feedback()
        incidents = [self._record_from_mapping(doc) for doc in documents]
        return filter_incidents(incidents, status=status, day_key=day_key)

    async def submit_feedback(
        self,
        is_drowning: bool,
        video_id: str | None = None,
        video_url: str | None = None,
        timestamp: str | None = None,
    ) -> FeedbackRecord:
        record = FeedbackRecord(
            video_id=video_id or UNKNOWN_VIDEO_ID,
            video_url=video_url or self._default_video_url,
            timestamp=timestamp or _utc_now_iso(),
            is_drowning=DROWNING_CONFIRMED if is_drowning else DROWNING_REJECTED,
        )
        try:
            created_at = await self._store.add_feedback(record.to_document())
        except TransportFailure as error:
            logger.error(f"Failed to save feedback for {record.video_id}: {error}")
            raise WriteFailure("Failed to save feedback. Please try again.") from error

        logger.info(
            f"Feedback saved: video_id={record.video_id} "
            f"is_drowning={record.is_drowning}"
        )
        return replace(record, created_at=created_at)

    async def _fetch_feed(self) -> str:
        text = await self._feed.fetch_text()
        if not text or not text.strip():
            raise EmptyFeed("Empty response received")
        logger.info(f"Feed received, length={len(text)}")
        return text

    def _record_from_mapping(self, data: Mapping[str, Any]) -> AlertRecord:
        is_drowning = data.get("is_drowning")
        if is_drowning in (None, ""):
            is_drowning = None
        else:
            is_drowning = str(is_drowning).lower()
        return AlertRecord(
            timestamp=data.get("timestamp"),
            video_url=str(data.get("video_url") or self._default_video_url),
            video_id=str(data.get("video_id") or UNKNOWN_VIDEO_ID),
            is_drowning=is_drowning,
            frame_id=data.get("frame_id"),
            record_id=_optional_str(data.get("id")),
            created_at=data.get("created_at"),
        )


def _optional_str(value: object) -> str | None:
    return None if value is None else str(value)


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()
