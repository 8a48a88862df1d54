from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional

from libs.core.domain.timestamps import day_label, normalize_day_key, parse_instant

UNKNOWN_VIDEO_ID = "unknown"
DROWNING_CONFIRMED = "true"
DROWNING_REJECTED = "false"


class StatusFilter(str, Enum):
    """Status predicate applied to the tri-state ``is_drowning`` field."""

    ALL = "All"
    CONFIRMED = DROWNING_CONFIRMED
    REJECTED = DROWNING_REJECTED


@dataclass(frozen=True)
class AlertRecord:
    """One drowning-detection incident."""

    timestamp: object
    video_url: str
    video_id: str = UNKNOWN_VIDEO_ID
    is_drowning: Optional[str] = None
    frame_id: Optional[object] = None
    record_id: Optional[str] = None
    created_at: Optional[datetime] = None

    @property
    def day_key(self) -> str | None:
        return normalize_day_key(self.timestamp)

    @property
    def instant(self) -> datetime | None:
        return parse_instant(self.timestamp)

    @property
    def is_pending(self) -> bool:
        return self.is_drowning is None


@dataclass(frozen=True)
class DayBucket:
    """Per-day incident count for the chart series."""

    day_key: str
    count: int
    label: str = field(default="")

    def __post_init__(self) -> None:
        if self.count < 1:
            raise ValueError(f"day bucket count must be >= 1, got {self.count}")
        if not self.label:
            object.__setattr__(self, "label", day_label(self.day_key))


@dataclass(frozen=True)
class FeedbackRecord:
    """User verdict on an incident, written once to the feedback store."""

    video_id: str
    video_url: str
    timestamp: str
    is_drowning: str
    created_at: Optional[datetime] = None

    def to_document(self) -> dict[str, object]:
        return {
            "video_id": self.video_id,
            "video_url": self.video_url,
            "timestamp": self.timestamp,
            "is_drowning": self.is_drowning,
        }


@dataclass(frozen=True)
class NotificationIntent:
    """Navigation payload extracted from a push message."""

    video_url: str
    video_id: Optional[str] = None
    timestamp: Optional[str] = None

    def to_params(self) -> dict[str, Optional[str]]:
        return {
            "videoUrl": self.video_url,
            "video_id": self.video_id,
            "timestamp": self.timestamp,
        }
