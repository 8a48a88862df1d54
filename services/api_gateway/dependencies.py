from __future__ import annotations

from dataclasses import dataclass

from fastapi import Request

from libs.common.config import Settings
from libs.core.application.contracts import FeedbackStore, FeedTransport
from libs.core.application.monitor_service import MonitorService
from services.api_gateway.infrastructure.feed_client import HttpFeedTransport
from services.api_gateway.infrastructure.memory_store import InMemoryFeedbackStore


@dataclass
class AppContext:
    """Collaborators owned by one gateway application instance."""

    settings: Settings
    feed_transport: FeedTransport
    feedback_store: FeedbackStore
    monitor_service: MonitorService


def build_context(
    settings: Settings,
    feed_transport: FeedTransport | None = None,
    feedback_store: FeedbackStore | None = None,
) -> AppContext:
    feed = feed_transport or HttpFeedTransport(
        url=settings.ALERTS_CSV_URL,
        timeout_sec=settings.FEED_TIMEOUT_SEC,
    )
    store = feedback_store or InMemoryFeedbackStore()
    return AppContext(
        settings=settings,
        feed_transport=feed,
        feedback_store=store,
        monitor_service=MonitorService(
            feed_transport=feed,
            feedback_store=store,
            default_video_url=settings.DEFAULT_VIDEO_URL,
        ),
    )


def get_context(request: Request) -> AppContext:
    return request.app.state.context


def get_monitor_service(request: Request) -> MonitorService:
    return get_context(request).monitor_service
