from datetime import datetime
from enum import Enum
from typing import Any, Awaitable, Callable, Mapping, Protocol, TypedDict

RemoteMessage = Mapping[str, Any]
MessageHandler = Callable[[RemoteMessage], Awaitable[None]]
Unsubscribe = Callable[[], None]


class AuthorizationStatus(str, Enum):
    """Authorization state reported by the messaging transport."""

    NOT_DETERMINED = "not_determined"
    DENIED = "denied"
    AUTHORIZED = "authorized"
    PROVISIONAL = "provisional"


class NavigationParams(TypedDict):
    """Parameter bag handed to the incident review screen."""

    videoUrl: str
    video_id: str | None
    timestamp: str | None


class FeedTransport(Protocol):
    """Remote tabular alert feed."""

    async def fetch_text(self) -> str: ...


class FeedbackStore(Protocol):
    """Append-only document store holding user feedback."""

    async def list_feedback(self) -> list[dict[str, Any]]: ...

    async def add_feedback(self, document: dict[str, Any]) -> datetime: ...


class MessagingTransport(Protocol):
    """Push messaging provider."""

    async def request_permission(self) -> AuthorizationStatus: ...

    async def get_token(self) -> str: ...

    async def subscribe_to_topic(self, topic: str) -> None: ...

    async def unsubscribe_from_topic(self, topic: str) -> None: ...

    async def get_initial_notification(self) -> RemoteMessage | None: ...

    def on_notification_opened_app(self, handler: MessageHandler) -> Unsubscribe: ...

    def on_message(self, handler: MessageHandler) -> Unsubscribe: ...

    def on_background_message(self, handler: MessageHandler) -> Unsubscribe: ...


class NavigationSink(Protocol):
    """Presentation-side navigator."""

    def navigate(self, screen: str, params: NavigationParams) -> None: ...


class ConfirmationPrompt(Protocol):
    """User-facing prompt gating foreground navigation."""

    async def confirm(self, title: str, message: str, action_label: str) -> bool: ...
