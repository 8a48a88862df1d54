"""Push notification routing: permission flow and the delivery channels."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable

from libs.common.config import Settings
from libs.common.logger import get_logger
from libs.core.application.contracts import (
    AuthorizationStatus,
    ConfirmationPrompt,
    MessageHandler,
    MessagingTransport,
    NavigationSink,
    RemoteMessage,
    Unsubscribe,
)
from libs.core.application.errors import (
    SubscriptionClosedError,
    SubscriptionFailure,
    TransportFailure,
)
from libs.core.domain.entities import NotificationIntent

logger = get_logger(__name__)

REVIEW_SCREEN = "Video Player"
PROMPT_TITLE = "Drowning Detected!"
PROMPT_MESSAGE = "Tap to view"
PROMPT_ACTION = "View Video"

_GRANTED_STATUSES = {AuthorizationStatus.AUTHORIZED, AuthorizationStatus.PROVISIONAL}


class RouterState(str, Enum):
    """Permission state of the router."""

    UNINITIALIZED = "uninitialized"
    PERMISSION_REQUESTED = "permission_requested"
    GRANTED = "granted"
    DENIED = "denied"


class Channel(str, Enum):
    """Delivery channel a message arrived through."""

    COLD_START = "cold_start"
    BACKGROUND_TAP = "background_tap"
    FOREGROUND = "foreground"
    BACKGROUND_MESSAGE = "background_message"


@dataclass(frozen=True)
class RouterPolicy:
    """Routing options for the notification router."""

    topic: str = "drowning-alerts"
    navigate_channels: frozenset[Channel] = frozenset({Channel.FOREGROUND})
    dedupe_window_sec: float = 0.0

    @classmethod
    def from_settings(cls, settings: Settings) -> RouterPolicy:
        channels = frozenset(Channel) if settings.NAVIGATE_ON_ALL_CHANNELS else None
        return cls(
            topic=settings.ALERT_TOPIC,
            navigate_channels=channels or frozenset({Channel.FOREGROUND}),
            dedupe_window_sec=settings.NOTIFICATION_DEDUPE_WINDOW_SEC,
        )


class Subscription:
    """Active listener registration; ``close`` must be called exactly once."""

    def __init__(self, channel: Channel, teardown: Unsubscribe) -> None:
        self.channel = channel
        self._teardown = teardown
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def close(self) -> None:
        if not self._active:
            raise SubscriptionClosedError(
                f"Subscription for {self.channel.value} already closed"
            )
        self._active = False
        self._teardown()


@dataclass
class _DedupeState:
    seen: dict[tuple[str, str], float] = field(default_factory=dict)


def extract_intent(message: RemoteMessage | None) -> NotificationIntent | None:
    """Navigation intent from a message ``data`` map, if it carries a video."""
    if not message:
        return None
    data = message.get("data") or {}
    video_url = data.get("video_url")
    if not video_url:
        return None
    return NotificationIntent(
        video_url=str(video_url),
        video_id=_optional_text(data.get("video_id")),
        timestamp=_optional_text(data.get("timestamp")),
    )


class NotificationRouter:
    """Routes push messages from every channel into navigation intents."""

    def __init__(
        self,
        transport: MessagingTransport,
        navigation: NavigationSink,
        prompt: ConfirmationPrompt,
        policy: RouterPolicy | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._transport = transport
        self._navigation = navigation
        self._prompt = prompt
        self._policy = policy or RouterPolicy()
        self._clock = clock
        self._state = RouterState.UNINITIALIZED
        self._token: str | None = None
        self._topic_subscribed = False
        self._subscriptions: list[Subscription] = []
        self._dedupe = _DedupeState()

    @property
    def state(self) -> RouterState:
        return self._state

    @property
    def token(self) -> str | None:
        return self._token

    @property
    def topic_subscribed(self) -> bool:
        return self._topic_subscribed

    @property
    def subscriptions(self) -> list[Subscription]:
        return list(self._subscriptions)

    async def start(self) -> None:
        """Request permission, then wire the delivery channels."""
        if self._state is not RouterState.UNINITIALIZED:
            raise RuntimeError(f"Router already started ({self._state.value})")

        if await self._request_permission():
            await self._register_device()

        initial = await self._transport.get_initial_notification()
        await self.handle_message(Channel.COLD_START, initial)

        self._subscriptions.append(
            self._subscribe(
                Channel.BACKGROUND_TAP,
                self._transport.on_notification_opened_app,
            )
        )
        self._subscriptions.append(
            self._subscribe(Channel.FOREGROUND, self._transport.on_message)
        )
        self._subscriptions.append(
            self._subscribe(
                Channel.BACKGROUND_MESSAGE,
                self._transport.on_background_message,
            )
        )

    async def shutdown(self) -> None:
        """Close every open subscription exactly once."""
        for subscription in self._subscriptions:
            if subscription.active:
                subscription.close()
        self._subscriptions.clear()

    async def leave_topic(self) -> None:
        """Stop push delivery for this device; the topic outlives ``shutdown``."""
        if not self._topic_subscribed:
            return
        await self._transport.unsubscribe_from_topic(self._policy.topic)
        self._topic_subscribed = False
        logger.info(f"Unsubscribed from topic: {self._policy.topic}")

    async def handle_message(
        self,
        channel: Channel,
        message: RemoteMessage | None,
    ) -> NotificationIntent | None:
        if channel is Channel.BACKGROUND_MESSAGE:
            logger.info(
                f"[{channel.value}] message handled in the background: {message}"
            )
            return None

        intent = extract_intent(message)
        if intent is None:
            if message:
                logger.debug(f"[{channel.value}] message without video ignored")
            return None

        if self._is_duplicate(intent):
            logger.info(f"[{channel.value}] duplicate intent suppressed: {intent}")
            return None

        if channel not in self._policy.navigate_channels:
            logger.info(f"[{channel.value}] opened with video: {intent.video_url}")
            return intent

        if channel is Channel.FOREGROUND:
            accepted = await self._prompt.confirm(
                PROMPT_TITLE, PROMPT_MESSAGE, PROMPT_ACTION
            )
            if not accepted:
                logger.info(f"[{channel.value}] prompt dismissed: {intent.video_url}")
                return intent

        self._navigation.navigate(REVIEW_SCREEN, intent.to_params())
        logger.info(f"[{channel.value}] navigated to {REVIEW_SCREEN}: {intent.video_url}")
        return intent

    async def _request_permission(self) -> bool:
        self._state = RouterState.PERMISSION_REQUESTED
        status = await self._transport.request_permission()
        if status in _GRANTED_STATUSES:
            self._state = RouterState.GRANTED
            logger.info(f"Authorization status: {status.value}")
            return True
        self._state = RouterState.DENIED
        logger.info(f"Permission not granted: {status.value}")
        return False

    async def _register_device(self) -> None:
        try:
            self._token = await self._transport.get_token()
        except TransportFailure as error:
            logger.error(f"Messaging token unavailable, topic not joined: {error}")
            return
        logger.info("Messaging token acquired")
        try:
            await self._transport.subscribe_to_topic(self._policy.topic)
        except TransportFailure as error:
            failure = SubscriptionFailure(
                f"Topic subscription failed for {self._policy.topic}: {error}"
            )
            logger.error(str(failure))
            return
        self._topic_subscribed = True
        logger.info(f"Subscribed to topic: {self._policy.topic}")

    def _subscribe(
        self,
        channel: Channel,
        register: Callable[[MessageHandler], Unsubscribe],
    ) -> Subscription:
        subscription: Subscription | None = None

        async def handler(message: RemoteMessage) -> None:
            if subscription is None or not subscription.active:
                return
            await self.handle_message(channel, message)

        subscription = Subscription(channel, register(handler))
        return subscription

    def _is_duplicate(self, intent: NotificationIntent) -> bool:
        window = self._policy.dedupe_window_sec
        if window <= 0:
            return False
        now = self._clock()
        self._dedupe.seen = {
            key: seen_at
            for key, seen_at in self._dedupe.seen.items()
            if now - seen_at < window
        }
        key = (intent.video_id or intent.video_url, intent.timestamp or "")
        if key in self._dedupe.seen:
            return True
        self._dedupe.seen[key] = now
        return False


def _optional_text(value: object) -> str | None:
    if value is None or value == "":
        return None
    return str(value)
