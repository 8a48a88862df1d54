"""In-process messaging transport for local runs and tests."""

from __future__ import annotations

from itertools import count
from typing import Any

from libs.core.application.contracts import (
    AuthorizationStatus,
    MessageHandler,
    RemoteMessage,
    Unsubscribe,
)
from libs.core.application.errors import TransportFailure


class InMemoryMessagingTransport:
    """Messaging transport whose deliveries are driven by the caller."""

    def __init__(
        self,
        authorization: AuthorizationStatus = AuthorizationStatus.AUTHORIZED,
        initial_notification: RemoteMessage | None = None,
        fail_topic_subscription: bool = False,
        fail_token: bool = False,
    ) -> None:
        self.authorization = authorization
        self.initial_notification = initial_notification
        self.fail_topic_subscription = fail_topic_subscription
        self.fail_token = fail_token
        self.topics: set[str] = set()
        self.permission_requests = 0
        self._ids = count(1)
        self._opened_handlers: dict[int, MessageHandler] = {}
        self._message_handlers: dict[int, MessageHandler] = {}
        self._background_handlers: dict[int, MessageHandler] = {}

    async def request_permission(self) -> AuthorizationStatus:
        self.permission_requests += 1
        return self.authorization

    async def get_token(self) -> str:
        if self.fail_token:
            raise TransportFailure("token request failed")
        return "memory-device-token"

    async def subscribe_to_topic(self, topic: str) -> None:
        if self.fail_topic_subscription:
            raise TransportFailure(f"subscribe rejected for topic {topic}")
        self.topics.add(topic)

    async def unsubscribe_from_topic(self, topic: str) -> None:
        self.topics.discard(topic)

    async def get_initial_notification(self) -> RemoteMessage | None:
        message = self.initial_notification
        self.initial_notification = None
        return message

    def on_notification_opened_app(self, handler: MessageHandler) -> Unsubscribe:
        return self._register(self._opened_handlers, handler)

    def on_message(self, handler: MessageHandler) -> Unsubscribe:
        return self._register(self._message_handlers, handler)

    def on_background_message(self, handler: MessageHandler) -> Unsubscribe:
        return self._register(self._background_handlers, handler)

    @property
    def listener_count(self) -> int:
        return (
            len(self._opened_handlers)
            + len(self._message_handlers)
            + len(self._background_handlers)
        )

    async def deliver_background_tap(self, message: dict[str, Any]) -> None:
        for handler in list(self._opened_handlers.values()):
            await handler(message)

    async def deliver_foreground(self, message: dict[str, Any]) -> None:
        for handler in list(self._message_handlers.values()):
            await handler(message)

    async def deliver_background_message(self, message: dict[str, Any]) -> None:
        for handler in list(self._background_handlers.values()):
            await handler(message)

    def _register(
        self,
        handlers: dict[int, MessageHandler],
        handler: MessageHandler,
    ) -> Unsubscribe:
        handler_id = next(self._ids)
        handlers[handler_id] = handler

        def unsubscribe() -> None:
            handlers.pop(handler_id, None)

        return unsubscribe
