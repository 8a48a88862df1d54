"""Notification router tests: permission flow, channels and teardown."""

import logging
from typing import Any

import pytest

from libs.common.config import Settings
from libs.core.application.contracts import (
    AuthorizationStatus,
    MessageHandler,
    NavigationParams,
    Unsubscribe,
)
from libs.core.application.errors import SubscriptionClosedError
from libs.core.application.notification_router import (
    REVIEW_SCREEN,
    Channel,
    NotificationRouter,
    RouterPolicy,
    RouterState,
    extract_intent,
)
from libs.infra.messaging.memory_transport import InMemoryMessagingTransport

ALERT_MESSAGE: dict[str, Any] = {
    "notification": {"title": "Drowning Detected!"},
    "data": {
        "video_url": "https://x/a.mp4",
        "video_id": "42",
        "timestamp": "2025-05-10T10:00:00Z",
    },
}


class RecordingNavigator:
    def __init__(self) -> None:
        self.calls: list[tuple[str, NavigationParams]] = []

    def navigate(self, screen: str, params: NavigationParams) -> None:
        self.calls.append((screen, params))


class ScriptedPrompt:
    def __init__(self, accept: bool = True) -> None:
        self.accept = accept
        self.prompts: list[tuple[str, str, str]] = []

    async def confirm(self, title: str, message: str, action_label: str) -> bool:
        self.prompts.append((title, message, action_label))
        return self.accept


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


class StickyTransport(InMemoryMessagingTransport):
    """Transport whose unsubscribe leaves the handler registered."""

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.teardown_calls = 0

    def _register(
        self,
        handlers: dict[int, MessageHandler],
        handler: MessageHandler,
    ) -> Unsubscribe:
        super()._register(handlers, handler)

        def unsubscribe() -> None:
            self.teardown_calls += 1

        return unsubscribe


def _router(
    transport: InMemoryMessagingTransport,
    navigator: RecordingNavigator,
    prompt: ScriptedPrompt | None = None,
    policy: RouterPolicy | None = None,
    clock: FakeClock | None = None,
) -> NotificationRouter:
    return NotificationRouter(
        transport=transport,
        navigation=navigator,
        prompt=prompt or ScriptedPrompt(),
        policy=policy,
        clock=clock or FakeClock(),
    )


@pytest.mark.asyncio
async def test_granted_permission_acquires_token_and_topic() -> None:
    transport = InMemoryMessagingTransport()
    router = _router(transport, RecordingNavigator())

    assert router.state is RouterState.UNINITIALIZED
    await router.start()

    assert router.state is RouterState.GRANTED
    assert router.token == "memory-device-token"
    assert transport.permission_requests == 1
    assert router.topic_subscribed
    assert transport.topics == {"drowning-alerts"}
    assert transport.listener_count == 3


@pytest.mark.asyncio
async def test_provisional_authorization_counts_as_granted() -> None:
    transport = InMemoryMessagingTransport(
        authorization=AuthorizationStatus.PROVISIONAL
    )
    router = _router(transport, RecordingNavigator())

    await router.start()

    assert router.state is RouterState.GRANTED


@pytest.mark.asyncio
async def test_denied_permission_skips_registration_but_keeps_channels() -> None:
    transport = InMemoryMessagingTransport(authorization=AuthorizationStatus.DENIED)
    navigator = RecordingNavigator()
    router = _router(transport, navigator)

    await router.start()
    await transport.deliver_foreground(ALERT_MESSAGE)

    assert router.state is RouterState.DENIED
    assert router.token is None
    assert transport.topics == set()
    assert len(navigator.calls) == 1


@pytest.mark.asyncio
async def test_topic_subscription_failure_is_logged_not_raised(
    caplog: pytest.LogCaptureFixture,
) -> None:
    transport = InMemoryMessagingTransport(fail_topic_subscription=True)
    router = _router(transport, RecordingNavigator())

    with caplog.at_level(logging.ERROR):
        await router.start()

    assert router.state is RouterState.GRANTED
    assert not router.topic_subscribed
    assert "Topic subscription failed" in caplog.text
    assert transport.listener_count == 3


@pytest.mark.asyncio
async def test_start_twice_is_rejected() -> None:
    router = _router(InMemoryMessagingTransport(), RecordingNavigator())
    await router.start()

    with pytest.raises(RuntimeError):
        await router.start()


@pytest.mark.asyncio
async def test_foreground_message_navigates_exactly_once() -> None:
    transport = InMemoryMessagingTransport()
    navigator = RecordingNavigator()
    prompt = ScriptedPrompt()
    router = _router(transport, navigator, prompt)
    await router.start()

    await transport.deliver_foreground(ALERT_MESSAGE)

    assert navigator.calls == [
        (
            REVIEW_SCREEN,
            {
                "videoUrl": "https://x/a.mp4",
                "video_id": "42",
                "timestamp": "2025-05-10T10:00:00Z",
            },
        )
    ]
    assert prompt.prompts == [("Drowning Detected!", "Tap to view", "View Video")]


@pytest.mark.asyncio
async def test_dismissed_prompt_does_not_navigate() -> None:
    transport = InMemoryMessagingTransport()
    navigator = RecordingNavigator()
    router = _router(transport, navigator, ScriptedPrompt(accept=False))
    await router.start()

    await transport.deliver_foreground(ALERT_MESSAGE)

    assert navigator.calls == []


@pytest.mark.asyncio
async def test_messages_without_video_are_ignored() -> None:
    transport = InMemoryMessagingTransport()
    navigator = RecordingNavigator()
    prompt = ScriptedPrompt()
    router = _router(transport, navigator, prompt)
    await router.start()

    await transport.deliver_foreground({"notification": {"title": "hello"}})
    await transport.deliver_foreground({"data": {"video_id": "42"}})

    assert navigator.calls == []
    assert prompt.prompts == []


@pytest.mark.asyncio
async def test_cold_start_and_background_tap_only_log_by_default(
    caplog: pytest.LogCaptureFixture,
) -> None:
    transport = InMemoryMessagingTransport(initial_notification=ALERT_MESSAGE)
    navigator = RecordingNavigator()
    router = _router(transport, navigator)

    with caplog.at_level(logging.INFO):
        await router.start()
        await transport.deliver_background_tap(ALERT_MESSAGE)

    assert navigator.calls == []
    assert "[cold_start] opened with video: https://x/a.mp4" in caplog.text
    assert "[background_tap] opened with video: https://x/a.mp4" in caplog.text


@pytest.mark.asyncio
async def test_unified_policy_navigates_from_every_channel_without_prompt() -> None:
    transport = InMemoryMessagingTransport(initial_notification=ALERT_MESSAGE)
    navigator = RecordingNavigator()
    prompt = ScriptedPrompt()
    router = _router(
        transport,
        navigator,
        prompt,
        policy=RouterPolicy(navigate_channels=frozenset(Channel)),
    )

    await router.start()
    await transport.deliver_background_tap(ALERT_MESSAGE)

    assert [screen for screen, _ in navigator.calls] == [REVIEW_SCREEN, REVIEW_SCREEN]
    assert prompt.prompts == []


@pytest.mark.asyncio
async def test_repeated_deliveries_act_independently_by_default() -> None:
    transport = InMemoryMessagingTransport()
    navigator = RecordingNavigator()
    router = _router(
        transport,
        navigator,
        policy=RouterPolicy(navigate_channels=frozenset(Channel)),
    )
    await router.start()

    await transport.deliver_background_tap(ALERT_MESSAGE)
    await transport.deliver_foreground(ALERT_MESSAGE)
    await transport.deliver_foreground(ALERT_MESSAGE)

    assert len(navigator.calls) == 3


@pytest.mark.asyncio
async def test_dedupe_window_suppresses_repeats_across_channels() -> None:
    transport = InMemoryMessagingTransport()
    navigator = RecordingNavigator()
    clock = FakeClock()
    router = _router(
        transport,
        navigator,
        policy=RouterPolicy(
            navigate_channels=frozenset(Channel),
            dedupe_window_sec=30.0,
        ),
        clock=clock,
    )
    await router.start()

    await transport.deliver_background_tap(ALERT_MESSAGE)
    clock.now += 5
    await transport.deliver_foreground(ALERT_MESSAGE)
    assert len(navigator.calls) == 1

    clock.now += 31
    await transport.deliver_foreground(ALERT_MESSAGE)
    assert len(navigator.calls) == 2


@pytest.mark.asyncio
async def test_dedupe_distinguishes_incidents() -> None:
    transport = InMemoryMessagingTransport()
    navigator = RecordingNavigator()
    router = _router(
        transport, navigator, policy=RouterPolicy(dedupe_window_sec=30.0)
    )
    await router.start()
    other = {"data": {**ALERT_MESSAGE["data"], "timestamp": "2025-05-10T10:05:00Z"}}

    await transport.deliver_foreground(ALERT_MESSAGE)
    await transport.deliver_foreground(other)

    assert len(navigator.calls) == 2


@pytest.mark.asyncio
async def test_teardown_stops_further_intents() -> None:
    transport = StickyTransport()
    navigator = RecordingNavigator()
    router = _router(transport, navigator)
    await router.start()
    foreground = next(
        sub for sub in router.subscriptions if sub.channel is Channel.FOREGROUND
    )

    foreground.close()
    await transport.deliver_foreground(ALERT_MESSAGE)

    assert navigator.calls == []


@pytest.mark.asyncio
async def test_closing_twice_is_an_error() -> None:
    router = _router(InMemoryMessagingTransport(), RecordingNavigator())
    await router.start()
    subscription = router.subscriptions[0]

    subscription.close()

    with pytest.raises(SubscriptionClosedError):
        subscription.close()


@pytest.mark.asyncio
async def test_shutdown_tears_down_each_subscription_once() -> None:
    transport = StickyTransport()
    router = _router(transport, RecordingNavigator())
    await router.start()
    router.subscriptions[0].close()

    await router.shutdown()
    await router.shutdown()

    assert transport.teardown_calls == 3
    assert router.subscriptions == []


@pytest.mark.asyncio
async def test_shutdown_releases_transport_listeners_but_keeps_topic() -> None:
    transport = InMemoryMessagingTransport()
    router = _router(transport, RecordingNavigator())
    await router.start()

    await router.shutdown()

    assert transport.listener_count == 0
    assert transport.topics == {"drowning-alerts"}

    await router.leave_topic()
    assert transport.topics == set()
    assert not router.topic_subscribed


@pytest.mark.asyncio
async def test_token_failure_still_wires_channels(
    caplog: pytest.LogCaptureFixture,
) -> None:
    transport = InMemoryMessagingTransport(
        fail_token=True, initial_notification=ALERT_MESSAGE
    )
    navigator = RecordingNavigator()
    router = _router(transport, navigator)

    with caplog.at_level(logging.INFO):
        await router.start()
    await transport.deliver_foreground(ALERT_MESSAGE)

    assert router.state is RouterState.GRANTED
    assert router.token is None
    assert not router.topic_subscribed
    assert transport.topics == set()
    assert transport.listener_count == 3
    assert "Messaging token unavailable" in caplog.text
    assert "[cold_start] opened with video: https://x/a.mp4" in caplog.text
    assert len(navigator.calls) == 1


@pytest.mark.asyncio
async def test_background_messages_are_only_logged(
    caplog: pytest.LogCaptureFixture,
) -> None:
    transport = InMemoryMessagingTransport()
    navigator = RecordingNavigator()
    prompt = ScriptedPrompt()
    router = _router(
        transport,
        navigator,
        prompt,
        policy=RouterPolicy(navigate_channels=frozenset(Channel)),
    )
    await router.start()

    with caplog.at_level(logging.INFO):
        await transport.deliver_background_message(ALERT_MESSAGE)

    assert navigator.calls == []
    assert prompt.prompts == []
    assert "[background_message] message handled in the background" in caplog.text


def test_extract_intent_reads_data_section() -> None:
    intent = extract_intent(ALERT_MESSAGE)

    assert intent is not None
    assert intent.to_params() == {
        "videoUrl": "https://x/a.mp4",
        "video_id": "42",
        "timestamp": "2025-05-10T10:00:00Z",
    }
    assert extract_intent(None) is None
    assert extract_intent({"data": None}) is None


def test_policy_from_settings() -> None:
    policy = RouterPolicy.from_settings(
        Settings(
            ALERT_TOPIC="pool-7",
            NAVIGATE_ON_ALL_CHANNELS=True,
            NOTIFICATION_DEDUPE_WINDOW_SEC=10.0,
        )
    )

    assert policy.topic == "pool-7"
    assert policy.navigate_channels == frozenset(Channel)
    assert policy.dedupe_window_sec == 10.0
    assert RouterPolicy.from_settings(Settings()).navigate_channels == frozenset(
        {Channel.FOREGROUND}
    )
