from __future__ import annotations

import argparse
import asyncio
from dataclasses import dataclass, field
from pathlib import Path

from libs.core.application.contracts import NavigationParams
from libs.core.application.feed_parser import ALERT_LIST_FIELDS, parse_feed
from libs.core.application.notification_router import (
    Channel,
    NotificationRouter,
    RouterPolicy,
)
from libs.infra.messaging.memory_transport import InMemoryMessagingTransport


@dataclass
class PrintingNavigator:
    """Navigation sink that prints each navigation."""

    navigations: list[tuple[str, NavigationParams]] = field(default_factory=list)

    def navigate(self, screen: str, params: NavigationParams) -> None:
        self.navigations.append((screen, params))
        print(f"[NAVIGATE] {screen} {params}")


class AutoAcceptPrompt:
    async def confirm(self, title: str, message: str, action_label: str) -> bool:
        print(f"[PROMPT] {title} {message} -> {action_label}")
        return True


def build_message(row: dict[str, object]) -> dict[str, object]:
    return {
        "notification": {"title": "Drowning Detected!"},
        "data": {
            "video_url": str(row["video_url"]),
            "video_id": str(row.get("video_id") or ""),
            "timestamp": str(row["timestamp"]),
        },
    }


async def replay(csv_path: Path, dedupe_window_sec: float, all_channels: bool) -> int:
    rows = parse_feed(csv_path.read_text(encoding="utf-8"), required=ALERT_LIST_FIELDS)
    transport = InMemoryMessagingTransport()
    navigator = PrintingNavigator()
    channels = frozenset(Channel) if all_channels else frozenset({Channel.FOREGROUND})
    router = NotificationRouter(
        transport=transport,
        navigation=navigator,
        prompt=AutoAcceptPrompt(),
        policy=RouterPolicy(
            navigate_channels=channels,
            dedupe_window_sec=dedupe_window_sec,
        ),
    )
    await router.start()
    try:
        for row in rows:
            await transport.deliver_foreground(build_message(row))
    finally:
        await router.shutdown()
    return len(navigator.navigations)


def main() -> None:
    parser = argparse.ArgumentParser()
    parser.add_argument("--csv", required=True, help="Path to alerts CSV export")
    parser.add_argument("--dedupe-window-sec", type=float, default=0.0)
    parser.add_argument("--all-channels", action="store_true")
    args = parser.parse_args()

    csv_path = Path(args.csv)
    if not csv_path.exists():
        raise SystemExit(f"csv not found: {csv_path}")

    navigations = asyncio.run(
        replay(csv_path, args.dedupe_window_sec, args.all_channels)
    )
    print(f"[DONE] navigations={navigations}")


if __name__ == "__main__":
    main()
