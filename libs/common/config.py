"""
Runtime configuration using Pydantic-Settings.
Every value can be overridden through environment variables or a .env file.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings shared by the gateway and the notification router."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # ── Alert feed ────────────────────────────────────────────────────────
    ALERTS_CSV_URL: str = "http://127.0.0.1:8080/exports/alerts.csv"
    FEED_TIMEOUT_SEC: float = 15.0

    # ── Playback ──────────────────────────────────────────────────────────
    DEFAULT_VIDEO_URL: str = "https://storage.example.com/videos/latest.mp4"

    # ── Push notifications ────────────────────────────────────────────────
    ALERT_TOPIC: str = "drowning-alerts"
    NAVIGATE_ON_ALL_CHANNELS: bool = False
    NOTIFICATION_DEDUPE_WINDOW_SEC: float = 0.0

    # ── Logging ───────────────────────────────────────────────────────────
    LOG_LEVEL: str = "INFO"
    LOG_DIR: str | None = None


def load_settings() -> Settings:
    return Settings()
