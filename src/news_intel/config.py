import logging
import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import find_dotenv, load_dotenv

logger = logging.getLogger(__name__)


@dataclass
class AppConfig:
    companies_csv: Path = Path("data/companies.csv")
    sources_csv: Path = Path("data/sources.csv")
    fetch_interval_minutes: float = 15
    sentiment_interval_minutes: float = 60
    trends_interval_minutes: float = 30
    alerts_interval_minutes: float = 5
    alert_window_hours: float = 1
    trend_window_hours: float = 24
    high_activity_threshold: int = 3
    negative_sentiment_threshold: int = -50
    alerts_enabled: bool = False
    alert_channel: str = "log"
    slack_webhook_url: str = ""
    shutdown_timeout_seconds: float = 5
    log_level: str = "INFO"


def _env_path(name: str, default: Path) -> Path:
    value = os.getenv(name)
    if not value:
        return default
    return Path(value)


def _env_str(name: str, default: str) -> str:
    value = os.getenv(name)
    return value if value else default


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default

    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False

    logger.warning("Invalid boolean value for %s: %s", name, value)
    return default


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if not value:
        return default
    try:
        return int(value)
    except ValueError:
        logger.warning("Invalid integer value for %s: %s", name, value)
        return default


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if not value:
        return default
    try:
        parsed = float(value)
    except ValueError:
        logger.warning("Invalid number value for %s: %s", name, value)
        return default
    if parsed <= 0:
        logger.warning("Non-positive value for %s: %s", name, value)
        return default
    return parsed


def load_config() -> AppConfig:
    """Load configuration from defaults and optional .env overrides."""
    dotenv_path = find_dotenv(usecwd=True)
    if dotenv_path:
        load_dotenv(dotenv_path)

    defaults = AppConfig()

    return AppConfig(
        companies_csv=_env_path("COMPANIES_CSV", defaults.companies_csv),
        sources_csv=_env_path("SOURCES_CSV", defaults.sources_csv),
        fetch_interval_minutes=_env_float(
            "FETCH_INTERVAL_MINUTES", defaults.fetch_interval_minutes
        ),
        sentiment_interval_minutes=_env_float(
            "SENTIMENT_INTERVAL_MINUTES", defaults.sentiment_interval_minutes
        ),
        trends_interval_minutes=_env_float(
            "TRENDS_INTERVAL_MINUTES", defaults.trends_interval_minutes
        ),
        alerts_interval_minutes=_env_float(
            "ALERTS_INTERVAL_MINUTES", defaults.alerts_interval_minutes
        ),
        alert_window_hours=_env_float(
            "ALERT_WINDOW_HOURS", defaults.alert_window_hours
        ),
        trend_window_hours=_env_float(
            "TREND_WINDOW_HOURS", defaults.trend_window_hours
        ),
        high_activity_threshold=_env_int(
            "HIGH_ACTIVITY_THRESHOLD", defaults.high_activity_threshold
        ),
        negative_sentiment_threshold=_env_int(
            "NEGATIVE_SENTIMENT_THRESHOLD",
            defaults.negative_sentiment_threshold,
        ),
        alerts_enabled=_env_bool("ALERTS_ENABLED", defaults.alerts_enabled),
        alert_channel=_env_str("ALERT_CHANNEL", defaults.alert_channel),
        slack_webhook_url=_env_str(
            "SLACK_WEBHOOK_URL", defaults.slack_webhook_url
        ),
        shutdown_timeout_seconds=_env_float(
            "SHUTDOWN_TIMEOUT_SECONDS", defaults.shutdown_timeout_seconds
        ),
        log_level=_env_str("LOG_LEVEL", defaults.log_level).upper(),
    )
