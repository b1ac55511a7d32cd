import logging
import signal
import threading
from dataclasses import dataclass
from functools import partial

from news_intel.alerts.dispatcher import dispatch_alerts
from news_intel.alerts.engine import AlertEngine
from news_intel.config import AppConfig, load_config
from news_intel.scheduler import ScheduledJob, Scheduler
from news_intel.sentiment.analyzer import SentimentAnalyzer
from news_intel.sources.aggregator import SourceAggregator
from news_intel.sources.provider_registry import Fetcher
from news_intel.storage.memory_store import MemoryStore
from news_intel.storage.seed import seed_companies, seed_sources
from news_intel.trends.aggregator import TrendAggregator

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


@dataclass
class NewsIntelService:
    config: AppConfig
    store: MemoryStore
    aggregator: SourceAggregator
    analyzer: SentimentAnalyzer
    trends: TrendAggregator
    alerts: AlertEngine
    scheduler: Scheduler


def pipeline_jobs(
    config: AppConfig,
    aggregator: SourceAggregator,
    analyzer: SentimentAnalyzer,
    trends: TrendAggregator,
    alerts: AlertEngine,
) -> list[ScheduledJob]:
    """The four recurring jobs, in the order they run at startup."""
    return [
        ScheduledJob("news fetch", config.fetch_interval_minutes * 60, aggregator.fetch_all),
        ScheduledJob(
            "sentiment analysis",
            config.sentiment_interval_minutes * 60,
            analyzer.analyze_all,
        ),
        ScheduledJob(
            "trend update", config.trends_interval_minutes * 60, trends.update_trends
        ),
        ScheduledJob(
            "alert check", config.alerts_interval_minutes * 60, alerts.check_for_alerts
        ),
    ]


def build_service(
    config: AppConfig,
    store: MemoryStore | None = None,
    fetchers: dict[str, Fetcher] | None = None,
) -> NewsIntelService:
    """Construct every component around one store and seed it from CSV."""
    if store is None:
        store = MemoryStore()
        seed_companies(store, config.companies_csv)
        seed_sources(store, config.sources_csv)

    aggregator = SourceAggregator(store, fetchers)
    analyzer = SentimentAnalyzer(store)
    trends = TrendAggregator(store, window_hours=config.trend_window_hours)
    alerts = AlertEngine(
        store,
        window_hours=config.alert_window_hours,
        high_activity_threshold=config.high_activity_threshold,
        negative_sentiment_threshold=config.negative_sentiment_threshold,
        notifier=partial(
            dispatch_alerts,
            channel=config.alert_channel,
            enabled=config.alerts_enabled,
            slack_webhook_url=config.slack_webhook_url,
        ),
    )
    scheduler = Scheduler(
        pipeline_jobs(config, aggregator, analyzer, trends, alerts),
        shutdown_timeout=config.shutdown_timeout_seconds,
    )
    return NewsIntelService(
        config=config,
        store=store,
        aggregator=aggregator,
        analyzer=analyzer,
        trends=trends,
        alerts=alerts,
        scheduler=scheduler,
    )


def _check_dispatch_settings(config: AppConfig) -> None:
    if (
        config.alerts_enabled
        and config.alert_channel == "slack"
        and not config.slack_webhook_url
    ):
        logger.error(
            "ALERTS_ENABLED=true and ALERT_CHANNEL=slack, but "
            "SLACK_WEBHOOK_URL is empty."
        )
        raise SystemExit(1)


def run(config: AppConfig, shutdown: threading.Event) -> NewsIntelService:
    """Run the pipeline until ``shutdown`` is set."""
    _check_dispatch_settings(config)
    service = build_service(config)
    service.scheduler.start()
    try:
        shutdown.wait()
    finally:
        service.scheduler.stop()
        sentiment = service.analyzer.market_sentiment()
        logger.info(
            "Final state: articles=%d alerts=%d trends=%d market=%s (%d%%)",
            len(service.store.all_articles()),
            len(service.store.all_alerts()),
            len(service.store.all_trends()),
            sentiment.sentiment,
            sentiment.percentage,
        )
    return service


def main() -> None:
    config = load_config()
    logging.basicConfig(level=config.log_level, format=LOG_FORMAT)

    shutdown = threading.Event()

    def _handle_signal(signum, _frame) -> None:
        logger.info("Shutdown signal received (%s)", signal.Signals(signum).name)
        shutdown.set()

    for sig in (signal.SIGINT, signal.SIGTERM):
        signal.signal(sig, _handle_signal)

    run(config, shutdown)


if __name__ == "__main__":
    main()
