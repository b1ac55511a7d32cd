import logging
from typing import Callable

from news_intel.models.schemas import Alert, Article, Company
from news_intel.storage.memory_store import MemoryStore

logger = logging.getLogger(__name__)

AlertNotifier = Callable[[list[Alert]], object]


class AlertEngine:
    """Evaluates per-company alert rules over the most recent articles.

    Each rule fires independently on every run while its condition holds;
    there is no suppression of alerts raised by earlier runs.
    """

    def __init__(
        self,
        store: MemoryStore,
        *,
        window_hours: float = 1,
        high_activity_threshold: int = 3,
        negative_sentiment_threshold: int = -50,
        notifier: AlertNotifier | None = None,
    ) -> None:
        self._store = store
        self._window_hours = window_hours
        self._high_activity_threshold = high_activity_threshold
        self._negative_sentiment_threshold = negative_sentiment_threshold
        self._notifier = notifier

    def check_for_alerts(self) -> list[Alert]:
        recent = self._store.recent_articles(self._window_hours)
        created: list[Alert] = []

        for company in self._store.all_companies():
            company_articles = [
                article for article in recent if article.company_id == company.company_id
            ]
            created.extend(self._evaluate(company, company_articles))

        logger.info("Alert check created %d alerts", len(created))
        if created and self._notifier is not None:
            self._notifier(created)
        return created

    def _window_label(self) -> str:
        if self._window_hours == 1:
            return "hour"
        return f"{self._window_hours:g} hours"

    def _evaluate(self, company: Company, articles: list[Article]) -> list[Alert]:
        alerts: list[Alert] = []

        if len(articles) >= self._high_activity_threshold:
            alerts.append(
                self._store.create_alert(
                    title="High Activity Alert",
                    message=(
                        f"{company.name} has {len(articles)} new articles "
                        f"in the last {self._window_label()}"
                    ),
                    type="warning",
                    priority=4,
                    company_id=company.company_id,
                )
            )

        breaking = [article for article in articles if article.is_breaking]
        if breaking:
            first = breaking[0]
            alerts.append(
                self._store.create_alert(
                    title="Breaking News Alert",
                    message=f"Breaking news about {company.name}: {first.title}",
                    type="error",
                    priority=5,
                    company_id=company.company_id,
                    article_id=first.article_id,
                )
            )

        negative = [
            article
            for article in articles
            if article.sentiment == "negative"
            and (article.sentiment_score or 0) < self._negative_sentiment_threshold
        ]
        if negative:
            alerts.append(
                self._store.create_alert(
                    title="Negative Sentiment Alert",
                    message=f"Negative coverage detected for {company.name}",
                    type="warning",
                    priority=3,
                    company_id=company.company_id,
                )
            )

        return alerts
