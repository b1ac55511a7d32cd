import threading
import uuid
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from typing import Any

from news_intel.models.schemas import (
    ALERT_TYPES,
    CATEGORIES,
    COMPANY_TYPES,
    SENTIMENTS,
    SOURCE_TYPES,
    TREND_PERIODS,
    Alert,
    Article,
    Company,
    NewsSource,
    Trend,
    round_half_up,
)


def _new_id() -> str:
    return str(uuid.uuid4())


class DuplicateArticleError(ValueError):
    """Raised when an article URL is already stored."""


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _check_choice(name: str, value: Any, choices: set[str]) -> None:
    if value not in choices:
        raise ValueError(f"Invalid {name}: {value}")


def _check_range(name: str, value: int | None, low: int, high: int) -> None:
    if value is None:
        return
    if not low <= value <= high:
        raise ValueError(f"{name} must be within [{low}, {high}], got {value}")


def _merge(entity, changes: dict[str, Any], frozen: tuple[str, ...]):
    locked = [name for name in frozen if name in changes]
    if locked:
        raise ValueError(f"Cannot update fields: {', '.join(locked)}")
    return replace(entity, **changes)


def _validate_article(article: Article) -> Article:
    _check_choice("category", article.category, CATEGORIES)
    if article.sentiment is not None:
        _check_choice("sentiment", article.sentiment, SENTIMENTS)
    _check_range("sentiment_score", article.sentiment_score, -100, 100)
    _check_range("importance", article.importance, 1, 5)
    return replace(
        article,
        published_at=_as_utc(article.published_at),
        keywords={keyword.lower() for keyword in article.keywords},
    )


def _validate_alert(alert: Alert) -> None:
    _check_choice("alert type", alert.type, ALERT_TYPES)
    _check_range("priority", alert.priority, 1, 5)


def _newest_first(articles: list[Article]) -> list[Article]:
    return sorted(articles, key=lambda article: article.published_at, reverse=True)


def _by_change_percentage(trends: list[Trend]) -> list[Trend]:
    return sorted(trends, key=lambda trend: trend.change_percentage, reverse=True)


class MemoryStore:
    """In-process repository for every entity the pipeline works with.

    Entities live in per-type maps keyed by generated id, with secondary
    indexes for article URLs, articles per company and trends per
    (keyword, period). Nothing survives a restart.

    Every public method holds one re-entrant lock, so scheduled jobs running
    on worker threads can interleave without breaking the URL and range
    invariants. Returned entities are snapshots: updates replace the stored
    instance instead of mutating it.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._companies: dict[str, Company] = {}
        self._sources: dict[str, NewsSource] = {}
        self._articles: dict[str, Article] = {}
        self._alerts: dict[str, Alert] = {}
        self._trends: dict[str, Trend] = {}
        self._article_ids_by_url: dict[str, str] = {}
        self._article_ids_by_company: dict[str, list[str]] = {}
        self._trend_ids_by_key: dict[tuple[str, str], str] = {}

    # Companies

    def create_company(
        self,
        name: str,
        type: str,
        website: str | None = None,
        description: str | None = None,
        is_active: bool = True,
    ) -> Company:
        _check_choice("company type", type, COMPANY_TYPES)
        company = Company(
            company_id=_new_id(),
            name=name,
            type=type,
            website=website,
            description=description,
            is_active=is_active,
        )
        with self._lock:
            self._companies[company.company_id] = company
        return company

    def get_company(self, company_id: str) -> Company | None:
        with self._lock:
            return self._companies.get(company_id)

    def all_companies(self) -> list[Company]:
        with self._lock:
            return list(self._companies.values())

    def update_company(self, company_id: str, **changes: Any) -> Company | None:
        with self._lock:
            company = self._companies.get(company_id)
            if company is None:
                return None
            updated = _merge(company, changes, ("company_id",))
            _check_choice("company type", updated.type, COMPANY_TYPES)
            self._companies[company_id] = updated
            return updated

    # News sources

    def create_news_source(
        self,
        name: str,
        url: str,
        type: str,
        language: str | None = None,
        is_active: bool = True,
    ) -> NewsSource:
        _check_choice("source type", type, SOURCE_TYPES)
        source = NewsSource(
            source_id=_new_id(),
            name=name,
            url=url,
            type=type,
            is_active=is_active,
        )
        if language:
            source = replace(source, language=language)
        with self._lock:
            self._sources[source.source_id] = source
        return source

    def get_news_source(self, source_id: str) -> NewsSource | None:
        with self._lock:
            return self._sources.get(source_id)

    def all_news_sources(self) -> list[NewsSource]:
        with self._lock:
            return list(self._sources.values())

    def active_news_sources(self) -> list[NewsSource]:
        with self._lock:
            return [source for source in self._sources.values() if source.is_active]

    def update_news_source(self, source_id: str, **changes: Any) -> NewsSource | None:
        with self._lock:
            source = self._sources.get(source_id)
            if source is None:
                return None
            updated = _merge(source, changes, ("source_id",))
            _check_choice("source type", updated.type, SOURCE_TYPES)
            self._sources[source_id] = updated
            return updated

    # Articles

    def create_article(self, **fields: Any) -> Article:
        """Insert an article; raises DuplicateArticleError for a stored URL."""
        article = _validate_article(Article(article_id=_new_id(), **fields))
        with self._lock:
            if article.url in self._article_ids_by_url:
                raise DuplicateArticleError(f"Article url already exists: {article.url}")
            self._articles[article.article_id] = article
            self._article_ids_by_url[article.url] = article.article_id
            if article.company_id:
                self._article_ids_by_company.setdefault(
                    article.company_id, []
                ).append(article.article_id)
        return article

    def get_article(self, article_id: str) -> Article | None:
        with self._lock:
            return self._articles.get(article_id)

    def get_article_by_url(self, url: str) -> Article | None:
        with self._lock:
            article_id = self._article_ids_by_url.get(url)
            return self._articles.get(article_id) if article_id else None

    def has_article_url(self, url: str) -> bool:
        with self._lock:
            return url in self._article_ids_by_url

    def all_articles(self) -> list[Article]:
        with self._lock:
            return list(self._articles.values())

    def update_article(self, article_id: str, **changes: Any) -> Article | None:
        with self._lock:
            article = self._articles.get(article_id)
            if article is None:
                return None
            updated = _validate_article(_merge(article, changes, ("article_id",)))

            if updated.url != article.url:
                if updated.url in self._article_ids_by_url:
                    raise DuplicateArticleError(f"Article url already exists: {updated.url}")
                del self._article_ids_by_url[article.url]
                self._article_ids_by_url[updated.url] = article_id

            if updated.company_id != article.company_id:
                if article.company_id:
                    self._article_ids_by_company[article.company_id].remove(article_id)
                if updated.company_id:
                    self._article_ids_by_company.setdefault(
                        updated.company_id, []
                    ).append(article_id)

            self._articles[article_id] = updated
            return updated

    def record_sentiment(
        self,
        article_id: str,
        sentiment: str,
        sentiment_score: int,
    ) -> Article | None:
        """Set sentiment once; an already scored article is returned unchanged."""
        with self._lock:
            article = self._articles.get(article_id)
            if article is None:
                return None
            if article.is_scored:
                return article
            return self.update_article(
                article_id,
                sentiment=sentiment,
                sentiment_score=sentiment_score,
            )

    def list_articles(
        self,
        category: str | None = None,
        company_id: str | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[Article]:
        with self._lock:
            articles = _newest_first(list(self._articles.values()))
        if category:
            articles = [article for article in articles if article.category == category]
        if company_id:
            articles = [
                article for article in articles if article.company_id == company_id
            ]
        end = None if limit is None else offset + limit
        return articles[offset:end]

    def articles_by_company(self, company_id: str) -> list[Article]:
        with self._lock:
            return [
                self._articles[article_id]
                for article_id in self._article_ids_by_company.get(company_id, [])
            ]

    def recent_articles(
        self,
        window_hours: float = 24,
        now: datetime | None = None,
    ) -> list[Article]:
        cutoff = _as_utc(now or _utcnow()) - timedelta(hours=window_hours)
        with self._lock:
            recent = [
                article
                for article in self._articles.values()
                if article.published_at > cutoff
            ]
        return _newest_first(recent)

    def search_articles(self, term: str) -> list[Article]:
        needle = term.lower()
        with self._lock:
            articles = list(self._articles.values())
        return [
            article
            for article in articles
            if needle in article.title.lower()
            or needle in (article.content or "").lower()
            or needle in (article.summary or "").lower()
            or any(needle in keyword.lower() for keyword in article.keywords)
        ]

    # Alerts

    def create_alert(
        self,
        title: str,
        message: str,
        type: str,
        priority: int = 1,
        company_id: str | None = None,
        article_id: str | None = None,
        is_read: bool = False,
    ) -> Alert:
        alert = Alert(
            alert_id=_new_id(),
            title=title,
            message=message,
            type=type,
            created_at=_utcnow(),
            priority=priority,
            company_id=company_id,
            article_id=article_id,
            is_read=is_read,
        )
        _validate_alert(alert)
        with self._lock:
            self._alerts[alert.alert_id] = alert
        return alert

    def get_alert(self, alert_id: str) -> Alert | None:
        with self._lock:
            return self._alerts.get(alert_id)

    def all_alerts(self) -> list[Alert]:
        with self._lock:
            alerts = list(self._alerts.values())
        return sorted(alerts, key=lambda alert: alert.created_at, reverse=True)

    def unread_alerts(self) -> list[Alert]:
        with self._lock:
            unread = [alert for alert in self._alerts.values() if not alert.is_read]
        return sorted(unread, key=lambda alert: alert.priority, reverse=True)

    def mark_alert_read(self, alert_id: str) -> Alert | None:
        with self._lock:
            alert = self._alerts.get(alert_id)
            if alert is None:
                return None
            updated = replace(alert, is_read=True)
            self._alerts[alert_id] = updated
            return updated

    # Trends

    def create_trend(
        self,
        keyword: str,
        mentions: int = 0,
        sentiment: str | None = None,
        period: str = "24h",
    ) -> Trend:
        """Create a trend; change_percentage always starts at 0."""
        _check_choice("trend period", period, TREND_PERIODS)
        if sentiment is not None:
            _check_choice("sentiment", sentiment, SENTIMENTS)
        trend = Trend(
            trend_id=_new_id(),
            keyword=keyword,
            updated_at=_utcnow(),
            mentions=mentions,
            sentiment=sentiment,
            change_percentage=0,
            period=period,
        )
        key = (keyword, period)
        with self._lock:
            if key in self._trend_ids_by_key:
                raise ValueError(f"Trend already exists: {keyword} ({period})")
            self._trends[trend.trend_id] = trend
            self._trend_ids_by_key[key] = trend.trend_id
        return trend

    def get_trend(self, keyword: str, period: str = "24h") -> Trend | None:
        with self._lock:
            trend_id = self._trend_ids_by_key.get((keyword, period))
            return self._trends.get(trend_id) if trend_id else None

    def update_trend(self, trend_id: str, **changes: Any) -> Trend | None:
        with self._lock:
            trend = self._trends.get(trend_id)
            if trend is None:
                return None
            updated = _merge(trend, changes, ("trend_id", "keyword", "period"))
            if updated.sentiment is not None:
                _check_choice("sentiment", updated.sentiment, SENTIMENTS)
            updated = replace(updated, updated_at=_utcnow())
            self._trends[trend_id] = updated
            return updated

    def all_trends(self) -> list[Trend]:
        with self._lock:
            return _by_change_percentage(list(self._trends.values()))

    def trends_by_period(self, period: str) -> list[Trend]:
        with self._lock:
            trends = [trend for trend in self._trends.values() if trend.period == period]
        return _by_change_percentage(trends)

    # Analytics

    def article_stats(self, now: datetime | None = None) -> dict[str, int]:
        current = _as_utc(now or _utcnow())
        start_of_day = current.replace(hour=0, minute=0, second=0, microsecond=0)
        week_ago = current - timedelta(days=7)
        two_weeks_ago = week_ago - timedelta(days=7)
        with self._lock:
            published = [article.published_at for article in self._articles.values()]

        today = sum(1 for moment in published if moment >= start_of_day)
        this_week = sum(1 for moment in published if moment >= week_ago)
        previous_week = sum(
            1 for moment in published if two_weeks_ago <= moment < week_ago
        )
        week_growth = (
            round_half_up((this_week - previous_week) / previous_week * 100)
            if previous_week
            else 0
        )
        return {"total": len(published), "today": today, "week_growth": week_growth}

    def sentiment_stats(self) -> dict[str, int]:
        counts = {label: 0 for label in ("positive", "negative", "neutral")}
        with self._lock:
            for article in self._articles.values():
                if article.sentiment in counts:
                    counts[article.sentiment] += 1
        return counts

    def company_mentions(self) -> list[dict[str, Any]]:
        with self._lock:
            rows = [
                {
                    "company_id": company_id,
                    "company_name": self._companies[company_id].name,
                    "mentions": len(article_ids),
                }
                for company_id, article_ids in self._article_ids_by_company.items()
                if article_ids and company_id in self._companies
            ]
        return sorted(rows, key=lambda row: row["mentions"], reverse=True)
