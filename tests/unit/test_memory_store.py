from datetime import datetime, timedelta, timezone

import pytest

from news_intel.storage.memory_store import DuplicateArticleError, MemoryStore

NOW = datetime(2026, 10, 16, 12, 0, tzinfo=timezone.utc)


def _article(store: MemoryStore, url: str, hours_ago: float = 0, **overrides):
    fields = {
        "title": f"Article {url}",
        "url": url,
        "published_at": datetime.now(timezone.utc) - timedelta(hours=hours_ago),
        "category": "market",
    }
    fields.update(overrides)
    return store.create_article(**fields)


def test_create_assigns_fresh_ids() -> None:
    store = MemoryStore()
    first = store.create_company(name="Piccoma", type="competitor")
    second = store.create_company(name="Piccoma", type="competitor")

    assert first.company_id != second.company_id
    assert store.get_company(first.company_id) == first
    assert first.is_active is True


def test_create_article_rejects_duplicate_url() -> None:
    store = MemoryStore()
    _article(store, "https://example.com/a")

    with pytest.raises(DuplicateArticleError):
        _article(store, "https://example.com/a", title="Other title")

    assert len(store.all_articles()) == 1
    assert store.get_article_by_url("https://example.com/a").title == (
        "Article https://example.com/a"
    )


def test_article_invariants_are_enforced() -> None:
    store = MemoryStore()

    with pytest.raises(ValueError):
        _article(store, "https://example.com/score", sentiment_score=101)
    with pytest.raises(ValueError):
        _article(store, "https://example.com/importance", importance=6)
    with pytest.raises(ValueError):
        _article(store, "https://example.com/category", category="sports")

    assert store.all_articles() == []


def test_update_is_partial_merge() -> None:
    store = MemoryStore()
    article = _article(
        store,
        "https://example.com/a",
        summary="Summary",
        keywords={"manga"},
        importance=3,
    )

    updated = store.update_article(article.article_id, sentiment="positive")

    assert updated.sentiment == "positive"
    assert updated.summary == "Summary"
    assert updated.keywords == {"manga"}
    assert updated.importance == 3
    assert store.get_article(article.article_id) == updated


def test_update_unknown_id_returns_none() -> None:
    store = MemoryStore()
    company = store.create_company(name="Shueisha", type="publisher")

    assert store.update_company("missing", name="Other") is None
    assert store.update_news_source("missing", name="Other") is None
    assert store.update_article("missing", title="Other") is None
    assert store.update_trend("missing", mentions=3) is None
    assert store.mark_alert_read("missing") is None
    assert store.all_companies() == [company]


def test_update_cannot_change_identity() -> None:
    store = MemoryStore()
    company = store.create_company(name="Shueisha", type="publisher")

    with pytest.raises(ValueError):
        store.update_company(company.company_id, company_id="other")


def test_update_article_url_keeps_index_unique() -> None:
    store = MemoryStore()
    first = _article(store, "https://example.com/a")
    _article(store, "https://example.com/b")

    with pytest.raises(ValueError):
        store.update_article(first.article_id, url="https://example.com/b")

    store.update_article(first.article_id, url="https://example.com/c")
    assert store.has_article_url("https://example.com/c")
    assert not store.has_article_url("https://example.com/a")


def test_record_sentiment_never_overwrites() -> None:
    store = MemoryStore()
    article = _article(store, "https://example.com/a")

    scored = store.record_sentiment(article.article_id, "positive", 40)
    again = store.record_sentiment(article.article_id, "negative", -80)

    assert scored.sentiment == "positive"
    assert again.sentiment == "positive"
    assert again.sentiment_score == 40
    assert store.record_sentiment("missing", "neutral", 0) is None


def test_list_articles_sorts_filters_and_paginates() -> None:
    store = MemoryStore()
    company = store.create_company(name="Piccoma", type="competitor")
    old = _article(store, "https://example.com/old", hours_ago=5)
    newest = _article(
        store,
        "https://example.com/new",
        hours_ago=1,
        company_id=company.company_id,
        category="competitor",
    )
    middle = _article(store, "https://example.com/mid", hours_ago=3)

    assert store.list_articles() == [newest, middle, old]
    assert store.list_articles(limit=2) == [newest, middle]
    assert store.list_articles(offset=1, limit=1) == [middle]
    assert store.list_articles(offset=2) == [old]
    assert store.list_articles(category="competitor") == [newest]
    assert store.list_articles(company_id=company.company_id) == [newest]
    assert store.articles_by_company(company.company_id) == [newest]


def test_recent_articles_window_newest_first() -> None:
    store = MemoryStore()
    inside = _article(store, "https://example.com/in", hours_ago=0.5)
    newer = _article(store, "https://example.com/newer", hours_ago=0.1)
    _article(store, "https://example.com/out", hours_ago=2)

    assert store.recent_articles(1) == [newer, inside]


def test_naive_reference_time_is_treated_as_utc() -> None:
    store = MemoryStore()
    article = store.create_article(
        title="a",
        url="https://example.com/a",
        published_at=NOW - timedelta(hours=1),
        category="market",
    )
    naive_now = NOW.replace(tzinfo=None)

    assert store.recent_articles(2, now=naive_now) == [article]
    assert store.recent_articles(0.5, now=naive_now) == []
    assert store.article_stats(now=naive_now)["today"] == 1


def test_search_articles_matches_text_and_keywords() -> None:
    store = MemoryStore()
    by_title = _article(store, "https://example.com/1", title="Webtoon Boom")
    by_content = _article(store, "https://example.com/2", content="A WEBTOON deal")
    by_keyword = _article(store, "https://example.com/3", keywords={"webtoon"})
    _article(store, "https://example.com/4", summary="Unrelated")

    results = store.search_articles("webToon")

    assert results == [by_title, by_content, by_keyword]


def test_alert_queries_and_mark_read() -> None:
    store = MemoryStore()
    low = store.create_alert(title="Low", message="m", type="info", priority=1)
    high = store.create_alert(title="High", message="m", type="error", priority=5)
    mid = store.create_alert(title="Mid", message="m", type="warning", priority=3)

    assert store.unread_alerts() == [high, mid, low]

    read = store.mark_alert_read(high.alert_id)

    assert read.is_read is True
    assert store.unread_alerts() == [mid, low]
    assert len(store.all_alerts()) == 3


def test_alert_priority_must_be_in_range() -> None:
    store = MemoryStore()

    with pytest.raises(ValueError):
        store.create_alert(title="Bad", message="m", type="info", priority=0)
    with pytest.raises(ValueError):
        store.create_alert(title="Bad", message="m", type="fatal", priority=2)


def test_trends_unique_per_period_and_sorted() -> None:
    store = MemoryStore()
    daily = store.create_trend(keyword="manga", mentions=4)
    weekly = store.create_trend(keyword="manga", mentions=30, period="7d")
    other = store.create_trend(keyword="ai", mentions=2)

    with pytest.raises(ValueError):
        store.create_trend(keyword="manga")

    assert daily.change_percentage == 0
    store.update_trend(other.trend_id, change_percentage=50)
    store.update_trend(weekly.trend_id, change_percentage=10)

    assert [trend.keyword for trend in store.all_trends()] == ["ai", "manga", "manga"]
    assert [trend.trend_id for trend in store.trends_by_period("7d")] == [
        weekly.trend_id
    ]
    assert store.get_trend("manga", "7d").mentions == 30


def test_update_trend_refreshes_timestamp() -> None:
    store = MemoryStore()
    trend = store.create_trend(keyword="ai", mentions=1)

    updated = store.update_trend(trend.trend_id, mentions=2)

    assert updated.mentions == 2
    assert updated.updated_at >= trend.updated_at


def test_analytics_counts() -> None:
    store = MemoryStore()
    piccoma = store.create_company(name="Piccoma", type="competitor")
    line = store.create_company(name="LINE Manga", type="competitor")
    store.create_article(
        title="a",
        url="https://example.com/a",
        published_at=NOW - timedelta(hours=1),
        category="market",
        company_id=piccoma.company_id,
        sentiment="positive",
        sentiment_score=40,
    )
    store.create_article(
        title="b",
        url="https://example.com/b",
        published_at=NOW - timedelta(days=3),
        category="market",
        company_id=piccoma.company_id,
        sentiment="negative",
        sentiment_score=-40,
    )
    store.create_article(
        title="c",
        url="https://example.com/c",
        published_at=NOW - timedelta(days=10),
        category="market",
        company_id=line.company_id,
    )

    assert store.article_stats(now=NOW) == {
        "total": 3,
        "today": 1,
        "week_growth": 100,
    }
    assert store.sentiment_stats() == {"positive": 1, "negative": 1, "neutral": 0}
    assert store.company_mentions() == [
        {"company_id": piccoma.company_id, "company_name": "Piccoma", "mentions": 2},
        {"company_id": line.company_id, "company_name": "LINE Manga", "mentions": 1},
    ]
