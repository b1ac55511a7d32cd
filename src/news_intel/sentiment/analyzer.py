import logging

from news_intel.models.schemas import MarketSentiment, round_half_up
from news_intel.storage.memory_store import MemoryStore

logger = logging.getLogger(__name__)

POSITIVE_WORDS = frozenset(
    {
        "success",
        "growth",
        "increase",
        "expansion",
        "partnership",
        "collaboration",
        "innovative",
        "breakthrough",
        "launch",
        "positive",
        "excellent",
        "strong",
    }
)

NEGATIVE_WORDS = frozenset(
    {
        "decline",
        "decrease",
        "loss",
        "failure",
        "crisis",
        "problem",
        "concern",
        "negative",
        "weak",
        "poor",
        "difficult",
        "challenge",
    }
)

WORD_WEIGHT = 10
LABEL_THRESHOLD = 20
MARKET_THRESHOLD = 10
MARKET_WINDOW_HOURS = 24


def score(text: str) -> tuple[str, int]:
    """Score text by counting whole whitespace-separated sentiment words.

    Returns the label and a value clamped to [-100, 100]. Tokens keep their
    punctuation, so "growth," does not count as "growth".
    """
    tokens = text.lower().split()
    positive = sum(1 for token in tokens if token in POSITIVE_WORDS)
    negative = sum(1 for token in tokens if token in NEGATIVE_WORDS)
    value = max(-100, min(100, (positive - negative) * WORD_WEIGHT))

    if value > LABEL_THRESHOLD:
        return "positive", value
    if value < -LABEL_THRESHOLD:
        return "negative", value
    return "neutral", value


class SentimentAnalyzer:
    def __init__(self, store: MemoryStore) -> None:
        self._store = store

    def analyze_all(self) -> int:
        """Score every article that has no sentiment yet; returns how many."""
        scored = 0
        for article in self._store.all_articles():
            if article.is_scored:
                continue
            text = f"{article.title} {article.content or ''} {article.summary or ''}"
            label, value = score(text)
            if self._store.record_sentiment(article.article_id, label, value):
                scored += 1
        logger.info("Sentiment analysis scored %d articles", scored)
        return scored

    def market_sentiment(self) -> MarketSentiment:
        articles = self._store.recent_articles(MARKET_WINDOW_HOURS)
        if not articles:
            return MarketSentiment(sentiment="neutral", percentage=0)

        total = sum(article.sentiment_score or 0 for article in articles)
        average = total / len(articles)
        percentage = round_half_up((average + 100) / 200 * 100)

        if average > MARKET_THRESHOLD:
            label = "positive"
        elif average < -MARKET_THRESHOLD:
            label = "negative"
        else:
            label = "neutral"
        return MarketSentiment(sentiment=label, percentage=percentage)
