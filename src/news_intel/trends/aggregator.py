import logging
from collections import Counter

from news_intel.models.schemas import Trend, round_half_up
from news_intel.storage.memory_store import MemoryStore

logger = logging.getLogger(__name__)

TREND_PERIOD = "24h"


def change_percentage(new_count: int, old_mentions: int) -> int:
    if not old_mentions:
        return 0
    return round_half_up((new_count - old_mentions) / old_mentions * 100)


class TrendAggregator:
    """Keeps per-keyword mention counts for the rolling 24h window.

    Keywords that drop out of the window keep their last trend row.
    """

    def __init__(self, store: MemoryStore, window_hours: float = 24) -> None:
        self._store = store
        self._window_hours = window_hours

    def count_keywords(self) -> Counter:
        counts: Counter = Counter()
        for article in self._store.recent_articles(self._window_hours):
            counts.update(set(article.keywords))
        return counts

    def update_trends(self) -> list[Trend]:
        touched: list[Trend] = []
        for keyword, count in self.count_keywords().items():
            existing = self._store.get_trend(keyword, TREND_PERIOD)
            if existing is None:
                trend = self._store.create_trend(
                    keyword=keyword,
                    mentions=count,
                    sentiment="neutral",
                    period=TREND_PERIOD,
                )
            else:
                trend = self._store.update_trend(
                    existing.trend_id,
                    mentions=count,
                    change_percentage=change_percentage(count, existing.mentions),
                )
            if trend is not None:
                touched.append(trend)
        logger.info("Updated %d trends", len(touched))
        return touched
