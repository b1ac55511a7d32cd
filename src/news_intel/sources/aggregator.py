import logging
import re
import urllib.parse
from dataclasses import dataclass
from datetime import datetime, timezone

from news_intel.models.schemas import DEFAULT_LANGUAGE, Article, Company, RawItem
from news_intel.sources.provider_registry import Fetcher, default_fetchers
from news_intel.storage.memory_store import DuplicateArticleError, MemoryStore

logger = logging.getLogger(__name__)

COMPETITOR_TERMS = ("line manga", "piccoma")

# Category rules, first match wins.
CATEGORY_RULES: list[tuple[str, tuple[str, ...]]] = [
    ("partnership", ("partnership", "collaboration", "alliance")),
    ("global", ("global", "international", "overseas")),
    ("competitor", ("competitor", *COMPETITOR_TERMS)),
]
DEFAULT_CATEGORY = "market"

KEYWORD_PATTERNS = [
    re.compile(re.escape(word), re.IGNORECASE)
    for word in (
        "partnership",
        "collaboration",
        "webtoon",
        "manga",
        "ai",
        "subscription",
        "global",
        "expansion",
    )
]

BREAKING_TERMS = ("breaking", "urgent")
DEAL_TERMS = ("partnership", "acquisition")
MAX_IMPORTANCE = 5


def article_text(title: str, content: str | None) -> str:
    return f"{title} {content or ''}".strip()


def categorize(text: str) -> str:
    lowered = text.lower()
    for category, terms in CATEGORY_RULES:
        if any(term in lowered for term in terms):
            return category
    return DEFAULT_CATEGORY


def extract_keywords(text: str) -> set[str]:
    return {
        match.group(0).lower()
        for pattern in KEYWORD_PATTERNS
        for match in pattern.finditer(text)
    }


def has_breaking_term(title: str) -> bool:
    lowered = title.lower()
    return any(term in lowered for term in BREAKING_TERMS)


def calculate_importance(title: str, competitor_names: list[str] | None = None) -> int:
    """Score 1 to 5 from urgency, deal and competitor terms in the title.

    Tracked competitor names extend the built-in competitor terms.
    """
    lowered = title.lower()
    competitors = [*COMPETITOR_TERMS, *(competitor_names or [])]
    importance = 1
    if has_breaking_term(title):
        importance += 2
    if any(term in lowered for term in DEAL_TERMS):
        importance += 1
    if any(name and name.lower() in lowered for name in competitors):
        importance += 1
    return min(importance, MAX_IMPORTANCE)


@dataclass
class CompanyMatch:
    company: Company
    match_method: str
    confidence: float


def _website_domain(website: str | None) -> str:
    if not website:
        return ""
    parsed = urllib.parse.urlparse(website if "://" in website else f"//{website}")
    domain = (parsed.netloc or parsed.path).lower()
    return domain[4:] if domain.startswith("www.") else domain


def match_company(url: str, text: str, companies: list[Company]) -> Company | None:
    """Pick the tracked company an article is about, if any.

    A website domain found in the article URL outranks a name found in the
    text; ties keep the first company in store order.
    """
    haystack = text.lower()
    lowered_url = url.lower()
    best: CompanyMatch | None = None

    for company in companies:
        if not company.is_active:
            continue
        domain = _website_domain(company.website)
        if domain and domain in lowered_url:
            candidate = CompanyMatch(company, "domain", 0.95)
        elif company.name and company.name.lower() in haystack:
            candidate = CompanyMatch(company, "name", 0.75)
        else:
            continue
        if best is None or candidate.confidence > best.confidence:
            best = candidate

    return best.company if best else None


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SourceAggregator:
    """Pulls raw items from every active source and stores new articles."""

    def __init__(
        self,
        store: MemoryStore,
        fetchers: dict[str, Fetcher] | None = None,
    ) -> None:
        self._store = store
        self._fetchers = fetchers if fetchers is not None else default_fetchers()

    def fetch_all(self) -> list[Article]:
        created: list[Article] = []
        sources = self._store.active_news_sources()

        for source in sources:
            fetcher = self._fetchers.get(source.type)
            if fetcher is None:
                logger.warning(
                    "Unsupported source type %s for source %s", source.type, source.name
                )
                continue

            try:
                raw_items = fetcher(source)
            except Exception as exc:  # noqa: BLE001 - log and continue for failing sources
                reason = str(exc).strip() or exc.__class__.__name__
                logger.error("Fetch failed for source %s: %s", source.name, reason)
                continue

            self._store.update_news_source(source.source_id, last_fetched=_utcnow())

            for raw in raw_items:
                try:
                    article = self.process_item(raw, source.source_id)
                except ValueError as exc:
                    logger.warning(
                        "Skipping item %s from %s: %s", raw.url, source.name, exc
                    )
                    continue
                if article is not None:
                    created.append(article)

        logger.info(
            "Fetched %d sources, added %d new articles", len(sources), len(created)
        )
        return created

    def process_item(self, raw: RawItem, source_id: str | None) -> Article | None:
        """Normalize one raw item; returns None when its URL is already stored."""
        if self._store.has_article_url(raw.url):
            logger.debug("Duplicate article skipped: %s", raw.url)
            return None

        companies = [company for company in self._store.all_companies() if company.is_active]
        competitor_names = [
            company.name for company in companies if company.type == "competitor"
        ]
        text = article_text(raw.title, raw.content)

        company_id = raw.company_id
        if company_id is None:
            matched = match_company(raw.url, text, companies)
            company_id = matched.company_id if matched else None

        source = self._store.get_news_source(source_id) if source_id else None
        language = raw.language or (source.language if source else DEFAULT_LANGUAGE)

        try:
            article = self._store.create_article(
                title=raw.title,
                url=raw.url,
                published_at=raw.published_at,
                category=categorize(text),
                content=raw.content,
                summary=raw.summary,
                image_url=raw.image_url,
                source_id=source_id,
                company_id=company_id,
                language=language,
                keywords=extract_keywords(text),
                is_breaking=raw.is_breaking,
                importance=calculate_importance(raw.title, competitor_names),
            )
        except DuplicateArticleError:
            logger.debug("Duplicate article skipped: %s", raw.url)
            return None
        logger.info("Added new article: %s", article.title)
        return article
