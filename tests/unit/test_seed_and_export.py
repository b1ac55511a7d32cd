import csv
from datetime import datetime, timedelta, timezone
from pathlib import Path

from news_intel.storage.export import export_articles_csv
from news_intel.storage.memory_store import MemoryStore
from news_intel.storage.seed import seed_companies, seed_sources


def _write_csv(path: Path, header: str, rows: list[str]) -> None:
    path.write_text(header + "\n" + "\n".join(rows) + "\n", encoding="utf-8")


def test_seed_companies_skips_invalid_rows(tmp_path: Path) -> None:
    companies_csv = tmp_path / "companies.csv"
    _write_csv(
        companies_csv,
        "name,type,website,description,is_active",
        [
            "Piccoma,competitor,https://piccoma.com,Webtoon platform,true",
            "Shueisha,publisher,,,no",
            ",competitor,,,true",
            "Mystery,newspaper,,,true",
        ],
    )
    store = MemoryStore()

    companies = seed_companies(store, companies_csv)

    assert [company.name for company in companies] == ["Piccoma", "Shueisha"]
    assert companies[0].website == "https://piccoma.com"
    assert companies[1].website is None
    assert companies[1].is_active is False
    assert store.all_companies() == companies


def test_seed_sources_defaults(tmp_path: Path) -> None:
    sources_csv = tmp_path / "sources.csv"
    _write_csv(
        sources_csv,
        "name,url,type,language,is_active",
        [
            "Feed,file://feed.xml,rss,en,true",
            "Natalie,https://natalie.mu/comic,scrape,,",
            "Broken,,rss,en,true",
        ],
    )
    store = MemoryStore()

    sources = seed_sources(store, sources_csv)

    assert [source.name for source in sources] == ["Feed", "Natalie"]
    assert sources[0].language == "en"
    assert sources[1].language == "ja"
    assert sources[1].is_active is True
    assert sources[1].last_fetched is None


def test_seed_missing_file_loads_nothing(tmp_path: Path) -> None:
    store = MemoryStore()

    assert seed_companies(store, tmp_path / "missing.csv") == []
    assert seed_sources(store, tmp_path / "missing.csv") == []


def test_export_articles_csv(tmp_path: Path) -> None:
    store = MemoryStore()
    company = store.create_company(name="Piccoma", type="competitor")
    now = datetime.now(timezone.utc)
    store.create_article(
        title="Older",
        url="https://example.com/older",
        published_at=now - timedelta(hours=2),
        category="market",
    )
    store.create_article(
        title="Newer",
        url="https://example.com/newer",
        published_at=now,
        category="competitor",
        company_id=company.company_id,
        sentiment="positive",
        sentiment_score=30,
    )
    output = tmp_path / "exports" / "articles.csv"

    written = export_articles_csv(store, output)

    with output.open(newline="", encoding="utf-8") as handle:
        rows = list(csv.DictReader(handle))

    assert written == 2
    assert [row["title"] for row in rows] == ["Newer", "Older"]
    assert rows[0]["company"] == "Piccoma"
    assert rows[0]["sentiment"] == "positive"
    assert rows[1]["company"] == ""
