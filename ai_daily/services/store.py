"""
Flat-file JSON storage.

Each entity type lives in one JSON array file that is read completely on
every load and rewritten completely on every save. There is no locking:
only one pipeline run may write at a time.
"""

import json
import logging
import os
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Generic, Iterable, List, Optional, TypeVar

from ai_daily.models import Article, DailyReport, Feed, now_iso, parse_timestamp

logger = logging.getLogger(__name__)

T = TypeVar("T")

ARTICLES_FILE = "articles.json"
REPORTS_FILE = "daily-reports.json"
FEEDS_FILE = "feeds.json"

_EPOCH = datetime.fromtimestamp(0, tz=timezone.utc)


def _published(article: Article) -> datetime:
    return parse_timestamp(article.get("publishedAt")) or _EPOCH


def _score(article: Article) -> float:
    return article.get("score") or 0


class JSONStore(Generic[T]):
    """Generic JSON array file with read-modify-write helpers."""

    def __init__(self, path: str):
        self.path = path

    def load(self) -> List[T]:
        """Returns every stored record; a missing or unreadable file is empty."""
        if not os.path.exists(self.path):
            return []
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.error("Error loading %s: %s", self.path, e)
            return []
        if not isinstance(data, list):
            logger.error("Error loading %s: expected a JSON array", self.path)
            return []
        return data

    def save(self, items: List[T]) -> None:
        """Overwrites the file with ``items``."""
        try:
            directory = os.path.dirname(self.path)
            if directory:
                os.makedirs(directory, exist_ok=True)
            with open(self.path, "w", encoding="utf-8") as f:
                json.dump(items, f, ensure_ascii=False, indent=2)
        except (OSError, TypeError, ValueError) as e:
            logger.error("Error saving %s: %s", self.path, e)

    def append(self, item: T) -> None:
        data = self.load()
        data.append(item)
        self.save(data)

    def update(self, predicate: Callable[[T], bool], updater: Callable[[T], T]) -> None:
        data = self.load()
        self.save([updater(item) if predicate(item) else item for item in data])


class ArticleStore:
    """Article queries over ``articles.json``."""

    def __init__(self, data_dir: str):
        self.store: JSONStore[Article] = JSONStore(os.path.join(data_dir, ARTICLES_FILE))

    def load(self) -> List[Article]:
        return self.store.load()

    def save(self, articles: List[Article]) -> None:
        self.store.save(articles)

    def add(self, article: Article) -> None:
        self.store.append(article)

    def update_article(self, article_id: str, updates: Dict[str, Any]) -> None:
        def updater(article: Article) -> Article:
            merged = dict(article)
            merged.update(updates)
            merged["updatedAt"] = now_iso()
            return merged  # type: ignore[return-value]

        self.store.update(lambda a: a["id"] == article_id, updater)

    def filter_new(
        self, articles: List[Article], existing: Optional[List[Article]] = None
    ) -> List[Article]:
        """Returns only articles whose URL is not stored yet (or repeated in the batch)."""
        if existing is None:
            existing = self.load()
        seen_urls = {a["url"] for a in existing}
        new_articles = []
        for article in articles:
            if article["url"] in seen_urls:
                continue
            seen_urls.add(article["url"])
            new_articles.append(article)

        logger.info(
            "Deduplication: %d processed -> %d new.", len(articles), len(new_articles)
        )
        return new_articles

    def get_today_articles(self, today: Optional[str] = None) -> List[Article]:
        today = today or datetime.now(timezone.utc).date().isoformat()
        return [a for a in self.load() if str(a.get("publishedAt", ""))[:10] == today]

    def get_featured_articles(self, limit: int = 10) -> List[Article]:
        featured = [a for a in self.load() if a.get("isFeatured")]
        return sorted(featured, key=_score, reverse=True)[:limit]

    def get_top_articles(self, limit: int = 20, min_score: float = 75) -> List[Article]:
        top = [a for a in self.load() if a.get("isAnalyzed") and _score(a) >= min_score]
        return sorted(top, key=_score, reverse=True)[:limit]

    def get_articles_by_category(self, category: str, limit: int = 10) -> List[Article]:
        matching = [a for a in self.load() if a.get("category") == category]
        return sorted(matching, key=_published, reverse=True)[:limit]

    def get_recent_articles(
        self, days: int = 7, limit: int = 50, now: Optional[datetime] = None
    ) -> List[Article]:
        cutoff = (now or datetime.now(timezone.utc)) - timedelta(days=days)
        recent = [a for a in self.load() if _published(a) >= cutoff]
        return sorted(recent, key=_published, reverse=True)[:limit]


class ReportStore:
    """Daily reports in ``daily-reports.json``."""

    def __init__(self, data_dir: str):
        self.store: JSONStore[DailyReport] = JSONStore(os.path.join(data_dir, REPORTS_FILE))

    def load(self) -> List[DailyReport]:
        return self.store.load()

    def save(self, reports: List[DailyReport]) -> None:
        self.store.save(reports)

    def add(self, report: DailyReport) -> None:
        self.store.append(report)

    def get_by_date(self, date: str) -> Optional[DailyReport]:
        for report in self.load():
            if report.get("date") == date:
                return report
        return None

    def get_recent(self, limit: int = 10) -> List[DailyReport]:
        return sorted(self.load(), key=lambda r: r.get("date", ""), reverse=True)[:limit]


class FeedStore:
    """Feed subscriptions in ``feeds.json``."""

    def __init__(self, data_dir: str):
        self.store: JSONStore[Feed] = JSONStore(os.path.join(data_dir, FEEDS_FILE))

    def load(self) -> List[Feed]:
        return self.store.load()

    def save(self, feeds: List[Feed]) -> None:
        self.store.save(feeds)

    def sync(self, feeds: List[Feed]) -> None:
        """Replaces the stored feeds, carrying ``lastUpdated`` over by id."""
        last_updated = {
            f["id"]: f["lastUpdated"] for f in self.load() if f.get("lastUpdated")
        }
        merged: List[Feed] = []
        for feed in feeds:
            record = dict(feed)
            if feed["id"] in last_updated and "lastUpdated" not in feed:
                record["lastUpdated"] = last_updated[feed["id"]]
            merged.append(record)  # type: ignore[arg-type]
        self.save(merged)

    def get_active(self) -> List[Feed]:
        return [f for f in self.load() if f.get("isActive")]

    def update_last_updated(self, feed_id: str) -> None:
        self.touch_all([feed_id])

    def touch_all(self, feed_ids: Iterable[str]) -> None:
        """Stamps ``lastUpdated`` on the given feeds in a single rewrite."""
        ids = set(feed_ids)
        timestamp = now_iso()

        def updater(feed: Feed) -> Feed:
            touched = dict(feed)
            touched["lastUpdated"] = timestamp
            return touched  # type: ignore[return-value]

        self.store.update(lambda f: f["id"] in ids, updater)


def get_stats(
    articles: ArticleStore, reports: ReportStore, feeds: FeedStore
) -> Dict[str, Any]:
    """Summary counts across all stores."""
    all_articles = articles.load()
    all_feeds = feeds.load()
    today = datetime.now(timezone.utc).date().isoformat()
    return {
        "totalArticles": len(all_articles),
        "todayArticles": sum(
            1 for a in all_articles if str(a.get("publishedAt", ""))[:10] == today
        ),
        "analyzedArticles": sum(1 for a in all_articles if a.get("isAnalyzed")),
        "featuredArticles": sum(1 for a in all_articles if a.get("isFeatured")),
        "totalReports": len(reports.load()),
        "totalFeeds": len(all_feeds),
        "activeFeeds": sum(1 for f in all_feeds if f.get("isActive")),
        "lastUpdated": now_iso(),
    }
