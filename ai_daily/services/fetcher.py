"""
Feed fetching across all subscriptions.

Feeds are fetched concurrently in small batches, with a pause between
batches so neither the feed servers nor the translation API get flooded.
"""

import concurrent.futures
import logging
import time
from typing import Callable, List, Optional

from ai_daily.models import Article, Feed
from ai_daily.parsers.base import FeedParser
from ai_daily.services.rate_limit import build_limiter

logger = logging.getLogger(__name__)


class FeedFetcher:
    """Runs a FeedParser over many feeds with fixed batch pacing."""

    def __init__(
        self,
        parser: FeedParser,
        batch_size: int = 5,
        batch_size_translation: int = 2,
        batch_delay: float = 1.0,
        batch_delay_translation: float = 3.0,
        rate_limit_mode: str = "fixed",
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.parser = parser
        self.batch_size = batch_size
        self.batch_size_translation = batch_size_translation
        self.batch_delay = batch_delay
        self.batch_delay_translation = batch_delay_translation
        self.rate_limit_mode = rate_limit_mode
        self._sleep = sleep

    def fetch_feed_articles(
        self, feed: Feed, translation_enabled: bool = False
    ) -> List[Article]:
        return self.parser.fetch(feed, translation_enabled)

    def _fetch_batch(
        self, batch: List[Feed], translation_enabled: bool
    ) -> List[Optional[List[Article]]]:
        """Fetches a batch concurrently; a failed feed maps to None."""
        with concurrent.futures.ThreadPoolExecutor(max_workers=len(batch)) as executor:
            futures = [
                executor.submit(self.fetch_feed_articles, feed, translation_enabled)
                for feed in batch
            ]
            concurrent.futures.wait(futures)

        results: List[Optional[List[Article]]] = []
        for feed, future in zip(batch, futures):
            try:
                results.append(future.result())
            except Exception as exc:  # pylint: disable=broad-exception-caught
                logger.warning("%s generated an exception: %s", feed["title"], exc)
                results.append(None)
        return results

    def fetch_all_feeds(
        self, feeds: List[Feed], translation_enabled: bool = False
    ) -> List[Article]:
        """Fetches recent articles from every feed, batch by batch."""
        batch_size = self.batch_size_translation if translation_enabled else self.batch_size
        delay = self.batch_delay_translation if translation_enabled else self.batch_delay
        limiter = build_limiter(self.rate_limit_mode, delay, sleep=self._sleep)
        batch_size = max(1, batch_size)

        logger.info(
            "Fetching %d feeds%s...",
            len(feeds),
            " (with translation)" if translation_enabled else "",
        )

        all_articles: List[Article] = []
        for start in range(0, len(feeds), batch_size):
            limiter.acquire()
            batch = feeds[start : start + batch_size]
            for feed, articles in zip(batch, self._fetch_batch(batch, translation_enabled)):
                if articles is None:
                    logger.info("✗ %s: fetch failed", feed["title"])
                    continue
                all_articles.extend(articles)
                translated = sum(1 for a in articles if a.get("isTranslated"))
                logger.info(
                    "✓ %s: %d articles (%d translated)",
                    feed["title"],
                    len(articles),
                    translated,
                )

        translated_total = sum(1 for a in all_articles if a.get("isTranslated"))
        logger.info(
            "Fetch complete: %d articles, %d translated to Chinese.",
            len(all_articles),
            translated_total,
        )
        return all_articles
