"""
Base interface for feed parsers.

The fetcher only depends on this contract, so alternative sources can be
plugged in next to the RSS parser.
"""

from typing import List, Protocol

from ai_daily.models import Article, Feed


class FeedParser(Protocol):
    """
    Protocol for feed parsers.

    Implementations download one feed and normalize its recent items into
    Article records. They must not raise: failures yield an empty list.
    """

    def fetch(self, feed: Feed, translation_enabled: bool = False) -> List[Article]:
        """Fetches and parses a feed."""
