"""
RSS feed parser implementation.

This module provides the RSSParser class for fetching and parsing RSS/Atom
feeds into Article records, translating them to Chinese when asked to.
"""

import calendar
import html
import logging
import re
from datetime import datetime, timezone
from typing import Any, List, Optional, Tuple

import requests
import feedparser  # type: ignore

from ai_daily.models import Article, Feed, encode_id, now_iso
from ai_daily.parsers.base import FeedParser
from ai_daily.services.translator import Translator, detect_language, needs_translation

logger = logging.getLogger(__name__)

USER_AGENT = "AI-Daily-Report/1.0"
_EPOCH = datetime.fromtimestamp(0, tz=timezone.utc)


def clean_html(raw_html: Optional[str]) -> str:
    """Removes HTML tags from a string."""
    if not raw_html:
        return ""
    cleaner = re.compile("<.*?>", re.DOTALL)
    text = html.unescape(re.sub(cleaner, "", raw_html))
    return " ".join(text.split())


def _entry_published(entry: Any) -> Optional[datetime]:
    for key in ("published_parsed", "updated_parsed"):
        parsed = entry.get(key)
        if parsed:
            try:
                return datetime.fromtimestamp(calendar.timegm(parsed), tz=timezone.utc)
            except (TypeError, ValueError, OverflowError):
                continue
    return None


def _entry_description(entry: Any) -> str:
    raw = entry.get("summary") or entry.get("description")
    if not raw and entry.get("content"):
        raw = entry["content"][0].get("value", "")
    return clean_html(raw)


class RSSParser(FeedParser):
    """Parses standard RSS and Atom feeds."""

    def __init__(
        self,
        translator: Optional[Translator] = None,
        timeout: float = 10,
        max_items: int = 10,
    ):
        self.translator = translator
        self.timeout = timeout
        self.max_items = max_items

    def _recent_entries(self, entries: List[Any]) -> List[Tuple[Any, Optional[datetime]]]:
        """Newest first; undated entries keep feed order after dated ones."""
        dated = [(entry, _entry_published(entry)) for entry in entries]
        dated.sort(key=lambda pair: (pair[1] is not None, pair[1] or _EPOCH), reverse=True)
        return dated[: self.max_items]

    def fetch(self, feed: Feed, translation_enabled: bool = False) -> List[Article]:
        """Fetches and parses a single feed."""
        items: List[Article] = []
        try:
            try:
                resp = requests.get(
                    feed["xmlUrl"],
                    timeout=self.timeout,
                    headers={"User-Agent": USER_AGENT},
                )
                resp.raise_for_status()
                feed_content = resp.content
            except requests.RequestException as req_err:
                logger.warning("Network error fetching %s: %s", feed["title"], req_err)
                return []

            parsed = feedparser.parse(feed_content)
            for entry, published in self._recent_entries(parsed.entries):
                title = (entry.get("title") or "").strip()
                link = (entry.get("link") or "").strip()
                if not title or not link:
                    continue
                items.append(
                    self._build_article(
                        feed, entry, title, link, published, translation_enabled
                    )
                )
        except Exception as e:  # pylint: disable=broad-exception-caught
            logger.warning("Error parsing %s: %s", feed["title"], e)
            return []
        return items

    def _build_article(
        self,
        feed: Feed,
        entry: Any,
        title: str,
        link: str,
        published: Optional[datetime],
        translation_enabled: bool,
    ) -> Article:
        original_title = title
        original_description = description = _entry_description(entry)
        is_translated = False

        if translation_enabled and self.translator is not None:
            if needs_translation(title, "zh") or needs_translation(description, "zh"):
                bundle = self.translator.translate_article_to_chinese(
                    {"title": title, "content": description}
                )
                if bundle:
                    title = bundle["title"]
                    description = bundle["content"]
                    is_translated = bundle["isTranslated"]

        now = now_iso()
        article: Article = {
            "id": encode_id(link),
            "title": title,
            "url": link,
            "description": description,
            "publishedAt": published.isoformat() if published else now,
            "feedId": feed["id"],
            "feedTitle": feed["title"],
            "language": "zh"
            if is_translated
            else detect_language(f"{original_title} {original_description}"),
            "isAnalyzed": False,
            "isFeatured": False,
            "isTranslated": is_translated,
            "createdAt": now,
            "updatedAt": now,
        }
        author = entry.get("author")
        if author:
            article["author"] = author
        if is_translated:
            article["originalTitle"] = original_title
            article["originalDescription"] = original_description
        return article
