"""
OPML subscription list parser.

Turns the configured OPML documents into a flat list of Feed records.
"""

import logging
import os
import xml.etree.ElementTree as ET
from typing import Dict, Iterable, List, Optional

from ai_daily.models import FEED_CATEGORIES, Feed, encode_id

logger = logging.getLogger(__name__)


def category_from_filename(path: str) -> str:
    """Maps an OPML file name to its feed category."""
    name = os.path.basename(path)
    if "Articles" in name:
        return "articles"
    if "Podcasts" in name:
        return "podcasts"
    if "Twitters" in name:
        return "twitter"
    return "articles"


def parse_opml_file(path: str, category: Optional[str] = None) -> List[Feed]:
    """
    Extracts feeds from one OPML file.

    Only ``<outline>`` elements carrying both ``text`` and ``xmlUrl`` count.
    A missing or malformed file yields an empty list.
    """
    if category not in FEED_CATEGORIES:
        category = category_from_filename(path)

    try:
        root = ET.parse(path).getroot()
    except FileNotFoundError:
        logger.warning("OPML file not found: %s", path)
        return []
    except (ET.ParseError, OSError) as e:
        logger.warning("Error parsing OPML file %s: %s", path, e)
        return []

    feeds: List[Feed] = []
    for outline in root.iter("outline"):
        title = (outline.get("text") or "").strip()
        xml_url = (outline.get("xmlUrl") or "").strip()
        if not title or not xml_url:
            continue
        feeds.append(
            {
                "id": encode_id(xml_url),
                "title": title,
                "xmlUrl": xml_url,
                "category": category,
                "isActive": True,
            }
        )
    return feeds


def load_all_feeds(sources: Iterable[Dict[str, str]], opml_dir: str) -> List[Feed]:
    """
    Loads feeds from every configured OPML source.

    When the same URL shows up more than once the first occurrence wins.
    """
    all_feeds: List[Feed] = []
    seen = set()

    for source in sources:
        path = os.path.join(opml_dir, source["file"])
        feeds = parse_opml_file(path, source.get("category"))
        logger.info("Loaded %d feeds from %s", len(feeds), source["file"])
        for feed in feeds:
            if feed["id"] in seen:
                logger.warning(
                    "Duplicate feed %s in %s skipped.", feed["xmlUrl"], source["file"]
                )
                continue
            seen.add(feed["id"])
            all_feeds.append(feed)

    return all_feeds
