"""
AI Daily Report pipeline.

Loads feed subscriptions from OPML, fetches and translates new articles,
scores them with the LLM, stores everything in flat JSON files and assembles
the daily report. Meant to be triggered externally (cron or a web hook);
only one run may be in flight at a time.
"""

import argparse
import json
import logging
import sys
import time
from dataclasses import dataclass
from datetime import date as date_cls
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from ai_daily.config import Settings, get_settings
from ai_daily.models import Article
from ai_daily.parsers.opml import load_all_feeds
from ai_daily.parsers.rss import RSSParser
from ai_daily.services.analyzer import (
    ArticleAnalyzer,
    analysis_stats,
    apply_analysis,
    to_analysis_request,
)
from ai_daily.services.fetcher import FeedFetcher
from ai_daily.services.llm import LLMService
from ai_daily.services.rate_limit import build_limiter
from ai_daily.services.report import DailyReportGenerator, ReportOutcome, ReportStatus
from ai_daily.services.store import ArticleStore, FeedStore, ReportStore, get_stats
from ai_daily.services.translator import Translator

logger = logging.getLogger(__name__)


@dataclass
class Services:
    """Everything one pipeline run needs, wired from Settings."""

    settings: Settings
    llm: LLMService
    translator: Translator
    fetcher: FeedFetcher
    analyzer: ArticleAnalyzer
    reporter: DailyReportGenerator
    articles: ArticleStore
    reports: ReportStore
    feeds: FeedStore


def build_services(settings: Settings) -> Services:
    llm = LLMService(
        settings.api_key,
        base_url=settings.llm_base_url,
        model=settings.llm_model,
        timeout=settings.llm_timeout,
    )
    analysis_limiter = build_limiter(settings.rate_limit_mode, settings.analysis_delay)
    translator = Translator(
        llm, build_limiter(settings.rate_limit_mode, settings.analysis_delay)
    )
    parser = RSSParser(
        translator,
        timeout=settings.fetch_timeout,
        max_items=settings.max_items_per_feed,
    )
    fetcher = FeedFetcher(
        parser,
        batch_size=settings.batch_size,
        batch_size_translation=settings.batch_size_translation,
        batch_delay=settings.batch_delay,
        batch_delay_translation=settings.batch_delay_translation,
        rate_limit_mode=settings.rate_limit_mode,
    )
    reports = ReportStore(settings.data_dir)
    return Services(
        settings=settings,
        llm=llm,
        translator=translator,
        fetcher=fetcher,
        analyzer=ArticleAnalyzer(llm, analysis_limiter),
        reporter=DailyReportGenerator(
            llm,
            reports,
            model=settings.report_model,
            title_prefix=settings.report_title_prefix,
            min_score=settings.report_min_score,
            max_articles_per_section=settings.max_articles_per_section,
        ),
        articles=ArticleStore(settings.data_dir),
        reports=reports,
        feeds=FeedStore(settings.data_dir),
    )


def today_str() -> str:
    return datetime.now(timezone.utc).date().isoformat()


def fetch_all_feeds(
    settings: Settings,
    translation_enabled: bool = True,
    services: Optional[Services] = None,
) -> List[Article]:
    """Fetches recent articles from every configured feed."""
    services = services or build_services(settings)
    feeds = load_all_feeds(settings.opml_sources, settings.opml_dir)
    return services.fetcher.fetch_all_feeds(feeds, translation_enabled)


def _analyze(services: Services, articles: List[Article], started: float) -> None:
    """Analyzes up to ``max_analyze`` articles in place."""
    settings = services.settings
    deadline = settings.analysis_deadline_seconds
    elapsed = time.monotonic() - started
    if deadline is not None and elapsed > deadline:
        logger.warning(
            "%.1fs elapsed (budget %.0fs). Skipping AI analysis.", elapsed, deadline
        )
        return

    to_analyze = articles[: settings.max_analyze]
    results = services.analyzer.analyze_articles_batch(
        [to_analysis_request(a) for a in to_analyze]
    )
    for article, result in zip(to_analyze, results):
        if result:
            apply_analysis(article, result, settings.featured_threshold)


def run_update(
    settings: Settings,
    translation_enabled: bool = True,
    services: Optional[Services] = None,
) -> Dict[str, Any]:
    """Fetches, deduplicates, analyzes and stores new articles."""
    started = time.monotonic()
    services = services or build_services(settings)
    logger.info("--- Starting update for %s ---", today_str())

    feeds = load_all_feeds(settings.opml_sources, settings.opml_dir)
    logger.info("Loaded %d feeds.", len(feeds))
    services.feeds.sync(feeds)

    fetched = services.fetcher.fetch_all_feeds(feeds, translation_enabled)
    services.feeds.touch_all(f["id"] for f in feeds)
    stats: Dict[str, Any] = {
        "feeds": len(feeds),
        "articles": 0,
        "analyzed": 0,
        "featured": 0,
        "translated": 0,
        "reportGenerated": False,
    }

    existing = services.articles.load()
    new_articles = services.articles.filter_new(fetched, existing)
    if not new_articles:
        logger.info("No new articles today!")
        return stats

    _analyze(services, new_articles, started)

    services.articles.save(existing + new_articles)

    stats["articles"] = len(new_articles)
    stats.update(analysis_stats(new_articles))
    logger.info("Update complete: %s", stats)

    if stats["analyzed"] >= settings.auto_report_min_analyzed:
        logger.info("Generating today's report...")
        outcome = generate_report_for_date(settings, today_str(), services=services)
        stats["reportGenerated"] = outcome.status is ReportStatus.COMPLETED

    return stats


def generate_report_for_date(
    settings: Settings, date: str, services: Optional[Services] = None
) -> ReportOutcome:
    """Builds the report for ``date`` from articles published that day or the day before."""
    services = services or build_services(settings)

    existing = services.reports.get_by_date(date)
    if existing:
        logger.info("Report for %s already exists.", date)
        return ReportOutcome(ReportStatus.ALREADY_EXISTS, existing)

    target = date_cls.fromisoformat(date)
    wanted = {target.isoformat(), (target - timedelta(days=1)).isoformat()}
    # Look back from the end of the target day so past dates work too
    end_of_day = datetime.combine(target, datetime.min.time(), tzinfo=timezone.utc)
    recent = services.articles.get_recent_articles(
        days=settings.report_lookback_days,
        limit=500,
        now=end_of_day + timedelta(days=1),
    )
    articles = [a for a in recent if str(a.get("publishedAt", ""))[:10] in wanted]

    return services.reporter.generate(articles, date)


def status(settings: Settings, services: Optional[Services] = None) -> Dict[str, Any]:
    """Feed, storage and configuration overview."""
    services = services or build_services(settings)
    feeds = load_all_feeds(settings.opml_sources, settings.opml_dir)
    return {
        "rss": {
            "totalFeeds": len(feeds),
            "categories": {
                category: sum(1 for f in feeds if f["category"] == category)
                for category in ("articles", "podcasts", "twitter")
            },
        },
        "database": get_stats(services.articles, services.reports, services.feeds),
        "features": {
            "aiAnalysis": "configured" if services.llm.configured else "not-configured",
            "dataStorage": "json-files",
        },
    }


def main(argv: Optional[List[str]] = None) -> int:
    """Main execution entry point."""
    parser = argparse.ArgumentParser(prog="ai-daily", description=__doc__.split("\n\n")[0])
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    commands = parser.add_subparsers(dest="command", required=True)

    update = commands.add_parser("update", help="Fetch, analyze and store new articles.")
    update.add_argument(
        "--no-translation", action="store_true", help="Skip translating to Chinese."
    )
    report = commands.add_parser("report", help="Generate the daily report.")
    report.add_argument("--date", default=None, help="Report date (YYYY-MM-DD).")
    commands.add_parser("status", help="Show feed and storage statistics.")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    settings = get_settings()

    if args.command == "update":
        stats = run_update(settings, translation_enabled=not args.no_translation)
        print(json.dumps(stats, ensure_ascii=False, indent=2))
        return 0

    if args.command == "report":
        date = args.date or today_str()
        try:
            date_cls.fromisoformat(date)
        except ValueError:
            logger.error("Invalid date '%s'. Expected YYYY-MM-DD.", date)
            return 2
        outcome = generate_report_for_date(settings, date)
        if outcome.report is None:
            logger.info("Not enough articles to build the %s report.", date)
            return 1
        print(json.dumps(outcome.report, ensure_ascii=False, indent=2))
        return 0

    print(json.dumps(status(settings), ensure_ascii=False, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
