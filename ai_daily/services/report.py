"""
Daily report generation.

Groups the day's well-scored articles into category sections, asks the LLM
for per-section highlights and an overall summary, and stores the result.
Every LLM call has a fixed fallback text, so an API outage lowers report
quality but never stops a report from being written.
"""

import enum
import logging
import time
from dataclasses import dataclass
from datetime import date as date_cls
from typing import Any, Callable, Dict, List, Optional, Tuple

from ai_daily.models import (
    CATEGORIES,
    CATEGORY_DESCRIPTIONS,
    CATEGORY_TITLES,
    DEFAULT_CATEGORY,
    Article,
    DailyReport,
    DailyReportSection,
    now_iso,
)
from ai_daily.services.llm import LLMError, LLMService
from ai_daily.services.store import ReportStore

logger = logging.getLogger(__name__)


class ReportStatus(enum.Enum):
    COMPLETED = "completed"
    SKIPPED = "skipped"
    ALREADY_EXISTS = "already_exists"


@dataclass
class ReportOutcome:
    status: ReportStatus
    report: Optional[DailyReport] = None


def group_by_category(articles: List[Article]) -> Dict[str, List[Article]]:
    """Buckets articles into the known categories, unknown ones into the default."""
    groups: Dict[str, List[Article]] = {category: [] for category in CATEGORIES}
    for article in articles:
        category = article.get("category")
        if isinstance(category, str) and category in groups:
            groups[category].append(article)
        else:
            groups[DEFAULT_CATEGORY].append(article)
    return groups


def format_report_date(date: str) -> str:
    """2026-10-19 -> 2026年10月19日"""
    parsed = date_cls.fromisoformat(date)
    return f"{parsed.year}年{parsed.month:02d}月{parsed.day:02d}日"


def _fallback_trend(category: str, count: int) -> str:
    return f"今日{category}领域有{count}篇优质文章值得关注。"


def _fallback_summary(section_count: int, article_count: int) -> str:
    return f"今日技术资讯精选，涵盖{section_count}个重要领域，共收录{article_count}篇优质文章。"


class DailyReportGenerator:
    """Builds and persists one DailyReport per date."""

    _SECTION_SYSTEM_PROMPT = "You are a tech industry analyst specializing in daily trend analysis."
    _SUMMARY_SYSTEM_PROMPT = (
        "You are a professional tech journalist writing daily industry summaries."
    )

    _SECTION_PROMPT = """Analyze the following articles in the "{category}" category and provide insights:

Articles:
{articles}

Please provide analysis in JSON format:
{{
  "highlights": ["3-5 key highlights or trends from these articles"],
  "trendAnalysis": "Brief analysis of trends and patterns in this category (50-80 words in Chinese)"
}}

Focus on:
1. Common themes and trends
2. Breakthrough developments
3. Practical implications
4. Future directions

Return only valid JSON format."""

    _SUMMARY_PROMPT = """Generate a compelling daily summary based on today's tech articles across different categories:

Category Analysis:
{sections}

Total Articles: {total}
Quality Articles: {quality}

Requirements:
1. 100-120 words in Chinese
2. Highlight the most significant trends and developments
3. Engaging tone suitable for tech professionals and entrepreneurs
4. Focus on actionable insights and future implications

Return only the summary text without additional formatting."""

    def __init__(
        self,
        llm: LLMService,
        report_store: ReportStore,
        model: Optional[str] = None,
        title_prefix: str = "WindFlash AI Daily",
        min_score: float = 70,
        max_articles_per_section: int = 5,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.llm = llm
        self.report_store = report_store
        self.model = model
        self.title_prefix = title_prefix
        self.min_score = min_score
        self.max_articles_per_section = max_articles_per_section
        self._clock = clock

    def _analyze_section(
        self, category: str, articles: List[Article]
    ) -> Tuple[List[str], str]:
        """Returns (highlights, trend analysis) for one category."""
        fallback = (
            [a["title"] for a in articles[:3]],
            _fallback_trend(category, len(articles)),
        )
        if not self.llm.configured:
            return fallback

        lines = "\n".join(
            f"《{a['title']}》({a.get('score', 0):g}分) - {a.get('summary', '')}"
            for a in articles
        )
        try:
            result: Any = self.llm.chat_json(
                [
                    {"role": "system", "content": self._SECTION_SYSTEM_PROMPT},
                    {
                        "role": "user",
                        "content": self._SECTION_PROMPT.format(
                            category=category, articles=lines
                        ),
                    },
                ],
                max_tokens=300,
                temperature=0.4,
                model=self.model,
            )
            if not isinstance(result, dict):
                raise LLMError("Section analysis is not a JSON object")
        except LLMError as e:
            logger.error("Error analyzing category %s: %s", category, e)
            return fallback

        highlights = [str(h) for h in result.get("highlights") or []]
        trend = result.get("trendAnalysis") or fallback[1]
        return highlights, str(trend)

    def _build_section(
        self, category: str, articles: List[Article]
    ) -> DailyReportSection:
        top_articles = articles[: self.max_articles_per_section]
        highlights, trend = self._analyze_section(category, top_articles)
        return {
            "category": category,
            "title": CATEGORY_TITLES.get(category, category),
            "description": CATEGORY_DESCRIPTIONS.get(category, ""),
            "articles": top_articles,
            "highlights": highlights,
            "trendAnalysis": trend,
        }

    def _overall_summary(
        self, sections: List[DailyReportSection], articles: List[Article]
    ) -> str:
        fallback = _fallback_summary(len(sections), len(articles))
        if not self.llm.configured:
            return fallback

        section_lines = "\n".join(
            f"{s['category']}({len(s['articles'])}篇): {s.get('trendAnalysis', '')}"
            for s in sections
        )
        prompt = self._SUMMARY_PROMPT.format(
            sections=section_lines,
            total=len(articles),
            quality=sum(1 for a in articles if (a.get("score") or 0) >= 80),
        )
        try:
            return self.llm.chat(
                [
                    {"role": "system", "content": self._SUMMARY_SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
                max_tokens=200,
                temperature=0.6,
                model=self.model,
            )
        except LLMError as e:
            logger.error("Error generating overall summary: %s", e)
            return fallback

    def build_report(self, articles: List[Article], date: str) -> DailyReport:
        """Assembles a report without touching the store."""
        started = self._clock()

        quality = sorted(
            (a for a in articles if (a.get("score") or 0) >= self.min_score),
            key=lambda a: a.get("score") or 0,
            reverse=True,
        )
        sections = [
            self._build_section(category, group)
            for category, group in group_by_category(quality).items()
            if group
        ]
        summary = self._overall_summary(sections, quality)

        return {
            "id": f"daily-{date}",
            "date": date,
            "title": f"{self.title_prefix} - {format_report_date(date)}",
            "summary": summary,
            "sections": sections,
            "totalArticles": len(articles),
            "analyzedCount": sum(1 for a in articles if a.get("isAnalyzed")),
            "translatedCount": sum(1 for a in articles if a.get("isTranslated")),
            "createdAt": now_iso(),
            "generationTime": int((self._clock() - started) * 1000),
        }

    def generate(self, articles: List[Article], date: str) -> ReportOutcome:
        """Generates the report for ``date`` unless one exists or there is no input."""
        existing = self.report_store.get_by_date(date)
        if existing:
            logger.info("Report for %s already exists.", date)
            return ReportOutcome(ReportStatus.ALREADY_EXISTS, existing)

        if not articles:
            logger.info("No articles available for the %s report.", date)
            return ReportOutcome(ReportStatus.SKIPPED)

        report = self.build_report(articles, date)
        self.report_store.add(report)
        logger.info(
            "Report for %s generated: %d sections, %d articles.",
            date,
            len(report["sections"]),
            report["totalArticles"],
        )
        return ReportOutcome(ReportStatus.COMPLETED, report)

    def generate_daily_report(
        self, articles: List[Article], date: str
    ) -> Optional[DailyReport]:
        return self.generate(articles, date).report
