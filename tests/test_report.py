"""Unit tests for daily report generation."""

import tempfile
import unittest
from unittest.mock import MagicMock

from ai_daily.models import DEFAULT_CATEGORY
from ai_daily.services.llm import LLMError
from ai_daily.services.report import (
    DailyReportGenerator,
    ReportStatus,
    format_report_date,
    group_by_category,
)
from ai_daily.services.store import ReportStore


def _article(n, score, category="编程技术", **extra):
    article = {
        "id": f"id-{n}",
        "title": f"Article {n}",
        "url": f"https://example.com/{n}",
        "summary": f"summary {n}",
        "score": score,
        "category": category,
        "isAnalyzed": True,
        "isFeatured": score >= 85,
    }
    article.update(extra)
    return article


class ReportTestCase(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.store = ReportStore(self.tmp.name)
        self.llm = MagicMock()
        self.llm.configured = False

    def tearDown(self):
        self.tmp.cleanup()

    def _generator(self, **kwargs):
        return DailyReportGenerator(self.llm, self.store, **kwargs)


class TestHelpers(unittest.TestCase):
    def test_format_report_date(self):
        self.assertEqual(format_report_date("2026-10-19"), "2026年10月19日")
        self.assertEqual(format_report_date("2026-01-05"), "2026年01月05日")

    def test_unknown_category_goes_to_default(self):
        groups = group_by_category(
            [_article(1, 80, category="量子计算"), _article(2, 80, category=None)]
        )
        self.assertEqual(len(groups[DEFAULT_CATEGORY]), 2)

    def test_unhashable_stored_category_goes_to_default(self):
        groups = group_by_category(
            [_article(1, 80, category=["AI最新动态"]), _article(2, 80, category={"x": 1})]
        )
        self.assertEqual(len(groups[DEFAULT_CATEGORY]), 2)


class TestReportWithoutLLM(ReportTestCase):
    def test_fallback_report(self):
        articles = [
            _article(1, 92),
            _article(2, 60),
            _article(3, 85, category="开发工具"),
            _article(4, 40),
            _article(5, 88),
        ]

        outcome = self._generator().generate(articles, "2026-10-19")

        self.assertEqual(outcome.status, ReportStatus.COMPLETED)
        report = outcome.report
        self.assertEqual(report["id"], "daily-2026-10-19")
        self.assertEqual(report["title"], "WindFlash AI Daily - 2026年10月19日")
        self.assertEqual(report["totalArticles"], 5)
        self.assertEqual(report["analyzedCount"], 5)
        self.assertEqual([s["category"] for s in report["sections"]], ["编程技术", "开发工具"])

        coding = report["sections"][0]
        self.assertEqual([a["score"] for a in coding["articles"]], [92, 88])
        self.assertEqual(coding["title"], "🛠️ 编程技术")
        self.assertEqual(coding["highlights"], ["Article 1", "Article 5"])
        self.assertEqual(coding["trendAnalysis"], "今日编程技术领域有2篇优质文章值得关注。")
        self.assertEqual(
            report["summary"], "今日技术资讯精选，涵盖2个重要领域，共收录3篇优质文章。"
        )
        self.llm.chat.assert_not_called()
        self.llm.chat_json.assert_not_called()
        self.assertEqual(self.store.get_by_date("2026-10-19")["id"], "daily-2026-10-19")

    def test_malformed_stored_category_still_reports(self):
        outcome = self._generator().generate(
            [_article(1, 90, category=["AI最新动态"], tags="AI")], "2026-10-19"
        )

        self.assertEqual(outcome.status, ReportStatus.COMPLETED)
        self.assertEqual(
            [s["category"] for s in outcome.report["sections"]], [DEFAULT_CATEGORY]
        )

    def test_section_capped_at_five(self):
        articles = [_article(i, 70 + i) for i in range(7)]

        report = self._generator().build_report(articles, "2026-10-19")

        scores = [a["score"] for a in report["sections"][0]["articles"]]
        self.assertEqual(scores, [76, 75, 74, 73, 72])

    def test_generation_time_in_milliseconds(self):
        clock = MagicMock(side_effect=[10.0, 10.25])
        report = self._generator(clock=clock).build_report([_article(1, 90)], "2026-10-19")
        self.assertEqual(report["generationTime"], 250)

    def test_empty_input_is_skipped(self):
        outcome = self._generator().generate([], "2026-10-19")
        self.assertEqual(outcome.status, ReportStatus.SKIPPED)
        self.assertIsNone(outcome.report)
        self.assertEqual(self.store.load(), [])

    def test_second_run_returns_existing(self):
        generator = self._generator()
        first = generator.generate([_article(1, 90)], "2026-10-19")
        second = generator.generate([_article(2, 99)], "2026-10-19")

        self.assertEqual(second.status, ReportStatus.ALREADY_EXISTS)
        self.assertEqual(second.report["id"], first.report["id"])
        self.assertEqual(len(self.store.load()), 1)
        self.assertEqual(generator.generate_daily_report([], "2026-10-19")["id"], "daily-2026-10-19")


class TestReportWithLLM(ReportTestCase):
    def setUp(self):
        super().setUp()
        self.llm.configured = True

    def test_llm_content_is_used(self):
        self.llm.chat_json.return_value = {
            "highlights": ["Rust 工具链更新"],
            "trendAnalysis": "开发工具持续演进",
        }
        self.llm.chat.return_value = "今日亮点总结"

        report = self._generator(model="report-model").build_report(
            [_article(1, 90)], "2026-10-19"
        )

        section = report["sections"][0]
        self.assertEqual(section["highlights"], ["Rust 工具链更新"])
        self.assertEqual(section["trendAnalysis"], "开发工具持续演进")
        self.assertEqual(report["summary"], "今日亮点总结")
        self.assertEqual(self.llm.chat_json.call_args[1]["model"], "report-model")
        self.assertIn("Article 1", self.llm.chat_json.call_args[0][0][1]["content"])

    def test_llm_failure_falls_back(self):
        self.llm.chat_json.side_effect = LLMError("LLM API error: 500", 500)
        self.llm.chat.side_effect = LLMError("LLM API error: 500", 500)

        report = self._generator().build_report([_article(1, 90)], "2026-10-19")

        section = report["sections"][0]
        self.assertEqual(section["highlights"], ["Article 1"])
        self.assertEqual(section["trendAnalysis"], "今日编程技术领域有1篇优质文章值得关注。")
        self.assertEqual(
            report["summary"], "今日技术资讯精选，涵盖1个重要领域，共收录1篇优质文章。"
        )


if __name__ == "__main__":
    unittest.main()
