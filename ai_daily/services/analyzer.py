"""
AI article analysis.

Scores, tags, summarizes and categorizes articles through the LLM. Articles
are analyzed one at a time with a pause between requests to stay inside the
API rate limits.
"""

import logging
from typing import Any, Dict, List, Optional

from ai_daily.models import (
    CATEGORIES,
    DEFAULT_CATEGORY,
    AnalysisRequest,
    AnalysisResult,
    Article,
    now_iso,
)
from ai_daily.services.llm import LLMError, LLMService
from ai_daily.services.rate_limit import FixedDelayLimiter, RateLimiter
from ai_daily.services.translator import detect_language

logger = logging.getLogger(__name__)

FEATURED_THRESHOLD = 85
MAX_CONTENT_CHARS = 3000


def clamp_score(value: Any) -> float:
    """Coerces a model-provided score into [0, 100]."""
    score = float(value)
    return min(100.0, max(0.0, score))


def _string_list(value: Any) -> List[str]:
    """Keeps a model-provided list of strings; anything else is empty."""
    if not isinstance(value, list):
        return []
    return [str(item) for item in value if isinstance(item, (str, int, float))]


def apply_analysis(
    article: Article,
    result: AnalysisResult,
    featured_threshold: float = FEATURED_THRESHOLD,
) -> Article:
    """Copies an analysis onto an article and decides whether it is featured."""
    article["summary"] = result["summary"]
    article["keyPoints"] = list(result.get("keyPoints", []))
    article["score"] = result["score"]
    article["tags"] = list(result.get("tags", []))
    article["category"] = result.get("category", DEFAULT_CATEGORY)
    article["isAnalyzed"] = True
    article["isFeatured"] = result["score"] >= featured_threshold
    article["updatedAt"] = now_iso()
    return article


class ArticleAnalyzer:
    """Service that asks the LLM to grade technical articles."""

    _SYSTEM_PROMPT = "你是一个专业的技术内容分析专家，擅长评估技术文章的质量和价值。"

    _PROMPT = """
请分析以下技术文章，并按照JSON格式返回分析结果：

文章标题：{title}
文章内容：{content}...

请提供以下分析结果（请用JSON格式回复）：
{{
  "summary": "一句话总结文章核心内容（50字以内）",
  "keyPoints": ["关键要点1", "关键要点2", "关键要点3"],
  "score": 85,
  "tags": ["标签1", "标签2", "标签3"],
  "category": "分类（{categories}之一）",
  "language": "zh或en"
}}

评分标准（0-100分）：
- 技术深度和准确性 (30%)
- 实用性和可操作性 (25%)
- 内容新颖性和前瞻性 (20%)
- 写作质量和清晰度 (15%)
- 影响力和重要性 (10%)

请确保返回纯JSON格式，不要包含其他文字说明。
"""

    def __init__(self, llm: LLMService, limiter: Optional[RateLimiter] = None):
        self.llm = llm
        self.limiter = limiter or FixedDelayLimiter(2.0)

    def _get_prompt(self, request: AnalysisRequest) -> str:
        return self._PROMPT.format(
            title=request["title"],
            content=request["content"][:MAX_CONTENT_CHARS],
            categories="/".join(CATEGORIES),
        )

    def _validate(self, request: AnalysisRequest, data: Any) -> Optional[AnalysisResult]:
        if not isinstance(data, dict):
            logger.error("Analysis for '%s' is not an object", request["title"][:50])
            return None
        if not data.get("summary") or data.get("score") is None:
            logger.error("Invalid analysis result format for '%s'", request["title"][:50])
            return None
        try:
            score = clamp_score(data["score"])
        except (TypeError, ValueError):
            logger.error("Non-numeric score %r for '%s'", data["score"], request["title"][:50])
            return None

        language = data.get("language")
        if language not in ("zh", "en"):
            language = detect_language(request["title"])

        category = data.get("category")
        if not isinstance(category, str) or category not in CATEGORIES:
            if category:
                logger.warning(
                    "Unknown category %r for '%s'. Using %s.",
                    category,
                    request["title"][:50],
                    DEFAULT_CATEGORY,
                )
            category = DEFAULT_CATEGORY

        result: AnalysisResult = {
            "summary": str(data["summary"]),
            "keyPoints": _string_list(data.get("keyPoints")),
            "score": score,
            "tags": _string_list(data.get("tags")),
            "category": category,
            "language": language,
        }
        highlights = _string_list(data.get("highlights"))
        if highlights:
            result["highlights"] = highlights
        return result

    def analyze_article(self, request: AnalysisRequest) -> Optional[AnalysisResult]:
        """Analyzes one article. Returns None when the request or reply is unusable."""
        if not self.llm.configured:
            logger.error("LLM API key not found. Skipping analysis.")
            return None

        try:
            data = self.llm.chat_json(
                [
                    {"role": "system", "content": self._SYSTEM_PROMPT},
                    {"role": "user", "content": self._get_prompt(request)},
                ],
                max_tokens=500,
                temperature=0.3,
            )
        except LLMError as e:
            logger.error("Error analyzing article '%s': %s", request["title"][:50], e)
            return None
        except Exception as e:  # pylint: disable=broad-exception-caught
            logger.error("Unexpected analysis error for '%s': %s", request["title"][:50], e)
            return None

        return self._validate(request, data)

    def analyze_articles_batch(
        self, requests: List[AnalysisRequest]
    ) -> List[Optional[AnalysisResult]]:
        """
        Analyzes articles strictly one after another.

        The result list lines up with the input: position i holds the analysis
        of requests[i], or None if that article failed.
        """
        logger.info("Starting AI analysis of %d articles...", len(requests))
        self.limiter.reset()
        results: List[Optional[AnalysisResult]] = []

        for i, request in enumerate(requests):
            self.limiter.acquire()
            try:
                result = self.analyze_article(request)
            except Exception as e:  # pylint: disable=broad-exception-caught
                logger.error("Error analyzing article %d: %s", i, e)
                result = None
            results.append(result)

            mark = "✓" if result else "✗"
            logger.info(
                "%s Analysis [%d/%d]: %s", mark, i + 1, len(requests), request["title"][:50]
            )

        logger.info(
            "AI analysis complete: %d/%d succeeded.",
            sum(1 for r in results if r is not None),
            len(requests),
        )
        return results


def to_analysis_request(article: Article) -> AnalysisRequest:
    content = article.get("content") or article.get("description", "")
    return {"title": article["title"], "content": content, "url": article["url"]}


def analysis_stats(articles: List[Article]) -> Dict[str, int]:
    return {
        "analyzed": sum(1 for a in articles if a.get("isAnalyzed")),
        "featured": sum(1 for a in articles if a.get("isFeatured")),
        "translated": sum(1 for a in articles if a.get("isTranslated")),
    }
