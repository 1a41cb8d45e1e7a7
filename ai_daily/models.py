"""
Data models for the AI Daily Report pipeline.

Records are plain dictionaries so they can be written to the JSON store as-is.
Fields that only exist after analysis or translation live in the
``total=False`` part of each type; readers must tolerate their absence.
"""

import base64
from datetime import datetime, timezone
from typing import Dict, List, Optional, TypedDict

DEFAULT_CATEGORY = "行业洞察"

CATEGORIES: List[str] = [
    "AI最新动态",
    "Vibe Coding",
    "AI自媒体",
    "编程技术",
    "产品设计",
    "商业科技",
    "创业投资",
    "开发工具",
    "行业洞察",
    "技术教程",
]

CATEGORY_TITLES: Dict[str, str] = {
    "AI最新动态": "🤖 AI最新动态",
    "Vibe Coding": "💻 Vibe Coding",
    "AI自媒体": "📱 AI自媒体",
    "编程技术": "🛠️ 编程技术",
    "产品设计": "🎨 产品设计",
    "商业科技": "💼 商业科技",
    "创业投资": "🚀 创业投资",
    "开发工具": "🔧 开发工具",
    "行业洞察": "📊 行业洞察",
    "技术教程": "📚 技术教程",
}

CATEGORY_DESCRIPTIONS: Dict[str, str] = {
    "AI最新动态": "最新的AI模型发布、研究突破和行业动向",
    "Vibe Coding": "有趣的编程文化、开发者生活方式和酷炫技术内容",
    "AI自媒体": "AI在内容创作、社交媒体和数字营销领域的应用",
    "编程技术": "编程技巧、框架应用和语言特性深度解析",
    "产品设计": "产品设计理念、用户体验和设计系统最佳实践",
    "商业科技": "企业技术解决方案和商业创新模式",
    "创业投资": "创业公司动态、投资趋势和商业机会分析",
    "开发工具": "提升开发效率的工具、IDE和生产力解决方案",
    "行业洞察": "科技行业趋势分析、市场动态和前沿观点",
    "技术教程": "实用的技术教程、操作指南和学习资源",
}

FEED_CATEGORIES = ("articles", "podcasts", "twitter")


def encode_id(url: str) -> str:
    """Derives a reversible id from a URL (base64 of the UTF-8 bytes)."""
    return base64.b64encode(url.encode("utf-8")).decode("ascii")


def decode_id(record_id: str) -> str:
    """Recovers the URL an id was derived from."""
    return base64.b64decode(record_id.encode("ascii")).decode("utf-8")


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parses a stored ISO timestamp; naive values are taken as UTC."""
    if not value:
        return None
    try:
        dt = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


class _FeedBase(TypedDict):
    id: str
    title: str
    xmlUrl: str
    category: str
    isActive: bool


class Feed(_FeedBase, total=False):
    """A subscribed RSS/Atom source."""

    lastUpdated: str


class _ArticleBase(TypedDict):
    id: str
    title: str
    url: str
    description: str
    publishedAt: str
    feedId: str
    feedTitle: str
    language: str
    isAnalyzed: bool
    isFeatured: bool
    createdAt: str
    updatedAt: str


class Article(_ArticleBase, total=False):
    """One ingested feed item, optionally enriched by translation and analysis."""

    content: str
    author: str
    # Translation
    isTranslated: bool
    originalTitle: str
    originalDescription: str
    # Analysis
    summary: str
    keyPoints: List[str]
    score: float
    tags: List[str]
    category: str


class _SectionBase(TypedDict):
    category: str
    title: str
    description: str
    articles: List[Article]
    highlights: List[str]


class DailyReportSection(_SectionBase, total=False):
    trendAnalysis: str


class _ReportBase(TypedDict):
    id: str
    date: str
    title: str
    summary: str
    sections: List[DailyReportSection]
    totalArticles: int
    createdAt: str


class DailyReport(_ReportBase, total=False):
    """Aggregate of a day's qualifying articles, one per date."""

    analyzedCount: int
    translatedCount: int
    generationTime: int  # milliseconds


class AnalysisRequest(TypedDict):
    title: str
    content: str
    url: str


class _AnalysisResultBase(TypedDict):
    summary: str
    keyPoints: List[str]
    score: float
    tags: List[str]
    category: str
    language: str


class AnalysisResult(_AnalysisResultBase, total=False):
    highlights: List[str]


class TranslationResult(TypedDict):
    translatedText: str
    originalText: str
    detectedLanguage: Optional[str]


class _BundleBase(TypedDict):
    title: str
    content: str
    isTranslated: bool


class TranslationBundle(_BundleBase, total=False):
    summary: str
