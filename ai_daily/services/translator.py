"""
Translation service.

Translates non-Chinese feed text into Chinese through the LLM endpoint.
Language detection is a script-range heuristic: any CJK unified ideograph
means the text is already Chinese.
"""

import concurrent.futures
import logging
import re
from typing import Dict, List, Optional

from ai_daily.models import TranslationBundle, TranslationResult
from ai_daily.services.llm import LLMError, LLMService
from ai_daily.services.rate_limit import FixedDelayLimiter, RateLimiter

logger = logging.getLogger(__name__)

_CJK_RE = re.compile("[\u4e00-\u9fff]")

MIN_TRANSLATABLE_LENGTH = 10
MAX_CONTENT_CHARS = 2000

_LANGUAGE_NAMES = {"zh": "中文", "en": "英文"}


def detect_language(text: str) -> str:
    """Returns "zh" if the text contains any Chinese character, else "en"."""
    return "zh" if _CJK_RE.search(text or "") else "en"


def needs_translation(text: str, target_language: str) -> bool:
    """Checks if text needs translation."""
    return detect_language(text) != target_language


class Translator:
    """Service for translating article text with the LLM."""

    _SYSTEM_PROMPT = (
        "你是一个专业的翻译专家，擅长技术文档和新闻文章的翻译，"
        "能够准确传达原文的意思和语调。"
    )

    _PROMPT = """
请将以下文本翻译成{language}。

要求：
1. 保持原文的意思和语调
2. 使用自然流畅的表达
3. 对于技术术语，使用常见的中文表达或保留英文原词
4. 保持原文的格式和段落结构
5. 如果是标题，请保持标题的简洁性

原文：
{text}

请直接返回翻译结果，不要包含任何解释或说明。
"""

    def __init__(self, llm: LLMService, limiter: Optional[RateLimiter] = None):
        self.llm = llm
        self.limiter = limiter or FixedDelayLimiter(2.0)

    def translate_text(
        self, text: str, to: str, source: str = "auto"
    ) -> Optional[TranslationResult]:
        """Translates one piece of text. Returns None on any failure."""
        # Too short to translate reliably or to be worth a request
        if len(text) < MIN_TRANSLATABLE_LENGTH:
            return {
                "translatedText": text,
                "originalText": text,
                "detectedLanguage": "unknown" if source == "auto" else source,
            }

        prompt = self._PROMPT.format(
            language=_LANGUAGE_NAMES.get(to, to), text=text
        )
        try:
            translated = self.llm.chat(
                [
                    {"role": "system", "content": self._SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
                max_tokens=1000,
                temperature=0.3,
            )
        except LLMError as e:
            logger.error("Error translating text: %s", e)
            return None
        except Exception as e:  # pylint: disable=broad-exception-caught
            logger.error("Unexpected translation error: %s", e)
            return None

        return {
            "translatedText": translated.strip(),
            "originalText": text,
            "detectedLanguage": detect_language(text) if source == "auto" else source,
        }

    def translate_batch(
        self, texts: List[str], to: str, source: str = "auto"
    ) -> List[Optional[TranslationResult]]:
        """Translates texts one at a time, paced by the limiter."""
        logger.info("Translating %d texts...", len(texts))
        self.limiter.reset()
        results: List[Optional[TranslationResult]] = []
        for i, text in enumerate(texts):
            self.limiter.acquire()
            result = self.translate_text(text, to=to, source=source)
            results.append(result)
            mark = "✓" if result else "✗"
            logger.info("%s Translation [%d/%d]: %s", mark, i + 1, len(texts), text[:50])

        logger.info(
            "Batch translation done: %d/%d succeeded.",
            sum(1 for r in results if r is not None),
            len(texts),
        )
        return results

    def translate_article_to_chinese(
        self, article: Dict[str, str]
    ) -> Optional[TranslationBundle]:
        """
        Translates an article's title, content and optional summary to Chinese.

        The fields are translated concurrently. If any of the translations
        fails the whole bundle is discarded and None is returned.
        """
        title = article.get("title", "")
        content = article.get("content", "")
        summary = article.get("summary")

        fields: Dict[str, str] = {"title": title, "content": content}
        if summary:
            fields["summary"] = summary
        pending = {name: needs_translation(text, "zh") for name, text in fields.items()}

        if not any(pending.values()):
            bundle: TranslationBundle = {
                "title": title,
                "content": content,
                "isTranslated": False,
            }
            if summary:
                bundle["summary"] = summary
            return bundle

        translated: Dict[str, str] = dict(fields)
        try:
            with concurrent.futures.ThreadPoolExecutor(max_workers=3) as executor:
                futures = {}
                for name, text in fields.items():
                    if not pending[name]:
                        continue
                    if name == "content":
                        text = text[:MAX_CONTENT_CHARS]
                    futures[name] = executor.submit(self.translate_text, text, "zh")

                results = {name: future.result() for name, future in futures.items()}
        except Exception as e:  # pylint: disable=broad-exception-caught
            logger.error("Error translating article: %s", e)
            return None

        if any(result is None for result in results.values()):
            logger.error("Some translations failed for '%s'", title[:50])
            return None

        for name, result in results.items():
            translated[name] = result["translatedText"] or fields[name]

        bundle = {
            "title": translated["title"],
            "content": translated["content"],
            "isTranslated": True,
        }
        if summary:
            bundle["summary"] = translated["summary"]
        return bundle
