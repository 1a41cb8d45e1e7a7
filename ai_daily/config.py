"""
Configuration loading for the AI Daily Report pipeline.

Defaults come from ``config.json`` next to this module; secrets and paths can
be overridden through environment variables.
"""

import json
import logging
import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

logger = logging.getLogger(__name__)


def load_config(config_filename: str = "config.json") -> Dict[str, Any]:
    """Loads configuration from a JSON file."""
    # Build absolute path relative to this module
    base_dir = os.path.dirname(os.path.abspath(__file__))
    config_path = os.path.join(base_dir, config_filename)

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            return json.load(f)
    except FileNotFoundError:
        logger.warning("Config file not found at %s. Using defaults.", config_path)
        return {}


def _parse_seconds(value: Any, name: str) -> Optional[float]:
    """Reads an optional duration; unset or unparseable means None."""
    if value is None or value == "":
        return None
    try:
        seconds = float(value)
    except (TypeError, ValueError):
        logger.warning("Invalid %s %r. Ignoring it.", name, value)
        return None
    if seconds < 0:
        logger.warning("Negative %s %r. Ignoring it.", name, value)
        return None
    return seconds


@dataclass
class Settings:
    """Resolved runtime settings."""

    api_key: Optional[str] = None
    llm_base_url: str = "https://openrouter.ai/api/v1"
    llm_model: str = "deepseek/deepseek-r1-0528:free"
    report_model: str = "google/gemini-2.5-flash-lite-preview-06-17"
    llm_timeout: float = 60

    opml_dir: str = "public"
    opml_sources: List[Dict[str, str]] = field(default_factory=list)
    data_dir: str = "data"

    fetch_timeout: float = 10
    max_items_per_feed: int = 10
    batch_size: int = 5
    batch_size_translation: int = 2
    batch_delay: float = 1.0
    batch_delay_translation: float = 3.0

    analysis_delay: float = 2.0
    max_analyze: int = 20
    featured_threshold: float = 85
    analysis_deadline_seconds: Optional[float] = None

    report_title_prefix: str = "WindFlash AI Daily"
    report_min_score: float = 70
    max_articles_per_section: int = 5
    auto_report_min_analyzed: int = 3
    report_lookback_days: int = 2

    rate_limit_mode: str = "fixed"

    @classmethod
    def from_config(
        cls, config: Mapping[str, Any], environ: Optional[Mapping[str, str]] = None
    ) -> "Settings":
        """Builds settings from a config dict, letting the environment win."""
        env = os.environ if environ is None else environ
        llm = config.get("llm", {})
        fetch = config.get("fetch", {})
        analysis = config.get("analysis", {})
        report = config.get("report", {})
        defaults = cls()

        raw_deadline = env.get("AI_DAILY_ANALYSIS_DEADLINE")
        if raw_deadline is None or raw_deadline == "":
            raw_deadline = analysis.get("deadline_seconds")
        deadline = _parse_seconds(raw_deadline, "analysis deadline")

        return cls(
            api_key=env.get("OPENROUTER_API_KEY") or None,
            llm_base_url=env.get(
                "OPENROUTER_BASE_URL", llm.get("base_url", defaults.llm_base_url)
            ),
            llm_model=llm.get("model", defaults.llm_model),
            report_model=env.get(
                "OPENROUTER_MODEL_ID", llm.get("report_model", defaults.report_model)
            ),
            llm_timeout=llm.get("timeout", defaults.llm_timeout),
            opml_dir=env.get("AI_DAILY_OPML_DIR", config.get("opml_dir", "public")),
            opml_sources=list(config.get("opml_sources", [])),
            data_dir=env.get("AI_DAILY_DATA_DIR", config.get("data_dir", "data")),
            fetch_timeout=fetch.get("timeout", defaults.fetch_timeout),
            max_items_per_feed=fetch.get(
                "max_items_per_feed", defaults.max_items_per_feed
            ),
            batch_size=fetch.get("batch_size", defaults.batch_size),
            batch_size_translation=fetch.get(
                "batch_size_translation", defaults.batch_size_translation
            ),
            batch_delay=fetch.get("batch_delay", defaults.batch_delay),
            batch_delay_translation=fetch.get(
                "batch_delay_translation", defaults.batch_delay_translation
            ),
            analysis_delay=analysis.get("delay", defaults.analysis_delay),
            max_analyze=analysis.get("max_articles", defaults.max_analyze),
            featured_threshold=analysis.get(
                "featured_threshold", defaults.featured_threshold
            ),
            analysis_deadline_seconds=deadline,
            report_title_prefix=report.get(
                "title_prefix", defaults.report_title_prefix
            ),
            report_min_score=report.get("min_score", defaults.report_min_score),
            max_articles_per_section=report.get(
                "max_articles_per_section", defaults.max_articles_per_section
            ),
            auto_report_min_analyzed=report.get(
                "auto_generate_min_analyzed", defaults.auto_report_min_analyzed
            ),
            report_lookback_days=report.get(
                "lookback_days", defaults.report_lookback_days
            ),
            rate_limit_mode=config.get("rate_limit", {}).get(
                "mode", defaults.rate_limit_mode
            ),
        )


def get_settings() -> Settings:
    """Loads the bundled config and applies environment overrides."""
    return Settings.from_config(load_config())
