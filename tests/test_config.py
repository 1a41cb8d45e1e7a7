"""Unit tests for configuration loading."""

import unittest

from ai_daily.config import Settings, get_settings, load_config


class TestConfig(unittest.TestCase):
    def test_bundled_config(self):
        config = load_config()
        self.assertIn("llm", config)
        self.assertEqual(len(config["opml_sources"]), 3)

    def test_missing_config_is_empty(self):
        with self.assertLogs("ai_daily.config", level="WARNING"):
            self.assertEqual(load_config("does-not-exist.json"), {})

    def test_defaults_without_config(self):
        settings = Settings.from_config({}, environ={})
        self.assertIsNone(settings.api_key)
        self.assertEqual(settings.featured_threshold, 85)
        self.assertEqual(settings.report_min_score, 70)
        self.assertEqual(settings.max_items_per_feed, 10)
        self.assertIsNone(settings.analysis_deadline_seconds)
        self.assertEqual(settings.rate_limit_mode, "fixed")

    def test_config_values(self):
        settings = Settings.from_config(
            {
                "data_dir": "/var/lib/ai-daily",
                "fetch": {"batch_size": 8},
                "analysis": {"max_articles": 5, "deadline_seconds": 40},
                "rate_limit": {"mode": "token_bucket"},
            },
            environ={},
        )
        self.assertEqual(settings.data_dir, "/var/lib/ai-daily")
        self.assertEqual(settings.batch_size, 8)
        self.assertEqual(settings.max_analyze, 5)
        self.assertEqual(settings.analysis_deadline_seconds, 40.0)
        self.assertEqual(settings.rate_limit_mode, "token_bucket")

    def test_environment_wins(self):
        settings = Settings.from_config(
            {"data_dir": "data", "llm": {"report_model": "a"}},
            environ={
                "OPENROUTER_API_KEY": "sk-test",
                "OPENROUTER_MODEL_ID": "b",
                "AI_DAILY_DATA_DIR": "/tmp/ai-daily",
                "AI_DAILY_ANALYSIS_DEADLINE": "50",
            },
        )
        self.assertEqual(settings.api_key, "sk-test")
        self.assertEqual(settings.report_model, "b")
        self.assertEqual(settings.data_dir, "/tmp/ai-daily")
        self.assertEqual(settings.analysis_deadline_seconds, 50.0)

    def test_zero_deadline_is_kept(self):
        from_file = Settings.from_config({"analysis": {"deadline_seconds": 0}}, environ={})
        from_env = Settings.from_config({}, environ={"AI_DAILY_ANALYSIS_DEADLINE": "0"})
        self.assertEqual(from_file.analysis_deadline_seconds, 0.0)
        self.assertEqual(from_env.analysis_deadline_seconds, 0.0)

    def test_bad_deadline_is_ignored(self):
        with self.assertLogs("ai_daily.config", level="WARNING"):
            settings = Settings.from_config(
                {"analysis": {"deadline_seconds": 30}},
                environ={"AI_DAILY_ANALYSIS_DEADLINE": "soon"},
            )
        self.assertIsNone(settings.analysis_deadline_seconds)

    def test_get_settings(self):
        self.assertIsInstance(get_settings(), Settings)


if __name__ == "__main__":
    unittest.main()
