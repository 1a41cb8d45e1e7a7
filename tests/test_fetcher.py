"""Unit tests for batched feed fetching."""

import unittest
from unittest.mock import MagicMock

from ai_daily.services.fetcher import FeedFetcher


def _feeds(count):
    return [
        {"id": f"f{i}", "title": f"Feed {i}", "xmlUrl": f"https://f{i}/rss", "category": "articles"}
        for i in range(count)
    ]


def _articles_for(feed, translation_enabled=False):
    return [
        {"title": f"{feed['id']}-a", "url": f"{feed['xmlUrl']}/a", "isTranslated": translation_enabled}
    ]


class TestFeedFetcher(unittest.TestCase):
    def test_batches_are_paced_and_ordered(self):
        parser = MagicMock()
        parser.fetch.side_effect = _articles_for
        sleeps = []
        fetcher = FeedFetcher(parser, batch_size=2, batch_delay=1.5, sleep=sleeps.append)

        articles = fetcher.fetch_all_feeds(_feeds(5))

        self.assertEqual([a["title"] for a in articles], [f"f{i}-a" for i in range(5)])
        self.assertEqual(sleeps, [1.5, 1.5])
        self.assertEqual(parser.fetch.call_count, 5)

    def test_failed_feed_does_not_abort_run(self):
        def fetch(feed, translation_enabled=False):
            if feed["id"] == "f1":
                raise RuntimeError("parser blew up")
            return _articles_for(feed)

        parser = MagicMock()
        parser.fetch.side_effect = fetch
        fetcher = FeedFetcher(parser, sleep=lambda _: None)

        articles = fetcher.fetch_all_feeds(_feeds(3))

        self.assertEqual([a["title"] for a in articles], ["f0-a", "f2-a"])

    def test_translation_uses_smaller_slower_batches(self):
        parser = MagicMock()
        parser.fetch.side_effect = _articles_for
        sleeps = []
        fetcher = FeedFetcher(
            parser,
            batch_size=5,
            batch_size_translation=2,
            batch_delay=1.0,
            batch_delay_translation=3.0,
            sleep=sleeps.append,
        )

        articles = fetcher.fetch_all_feeds(_feeds(4), translation_enabled=True)

        self.assertEqual(sleeps, [3.0])
        self.assertTrue(all(a["isTranslated"] for a in articles))
        parser.fetch.assert_any_call(_feeds(4)[0], True)

    def test_no_feeds(self):
        parser = MagicMock()
        sleeps = []
        fetcher = FeedFetcher(parser, sleep=sleeps.append)

        self.assertEqual(fetcher.fetch_all_feeds([]), [])
        self.assertEqual(sleeps, [])
        parser.fetch.assert_not_called()


if __name__ == "__main__":
    unittest.main()
