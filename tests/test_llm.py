"""Unit tests for the LLM client."""

import json
import unittest
from unittest.mock import MagicMock, patch

import requests

from ai_daily.services.llm import LLMError, LLMService, parse_json_response


def _response(status=200, body=None):
    resp = MagicMock()
    resp.status_code = status
    if isinstance(body, Exception):
        resp.json.side_effect = body
    else:
        resp.json.return_value = body
    return resp


def _completion(content):
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


class TestParseJsonResponse(unittest.TestCase):
    def test_plain_json(self):
        self.assertEqual(parse_json_response('{"score": 90}'), {"score": 90})

    def test_markdown_fence(self):
        text = '```json\n{"summary": "ok", "score": 80}\n```'
        self.assertEqual(parse_json_response(text), {"summary": "ok", "score": 80})

    def test_embedded_in_prose(self):
        text = 'Here is the analysis:\n{"summary": "ok"}\nThanks!'
        self.assertEqual(parse_json_response(text), {"summary": "ok"})

    def test_garbage_raises(self):
        with self.assertRaises(json.JSONDecodeError):
            parse_json_response("no json here")


class TestLLMService(unittest.TestCase):
    def setUp(self):
        self.llm = LLMService("key", base_url="https://llm.example.com/v1/", model="m")

    @patch("ai_daily.services.llm.requests.post")
    def test_chat_posts_completion_request(self, mock_post):
        mock_post.return_value = _response(body=_completion("  hello  "))

        text = self.llm.chat(
            [{"role": "user", "content": "hi"}], max_tokens=123, temperature=0.5
        )

        self.assertEqual(text, "hello")
        args, kwargs = mock_post.call_args
        self.assertEqual(args[0], "https://llm.example.com/v1/chat/completions")
        self.assertEqual(
            kwargs["json"],
            {
                "model": "m",
                "messages": [{"role": "user", "content": "hi"}],
                "max_tokens": 123,
                "temperature": 0.5,
            },
        )
        self.assertEqual(kwargs["headers"]["Authorization"], "Bearer key")

    @patch("ai_daily.services.llm.requests.post")
    def test_model_override(self, mock_post):
        mock_post.return_value = _response(body=_completion("ok"))
        self.llm.chat([{"role": "user", "content": "hi"}], model="other")
        self.assertEqual(mock_post.call_args[1]["json"]["model"], "other")

    @patch("ai_daily.services.llm.requests.post")
    def test_non_2xx_raises(self, mock_post):
        mock_post.return_value = _response(status=429, body={})
        with self.assertRaises(LLMError) as ctx:
            self.llm.chat([{"role": "user", "content": "hi"}])
        self.assertEqual(ctx.exception.status_code, 429)

    @patch("ai_daily.services.llm.requests.post")
    def test_missing_content_raises(self, mock_post):
        mock_post.return_value = _response(body={"choices": []})
        with self.assertRaises(LLMError):
            self.llm.chat([{"role": "user", "content": "hi"}])

        mock_post.return_value = _response(body=_completion(None))
        with self.assertRaises(LLMError):
            self.llm.chat([{"role": "user", "content": "hi"}])

    @patch("ai_daily.services.llm.requests.post")
    def test_transport_error_raises(self, mock_post):
        mock_post.side_effect = requests.Timeout("slow")
        with self.assertRaises(LLMError):
            self.llm.chat([{"role": "user", "content": "hi"}])

    @patch("ai_daily.services.llm.requests.post")
    def test_chat_json_parse_failure_raises(self, mock_post):
        mock_post.return_value = _response(body=_completion("not json"))
        with self.assertRaises(LLMError):
            self.llm.chat_json([{"role": "user", "content": "hi"}])

    @patch("ai_daily.services.llm.requests.post")
    def test_unconfigured_client_never_sends(self, mock_post):
        llm = LLMService(None)
        self.assertFalse(llm.configured)
        with self.assertRaises(LLMError):
            llm.chat([{"role": "user", "content": "hi"}])
        mock_post.assert_not_called()


if __name__ == "__main__":
    unittest.main()
