import os
import unittest
from unittest.mock import patch, MagicMock

import httpx
import openai

from property_search.embeddings import EmbeddingClient, classify_openai_error
from property_search.exceptions import MissingCredentialError, ProviderAuthError, ProviderError, RateLimitError

_REQUEST = httpx.Request("POST", "https://api.openai.com/v1/embeddings")


def _rate_limited():
    return openai.RateLimitError("Rate limit reached", response=httpx.Response(429, request=_REQUEST), body=None)


def _unauthorized():
    return openai.AuthenticationError("Incorrect API key provided", response=httpx.Response(401, request=_REQUEST), body=None)


def _embedding_response(vector):
    item = MagicMock()
    item.embedding = vector
    resp = MagicMock()
    resp.data = [item]
    return resp


class TestEmbeddingClient(unittest.TestCase):

    def setUp(self):
        self.oai = MagicMock()
        self.sleep = MagicMock()
        self.client = EmbeddingClient(model="test-model", client=self.oai, sleep=self.sleep)

    def test_embed(self):
        self.oai.embeddings.create.return_value = _embedding_response([0.1, 0.2, 0.3])
        self.assertEqual(self.client.embed("flat"), [0.1, 0.2, 0.3])
        self.oai.embeddings.create.assert_called_once_with(model="test-model", input=["flat"])

    def test_retries_rate_limit_with_backoff(self):
        self.oai.embeddings.create.side_effect = [_rate_limited(), _rate_limited(), _embedding_response([1.0])]
        self.assertEqual(self.client.embed("flat"), [1.0])
        self.assertEqual([c.args[0] for c in self.sleep.call_args_list], [2.0, 4.0])

    def test_gives_up_after_max_attempts(self):
        self.oai.embeddings.create.side_effect = [_rate_limited() for _ in range(3)]
        with self.assertRaises(RateLimitError):
            self.client.embed("flat")
        self.assertEqual(self.oai.embeddings.create.call_count, 3)
        self.assertEqual(self.sleep.call_count, 2)

    def test_tpm_rate_limit_message_is_retried(self):
        message = ("Rate limit reached for text-embedding-ada-002 in organization org-x on tokens per min (TPM): "
                   "Limit 1000000, Used 999403, Requested 1200.")
        limited = openai.RateLimitError(message, response=httpx.Response(429, request=_REQUEST), body=None)
        self.oai.embeddings.create.side_effect = [limited, _embedding_response([1.0])]
        self.assertEqual(self.client.embed("flat"), [1.0])
        self.sleep.assert_called_once_with(2.0)

    def test_malformed_response(self):
        resp = MagicMock()
        resp.data = []
        self.oai.embeddings.create.return_value = resp
        with self.assertRaises(ProviderError) as ctx:
            self.client.embed("flat")
        self.assertNotIsInstance(ctx.exception, ProviderAuthError)
        self.sleep.assert_not_called()

    def test_auth_error_not_retried(self):
        self.oai.embeddings.create.side_effect = _unauthorized()
        with self.assertRaises(ProviderAuthError) as ctx:
            self.client.embed("flat")
        self.assertEqual(ctx.exception.key, "OPENAI_API_KEY")
        self.sleep.assert_not_called()

    def test_backoff_capped(self):
        client = EmbeddingClient(max_backoff=10.0)
        self.assertEqual(client.backoff(1), 2.0)
        self.assertEqual(client.backoff(3), 8.0)
        self.assertEqual(client.backoff(6), 10.0)

    @patch.dict(os.environ, {}, clear=True)
    def test_missing_key(self):
        with self.assertRaises(MissingCredentialError) as ctx:
            EmbeddingClient().embed("flat")
        self.assertEqual(ctx.exception.key, "OPENAI_API_KEY")


class TestClassify(unittest.TestCase):

    def test_connection_error(self):
        err = classify_openai_error(openai.APIConnectionError(request=_REQUEST))
        self.assertIs(type(err), ProviderError)

    def test_message_matching(self):
        self.assertIsInstance(classify_openai_error(Exception("Error 401: invalid api key")), ProviderAuthError)
        self.assertIsInstance(classify_openai_error(Exception("429 Too Many Requests")), RateLimitError)

    def test_status_wins_over_message(self):
        message = "Limit 1000000, Used 999403, Requested 1200."
        err = classify_openai_error(
            openai.RateLimitError(message, response=httpx.Response(429, request=_REQUEST), body=None))
        self.assertIsInstance(err, RateLimitError)
        err = classify_openai_error(
            openai.InternalServerError("request 401abc failed", response=httpx.Response(500, request=_REQUEST), body=None))
        self.assertIs(type(err), ProviderError)

    def test_digits_inside_numbers_are_not_status_codes(self):
        self.assertIs(type(classify_openai_error(Exception("Used 999403 of 1000000 tokens"))), ProviderError)


if __name__ == '__main__':
    unittest.main()
