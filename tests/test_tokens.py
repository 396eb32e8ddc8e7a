"""Tests for token counting utilities."""

from audit_context.engine.core import tokens
from audit_context.engine.core.tokens import estimate_tokens, get_token_counter
from audit_context.models import TokenEstimator


class FakeEncoder:
    def encode(self, text):
        return text.split()


class TestEstimateTokens:
    def test_ceil(self):
        assert estimate_tokens("") == 0
        assert estimate_tokens("abcd") == 1
        assert estimate_tokens("abcde") == 2
        assert estimate_tokens("x" * 48_000) == 12_000

    def test_custom_ratio(self):
        assert estimate_tokens("abcdef", chars_per_token=3) == 2


class TestTokenCounter:
    def test_chars(self):
        counter = get_token_counter(TokenEstimator.CHARS, chars_per_token=2)
        assert counter("abcde") == 3

    def test_tiktoken(self, monkeypatch):
        monkeypatch.setattr(tokens, "get_encoder", lambda: FakeEncoder())
        counter = get_token_counter(TokenEstimator.TIKTOKEN)
        assert counter("three word text") == 3
        assert counter("") == 0
