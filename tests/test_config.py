"""Tests for engine settings."""

import pytest
from pydantic import ValidationError

from audit_context.config import Settings
from audit_context.models.enums import TokenEstimator


class TestSettings:
    """Test suite for Settings defaults and validation."""

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("AUDIT_CONTEXT_GEMINI_API_KEY", raising=False)
        settings = Settings(_env_file=None)
        assert settings.gemini_api_key is None
        assert settings.embedding_dimensions == 768
        assert settings.embedding_cache_ttl_seconds == 86400
        assert settings.embedding_timeout_seconds == 5.0
        assert settings.keyword_stage_limit == 60
        assert settings.semantic_stage_limit == 30
        assert settings.final_limit == 20
        assert settings.semantic_weight == 0.7
        assert settings.keyword_weight == 0.3
        assert settings.min_similarity == 0.3
        assert settings.max_context_tokens == 10000
        assert settings.token_estimator == TokenEstimator.CHARS
        assert settings.embedding_cache_sweep_seconds is None

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("AUDIT_CONTEXT_FINAL_LIMIT", "10")
        monkeypatch.setenv("AUDIT_CONTEXT_TOKEN_ESTIMATOR", "tiktoken")
        settings = Settings(_env_file=None)
        assert settings.final_limit == 10
        assert settings.token_estimator == TokenEstimator.TIKTOKEN

    def test_weights_must_sum_to_one(self):
        with pytest.raises(ValidationError, match="must equal 1.0"):
            Settings(_env_file=None, semantic_weight=0.6, keyword_weight=0.3)

    def test_stage_limits_must_narrow(self):
        with pytest.raises(ValidationError, match="stage limits must narrow"):
            Settings(_env_file=None, semantic_stage_limit=80)

    def test_rejects_non_positive_limits(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, final_limit=0)
