"""Runtime configuration for the retrieval engine.

Values come from environment variables prefixed with ``AUDIT_CONTEXT_`` (or a
local ``.env`` file) and fall back to the defaults below.
"""

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .models.enums import TokenEstimator


class Settings(BaseSettings):
    """Engine settings with environment variable overrides."""

    model_config = SettingsConfigDict(
        env_prefix="AUDIT_CONTEXT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ============ EMBEDDING API ============
    gemini_api_key: str | None = None
    gemini_api_base: str = "https://generativelanguage.googleapis.com/v1beta"
    embedding_model: str = "text-embedding-004"
    embedding_dimensions: int = Field(default=768, gt=0)

    # ============ EMBEDDING CACHE + ADAPTER ============
    embedding_cache_ttl_seconds: float = Field(default=24 * 60 * 60, gt=0)
    embedding_cache_max_size: int | None = Field(default=None, gt=0)
    embedding_cache_sweep_seconds: float | None = Field(default=None, gt=0)
    embedding_timeout_seconds: float = Field(default=5.0, gt=0)
    embedding_max_retries: int = Field(default=1, ge=0, le=3)
    embedding_retry_backoff_seconds: float = Field(default=0.5, ge=0)
    embedding_requests_per_second: float = Field(default=10.0, ge=0)
    embedding_max_concurrency: int = Field(default=10, gt=0)

    # ============ RANKING POLICY ============
    keyword_stage_limit: int = Field(default=60, gt=0)
    semantic_stage_limit: int = Field(default=30, gt=0)
    final_limit: int = Field(default=20, gt=0)
    semantic_weight: float = Field(default=0.7, ge=0.0, le=1.0)
    keyword_weight: float = Field(default=0.3, ge=0.0, le=1.0)
    min_similarity: float = Field(default=0.3, ge=-1.0, le=1.0)
    hybrid_min_similarity: float = Field(default=-1.0, ge=-1.0, le=1.0)

    # ============ CONTEXT BUDGET ============
    max_context_candidates: int = Field(default=20, gt=0)
    max_context_tokens: int = Field(default=10000, gt=0)
    chars_per_token: int = Field(default=4, gt=0)
    token_estimator: TokenEstimator = TokenEstimator.CHARS

    @model_validator(mode="after")
    def _check_policy(self) -> "Settings":
        if abs(self.semantic_weight + self.keyword_weight - 1.0) > 1e-9:
            raise ValueError(
                f"semantic_weight + keyword_weight must equal 1.0, got "
                f"{self.semantic_weight} + {self.keyword_weight}"
            )
        if not self.final_limit <= self.semantic_stage_limit <= self.keyword_stage_limit:
            raise ValueError(
                "stage limits must narrow: final_limit <= semantic_stage_limit "
                "<= keyword_stage_limit"
            )
        return self


settings = Settings()
