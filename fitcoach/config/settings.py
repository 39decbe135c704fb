"""Application settings loaded from the environment."""

from typing import Optional

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Coach configuration.

    Values come from ``FITCOACH_*`` environment variables or a ``.env`` file.
    """

    model_config = SettingsConfigDict(
        env_prefix="FITCOACH_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Completion service
    openai_api_key: Optional[SecretStr] = Field(
        None, description="API key for the OpenAI-compatible completion endpoint"
    )
    llm_base_url: Optional[str] = Field(
        None, description="Base URL override (DeepSeek, xAI, local gateway, ...)"
    )
    model_coach: str = "gpt-4o-mini"
    model_classifier: str = "gpt-4o-mini"
    temperature_classification: float = 0.2
    temperature_coaching: float = 0.7
    temperature_creative: float = 0.8

    # Persistence
    database_url: str = "sqlite:///data/fitcoach.db"

    # Cache / session state
    redis_url: Optional[str] = Field(
        None, description="Redis URL; in-process cache is used when unset"
    )
    session_ttl_seconds: int = 7200

    # Knowledge search
    search_url: Optional[str] = None
    search_token: Optional[SecretStr] = None

    # Retrieval policy
    rag_cache_ttl_seconds: int = 600
    rag_partition_top_k: int = 5
    rag_max_documents: int = 3
    rag_snippet_chars: int = 500

    # Classification policy
    classifier_confidence_threshold: float = 0.75

    # Timeouts
    classifier_timeout_seconds: float = 5.0
    retrieval_timeout_seconds: float = 3.0
    completion_timeout_seconds: float = 30.0

    # Logging
    log_level: str = "INFO"
    log_json: bool = False

    @field_validator("classifier_confidence_threshold")
    @classmethod
    def _check_threshold(cls, value: float) -> float:
        if not 0.0 <= value <= 1.0:
            raise ValueError("classifier_confidence_threshold must be within [0, 1]")
        return value

    @field_validator("log_level")
    @classmethod
    def _normalize_level(cls, value: str) -> str:
        return value.upper()

    @property
    def openai_api_key_str(self) -> Optional[str]:
        """Plain API key or None."""
        return self.openai_api_key.get_secret_value() if self.openai_api_key else None

    @property
    def search_token_str(self) -> Optional[str]:
        """Plain search token or None."""
        return self.search_token.get_secret_value() if self.search_token else None
