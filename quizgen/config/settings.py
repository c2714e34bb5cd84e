"""Configuration management for the question generation service."""

from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application Settings
    env: str = "development"
    log_level: str = "INFO"
    # Also write logs to this file when set
    log_file: Optional[str] = None
    log_json: bool = False

    # Completion backend: "ollama", "openai", or "auto" (ollama first, openai fallback)
    llm_backend: str = "ollama"
    ollama_base_url: str = "http://localhost:11434"
    ollama_model: str = "llama3.2:3b"
    openai_api_key: Optional[str] = None
    openai_model: str = "gpt-4o-mini"
    openai_base_url: Optional[str] = None
    request_timeout_seconds: float = 120.0
    health_check_timeout_seconds: float = 10.0

    # Generation Settings
    max_generation_attempts: int = 3
    retry_backoff_seconds: float = 1.0
    content_window_chars: int = 1500
    generation_config_path: Optional[str] = None

    # Observability
    sentry_dsn: Optional[str] = None
    sentry_traces_sample_rate: float = 0.0
    service_name: str = "quizgen"


# Global settings instance
settings = Settings()
