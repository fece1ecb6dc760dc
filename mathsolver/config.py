"""
Configuration management using pydantic-settings.
Reads from .env file and environment variables.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration"""

    # AI / LLM Configuration
    # Without a Groq key (and without the OpenAI-compatible endpoint) the
    # solver reports itself as unavailable.
    groq_api_key: str | None = None
    llm_model: str = "llama-3.1-8b-instant"  # Primary: fast, high limits
    llm_model_fallback: str = "llama-3.3-70b-versatile"  # Fallback: more capable
    llm_temperature: float = 0.2
    llm_max_tokens: int = 1024
    llm_timeout_seconds: float = 30.0

    # OpenAI-compatible endpoint (optional, tried after Groq)
    openai_compat_api_key: str | None = None
    openai_compat_base_url: str = "https://inference.baseten.co/v1"
    openai_compat_model: str = "openai/gpt-oss-120b"
    openai_compat_timeout_seconds: float = 20.0

    # Server Configuration
    host: str = "0.0.0.0"
    port: int = 3000
    environment: str = "development"
    frontend_url: str | None = None
    log_level: str = "INFO"

    # CORS
    allowed_origins: str = ""  # comma-separated, added to the defaults
    cors_allow_all: bool = False

    # Request limits
    max_problem_length: int = 2000

    # Demo history
    history_retention_hours: int = 24
    history_cleanup_interval_minutes: int = 10
    history_max_entries_per_user: int = 100

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False
    )

    @property
    def extra_origins(self) -> list[str]:
        return [o.strip() for o in self.allowed_origins.split(",") if o.strip()]

    @property
    def is_development(self) -> bool:
        return self.environment.lower() == "development"


# Global settings instance
settings = Settings()
