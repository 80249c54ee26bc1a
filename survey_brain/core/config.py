"""Configuration management for Survey Brain."""

from functools import lru_cache

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load environment variables from .env file (only if accessible)
try:
    load_dotenv()
except (PermissionError, OSError):
    # In sandboxed environments, .env might not be accessible
    pass


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

    # Environment
    SURVEY_BRAIN_ENV: str = Field(default="dev", description="Environment: dev, test, prod")
    LOG_LEVEL: str | None = Field(
        default=None, description="Log level override (DEBUG, INFO, ...); defaults from the environment"
    )

    # OpenAI configuration (primary provider)
    OPENAI_API_KEY: str | None = Field(default=None, description="OpenAI API key")
    OPENAI_MODEL: str = Field(default="gpt-4.1", description="Model for depot notes")

    # Anthropic configuration (secondary provider)
    ANTHROPIC_API_KEY: str | None = Field(default=None, description="Anthropic API key")
    ANTHROPIC_MODEL: str = Field(
        default="claude-sonnet-4-5-20250929", description="Fallback model for depot notes"
    )
    ANTHROPIC_MAX_TOKENS: int = Field(default=4000, description="Max output tokens for Anthropic")

    # Provider chain
    PROVIDER_ORDER: str = Field(
        default="openai,anthropic", description="Comma-separated provider priority order"
    )
    NOTES_TEMPERATURE: float = Field(default=0.2, description="Temperature for notes generation")
    PROVIDER_MAX_RETRIES: int = Field(
        default=0, description="Retries per provider on transient errors (0 = no retry layer)"
    )
    PROVIDER_RETRY_DELAY: float = Field(
        default=1.0, description="Initial backoff delay in seconds for provider retries"
    )
    PROVIDER_TIMEOUT_SECONDS: float | None = Field(
        default=None, description="Optional HTTP timeout passed to provider SDK clients"
    )

    # Section schema
    SECTION_SCHEMA_PATH: str | None = Field(
        default=None, description="Optional JSON file overriding the built-in section schema"
    )

    # Scoring
    SCORING_EXPERT_BONUS: bool = Field(
        default=True, description="Include the expert-preference rule (scores clamp to 0-150)"
    )

    @property
    def provider_order(self) -> list[str]:
        """Provider names in priority order, lowercased."""
        return [name.strip().lower() for name in self.PROVIDER_ORDER.split(",") if name.strip()]


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Returns:
        Settings instance
    """
    return Settings()
