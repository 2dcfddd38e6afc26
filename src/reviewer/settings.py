from typing import Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

__all__ = [
    "BaseEnvSettings",
    "AppSettings",
    "app_settings",
    "LlmSettings",
    "llm_settings",
    "StorySettings",
    "story_settings",
    "AgentCardSettings",
    "agent_card_settings",
]


class BaseEnvSettings(BaseSettings):
    """Base class for env settings."""
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )


class AppSettings(BaseEnvSettings):
    """Application configuration settings."""

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        alias="LOG_LEVEL",
        description="Logging level to use."
    )

    host: str = Field(
        default="localhost",
        alias="A2A_HOST",
        description="Host the A2A server binds to."
    )

    port: int = Field(
        default=10000,
        alias="A2A_PORT",
        description="Port the A2A server listens on."
    )

    public_url: Optional[str] = Field(
        default=None,
        alias="A2A_PUBLIC_URL",
        description="Externally reachable URL advertised in the agent card."
    )

    @property
    def url(self) -> str:
        """Application URL."""
        if self.public_url:
            return self.public_url.rstrip("/") + "/"
        return f"http://{self.host}:{self.port}/"


class LlmSettings(BaseEnvSettings):
    """
    Chat model connection settings.

    Any OpenAI compatible endpoint can be used by setting LLM_BASE_URL.
    """
    api_key: Optional[str] = Field(
        default=None,
        alias="OPENAI_API_KEY",
        description="API key for the chat model provider"
    )

    model: str = Field(
        default="gpt-4.1-mini",
        alias="LLM_MODEL",
        description="Chat model name"
    )

    base_url: Optional[str] = Field(
        default=None,
        alias="LLM_BASE_URL",
        description="Base URL of an OpenAI compatible API"
    )

    writer_temperature: float = Field(
        default=0.7,
        alias="WRITER_TEMPERATURE",
        ge=0.0,
        le=2.0
    )

    reviewer_temperature: float = Field(
        default=0.2,
        alias="REVIEWER_TEMPERATURE",
        ge=0.0,
        le=2.0
    )


class StorySettings(BaseEnvSettings):
    """Length limits for the write and review workflow."""

    story_word_count: int = Field(default=100, alias="STORY_WORD_COUNT")
    review_word_count: int = Field(default=100, alias="REVIEW_WORD_COUNT")

    @field_validator("story_word_count", "review_word_count")
    @classmethod
    def validate_positive(cls, value: int) -> int:
        if value <= 0:
            raise ValueError(f"Word count must be positive, got {value}")
        return value


class AgentCardSettings(BaseEnvSettings):
    """Values advertised in the A2A agent card."""

    name: str = Field(default="WriteAndReviewAgent", alias="AGENT_NAME")
    description: str = Field(
        default="Write a short story on any topic and have it reviewed by a book critic",
        alias="AGENT_DESCRIPTION"
    )
    version: str = Field(default="0.1.0", alias="AGENT_VERSION")


app_settings = AppSettings()
llm_settings = LlmSettings()
story_settings = StorySettings()
agent_card_settings = AgentCardSettings()
