"""Application configuration using pydantic-settings."""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "Video Insight Pipeline"
    debug: bool = False
    log_preview_chars: int = Field(default=200, ge=0)

    # Database
    database_url: str = Field(default="data/videos.db")

    # YouTube Data API
    youtube_api_keys: str = Field(
        default="",
        description="Comma-separated API keys, rotated in order on quota exhaustion",
    )
    search_page_size: int = Field(default=50, ge=1, le=50)
    search_chunk_days: int = Field(default=14, ge=1)
    search_years_back: int = Field(default=5, ge=1)
    search_region_code: str = Field(default="US")
    search_language: str = Field(default="en")
    search_order: str = Field(default="relevance")

    # Transcripts
    transcript_languages: str = Field(default="en,fr,hi,de,es")

    # LLM settings
    llm_model: str = Field(default="deepseek-r1:14b")
    llm_max_tokens: int = Field(default=4096)
    llm_timeout_seconds: float = Field(default=300.0)

    ollama_base_url: str = Field(default="http://localhost:11434")
    ollama_username: str | None = Field(default=None)
    ollama_password: str | None = Field(default=None)

    openai_api_key: str | None = Field(default=None)
    groq_api_key: str | None = Field(default=None)

    azure_endpoint: str | None = Field(default=None)
    azure_api_key: str | None = Field(default=None)
    azure_deployment: str = Field(default="gpt-4")
    azure_api_version: str = Field(default="2025-01-01-preview")

    gemini_api_key: str | None = Field(default=None)
    gemini_model: str = Field(default="gemini-2.0-flash")

    # Prompt library
    prompt_library_path: str = Field(default="prompt_library.yaml")
    prompt_name: str = Field(default="disease_space")

    # Web scraping
    scrape_user_agent: str = Field(
        default=(
            "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
            "AppleWebKit/537.36 (KHTML, like Gecko) "
            "Chrome/120.0.0.0 Safari/537.36"
        )
    )
    scrape_timeout_seconds: float = Field(default=30.0)

    @property
    def database_path(self) -> Path:
        """Get the database path as a Path object."""
        return Path(self.database_url)

    @property
    def youtube_api_key_list(self) -> list[str]:
        """Ordered API key pool, blanks removed."""
        return [key.strip() for key in self.youtube_api_keys.split(",") if key.strip()]

    @property
    def transcript_language_list(self) -> list[str]:
        """Ordered transcript languages to attempt."""
        return [lang.strip() for lang in self.transcript_languages.split(",") if lang.strip()]


settings = Settings()
