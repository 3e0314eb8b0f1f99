"""Application configuration management."""

from pathlib import Path

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """BookGenie QA harness settings loaded from environment variables."""

    # Application under test
    bookgenie_base_url: str = "http://localhost:3000"
    bookgenie_mode: str = "BookGenieQA"
    bookgenie_storage_state: str = ""
    bookgenie_headless: bool = True
    bookgenie_viewport_width: int = 1980
    bookgenie_viewport_height: int = 1080

    # LLM judge
    google_api_key: str = ""
    anthropic_api_key: str = ""
    bookgenie_llm_provider: str = "google"
    bookgenie_llm_model: str = "gemini-2.5-pro"

    # Retry policy for the judge
    bookgenie_ai_max_attempts: int = 3
    bookgenie_ai_base_delay: float = 2.0

    # UI timeouts (milliseconds)
    bookgenie_citation_timeout_ms: int = 10_000
    bookgenie_citation_close_timeout_ms: int = 3_000
    bookgenie_expand_timeout_ms: int = 5_000
    bookgenie_response_timeout_ms: int = 30_000
    bookgenie_thinking_appear_timeout_ms: int = 600_000
    bookgenie_thinking_done_timeout_ms: int = 1_200_000
    bookgenie_fallback_wait_ms: int = 120_000

    # Storage
    bookgenie_results_dir: str = "./test_results"
    bookgenie_database_path: str = "./test_data/database.xlsx"
    bookgenie_artifacts_dir: str = "./artifacts"

    @property
    def results_dir(self) -> Path:
        return Path(self.bookgenie_results_dir)

    @property
    def database_path(self) -> Path:
        return Path(self.bookgenie_database_path)

    @property
    def artifacts_dir(self) -> Path:
        return Path(self.bookgenie_artifacts_dir)

    @property
    def storage_state_path(self) -> Path | None:
        if not self.bookgenie_storage_state:
            return None
        return Path(self.bookgenie_storage_state)

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()
