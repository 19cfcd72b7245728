from datetime import timedelta
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

# Resolve .env from the project root (one level above server/)
_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
_ENV_FILE = _PROJECT_ROOT / ".env"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=str(_ENV_FILE),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # LLM
    google_ai_api_key: str = ""
    gemini_model: str = "gemini-2.5-flash"
    llm_temperature: float = 0.4
    llm_max_output_tokens: int = 16384

    # App settings
    cors_origins: str = "http://localhost:5173"
    log_level: str = "INFO"

    # Job queue
    job_retention_seconds: int = 3600
    job_cleanup_interval_seconds: int = 600
    # 0 disables the timeout; a hung job then blocks the queue
    job_timeout_seconds: float = 0

    # Prompt guard
    max_prompt_length: int = 10000
    min_request_length: int = 10
    security_alert_webhook_url: str = ""

    # Kill switches (DISABLE_<FEATURE>)
    disable_code_generation: bool = False
    disable_code_modification: bool = False
    disable_codebase_analysis: bool = False

    @property
    def cors_origin_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",")]

    @property
    def job_retention(self) -> timedelta:
        return timedelta(seconds=self.job_retention_seconds)

    @property
    def job_cleanup_interval(self) -> timedelta:
        return timedelta(seconds=self.job_cleanup_interval_seconds)


settings = Settings()
