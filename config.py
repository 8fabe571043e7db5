from pydantic_settings import BaseSettings
from typing import List

from utils.errors import ConfigurationError


class Settings(BaseSettings):
    SUPABASE_URL: str = ""
    SUPABASE_SERVICE_ROLE_KEY: str = ""
    ANTHROPIC_API_KEY: str = ""
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    # Evaluator Settings
    EVALUATOR_MODEL: str = "claude-sonnet-4-6"
    EVALUATOR_MAX_TOKENS: int = 1024
    PROMOTE_THRESHOLD: float = 0.6
    REJECT_THRESHOLD: float = 0.3
    DEDUP_WINDOW_SIZE: int = 300  # per table
    LLM_CALL_DELAY_SECONDS: float = 0.5

    # Scraping Settings
    SCRAPE_TIMEOUT_SECONDS: float = 10.0
    SCRAPE_MAX_CHARS: int = 3000
    CONNECTOR_TIMEOUT_SECONDS: float = 9.0

    # Link Checker Settings
    LINK_CHECK_CONCURRENCY: int = 15
    LINK_CHECK_TIMEOUT_SECONDS: float = 8.0

    # Submissions
    SUBMISSION_RATE_LIMIT_PER_HOUR: int = 20

    # Scheduler Settings
    ENABLE_SCHEDULER: bool = True
    PIPELINE_CRON_HOUR: int = 4  # 4 AM
    PIPELINE_CRON_MINUTE: int = 0

    # API keys for external trigger and review actions
    CRON_API_KEY: str = "change-me-in-production"
    ADMIN_API_KEY: str = "change-me-in-production"

    class Config:
        env_file = ".env"

    def missing_credentials(self, *names: str) -> List[str]:
        """Names of required settings that are empty"""
        names = names or ("SUPABASE_URL", "SUPABASE_SERVICE_ROLE_KEY", "ANTHROPIC_API_KEY")
        return [name for name in names if not getattr(self, name)]

    def require_credentials(self, *names: str) -> None:
        """Raise ConfigurationError if any required credential is missing"""
        missing = self.missing_credentials(*names)
        if missing:
            raise ConfigurationError(f"Missing required settings: {', '.join(missing)}")


settings = Settings()
