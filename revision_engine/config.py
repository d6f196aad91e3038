from pydantic_settings import BaseSettings
from pathlib import Path

# Get the project root directory (parent of the package folder)
PROJECT_ROOT = Path(__file__).parent.parent

class Settings(BaseSettings):
    """Application configuration loaded from environment variables"""
    database_url: str = f"sqlite:///{PROJECT_ROOT / 'revisions.db'}"

    # Review queue
    max_cards_per_day: int = 10
    suggestion_limit: int = 5  # open revisions returned after an attempt

    # Attempts without a difficulty (successes) are timed against this level
    default_exercise_difficulty: int = 2

    # Completed/cancelled revisions older than this are removed by cleanup
    revision_retention_days: int = 90

    log_level: str = "INFO"
    timezone: str = "Europe/Paris"

    class Config:
        env_file = str(PROJECT_ROOT / ".env")
        extra = "ignore"

settings = Settings()
