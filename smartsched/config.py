from pydantic_settings import BaseSettings
from pathlib import Path

# Get the project root directory (parent of smartsched folder)
PROJECT_ROOT = Path(__file__).parent.parent

class Settings(BaseSettings):
    """Application configuration loaded from environment variables"""
    database_url: str = f"sqlite:///{PROJECT_ROOT / 'smartsched.db'}"
    log_level: str = "INFO"

    # Preference defaults for learners without a saved profile
    default_daily_study_hours: float = 4.0
    default_study_time: str = "morning"
    default_timezone: str = "Asia/Kolkata"

    # Scheduling limits
    max_schedule_days: int = 30
    reschedule_lookahead_days: int = 14
    reschedule_daily_cap_minutes: int = 240

    class Config:
        env_file = str(PROJECT_ROOT / ".env")
        env_prefix = "SMARTSCHED_"

settings = Settings()
