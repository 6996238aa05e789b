import os
from pydantic_settings import BaseSettings
from dotenv import load_dotenv

load_dotenv()

class Settings(BaseSettings):
    APP_NAME: str = "WorkQuest"
    SECRET_KEY: str = os.getenv("SECRET_KEY", "supersecretkey123")
    ALGORITHM: str = os.getenv("ALGORITHM", "HS256")
    ACCESS_TOKEN_EXPIRE_MINUTES: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "60"))

    # Database
    MONGO_URI: str = os.getenv("MONGO_URI", "mongodb://localhost:27017")
    DB_NAME: str = os.getenv("DB_NAME", "workquest")

    # Frontend
    FRONTEND_URL: str = os.getenv("FRONTEND_URL", "http://localhost:5173")

    # Misc
    TIMEZONE: str = os.getenv("TIMEZONE", "UTC")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # Reward Configuration (Defaults used until an admin saves settings)
    # coins = round(base * difficulty * multiplier)
    DEFAULT_TASK_COMPLETION_BASE: int = 10
    DEFAULT_COMPLEXITY_MULTIPLIER: float = 1.5
    DEFAULT_MONTHLY_BONUS: int = 50

    # Difficulty bounds. Older docs disagree (1-10 vs 2-9), so keep it configurable.
    DIFFICULTY_MIN: int = 1
    DIFFICULTY_MAX: int = 10

    # Credit assignees' coin balance when a task is approved
    CREDIT_COINS_ON_APPROVAL: bool = True

    # Pagination
    DEFAULT_PAGE_SIZE: int = 10
    MAX_PAGE_SIZE: int = 100

    # Housekeeping
    SCHEDULER_ENABLED: bool = True
    HOUSEKEEPING_INTERVAL_HOURS: int = 24
    NOTIFICATION_RETENTION_DAYS: int = 30

    # Pydantic Settings Config
    model_config = {"env_file": ".env", "extra": "ignore"}

settings = Settings()
