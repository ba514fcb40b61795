import os
from pydantic_settings import BaseSettings
from dotenv import load_dotenv

load_dotenv()

class Settings(BaseSettings):
    APP_NAME: str = "Uslate Habits"
    SECRET_KEY: str = os.getenv("SECRET_KEY", "supersecretkey123")
    ALGORITHM: str = os.getenv("ALGORITHM", "HS256")
    ACCESS_TOKEN_EXPIRE_MINUTES: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "30"))

    # Database
    MONGO_URI: str = os.getenv("MONGO_URI", "mongodb://localhost:27017")
    DB_NAME: str = os.getenv("DB_NAME", "uslate")

    # Frontend
    FRONTEND_URL: str = os.getenv("FRONTEND_URL", "http://localhost:3000")

    # Every calendar-day comparison happens in this zone, never the server's.
    REFERENCE_TIMEZONE: str = os.getenv("REFERENCE_TIMEZONE", "Asia/Kolkata")

    # Habit Configuration
    FREEZE_MONTHLY_QUOTA: int = 2
    HABIT_XP_BASE: int = 10         # per completed day/week
    HABIT_XP_EXCESS_BONUS: int = 1  # per unit logged above target
    HABIT_UPDATE_RETRIES: int = 3

    # Recompute Sweep
    SCHEDULER_ENABLED: bool = True
    RECALC_HOUR: int = 0
    RECALC_MINUTE: int = 5
    RECALC_CONCURRENCY: int = 8
    CRON_SECRET: str = os.getenv("CRON_SECRET", "")

    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # Pydantic Settings Config
    model_config = {"env_file": ".env", "extra": "ignore"}

settings = Settings()
