from pydantic_settings import BaseSettings
from typing import List, Literal

class Settings(BaseSettings):
    PROJECT_NAME: str = "Learning Progress Service"
    VERSION: str = "1.0.0"
    API_V1_STR: str = "/api/v1"

    # CORS
    ALLOWED_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
        "http://127.0.0.1:3000",
        "http://localhost:8080",
    ]

    # Progress storage: "json" keeps the whole courseProgress collection in one
    # local document, "database" keeps one row per (user, course) pair.
    PROGRESS_BACKEND: Literal["json", "database"] = "json"
    PROGRESS_STORE_PATH: str = "data/course_progress.json"

    # Database Configuration
    DATABASE_URL: str = "sqlite:///./progress.db"

    # Watch sessions
    WATCH_FLUSH_INTERVAL_SECONDS: int = 30

    # Logging
    LOG_DIR: str = "logs"
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"

settings = Settings()
