# group_builder/config/settings.py

from typing import Optional
from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    ENV: str = "development"
    DATABASE_URL: str = "sqlite+aiosqlite:///./group_builder.db"
    GROUP_SIZE_DEFAULT: int = 6
    HISTORY_LIMIT: int = 20
    # external collaborators; an empty optimizer url means in-process even split
    PARTICIPANT_SERVICE_URL: str = "http://localhost:8040"
    COMPATIBILITY_SERVICE_URL: str = "http://localhost:8050"
    OPTIMIZER_SERVICE_URL: Optional[str] = None
    HTTP_TIMEOUT_SECONDS: float = 30.0
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"

settings = Settings()
