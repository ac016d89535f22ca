# mpms/config.py
from pydantic_settings import BaseSettings
from typing import Optional
from pydantic import Field

class Settings(BaseSettings):
    SECRET_KEY: str = Field("change-me-in-production")
    ALGORITHM: str = Field("HS256")
    ACCESS_TOKEN_EXPIRE_MINUTES: int = Field(60 * 24)
    REFRESH_TOKEN_EXPIRE_DAYS: int = Field(7)

    DATABASE_URL: Optional[str] = None
    SQLALCHEMY_DATABASE_URL: Optional[str] = None
    DB_ECHO: bool = Field(False)

    # Dashboard origin allowed by CORS
    CLIENT_URL: str = Field("http://localhost:3000")

    LOG_LEVEL: str = Field("INFO")

    # Sprint numbers are read-then-written; a unique constraint catches collisions
    SPRINT_NUMBER_RETRIES: int = Field(3, ge=1)

    RECENT_ACTIVITY_LIMIT: int = Field(5, ge=1)
    UPCOMING_DEADLINE_LIMIT: int = Field(5, ge=1)

    model_config = {
        "env_file": ".env",
        "extra": "allow",
    }

    @property
    def effective_database_url(self) -> str:
        url = self.SQLALCHEMY_DATABASE_URL or self.DATABASE_URL or "sqlite+aiosqlite:///./mpms.db"
        # Ensure asyncpg is used
        if url.startswith("postgresql://"):
            url = url.replace("postgresql://", "postgresql+asyncpg://", 1)
        return url

settings = Settings()
