from pydantic_settings import BaseSettings
from typing import Optional

class Settings(BaseSettings):
    PROJECT_NAME: str = "Mbote"
    API_V1_STR: str = "/api/v1"
    LOG_LEVEL: str = "INFO"

    POSTGRES_SERVER: str = "localhost"
    POSTGRES_USER: str = "postgres"
    POSTGRES_PASSWORD: str = "password"
    POSTGRES_DB: str = "mbote"
    DATABASE_URL: Optional[str] = None
    REDIS_URL: str = "redis://localhost:6379/0"

    SECRET_KEY: str = "change-me"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24
    OTP_TTL_SECONDS: int = 600

    # Scheduling
    SLOT_DURATION_MINUTES: int = 30
    CLINIC_TIMEZONE: str = "Africa/Kinshasa"
    ALLOW_BREAKS_OUTSIDE_WORKING_HOURS: bool = False
    CANCELLATION_NOTICE_HOURS: int = 24
    REFUND_WINDOW_DAYS: int = 30

    # Vacation requests are sent here
    ADMIN_PHONE: Optional[str] = None
    ADMIN_EMAIL: Optional[str] = None

    class Config:
        case_sensitive = True
        env_file = ".env"

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        if not self.DATABASE_URL:
            self.DATABASE_URL = f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}@{self.POSTGRES_SERVER}/{self.POSTGRES_DB}"

settings = Settings()
