from pydantic_settings import BaseSettings
from typing import List, Optional


class Settings(BaseSettings):
    """Application settings with type-safe configuration management."""

    # Database Configuration
    DATABASE_URL: str = "postgresql+asyncpg://postgres:postgres@db:5432/eventhub"
    DB_ECHO: bool = False
    CREATE_TABLES_ON_STARTUP: bool = True

    # Server Configuration
    PORT: int = 4000
    GRAPHQL_PATH: str = "/graphql"
    RATE_LIMIT: str = "120/minute"

    # Security Configuration
    SECRET_KEY: str
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7
    ALGORITHM: str = "HS256"

    # CORS Configuration
    ALLOWED_ORIGINS: str = "http://localhost:3000"

    # Event bus: buffered messages per live subscription
    SUBSCRIBER_QUEUE_SIZE: int = 100

    # Environment
    ENVIRONMENT: str = "development"

    # Logging; LOG_LEVEL overrides the per-environment default
    LOG_LEVEL: Optional[str] = None
    LOG_FILE: Optional[str] = None

    class Config:
        env_file = ".env"
        case_sensitive = True

    @property
    def allowed_origins_list(self) -> List[str]:
        """Convert comma-separated ALLOWED_ORIGINS string to list."""
        return [origin.strip() for origin in self.ALLOWED_ORIGINS.split(",") if origin.strip()]


# Create a single instance to be imported throughout the app
settings = Settings()
