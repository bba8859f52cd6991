from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional

class Settings(BaseSettings):
    # Pydantic Settings will automatically look for these as environment variables
    # or in a .env file

    # Database Settings
    # DATABASE_URL wins over the POSTGRES_* parts when set (e.g. sqlite for local runs)
    DATABASE_URL: Optional[str] = None
    POSTGRES_USER: str = "user"
    POSTGRES_PASSWORD: str = "password"
    POSTGRES_HOST: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_DB: str = "mentorship_hub"

    # SQLAlchemy Connection Pooling Settings
    # Refer to https://docs.sqlalchemy.org/en/20/core/engines.html#connection-pooling-options
    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 20
    DB_POOL_TIMEOUT: int = 30 # seconds
    DB_POOL_RECYCLE: int = 1800 # seconds (30 minutes)

    # Token Settings (tokens are issued by the external auth provider)
    SECRET_KEY: str = "change-me"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    # Content limits
    MENTORSHIP_MESSAGE_MAX_LENGTH: int = 1000
    CHAT_MESSAGE_MAX_LENGTH: int = 5000

    # Notification Settings
    NOTIFICATION_PAGE_SIZE: int = 50

    # Change Feed Settings
    CHANGE_FEED_BUFFER_SIZE: int = 1000 # events buffered per subscription before it is marked lagged
    # Set REDIS_URL when running more than one worker so changes reach every instance
    REDIS_URL: Optional[str] = None
    CHANGE_FEED_CHANNEL_PREFIX: str = "mentorship_hub"

    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore" # Ignore extra env variables not defined here
    )

@lru_cache() # Cache settings to avoid re-reading on every call
def get_settings():
    """Returns a cached instance of the Settings."""
    return Settings()
