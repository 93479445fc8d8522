from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache


class Settings(BaseSettings):
    ENV: str = "dev"
    # Bind address stays on loopback; only the port is meant to be changed
    HOST: str = "127.0.0.1"
    PORT: int = 7358
    LOG_JSON: bool = True
    LOG_LEVEL: str = "INFO"
    # Per-session event buffer
    BUFFER_CAPACITY: int = 1000
    # Query defaults for /context
    DEFAULT_SINCE: str = "5m"
    DEFAULT_LIMIT: int = 100
    MAX_EVENT_SIZE: int = 65536
    SHUTDOWN_GRACE_SECONDS: int = 2
    CORS_FALLBACK_ORIGIN: str = "http://localhost:3000"
    SDK_PATH: str | None = None

    model_config = SettingsConfigDict(
        env_prefix="RUNTIME_VISION_",
        env_file=".env",
        extra="ignore",
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
