import os

from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="DB_", env_file=".env", extra="ignore")

    URL: str = os.getenv("DATABASE_URL", "postgresql://danbooru:danbooru@db:5432/danbooru")
    POOL_MIN_SIZE: int = 1
    POOL_MAX_SIZE: int = 16

    # Applied per borrowed connection before every lookup
    STATEMENT_TIMEOUT_MS: int = 3000

    # Lookup tuning
    RESULT_LIMIT: int = 10
    FUZZY_THRESHOLD: float = 0.3

class CacheSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="CACHE_", env_file=".env", extra="ignore")

    BACKEND: str = "memory"  # "memory" or "redis"
    MAX_ENTRIES: int = 15_000
    TTL_SECONDS: int = 6 * 60 * 60  # 6h
    REDIS_URL: str = os.getenv("REDIS_URL", "redis://redis:6379/0")
    KEY_PREFIX: str = "autocomplete:"
    SINGLE_FLIGHT_WAIT_SECONDS: float = 10.0

class ServerSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="SERVER_", env_file=".env", extra="ignore")

    HOST: str = "0.0.0.0"
    PORT: int = 8000
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = ""

    # Response headers
    HTTP_MAX_AGE_SECONDS: int = 604800  # 7d
    ALLOW_ORIGIN: str = "*"

class AppSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")

    DB: DatabaseSettings = DatabaseSettings()
    CACHE: CacheSettings = CacheSettings()
    SERVER: ServerSettings = ServerSettings()

settings = AppSettings()
