from pydantic import AnyUrl
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache
from typing import Literal

class Settings(BaseSettings):
    ENV: str = "dev"
    SERVICE_PORT: int = 8080
    MAX_EVENT_SIZE: int = 65536
    LOG_JSON: bool = True
    # Store adapter selection: "memory" or "redis"
    STORE_ADAPTER: Literal["memory", "redis"] = "memory"
    REDIS_URL: AnyUrl | None = None
    QUEUE_TTL_SECONDS: int = 86400
    # Aggregation
    AGGREGATION_WINDOW_SECONDS: float = 10.0
    HISTORY_LIMIT: int = 1000
    # Downstream consumer
    DISPATCH_URL: str = "http://localhost:5678/webhook"
    DISPATCH_TIMEOUT_SECONDS: float = 8.0
    # Authentication
    API_KEYS: str = ""  # Comma-separated list of API keys
    REQUIRE_AUTH: bool = False  # Whether to enforce authentication

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
