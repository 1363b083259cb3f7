from typing import Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings, read from the environment (REDIS_HOST, CART_TTL_SECONDS, ...)."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    service_name: str = "cart-service"
    log_level: str = "INFO"
    log_timezone: str = "America/Los_Angeles"

    storage_backend: Literal["memory", "redis"] = "memory"
    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_db: int = 0
    cart_ttl_seconds: int = 86400

    # Bound on cart stores held in memory; idle ones are dropped and reload on next use
    max_cart_sessions: int = 10000
    session_idle_seconds: Optional[int] = None

    cart_service_port: int = 8001
    session_header: str = "X-Cart-Session"
