from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    project_id: str = ""
    redis_url: str = "redis://localhost:6379/0"
    database_url: str = "sqlite:///./events.db"
    consumer_url: str = "http://localhost:8080/"
    log_level: str = "INFO"
    # GitHub caps webhook payloads at 25 MiB
    max_payload_bytes: int = 25 * 1024 * 1024

    model_config = SettingsConfigDict(env_file=".env", extra="ignore", frozen=True)


class IngressSettings(Settings):
    port: int = 8000
    github_webhook_secret: str = Field(..., min_length=1)


class ConsumerSettings(Settings):
    port: int = 8080


@lru_cache
def get_settings() -> Settings:
    return Settings()


@lru_cache
def get_ingress_settings() -> IngressSettings:
    return IngressSettings()  # type: ignore[call-arg]


@lru_cache
def get_consumer_settings() -> ConsumerSettings:
    return ConsumerSettings()
