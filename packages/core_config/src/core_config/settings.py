from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, field_validator


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    environment: str = Field(default="dev", alias="ENVIRONMENT")
    service_log_level: str = Field(default="INFO", alias="SERVICE_LOG_LEVEL")

    # Language used when rendering validation error messages (en|es)
    error_language: str = Field(default="en", alias="ERROR_LANGUAGE")

    # Backing store
    store_backend: str = Field(default="memory", alias="STORE_BACKEND")  # memory|redis
    store_namespace: str = Field(default="labelkv", alias="STORE_NAMESPACE")
    store_page_size: int = Field(default=100, alias="STORE_PAGE_SIZE")

    # Redis
    redis_url: str = Field(default="redis://localhost:6379/0", alias="REDIS_URL")
    redis_max_connections: int = Field(default=50, alias="REDIS_MAX_CONNECTIONS")

    @field_validator("store_backend", "error_language", mode="before")
    @classmethod
    def _lower(cls, v):
        return str(v).strip().lower() if v is not None else v

    @field_validator("store_page_size")
    @classmethod
    def _positive_page(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("STORE_PAGE_SIZE must be positive")
        return v


def get_settings() -> "Settings":
    return Settings()  # type: ignore
