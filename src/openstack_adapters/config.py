from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Adapter and transport settings"""

    # Logging
    SERVICE_NAME: str = "openstack_adapters"
    LOG_LEVEL: str = "INFO"
    LOG_JSON_FORMAT: bool = True

    # Endpoints
    STORAGE_URL: str = "http://localhost:8080/v1/AUTH_test"
    QUEUES_URL: str = "http://localhost:8888/v1"

    # Queue service requires a per-client UUID on every request
    CLIENT_ID: str = "3381af92-2b9e-11e3-b191-71861300734c"

    # Transport
    HTTP_CLIENT_TIMEOUT: float = 30.0
    HTTP_CLIENT_MAX_RETRIES: int = 3

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True)


@lru_cache
def get_settings() -> Settings:
    return Settings()
