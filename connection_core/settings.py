import re
from typing import Literal

from pydantic import SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(case_sensitive=True)

    ENVIRONMENT: str = "development"

    # Keycloak settings
    KEYCLOAK_REALM: str
    KEYCLOAK_CLIENT_ID: str
    KEYCLOAK_BASE_URL: str = "http://connection-core-keycloak:8080/"

    # Token claim carrying the caller's tenant (business) id
    TENANT_CLAIM: str = "tenant_id"

    # Database settings (credentials MUST be provided via environment)
    DB_USER: str
    DB_PASSWORD: SecretStr
    DB_HOST: str = "connection-core-db"
    DB_PORT: int = 5432
    DB_NAME: str = "connection-core"
    DB_POOL_SIZE: int = 20
    DB_MAX_OVERFLOW: int = 10
    DB_POOL_RECYCLE: int = 3600
    DB_POOL_PRE_PING: bool = True

    # Full SQLAlchemy URL, takes precedence over the DB_* components
    DATABASE_URL_OVERRIDE: str | None = None

    @property
    def DATABASE_URL(self) -> str:
        """Construct the database URL from individual components."""
        if self.DATABASE_URL_OVERRIDE:
            return self.DATABASE_URL_OVERRIDE
        password = self.DB_PASSWORD.get_secret_value()
        return (
            f"postgresql+asyncpg://{self.DB_USER}:{password}"
            f"@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"
        )

    # Database initialization settings
    DB_INIT_RETRY_INTERVAL: int = 2
    DB_INIT_MAX_RETRIES: int = 5

    # Pagination defaults (hard maximum lives in constants.MAX_PAGE_SIZE)
    DEFAULT_PAGE_SIZE: int = 20
    CURSOR_STRATEGY: Literal["keyset", "offset"] = "keyset"

    @field_validator("DEFAULT_PAGE_SIZE")
    @classmethod
    def validate_default_page_size(cls, v: int) -> int:
        """Reject a default page size that could never be honored."""
        if v < 1:
            raise ValueError("DEFAULT_PAGE_SIZE must be at least 1")
        return v

    EXCLUDED_PATHS: re.Pattern = re.compile(
        r"^(/docs|/openapi.json|/health|/metrics)$"
    )

    # Logging settings
    LOG_LEVEL: str = "INFO"
    LOG_FILE_PATH: str = "logs/logging_errors.log"

    # Loki settings
    LOKI_ENABLED: bool = False
    LOKI_URL: str = "http://loki:3100"
    LOKI_VERSION: str = "1"


app_settings = Settings()
