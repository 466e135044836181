"""Service settings loaded from environment variables."""

from pydantic_settings import BaseSettings, SettingsConfigDict

KEY_ROTATION_PERIOD_DEFAULT = 900
KEY_RETENTION_DEFAULT = 3600
JWKS_MAX_AGE_DEFAULT = 60
DB_POOL_SIZE_DEFAULT = 5
DB_MAX_OVERFLOW_DEFAULT = 10
DB_PORT_DEFAULT = 5432


class DatabaseSettings(BaseSettings):
    """PostgreSQL connection settings."""

    model_config = SettingsConfigDict(env_prefix="TOKENSMITH_DB_")

    url: str = ""
    host: str = "localhost"
    port: int = DB_PORT_DEFAULT
    user: str = "tokensmith"
    password: str = "tokensmith"
    database: str = "tokensmith"
    pool_size: int = DB_POOL_SIZE_DEFAULT
    max_overflow: int = DB_MAX_OVERFLOW_DEFAULT

    @property
    def async_url(self) -> str:
        """Build async PostgreSQL connection URL unless one is given outright."""
        if self.url:
            return self.url
        return (
            f"postgresql+asyncpg://{self.user}:{self.password}"
            f"@{self.host}:{self.port}/{self.database}"
        )


class IssuerSettings(BaseSettings):
    """Signing key lifecycle and API settings."""

    model_config = SettingsConfigDict(env_prefix="TOKENSMITH_")

    api_token: str = ""
    signing_key_encryption_key: str = ""
    key_rotation_period: int = KEY_ROTATION_PERIOD_DEFAULT
    key_retention: int = KEY_RETENTION_DEFAULT
    jwks_max_age: int = JWKS_MAX_AGE_DEFAULT
    log_level: str = "INFO"
    create_schema: bool = True
