from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class DevServerSettings(BaseSettings):
    """Knobs of the mock backend, read from ``STOREFRONT_DEV_*`` variables."""

    model_config = SettingsConfigDict(env_prefix="STOREFRONT_DEV_", env_file=".env", extra="ignore")

    api_prefix: str = "/api"
    jwt_secret: str = "storefront-devserver-secret"
    jwt_algorithm: str = "HS256"
    token_ttl_minutes: int = 60 * 24
    password_scheme: str = "pbkdf2_sha256"


@lru_cache(maxsize=1)
def get_dev_settings() -> DevServerSettings:
    return DevServerSettings()
