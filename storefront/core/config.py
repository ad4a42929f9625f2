from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", case_sensitive=False)

    production: bool = False
    api_url: str = "http://localhost:8080/api"
    auth_url: str = "http://localhost:8080/api/auth"
    users_url: str = "http://localhost:8080/api/users"
    products_url: str = "http://localhost:8080/api/products"
    media_url: str = "http://localhost:8080/api/media"
    enable_debug_logging: bool = True

    @classmethod
    def for_api(cls, api_url: str, **overrides) -> "Settings":
        """Derive every service endpoint from a single gateway URL."""
        base = api_url.rstrip("/")
        values = {
            "api_url": base,
            "auth_url": f"{base}/auth",
            "users_url": f"{base}/users",
            "products_url": f"{base}/products",
            "media_url": f"{base}/media",
        }
        values.update(overrides)
        return cls(**values)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
