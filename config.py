from functools import lru_cache

from dotenv import load_dotenv
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv()


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    supabase_url: str = ""
    supabase_service_role_key: str = ""
    supabase_jwt_secret: str = ""

    api_env: str = "production"
    api_version: str = "1.0.0"
    allowed_origins: str = "*"
    site_url: str = "http://localhost:3000"
    session_cookie_secure: bool = True

    log_level: str = "INFO"
    log_json: bool = False
    log_file: str | None = None

    sentry_dsn: str | None = None
    sentry_traces_sample_rate: float = 0.5

    rate_limit_enabled: bool = True
    rate_limit_default: str = "120/minute"
    rate_limit_storage_uri: str = "memory://"

    @property
    def origins(self) -> list[str]:
        return [o.strip() for o in self.allowed_origins.split(",") if o.strip()]

    @property
    def is_production(self) -> bool:
        return self.api_env == "production"


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
