from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

# Resolve .env from backend project root so it loads regardless of cwd
_BACKEND_ROOT = Path(__file__).resolve().parent.parent.parent
_ENV_FILE = _BACKEND_ROOT / ".env"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=(str(_ENV_FILE), ".env", "../.env"),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database
    database_url: str
    database_ssl: bool = True  # only applied to PostgreSQL URLs
    auto_create_tables: bool = False

    # CORS
    cors_origins: str = "http://localhost:3000"

    # Availability search rules
    availability_horizon_days: int = 180
    max_horizon_days: int = 730
    # weekly/biweekly/monthly resolution fails after this many unavailable cycles in a row
    max_skipped_cycles: int = 3

    # Env
    env: str = "development"

    @property
    def cors_origins_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]


settings = Settings()
