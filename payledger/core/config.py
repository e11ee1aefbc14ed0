import os
from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

BASE_DIR = Path(__file__).resolve().parent.parent.parent


class Settings(BaseSettings):
    env: str = Field(default="dev", description="Deployment environment")
    data_path: Path = Field(default=Path("data/store.json"), description="JSON store for persisted state")
    log_level: str = "WARNING"
    policy_version: str = Field(default="mm_2024", description="Tax and currency policy to load")
    policy_dir: Path | None = Field(default=None, description="Override directory for policy JSON files")
    organization_name: str = "Hotel Empire"
    default_currency: str = "MMK"
    default_service_rate: float = Field(default=50_000, ge=0)

    model_config = SettingsConfigDict(env_prefix="PAYLEDGER_", extra="ignore")

    @field_validator("default_currency")
    @classmethod
    def upper_currency(cls, value: str) -> str:
        return value.strip().upper()


@lru_cache
def get_settings() -> Settings:
    return Settings(_env_file=get_settings_env_file())


def get_settings_env_file() -> str | None:
    """Resolve environment-specific env file if it exists."""
    env = os.getenv("PAYLEDGER_ENV", "dev")
    env_file = BASE_DIR / f".env.{env}"
    default_file = BASE_DIR / ".env"
    if env_file.exists():
        return str(env_file)
    if default_file.exists():
        return str(default_file)
    return None
