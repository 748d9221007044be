from __future__ import annotations

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    app_name: str = "Joint Ledger API"
    database_url: str = "sqlite:///joint_ledger.db"
    log_level: str = "INFO"
    principal_header: str = "X-Principal"
    max_owners: int = 4
    max_accounts_per_owner: int = 3

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="JOINT_LEDGER_",
        extra="ignore",
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
