from __future__ import annotations
from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="JOBTRACKER_",
    )
    DB_PATH: str = Field(
        default="job_apps.db",
        description="Path to the SQLite database holding tracked applications",
    )
    DEBUG: bool = Field(default=False)
    RESULT_LIMIT: int = Field(
        default=20,
        description="Maximum rows returned by list and company search",
    )
    LOCK_TIMEOUT_SECONDS: float = Field(default=10)
    BACKUP_ENABLED: bool = Field(
        default=False,
        description="Upload the database to Google Drive when the tracker shuts down",
    )
    BACKUP_CREDENTIALS_PATH: str = Field(
        default="credentials.json",
        description="OAuth client secrets downloaded from Google Cloud Console",
    )
    BACKUP_TOKEN_PATH: str = Field(default="token.json")
    BACKUP_FILE_NAME: str = Field(default="job_apps_backup.db")
    BACKUP_TIMEOUT_SECONDS: float = Field(
        default=30,
        description="How long shutdown waits for the background backup before giving up",
    )


@lru_cache()
def get_settings() -> Settings:
    return Settings()
