from pathlib import Path
from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Load environment variables from .env and system environment
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Server settings
    host: str = Field(default="0.0.0.0", validation_alias="HOST")
    port: int = Field(default=3000, validation_alias="PORT")

    # Debug mode
    debug: bool = Field(default=False, validation_alias="DEBUG")

    # Storage
    db_path: Path = Field(
        default=Path.cwd() / "data" / "recipes.db", validation_alias="DB_PATH"
    )

    # HTTP settings
    cors_origins: List[str] = Field(default=["*"], validation_alias="CORS_ORIGINS")
    sse_ping_seconds: int = Field(default=15, validation_alias="SSE_PING_SECONDS")

    # Logfire settings
    logfire_enabled: bool = Field(default=False, validation_alias="LOGFIRE_ENABLED")
    logfire_token: Optional[str] = Field(default=None, validation_alias="LOGFIRE_TOKEN")
    logfire_service_name: str = Field(
        default="recipe-saver", validation_alias="LOGFIRE_SERVICE_NAME"
    )

    @property
    def data_dir(self) -> Path:
        return self.db_path.parent


def get_settings() -> Settings:
    """Instantiate and return the Settings object."""
    return Settings()
