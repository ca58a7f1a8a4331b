"""Application configuration using pydantic settings with structured sections."""

from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_PATH_PATTERN = "{year}/{month}/{day}/{uuid}"


class ServerSettings(BaseModel):
    host: str = "0.0.0.0"
    port: int = 8080


class DatabaseSettings(BaseModel):
    url: str = Field(default="sqlite+aiosqlite:///./assetvault.db", alias="url")
    echo: bool = False
    pool_size: Optional[int] = None
    max_overflow: Optional[int] = None


class StorageSettings(BaseModel):
    root: Path = Field(default=Path("storage/uploads"))
    public_base_url: str = "http://localhost:8080"
    default_pattern: str = DEFAULT_PATH_PATTERN
    sniff_bytes: int = Field(default=512, gt=0)
    chunk_size: int = Field(default=1024 * 1024, gt=0)


class QuotaSettings(BaseModel):
    serialize_capacity_checks: bool = True


class LoggingSettings(BaseModel):
    level: str = "INFO"
    format: str = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class StrategyDefaults(BaseModel):
    """Process-wide fallbacks applied when a strategy blob leaves a field empty."""

    root: str = ""
    public_base_url: str = ""
    http_addr: str = ""
    default_pattern: str = DEFAULT_PATH_PATTERN


class Settings(BaseSettings):
    """Top-level application settings with nested sections."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_nested_delimiter="__",
        extra="ignore",
        case_sensitive=False,
    )

    environment: Literal["development", "staging", "production", "test"] = "development"
    debug: bool = False
    project_name: str = "Asset Vault"

    server: ServerSettings = ServerSettings()
    database: DatabaseSettings = DatabaseSettings()
    storage: StorageSettings = StorageSettings()
    quota: QuotaSettings = QuotaSettings()
    logging: LoggingSettings = LoggingSettings()

    @property
    def database_url(self) -> str:
        return self.database.url

    @property
    def http_addr(self) -> str:
        return f"{self.server.host}:{self.server.port}"

    @property
    def storage_root(self) -> str:
        return str(self.storage.root)

    def strategy_defaults(self) -> StrategyDefaults:
        return StrategyDefaults(
            root=self.storage_root,
            public_base_url=self.storage.public_base_url,
            http_addr=self.http_addr,
            default_pattern=self.storage.default_pattern,
        )


@lru_cache()
def get_settings() -> Settings:
    return Settings()
