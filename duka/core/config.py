"""Shop tracker settings, read from the environment and ``.env``/``.env.local``.

``get_settings()`` builds them once per process. Tests construct
``AppSettings(...)`` directly and hand it to ``create_app``.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Any, Iterable

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

PACKAGE_DIR = Path(__file__).resolve().parent.parent


class AppSettings(BaseSettings):
    """Environment-driven application configuration."""

    model_config = SettingsConfigDict(
        env_file=(".env", ".env.local"),
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    APP_NAME: str = "Duka Audit"
    DATA_DIR: Path = Field(default_factory=lambda: PACKAGE_DIR.parent / "data")
    TEMPLATES_DIR: Path | None = None
    STATIC_DIR: Path | None = None
    TZ: str = "Africa/Nairobi"
    LOG_LEVEL: str = "INFO"

    # Empty means "derive a SQLite file inside DATA_DIR".
    DB_URL: str = Field(default="", validation_alias=AliasChoices("DATABASE_URL", "DB_URL"))

    ALLOWED_ORIGINS: list[str] = Field(default_factory=list)

    # Populate the default shop categories when the catalog is empty.
    SEED_CATALOG: bool = True
    # When a sale arrives without a price (or with 0), charge the item's stored
    # effective price instead of rejecting the request.
    SALE_PRICE_FALLBACK: bool = True
    CURRENCY_LABEL: str = "KSh"

    HOST: str = "0.0.0.0"
    PORT: int = 3000

    @property
    def database_url(self) -> str:
        return self.DB_URL or f"sqlite:///{self.DATA_DIR / 'duka.db'}"

    @property
    def templates_dir(self) -> Path:
        return self.TEMPLATES_DIR if self.TEMPLATES_DIR is not None else PACKAGE_DIR / "templates"

    @property
    def static_dir(self) -> Path:
        return self.STATIC_DIR if self.STATIC_DIR is not None else PACKAGE_DIR / "static"

    @field_validator("ALLOWED_ORIGINS", mode="before")
    @classmethod
    def parse_allowed_origins(cls, value: Any) -> list[str]:
        if value in (None, "", []):
            return []
        if isinstance(value, str):
            return [item.strip() for item in value.split(",") if item.strip()]
        if isinstance(value, Iterable):
            return [str(item).strip() for item in value if str(item).strip()]
        raise TypeError("ALLOWED_ORIGINS must be a comma separated string or list")


@lru_cache(maxsize=1)
def get_settings() -> AppSettings:
    settings = AppSettings()
    if not settings.DB_URL:
        # Only the derived SQLite location needs the folder to exist up-front.
        settings.DATA_DIR.mkdir(parents=True, exist_ok=True)
    return settings
