"""Application configuration and settings management."""

from pathlib import Path
from typing import Any, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import json
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables or defaults."""

    model_config = SettingsConfigDict(
        env_prefix="EDU_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    app_name: str = "Education Admin Travel Allowance API"
    api_prefix: str = "/api"
    data_root: Path = Field(default=Path("data"), description="Root directory for locally stored files.")
    timezone: str = Field(
        default="Asia/Seoul",
        description="Timezone used to resolve 'today' for default date ranges.",
    )
    frontend_allowed_origins: tuple[str, ...] = Field(
        default=(
            "http://localhost:3000",
            "http://127.0.0.1:3000",
        ),
        description="Permitted web origins for browser clients (CORS).",
    )

    # Supabase configuration
    supabase_url: Optional[str] = Field(
        default=None,
        description="Supabase project URL (e.g., https://xxx.supabase.co).",
    )
    supabase_key: Optional[str] = Field(
        default=None,
        description="Supabase service role key for backend operations.",
    )

    # Kakao static map configuration
    kakao_api_key: Optional[str] = Field(
        default=None,
        description="Kakao REST API key used for static map snapshots.",
    )
    kakao_base_url: str = "https://dapi.kakao.com"
    kakao_static_map_endpoint: str = "/v2/maps/staticmap"
    map_width: int = Field(default=800, ge=1)
    map_height: int = Field(default=600, ge=1)
    map_timeout_seconds: float = Field(default=10.0, gt=0.0)
    map_max_retries: int = Field(default=2, ge=0)
    map_backoff_seconds: float = Field(default=0.5, ge=0.0)

    # Local file storage for generated snapshots
    snapshot_subdirectory: str = "map-snapshots"
    storage_base_url: str = Field(
        default="/files",
        description="Public URL prefix under which stored files are served.",
    )

    @field_validator("data_root", mode="before")
    @classmethod
    def _resolve_data_root(cls, value: Any) -> Path:
        return Path(str(value)).expanduser().resolve()

    @field_validator("timezone")
    @classmethod
    def _check_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"Unknown timezone '{value}'") from exc
        return value

    @field_validator("frontend_allowed_origins", mode="before")
    @classmethod
    def _parse_origins(cls, value: Any) -> tuple[str, ...]:
        """Accept a JSON array or a comma-separated string from the environment."""
        if isinstance(value, (list, tuple)):
            return tuple(str(item) for item in value)
        if not isinstance(value, str):
            return tuple()
        text = value.strip()
        if text.startswith("["):
            try:
                return tuple(str(item) for item in json.loads(text))
            except json.JSONDecodeError as exc:
                raise ValueError(f"Invalid origin list: {exc}") from exc
        return tuple(item.strip() for item in text.split(",") if item.strip())


settings = Settings()
