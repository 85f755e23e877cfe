"""Runtime configuration: YAML defaults overlaid with environment variables."""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Mapping

import yaml
from pydantic import BaseModel, Field, field_validator

CONFIG_DIR = Path(__file__).resolve().parent.parent / "config"
DEFAULT_CONFIG_PATH = CONFIG_DIR / "dashboard.yaml"

# environment variable -> (section, field)
_ENV_MAP: Mapping[str, tuple[str, str]] = {
    "NEXTCLOUD_URL": ("webdav", "base_url"),
    "NEXTCLOUD_USERNAME": ("webdav", "username"),
    "NEXTCLOUD_PASSWORD": ("webdav", "password"),
    "NEXTCLOUD_FILE_PATH": ("webdav", "file_path"),
    "MENSA_API_URL": ("menu", "base_url"),
    "MENSA_API_KEY": ("menu", "api_key"),
    "MENSA_LOCATION_ID": ("menu", "location_id"),
    "GOOGLE_CUSTOM_SEARCH_API_KEY": ("images", "api_key"),
    "GOOGLE_CUSTOM_SEARCH_ENGINE_ID": ("images", "engine_id"),
    "HTTP_VERIFY_TLS": ("http", "verify_tls"),
    "API_CORS_ORIGINS": ("http", "cors_origins"),
    "DASHBOARD_LOG_LEVEL": ("logging", "level"),
    "DASHBOARD_LOG_JSON": ("logging", "use_json"),
}


class WebDavSettings(BaseModel):
    base_url: str = "https://your-nextcloud-server.com"
    username: str = ""
    password: str = ""
    file_path: str = "/Documents/proposals.csv"
    timeout: float = 15.0


class MenuSettings(BaseModel):
    base_url: str = "https://www.swfr.de/apispeiseplan"
    api_key: str = ""
    location_id: str = "610"
    timeout: float = 30.0


class ImageSettings(BaseModel):
    api_url: str = "https://www.googleapis.com/customsearch/v1"
    api_key: str = ""
    engine_id: str = ""
    timeout: float = 15.0
    cache_ttl_seconds: int = 86400
    max_attempts: int = 3


class DeckSettings(BaseModel):
    timeout: float = 30.0


class HttpSettings(BaseModel):
    verify_tls: bool = False
    user_agent: str = "Dashboard-API/1.0"
    cors_origins: list[str] = Field(default_factory=lambda: ["http://localhost:3000", "http://127.0.0.1:3000"])

    @field_validator("cors_origins", mode="before")
    @classmethod
    def _split_origins(cls, value: Any) -> Any:
        if isinstance(value, str):
            return [origin.strip() for origin in value.split(",") if origin.strip()]
        return value


class LoggingSettings(BaseModel):
    level: str = "INFO"
    use_json: bool = True


class Settings(BaseModel):
    webdav: WebDavSettings = Field(default_factory=WebDavSettings)
    menu: MenuSettings = Field(default_factory=MenuSettings)
    images: ImageSettings = Field(default_factory=ImageSettings)
    deck: DeckSettings = Field(default_factory=DeckSettings)
    http: HttpSettings = Field(default_factory=HttpSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    model_config = {"extra": "ignore"}

    @property
    def images_configured(self) -> bool:
        return bool(self.images.api_key and self.images.engine_id)

    @classmethod
    def load(cls, path: Path | None = None, environ: Mapping[str, str] | None = None) -> "Settings":
        environ = os.environ if environ is None else environ
        config_path = path or Path(environ.get("DASHBOARD_CONFIG") or DEFAULT_CONFIG_PATH)
        data: dict[str, Any] = {}
        if config_path.exists():
            with config_path.open("r", encoding="utf-8") as fp:
                data = yaml.safe_load(fp) or {}
        for env_key, (section, field_name) in _ENV_MAP.items():
            value = environ.get(env_key)
            if value is None or value == "":
                continue
            data.setdefault(section, {})[field_name] = value
        return cls(**data)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.load()


__all__ = ["Settings", "get_settings"]
