"""Settings for the linked field service.

Each setting is resolved from the first source that supplies it:

1. an environment variable (e.g. ``DATABASE_URL``);
2. a one-line text file under ``config/`` (e.g. ``config/database.url``);
3. the ``linked_fields_config.json`` document at the project root;
4. a development default.

The resolved values are validated by pydantic; an invalid combination is
logged and the ValidationError propagates to the caller.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Mapping, NamedTuple, Optional

from pydantic import BaseModel, ValidationError as PydanticValidationError, field_validator


OVERRIDES_DIR = Path("config")
SETTINGS_FILE = Path("linked_fields_config.json")
DEFAULT_DSN = "sqlite+aiosqlite:///./linked_fields.db"
logger = logging.getLogger(__name__)


class _Setting(NamedTuple):
    env: str
    override_file: str
    json_path: str
    default: Optional[str]


_SETTINGS = {
    "dsn": _Setting("DATABASE_URL", "database.url", "database.dsn", DEFAULT_DSN),
    "echo": _Setting("DATABASE_ECHO", "database.echo", "database.echo", "false"),
    "media_base_url": _Setting("MEDIA_BASE_URL", "media.base_url", "media.base_url", "http://localhost:8000/media"),
    "thumbnail_variant": _Setting(
        "MEDIA_THUMBNAIL_VARIANT", "media.thumbnail_variant", "media.thumbnail_variant", "thumbnail"
    ),
}


class DatabaseConfig(BaseModel):
    dsn: str
    echo: bool = False

    @field_validator("dsn")
    @classmethod
    def dsn_present(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("database.dsn must not be blank")
        return v.strip()


class MediaConfig(BaseModel):
    base_url: str
    thumbnail_variant: str = "thumbnail"

    @field_validator("base_url")
    @classmethod
    def base_url_is_http(cls, v: str) -> str:
        v = v.strip()
        if not v.startswith(("http://", "https://")):
            raise ValueError("media.base_url must be an http(s) URL")
        return v.rstrip("/")


class AppConfig(BaseModel):
    database: DatabaseConfig
    media: MediaConfig


def _override(name: str) -> Optional[str]:
    path = OVERRIDES_DIR / name
    if not path.exists():
        return None
    try:
        return path.read_text(encoding="utf-8").strip() or None
    except (OSError, UnicodeDecodeError) as e:
        # An unreadable override falls through to the next source
        logger.warning("config_override_unreadable path=%s error=%s", path, e)
        return None


def _load_settings_file(path: Path) -> Mapping[str, Any]:
    if not path.exists():
        return {}
    try:
        document = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        logger.error("config_file_unreadable path=%s error=%s", path, e)
        return {}
    return document if isinstance(document, dict) else {}


def _lookup(document: Mapping[str, Any], dotted: str) -> Optional[str]:
    node: Any = document
    for part in dotted.split("."):
        if not isinstance(node, Mapping) or part not in node:
            return None
        node = node[part]
    return None if node is None else str(node)


def _resolve(setting: _Setting, document: Mapping[str, Any]) -> Optional[str]:
    return (
        os.environ.get(setting.env)
        or _override(setting.override_file)
        or _lookup(document, setting.json_path)
        or setting.default
    )


def load_config() -> AppConfig:
    document = _load_settings_file(SETTINGS_FILE)
    values = {name: _resolve(setting, document) for name, setting in _SETTINGS.items()}
    try:
        return AppConfig(
            database=DatabaseConfig(dsn=values["dsn"], echo=values["echo"].strip().lower() == "true"),
            media=MediaConfig(base_url=values["media_base_url"], thumbnail_variant=values["thumbnail_variant"].strip()),
        )
    except PydanticValidationError as e:
        logger.error("config_invalid errors=%s", e.errors())
        raise


__all__ = [
    "AppConfig",
    "DatabaseConfig",
    "MediaConfig",
    "DEFAULT_DSN",
    "load_config",
]
