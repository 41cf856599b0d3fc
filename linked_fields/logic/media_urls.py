"""URL building for stored media.

File storage lives outside this service; the collectors only need to turn a
media row into public URLs. `StaticMediaService` follows the storage
layout `<base_url>/<media id>/<file name>` with generated variants under
`conversions/<stem>-<variant>.<ext>`.
"""

from __future__ import annotations

from pathlib import PurePosixPath
from typing import Any, Optional, Protocol

from linked_fields.config import AppConfig


class MediaService(Protocol):
    thumbnail_variant: str

    def get_url(self, media: Any, variant: Optional[str] = None) -> str: ...


class StaticMediaService:
    def __init__(self, base_url: str, thumbnail_variant: str = "thumbnail"):
        self.base_url = base_url.rstrip("/")
        self.thumbnail_variant = thumbnail_variant

    @classmethod
    def from_config(cls, config: AppConfig) -> "StaticMediaService":
        return cls(config.media.base_url, config.media.thumbnail_variant)

    def get_url(self, media: Any, variant: Optional[str] = None) -> str:
        if variant is None:
            return f"{self.base_url}/{media.id}/{media.file_name}"
        path = PurePosixPath(media.file_name)
        return f"{self.base_url}/{media.id}/conversions/{path.stem}-{variant}{path.suffix}"


__all__ = ["MediaService", "StaticMediaService"]
