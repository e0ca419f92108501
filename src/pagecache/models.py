"""Pydantic configuration models for pagecache.

Configuration is serialised as JSON in the user's config directory
(``config.json``) and, optionally, in a project-local ``pagecache.json``.
:class:`GlobalConfig` is the top-level document; the cache engine only ever
sees the nested :class:`CacheConfig`.

Models are frozen where they are handed to the engine, since the type map is
constructed once and never mutated afterwards.
"""

from __future__ import annotations

import enum
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class CacheConfig(BaseModel):
    """Settings consumed by :meth:`~pagecache.cache.engine.PageCache.from_config`.

    ``types`` maps content types to file extensions in priority order. The
    first entry is the default used when neither the response nor the URI
    names a known type. Leaving it unset selects the built-in defaults
    (html, xml, json, txt); an explicitly empty mapping is rejected.

    Example::

        CacheConfig(
            cache_dir="/var/cache/site",
            types={"text/html": "html", "application/rss+xml": "rss"},
        )
    """

    model_config = ConfigDict(frozen=True)

    cache_dir: Optional[Path] = Field(
        default=None,
        description="Cache root directory (defaults to the XDG cache directory)",
    )
    types: Optional[dict[str, str]] = Field(
        default=None,
        description="Ordered content-type to extension map; first entry is the default",
    )
    temp_dir: Optional[Path] = Field(
        default=None,
        description="Directory for in-flight writes (defaults to the system temp dir)",
    )
    file_mode: int = Field(
        default=0o644, description="Permission bits applied to stored entries"
    )

    @field_validator("types")
    @classmethod
    def _types_not_empty(cls, value: Optional[dict[str, str]]) -> Optional[dict[str, str]]:
        if value is not None and not value:
            raise ValueError("types cannot be empty")
        return value


class OutputFormatName(str, enum.Enum):
    """Output format names accepted in the config file."""

    AUTO = "auto"
    JSON = "json"
    PLAIN = "plain"
    RICH = "rich"


class OutputConfig(BaseModel):
    """Default output format preferences stored in :class:`GlobalConfig`."""

    format: OutputFormatName = Field(default=OutputFormatName.AUTO)


class GlobalConfig(BaseModel):
    """Top-level configuration document persisted as ``config.json``."""

    cache: CacheConfig = Field(default_factory=CacheConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
