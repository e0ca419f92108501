"""Bidirectional content-type / file-extension registry.

The registry is built once from an ordered mapping and never changes
afterwards. Insertion order matters twice: the first entry is the default
for responses that declare no known type, and reverse lookups
(extension -> content type) take the first content type that claims the
extension, so ``{"text/html": "html", "application/xhtml+xml": "html"}``
serves ``.html`` files as ``text/html``.
"""

from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType
from typing import Optional

from pagecache.exceptions import ConfigError

# For a list of common media types see
# https://www.iana.org/assignments/media-types/media-types.xhtml
DEFAULT_TYPES: Mapping[str, str] = MappingProxyType(
    {
        "text/html": "html",
        "text/xml": "xml",
        "application/json": "json",
        "text/plain": "txt",
    }
)


class TypeRegistry:
    """Ordered, immutable content-type to extension map.

    Args:
        types: Content type -> extension mapping. ``None`` selects
            :data:`DEFAULT_TYPES`.

    Raises:
        ConfigError: If *types* is given but empty.
    """

    def __init__(self, types: Optional[Mapping[str, str]] = None) -> None:
        if types is not None and not len(types):
            raise ConfigError("types cannot be empty")
        self._types: Mapping[str, str] = MappingProxyType(
            dict(types if types else DEFAULT_TYPES)
        )
        self._extensions: tuple[str, ...] = tuple(self._types.values())

    def __repr__(self) -> str:
        return f"TypeRegistry({dict(self._types)!r})"

    @property
    def types(self) -> Mapping[str, str]:
        """Read-only view of the configured mapping."""
        return self._types

    @property
    def extensions(self) -> tuple[str, ...]:
        """Configured extensions in insertion order (duplicates kept)."""
        return self._extensions

    @property
    def default_extension(self) -> str:
        return self._extensions[0]

    @property
    def default_content_type(self) -> str:
        return next(iter(self._types))

    def extension_for(self, content_type: str) -> Optional[str]:
        """Return the extension registered for *content_type*, if any."""
        return self._types.get(content_type)

    def content_type_for(self, extension: Optional[str]) -> str:
        """Return the first content type mapped to *extension*.

        Falls back to :attr:`default_content_type` so that a served file
        always gets some ``Content-Type``.
        """
        if extension is not None:
            for content_type, ext in self._types.items():
                if ext == extension:
                    return content_type
        return self.default_content_type

    def is_known_extension(self, ext: str) -> bool:
        return ext in self._extensions
