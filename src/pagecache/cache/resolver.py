"""Extension negotiation for cache writes and reads.

Write time picks a single extension for the response about to be stored:

1. the ``Content-Type`` the handler declared, if registered;
2. the extension at the end of the URI path, if registered;
3. the registry default.

Read time lists the extensions worth probing on disk. A URI that ends in a
known extension (``/feed.xml``) only ever matches that exact extension;
anything else probes every configured extension in order.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from typing import Optional

from pagecache.cache.types import TypeRegistry

_MEDIA_TYPE = re.compile(r"^\s*([a-zA-Z0-9./+-]+)")


class ExtensionResolver:
    """Chooses file extensions using a :class:`TypeRegistry`."""

    def __init__(self, registry: TypeRegistry) -> None:
        self.registry = registry

    def extension_from_path(self, path: str) -> Optional[str]:
        """Return the trailing ``.ext`` of *path* if it is a known extension.

        A name without any dot never yields an extension, even when the
        whole name equals one (``/json``).
        """
        parts = path.split(".")
        if len(parts) > 1 and self.registry.is_known_extension(parts[-1]):
            return parts[-1]
        return None

    def extension_from_uri(self, uri: str) -> Optional[str]:
        """Like :meth:`extension_from_path`, ignoring the query string."""
        path = uri.split("?", 1)[0]
        return self.extension_from_path(path)

    def extension_from_headers(
        self, headers: Iterable[tuple[str, str]]
    ) -> Optional[str]:
        """Return the extension for the first registered ``Content-Type`` header."""
        for name, value in headers:
            if name.lower() != "content-type":
                continue
            match = _MEDIA_TYPE.match(value)
            if match:
                extension = self.registry.extension_for(match.group(1))
                if extension is not None:
                    return extension
        return None

    def resolve_for_write(
        self, headers: Iterable[tuple[str, str]], uri: str
    ) -> str:
        return (
            self.extension_from_headers(headers)
            or self.extension_from_uri(uri)
            or self.registry.default_extension
        )

    def candidates_for_read(self, uri: str) -> tuple[str, ...]:
        extension = self.extension_from_uri(uri)
        if extension:
            return (extension,)
        return self.registry.extensions
