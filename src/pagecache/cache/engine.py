"""The :class:`PageCache` engine.

Ties key derivation, extension negotiation, and the file store together
behind the two per-request paths:

* **serve** -- look up an entry for the current URI, let the invalidation
  hooks veto it, and stream it to the client;
* **capture** -- buffer the handler's output, forward it to the client, and
  store it when the response status is 200.

The engine keeps no mutable state besides the hook list, which is meant to be
filled once at startup. All coordination between concurrent requests happens
on the filesystem through the store's temp-file + rename writes.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import TYPE_CHECKING, Optional, Union

from pagecache.cache.context import Capture, RequestContext
from pagecache.cache.keys import assert_sha256_available, derive_key
from pagecache.cache.resolver import ExtensionResolver
from pagecache.cache.store import FileStore
from pagecache.cache.types import TypeRegistry

if TYPE_CHECKING:
    from pagecache.models import CacheConfig

logger = logging.getLogger(__name__)

InvalidationHook = Callable[[Path], bool]

CHUNK_SIZE = 64 * 1024
"""Bytes read per iteration when streaming an entry to the client."""

HTTP_OK = 200


class PageCache:
    """Filesystem-backed cache for full response bodies.

    Args:
        cache_dir: Directory owned by the cache. Everything inside it is
            deleted by :meth:`flush`.
        types: Ordered content-type -> extension mapping; ``None`` selects
            the defaults (html, xml, json, txt).
        temp_dir: Staging directory for atomic writes, see
            :class:`~pagecache.cache.store.FileStore`.
        file_mode: Permission bits for stored entries.

    Raises:
        ConfigError: If *types* is empty or SHA-256 is unavailable.

    Example::

        cache = PageCache("/var/cache/site")
        cache.invalidate(lambda path: user_is_logged_in())

        if not cache.serve(ctx):
            capture = cache.begin_capture(ctx)
            render_page(capture.write)
            cache.end_capture(capture)
    """

    def __init__(
        self,
        cache_dir: Union[str, Path],
        types: Optional[Mapping[str, str]] = None,
        *,
        temp_dir: Union[str, Path, None] = None,
        file_mode: int = 0o644,
    ) -> None:
        assert_sha256_available()
        self.registry = TypeRegistry(types)
        self.resolver = ExtensionResolver(self.registry)
        self.store = FileStore(cache_dir, temp_dir=temp_dir, file_mode=file_mode)
        self._hooks: list[InvalidationHook] = []

    @classmethod
    def from_config(cls, config: CacheConfig) -> PageCache:
        """Build an engine from a resolved :class:`~pagecache.models.CacheConfig`."""
        if config.cache_dir is None:
            from pagecache.config import get_cache_dir

            cache_dir: Path = get_cache_dir()
        else:
            cache_dir = config.cache_dir
        return cls(
            cache_dir,
            config.types,
            temp_dir=config.temp_dir,
            file_mode=config.file_mode,
        )

    @property
    def cache_dir(self) -> Path:
        return self.store.root

    @property
    def hooks(self) -> tuple[InvalidationHook, ...]:
        return tuple(self._hooks)

    # ------------------------------------------------------------------ #
    # Invalidation
    # ------------------------------------------------------------------ #

    def invalidate(self, hook: InvalidationHook) -> None:
        """Register *hook*; a truthy result skips the cache for that request.

        Hooks receive the path of the entry that would be served and are
        evaluated in registration order on every hit. The entry itself is
        left on disk.
        """
        self._hooks.append(hook)

    def _is_invalidated(self, path: Path) -> bool:
        for hook in self._hooks:
            if hook(path):
                logger.debug("Cache bypassed for %s by %r", path.name, hook)
                return True
        return False

    # ------------------------------------------------------------------ #
    # Serve path
    # ------------------------------------------------------------------ #

    def find_cached_file(self, uri: str) -> Optional[Path]:
        """Return the entry that would be served for *uri*, ignoring hooks."""
        key = derive_key(uri)
        return self.store.read_exists(key, self.resolver.candidates_for_read(uri))

    def serve(self, context: RequestContext) -> bool:
        """Send the cached response for the current request, if there is one.

        Returns:
            ``True`` when the entry was streamed in full. ``False`` on a miss,
            when a hook vetoed the hit, when the entry disappeared before it
            could be opened (no headers are sent in that case), or when
            reading failed mid-stream (headers may already be out).
        """
        uri = context.request_uri()
        path = self.find_cached_file(uri)
        if path is None:
            return False
        if self._is_invalidated(path):
            return False

        content_type = self.registry.content_type_for(
            self.resolver.extension_from_path(path.name)
        )
        try:
            fh = path.open("rb")
        except OSError:
            logger.debug("Cache entry %s vanished before it could be read", path)
            return False
        with fh:
            context.send_headers(HTTP_OK, content_type)
            try:
                for chunk in iter(lambda: fh.read(CHUNK_SIZE), b""):
                    context.write(chunk)
            except OSError as exc:
                logger.warning("Failed while streaming %s: %s", path, exc)
                return False
        logger.debug("Served %s from %s", uri, path.name)
        return True

    # ------------------------------------------------------------------ #
    # Capture path
    # ------------------------------------------------------------------ #

    def begin_capture(self, context: RequestContext) -> Capture:
        """Start buffering the response body for *context*."""
        return Capture(context)

    def end_capture(self, capture: Capture, do_cache: bool = True) -> bool:
        """Forward the captured body to the client, then try to store it.

        The client receives the same bytes whether or not caching succeeds.

        Returns:
            ``True`` if the response was stored, ``False`` if the status was
            not 200, *do_cache* was false, or the write failed.
        """
        context = capture.context
        body = capture.close()
        context.write(body)
        if context.status_code() == HTTP_OK and do_cache:
            return self.add(context, body)
        return False

    def add(self, context: RequestContext, body: bytes) -> bool:
        """Store *body* as the response for the context's current URI."""
        uri = context.request_uri()
        extension = self.resolver.resolve_for_write(context.response_headers(), uri)
        return self.store.write(derive_key(uri), extension, body)

    # ------------------------------------------------------------------ #
    # Maintenance
    # ------------------------------------------------------------------ #

    def forget(self, uri: str) -> int:
        """Delete every stored variant for *uri*; return the number removed."""
        return self.store.delete(derive_key(uri), self.registry.extensions)

    def entries(self) -> list[Path]:
        return self.store.entries()

    def flush(self) -> None:
        """Delete all entries, keeping the cache directory itself."""
        self.store.purge_all()
