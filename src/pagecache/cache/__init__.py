"""Filesystem-backed response cache.

This package provides :class:`PageCache`, which stores full response bodies
as flat files named ``<slug>.<sha256>.<extension>`` and serves them back on
identical requests. The pieces it is built from are importable on their own:

* :mod:`~pagecache.cache.keys` -- URI -> cache key.
* :mod:`~pagecache.cache.types` -- content type <-> extension registry.
* :mod:`~pagecache.cache.resolver` -- extension choice for writes and reads.
* :mod:`~pagecache.cache.store` -- atomic flat-directory storage.
* :mod:`~pagecache.cache.context` -- the request/response contract.
"""

from pagecache.cache.context import Capture, RequestContext
from pagecache.cache.engine import InvalidationHook, PageCache
from pagecache.cache.keys import derive_key, sanitize
from pagecache.cache.resolver import ExtensionResolver
from pagecache.cache.store import FileStore
from pagecache.cache.types import DEFAULT_TYPES, TypeRegistry

__all__ = [
    "DEFAULT_TYPES",
    "Capture",
    "ExtensionResolver",
    "FileStore",
    "InvalidationHook",
    "PageCache",
    "RequestContext",
    "TypeRegistry",
    "derive_key",
    "sanitize",
]
