"""pagecache -- a transparent, filesystem-backed cache for full HTTP responses.

Responses produced by a dynamic handler are captured, stored on disk under a
name derived from the request URI, and served straight from disk on the next
identical request. Entries are plain files named
``<slug>.<sha256>.<extension>``; the extension round-trips the response's
content type.

Typical usage with a WSGI application::

    from pagecache import PageCache
    from pagecache.wsgi import CacheMiddleware

    cache = PageCache("/var/cache/site")
    application = CacheMiddleware(application, cache)

Modules:
    cache: Key derivation, type registry, extension resolver, store, engine.
    hooks: Ready-made invalidation hooks.
    wsgi: WSGI middleware adapter.
    warm: Prime the cache of a running server over HTTP.
    app: Typer application factory and CLI entry point.
    models: Pydantic configuration models.
    config: XDG-aware configuration loading and precedence resolution.
    exceptions: Exception hierarchy with exit-code mapping.
    output: stdout/stderr formatting system with Rich support.
"""

__version__ = "0.1.0"

from pagecache.cache import PageCache  # noqa: E402

__all__ = ["PageCache", "__version__"]
