"""Cache commands -- inspect, prune, flush, and warm the cache directory.

Registered directly on the root application by :func:`register_cache_commands`
so that they read as ``pagecache lookup /about`` rather than a nested group.
Every command resolves the effective configuration first (see
:func:`~pagecache.config.resolve_config`), so ``--cache-dir``,
``PAGECACHE_DIR`` and the config files all apply.
"""

from __future__ import annotations

from typing import Optional

import typer

from pagecache.exceptions import CacheStorageError, NotFoundError
from pagecache.exit_codes import EXIT_GENERIC_FAILURE
from pagecache.output import (
    OutputFormat,
    debug,
    format_response,
    get_output,
    info,
    print_data,
    print_table,
    success,
)


def _load_cache(ctx: typer.Context):
    """Build a :class:`~pagecache.cache.engine.PageCache` from resolved config."""
    from pagecache.cache import PageCache
    from pagecache.config import resolve_config

    cli_cache_dir: Optional[str] = (ctx.obj or {}).get("cache_dir")
    config = resolve_config(cli_cache_dir)
    debug(f"Cache directory: {config.cache.cache_dir}")
    return PageCache.from_config(config.cache)


def key_command(
    uri: str = typer.Argument(help="Request path and query string, e.g. '/blog?page=2'."),
) -> None:
    """Print the cache key derived from a URI.

    Example::

        pagecache key '/hello world?x=1'
    """
    from pagecache.cache.keys import derive_key, hash_uri

    key = derive_key(uri)
    if get_output().format == OutputFormat.JSON:
        format_response({"uri": uri, "key": key, "sha256": hash_uri(uri)})
    else:
        print_data(key)


def lookup_command(
    ctx: typer.Context,
    uri: str = typer.Argument(help="Request path and query string."),
) -> None:
    """Show the cache entry that would be served for a URI.

    Exits with code 4 when nothing is cached. Invalidation hooks registered
    by the application are not evaluated here.
    """
    cache = _load_cache(ctx)
    path = cache.find_cached_file(uri)
    if path is None:
        raise NotFoundError(f"No cache entry for {uri}")

    content_type = cache.registry.content_type_for(
        cache.resolver.extension_from_path(path.name)
    )
    if get_output().format == OutputFormat.JSON:
        format_response(
            {
                "uri": uri,
                "path": str(path),
                "content_type": content_type,
                "size": path.stat().st_size,
            }
        )
    else:
        print_data(str(path))
        info(f"Content-Type: {content_type}")


def list_command(ctx: typer.Context) -> None:
    """List the entries in the cache directory."""
    cache = _load_cache(ctx)
    rows: list[list[str]] = []
    for path in cache.entries():
        extension = cache.resolver.extension_from_path(path.name)
        try:
            size = path.stat().st_size
        except FileNotFoundError:
            continue
        rows.append(
            [
                path.name,
                extension or "",
                cache.registry.content_type_for(extension),
                str(size),
            ]
        )
    if not rows:
        info(f"Cache directory {cache.cache_dir} is empty.")
        return
    print_table(["name", "extension", "content_type", "size"], rows, title=str(cache.cache_dir))


def forget_command(
    ctx: typer.Context,
    uri: str = typer.Argument(help="Request path and query string."),
) -> None:
    """Delete every cached variant of a URI."""
    cache = _load_cache(ctx)
    removed = cache.forget(uri)
    if removed:
        success(f"Removed {removed} cache entr{'y' if removed == 1 else 'ies'} for {uri}")
    else:
        info(f"Nothing cached for {uri}")


def flush_command(
    ctx: typer.Context,
    force: bool = typer.Option(False, "--force", "-f", help="Skip the confirmation prompt."),
) -> None:
    """Delete everything in the cache directory (the directory itself is kept)."""
    cache = _load_cache(ctx)
    if not force:
        typer.confirm(f"Delete all entries in {cache.cache_dir}?", abort=True)
    try:
        cache.flush()
    except OSError as exc:
        raise CacheStorageError(f"Could not flush {cache.cache_dir}: {exc}") from exc
    success(f"Flushed {cache.cache_dir}")


def warm_command(
    base_url: str = typer.Argument(help="Server root, e.g. http://localhost:8000."),
    paths: list[str] = typer.Argument(help="Paths to request."),
    timeout: float = typer.Option(30.0, "--timeout", help="Per-request timeout in seconds."),
) -> None:
    """Request pages from a running server so that its cache fills up.

    Exits with code 1 if any page did not answer with status 200.
    """
    from pagecache.warm import warm

    results = warm(base_url, paths, timeout=timeout)
    print_table(
        ["path", "status", "error"],
        [
            [r.path, str(r.status_code) if r.status_code is not None else "", r.error or ""]
            for r in results
        ],
    )
    if not all(r.ok for r in results):
        raise typer.Exit(code=EXIT_GENERIC_FAILURE)


def register_cache_commands(app: typer.Typer) -> None:
    """Attach the cache commands to *app*."""
    app.command("key")(key_command)
    app.command("lookup")(lookup_command)
    app.command("list")(list_command)
    app.command("forget")(forget_command)
    app.command("flush")(flush_command)
    app.command("warm")(warm_command)
