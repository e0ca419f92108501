"""Config commands -- view and initialise configuration.

Provides the ``pagecache config`` sub-command group. ``show`` prints the
effective configuration after precedence resolution; ``init`` writes a
global config file with the default content-type map so it can be edited.
"""

from __future__ import annotations

from typing import Optional

import typer

from pagecache.exceptions import InvalidUsageError
from pagecache.output import format_response, info, success


config_app = typer.Typer(no_args_is_help=True)


@config_app.command("show")
def config_show(ctx: typer.Context) -> None:
    """Show the effective configuration.

    Example::

        pagecache config show
        pagecache --json config show
    """
    from pagecache.config import get_config_dir, resolve_config

    config = resolve_config((ctx.obj or {}).get("cache_dir"))
    info(f"Config directory: {get_config_dir()}")
    format_response(config.model_dump(mode="json"))


@config_app.command("init")
def config_init(
    cache_dir: Optional[str] = typer.Option(
        None, "--cache-dir", help="Cache directory to store in the config file."
    ),
    force: bool = typer.Option(False, "--force", "-f", help="Overwrite an existing config file."),
) -> None:
    """Write a global config file pre-filled with the default content types."""
    from pathlib import Path

    from pagecache.cache.types import DEFAULT_TYPES
    from pagecache.config import get_config_dir, save_global_config
    from pagecache.models import CacheConfig, GlobalConfig

    target = get_config_dir() / "config.json"
    if target.exists() and not force:
        raise InvalidUsageError(
            f"Config file already exists: {target} (use --force to overwrite)"
        )

    config = GlobalConfig(
        cache=CacheConfig(
            cache_dir=Path(cache_dir) if cache_dir else None,
            types=dict(DEFAULT_TYPES),
        )
    )
    path = save_global_config(config)
    success(f"Wrote {path}")
