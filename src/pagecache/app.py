"""Typer application factory and CLI entry point for pagecache.

The CLI is a maintenance tool for a cache directory that a web application
fills through :class:`~pagecache.wsgi.CacheMiddleware` (or its own
:class:`~pagecache.cache.engine.PageCache` calls). It can show which file a
URI maps to, list and delete entries, flush the whole directory, and warm
pages over HTTP.

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``. :class:`~pagecache.exceptions.PagecacheError` instances
are reported on stderr and mapped to their exit code.
"""

from __future__ import annotations

import logging
import signal
import sys
from typing import Any, Optional

import typer

from pagecache import __version__
from pagecache.exit_codes import EXIT_GENERIC_FAILURE


app = typer.Typer(
    name="pagecache",
    help="Inspect and maintain a filesystem response cache.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)

from pagecache.commands.cache import register_cache_commands  # noqa: E402
from pagecache.commands.config import config_app  # noqa: E402

register_cache_commands(app)
app.add_typer(config_app, name="config", help="Configuration management.")


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"pagecache {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    cache_dir: Optional[str] = typer.Option(
        None, "--cache-dir", "-d", help="Cache directory (overrides config and PAGECACHE_DIR)."
    ),
    json_output: bool = typer.Option(
        False, "--json", help="JSON output format."
    ),
    plain_output: bool = typer.Option(
        False, "--plain", help="Plain text output."
    ),
    no_color: bool = typer.Option(
        False, "--no-color", help="Disable color output."
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable debug output."
    ),
) -> None:
    """Root callback executed before every sub-command.

    Installs the global :class:`~pagecache.output.OutputManager`, configures
    :mod:`logging` for the library modules, and stores shared options in
    ``ctx.obj``.
    """
    from pagecache.output import OutputFormat, OutputManager, set_output

    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN
    else:
        from pagecache.config import resolve_config

        fmt = OutputFormat(resolve_config(cache_dir).output.format.value)

    set_output(
        OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose)
    )
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    ctx.ensure_object(dict)
    ctx.obj["cache_dir"] = cache_dir
    ctx.obj["verbose"] = verbose


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def main() -> None:
    """CLI entry point invoked by the ``pagecache`` console script.

    Raises:
        SystemExit: Always raised (either by Typer or explicitly).
    """
    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
    except Exception as exc:
        from pagecache.exceptions import PagecacheError
        from pagecache.output import error

        if isinstance(exc, PagecacheError):
            error(str(exc))
            sys.exit(exc.exit_code)
        error(f"Unexpected error: {exc}")
        sys.exit(EXIT_GENERIC_FAILURE)
