"""Configuration management with XDG paths, atomic writes, and precedence resolution.

This module handles all persistent configuration for pagecache:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.pagecache/`` on macOS and Windows. See :func:`get_config_dir` and
  :func:`get_cache_dir`.
* **Global config** -- A single :class:`~pagecache.models.GlobalConfig`
  JSON file storing the cache settings and output defaults.
* **Project config** -- An optional ``./pagecache.json`` with the same
  shape, typically pinning ``cache.cache_dir`` for one site.
* **Precedence resolution** -- :func:`resolve_config` merges CLI flags,
  environment variables, project-local config, and global config into the
  final effective configuration.

Config writes use an atomic temp-file-then-rename strategy
(:func:`_atomic_write`) to prevent data loss on crash or power failure.
"""

from __future__ import annotations

import json
import os
import platform
import tempfile
from pathlib import Path
from typing import Any, Optional

from pagecache.exceptions import ConfigError
from pagecache.models import GlobalConfig

_APP_NAME = "pagecache"
_CONFIG_FILENAME = "config.json"
_PROJECT_CONFIG_FILENAME = "pagecache.json"

ENV_CACHE_DIR = "PAGECACHE_DIR"


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _fallback_base_dir() -> Path:
    """Fallback base directory for non-XDG platforms (macOS, Windows)."""
    return Path.home() / f".{_APP_NAME}"


def _xdg_base(env_var: str, default_segments: tuple[str, ...]) -> Path:
    """Resolve an XDG base directory from an env var with fallback segments under $HOME."""
    env_value = os.environ.get(env_var, "")
    if env_value:
        return Path(env_value)
    base = Path.home()
    for seg in default_segments:
        base = base / seg
    return base


def get_config_dir() -> Path:
    """Return the configuration directory, creating it if necessary.

    On Linux/BSD: ``$XDG_CONFIG_HOME/pagecache/`` (default ``~/.config/pagecache/``).
    On macOS/Windows: ``~/.pagecache/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CONFIG_HOME", (".config",)) / _APP_NAME
    else:
        path = _fallback_base_dir()
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_cache_dir() -> Path:
    """Return the default cache root.

    Unlike :func:`get_config_dir` the directory is *not* created here; the
    store creates it lazily on the first successful write.

    On Linux/BSD: ``$XDG_CACHE_HOME/pagecache/pages`` (default
    ``~/.cache/pagecache/pages``).
    On macOS/Windows: ``~/.pagecache/cache/pages``.
    """
    if _is_xdg_platform():
        base = _xdg_base("XDG_CACHE_HOME", (".cache",)) / _APP_NAME
    else:
        base = _fallback_base_dir() / "cache"
    return base / "pages"


# --- Atomic file writes ---


def _atomic_write(path: Path, data: str) -> None:
    """Write data to file atomically using temp file + rename.

    The temporary file is created in the same directory as *path* so that
    ``os.replace`` is an atomic rename on POSIX systems. On any failure the
    temp file is cleaned up and the error re-raised.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    fd = None
    tmp_path: Optional[str] = None
    try:
        fd = tempfile.NamedTemporaryFile(
            mode="w",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
        )
        tmp_path = fd.name
        fd.write(data)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None  # prevent double-close below
        os.replace(tmp_path, path)
    except BaseException:
        if fd is not None:
            fd.close()
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
        raise


# --- Global config ---


def _global_config_path() -> Path:
    """Path to the global config file."""
    return get_config_dir() / _CONFIG_FILENAME


def _read_json(path: Path, label: str) -> Any:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigError(f"Invalid {label} at {path}: {exc}") from exc


def load_global_config() -> GlobalConfig:
    """Load the global configuration from the config directory.

    Returns:
        The deserialised :class:`~pagecache.models.GlobalConfig`, or a default
        instance when the file does not exist.

    Raises:
        ConfigError: If the file contains invalid JSON or fails validation.
    """
    path = _global_config_path()
    if not path.is_file():
        return GlobalConfig()
    data = _read_json(path, "global config")
    try:
        return GlobalConfig.model_validate(data)
    except ValueError as exc:
        raise ConfigError(f"Invalid global config at {path}: {exc}") from exc


def save_global_config(config: GlobalConfig) -> Path:
    """Persist the global configuration atomically and return its path."""
    path = _global_config_path()
    data = config.model_dump(mode="json")
    _atomic_write(path, json.dumps(data, indent=2) + "\n")
    return path


# --- Project-local config ---


def load_project_config() -> Optional[dict[str, Any]]:
    """Load project-local configuration from ``./pagecache.json``.

    Returns:
        The parsed JSON object, or ``None`` if the file does not exist.

    Raises:
        ConfigError: If the file exists but is not a JSON object.
    """
    path = Path.cwd() / _PROJECT_CONFIG_FILENAME
    if not path.is_file():
        return None
    data = _read_json(path, "project config")
    if not isinstance(data, dict):
        raise ConfigError(f"Invalid project config at {path}: expected a JSON object")
    return data


# --- Precedence resolution ---


def resolve_config(cli_cache_dir: Optional[str] = None) -> GlobalConfig:
    """Resolve the effective configuration.

    Precedence (high to low):
        1. CLI flag ``--cache-dir`` (``cli_cache_dir``)
        2. Environment variable ``PAGECACHE_DIR``
        3. Project config (``./pagecache.json``)
        4. User config (``~/.config/pagecache/config.json``)
        5. Defaults

    The returned config always has ``cache.cache_dir`` set.
    """
    global_cfg = load_global_config()

    project = load_project_config()
    if project is not None:
        merged = global_cfg.model_dump(mode="json")
        for section in ("cache", "output"):
            if isinstance(project.get(section), dict):
                merged[section].update(project[section])
        try:
            global_cfg = GlobalConfig.model_validate(merged)
        except ValueError as exc:
            raise ConfigError(f"Invalid project config: {exc}") from exc

    cache_dir: Optional[Path] = global_cfg.cache.cache_dir
    env_dir = os.environ.get(ENV_CACHE_DIR)
    if env_dir:
        cache_dir = Path(env_dir)
    if cli_cache_dir is not None:
        cache_dir = Path(cli_cache_dir)
    if cache_dir is None:
        cache_dir = get_cache_dir()

    global_cfg.cache = global_cfg.cache.model_copy(
        update={"cache_dir": cache_dir.expanduser()}
    )

    return global_cfg
