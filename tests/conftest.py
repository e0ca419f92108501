"""Shared test fixtures for pagecache.

Provides an in-memory request context that satisfies
:class:`~pagecache.cache.context.RequestContext`, a cache rooted in
``tmp_path``, isolated config directories, and a CLI runner. These fixtures
are discovered by pytest automatically.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import pytest

from pagecache.cache import PageCache
from pagecache.output import reset_output


class FakeContext:
    """Request/response double recording everything the engine emits."""

    def __init__(
        self,
        uri: str = "/",
        status: Optional[int] = 200,
        headers: Optional[list[tuple[str, str]]] = None,
    ) -> None:
        self.uri = uri
        self.status = status
        self.headers: list[tuple[str, str]] = list(headers or [])
        self.sent: list[tuple[int, str]] = []
        self.chunks: list[bytes] = []

    @property
    def body(self) -> bytes:
        return b"".join(self.chunks)

    def request_uri(self) -> str:
        return self.uri

    def response_headers(self) -> list[tuple[str, str]]:
        return self.headers

    def status_code(self) -> Optional[int]:
        return self.status

    def send_headers(self, status: int, content_type: str) -> None:
        self.sent.append((status, content_type))

    def write(self, data: bytes) -> None:
        self.chunks.append(data)


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time; CliRunner swaps those streams per invocation.
    """
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Cache fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def cache_dir(tmp_path: Path) -> Path:
    """Cache root inside tmp_path (not created up front)."""
    return tmp_path / "cache"


@pytest.fixture
def staging_dir(tmp_path: Path) -> Path:
    """Temp-file directory on the same filesystem as ``cache_dir``."""
    path = tmp_path / "staging"
    path.mkdir()
    return path


@pytest.fixture
def cache(cache_dir: Path, staging_dir: Path) -> PageCache:
    """A PageCache with default types."""
    return PageCache(cache_dir, temp_dir=staging_dir)


@pytest.fixture
def make_context():
    """Factory for :class:`FakeContext` instances."""
    return FakeContext


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Forces the XDG code path, points XDG_CONFIG_HOME and XDG_CACHE_HOME at
    subdirectories of tmp_path, clears PAGECACHE_DIR and changes the working
    directory to tmp_path.
    """
    monkeypatch.setattr("pagecache.config._is_xdg_platform", lambda: True)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path / "xdg-cache"))
    monkeypatch.delenv("PAGECACHE_DIR", raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# CLI runner fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    from typer.testing import CliRunner

    return CliRunner()
