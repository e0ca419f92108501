"""Tests for the PageCache engine (serve, capture, hooks, flush)."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from pagecache.cache import PageCache
from pagecache.cache.keys import derive_key, hash_uri
from pagecache.exceptions import ConfigError
from pagecache.models import CacheConfig


def _store_response(cache: PageCache, make_context, uri: str, body: bytes, **kwargs) -> bool:
    ctx = make_context(uri, **kwargs)
    capture = cache.begin_capture(ctx)
    capture.write(body)
    return cache.end_capture(capture)


# ------------------------------------------------------------------ #
# Construction
# ------------------------------------------------------------------ #


class TestConstruction:
    def test_empty_types_rejected(self, cache_dir: Path) -> None:
        with pytest.raises(ConfigError):
            PageCache(cache_dir, {})

    def test_missing_sha256_rejected(
        self, cache_dir: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setattr("pagecache.cache.keys.hashlib.algorithms_available", set())
        with pytest.raises(ConfigError):
            PageCache(cache_dir)

    def test_does_not_create_directory(self, cache: PageCache, cache_dir: Path) -> None:
        assert not cache_dir.exists()

    def test_from_config(self, tmp_path: Path) -> None:
        config = CacheConfig(
            cache_dir=tmp_path / "c",
            types={"application/json": "json"},
            temp_dir=tmp_path,
            file_mode=0o600,
        )
        cache = PageCache.from_config(config)
        assert cache.cache_dir == tmp_path / "c"
        assert cache.registry.extensions == ("json",)
        assert cache.store.temp_dir == tmp_path
        assert cache.store.file_mode == 0o600


# ------------------------------------------------------------------ #
# Capture path
# ------------------------------------------------------------------ #


class TestCapture:
    def test_json_scenario(self, cache: PageCache, make_context, cache_dir: Path) -> None:
        uri = "/hello world?x=1"
        ctx = make_context(uri, headers=[("Content-Type", "application/json")])
        capture = cache.begin_capture(ctx)
        capture.write(b'{"a":1}')

        assert cache.end_capture(capture) is True
        assert ctx.body == b'{"a":1}'

        expected = cache_dir / f"hello-world-x-1.{hash_uri(uri)}.json"
        assert expected.read_bytes() == b'{"a":1}'

        hit = make_context(uri)
        assert cache.serve(hit) is True
        assert hit.sent == [(200, "application/json")]
        assert hit.body == b'{"a":1}'

    @pytest.mark.parametrize("status", [201, 204, 301, 404, 500, None])
    def test_non_200_not_stored_but_forwarded(
        self, cache: PageCache, make_context, cache_dir: Path, status
    ) -> None:
        ctx = make_context("/page", status=status)
        capture = cache.begin_capture(ctx)
        capture.write(b"body")

        assert cache.end_capture(capture) is False
        assert ctx.body == b"body"
        assert not cache_dir.exists() or list(cache_dir.iterdir()) == []

    def test_do_cache_false(self, cache: PageCache, make_context, cache_dir: Path) -> None:
        ctx = make_context("/page")
        capture = cache.begin_capture(ctx)
        capture.write(b"private")

        assert cache.end_capture(capture, do_cache=False) is False
        assert ctx.body == b"private"
        assert cache.find_cached_file("/page") is None

    def test_body_forwarded_before_store(self, cache: PageCache, make_context) -> None:
        events: list[str] = []
        ctx = make_context("/page")
        original_write = ctx.write

        def _write(data: bytes) -> None:
            events.append("client")
            original_write(data)

        ctx.write = _write
        original_store = cache.store.write

        def _store(*args) -> bool:
            events.append("store")
            return original_store(*args)

        cache.store.write = _store  # type: ignore[method-assign]
        capture = cache.begin_capture(ctx)
        capture.write(b"x")
        cache.end_capture(capture)
        assert events == ["client", "store"]

    def test_storage_failure_is_silent(
        self, cache: PageCache, make_context, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        def _fail(src, dst):
            raise PermissionError(13, "Permission denied")

        monkeypatch.setattr("pagecache.cache.store.os.replace", _fail)
        ctx = make_context("/page")
        capture = cache.begin_capture(ctx)
        capture.write(b"still delivered")

        assert cache.end_capture(capture) is False
        assert ctx.body == b"still delivered"

    def test_capture_consumed_once(self, cache: PageCache, make_context) -> None:
        capture = cache.begin_capture(make_context("/page"))
        cache.end_capture(capture)
        assert capture.closed
        with pytest.raises(ValueError):
            capture.write(b"late")
        with pytest.raises(ValueError):
            cache.end_capture(capture)

    def test_extension_from_uri_suffix(self, cache: PageCache, make_context) -> None:
        assert _store_response(cache, make_context, "/sitemap.xml", b"<urlset/>")
        path = cache.find_cached_file("/sitemap.xml")
        assert path is not None and path.suffix == ".xml"

    def test_default_extension(self, cache: PageCache, make_context) -> None:
        assert _store_response(cache, make_context, "/about", b"<p>about</p>")
        assert cache.find_cached_file("/about").name == f"{derive_key('/about')}.html"

    def test_declared_type_beats_uri_suffix(self, cache: PageCache, make_context) -> None:
        assert _store_response(
            cache,
            make_context,
            "/legacy.html",
            b"{}",
            headers=[("Content-Type", "application/json")],
        )
        assert cache.store.path_for(derive_key("/legacy.html"), "json").is_file()
        assert not cache.store.path_for(derive_key("/legacy.html"), "html").exists()


# ------------------------------------------------------------------ #
# Serve path
# ------------------------------------------------------------------ #


class TestServe:
    def test_miss(self, cache: PageCache, make_context) -> None:
        ctx = make_context("/nothing")
        assert cache.serve(ctx) is False
        assert ctx.sent == []
        assert ctx.body == b""

    def test_exact_suffix_rule(self, cache: PageCache, make_context) -> None:
        cache.store.write(derive_key("/a/b.json"), "html", b"<p>html</p>")
        assert cache.serve(make_context("/a/b.json")) is False

    def test_probes_extensions_in_order(self, cache: PageCache, make_context) -> None:
        key = derive_key("/report")
        cache.store.write(key, "txt", b"plain")
        cache.store.write(key, "xml", b"<xml/>")
        ctx = make_context("/report")
        assert cache.serve(ctx) is True
        assert ctx.sent == [(200, "text/xml")]
        assert ctx.body == b"<xml/>"

    def test_large_entry_streamed_in_chunks(self, cache: PageCache, make_context) -> None:
        payload = os.urandom(200 * 1024)
        cache.store.write(derive_key("/big"), "txt", payload)
        ctx = make_context("/big")
        assert cache.serve(ctx) is True
        assert len(ctx.chunks) > 1
        assert ctx.body == payload

    def test_vanished_entry_is_a_miss(self, cache: PageCache, make_context) -> None:
        key = derive_key("/gone")
        cache.store.write(key, "html", b"x")
        # The hook runs after the lookup; deleting here simulates a
        # concurrent flush between lookup and read.
        cache.invalidate(lambda path: path.unlink() or False)
        ctx = make_context("/gone")
        assert cache.serve(ctx) is False
        assert ctx.sent == []

    def test_read_error_after_headers(
        self, cache: PageCache, make_context, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        cache.store.write(derive_key("/broken"), "html", b"x" * 10)

        class _BrokenFile:
            def __enter__(self):
                return self

            def __exit__(self, *exc):
                return False

            def read(self, size: int) -> bytes:
                raise OSError(5, "Input/output error")

        monkeypatch.setattr(Path, "open", lambda self, mode="r": _BrokenFile())
        ctx = make_context("/broken")
        assert cache.serve(ctx) is False
        assert ctx.sent == [(200, "text/html")]


# ------------------------------------------------------------------ #
# Invalidation hooks
# ------------------------------------------------------------------ #


class TestInvalidation:
    def test_hook_vetoes_hit(self, cache: PageCache, make_context) -> None:
        _store_response(cache, make_context, "/page", b"cached")
        cache.invalidate(lambda path: True)
        ctx = make_context("/page")
        assert cache.serve(ctx) is False
        assert ctx.sent == []
        # The entry stays on disk for a later overwrite.
        assert cache.find_cached_file("/page") is not None

    def test_hooks_see_entry_path_in_order(self, cache: PageCache, make_context) -> None:
        _store_response(cache, make_context, "/page", b"cached")
        seen: list[tuple[str, Path]] = []
        cache.invalidate(lambda path: seen.append(("first", path)) or False)
        cache.invalidate(lambda path: seen.append(("second", path)) or False)

        assert cache.serve(make_context("/page")) is True
        expected = cache.find_cached_file("/page")
        assert seen == [("first", expected), ("second", expected)]

    def test_first_truthy_hook_stops_evaluation(self, cache: PageCache, make_context) -> None:
        _store_response(cache, make_context, "/page", b"cached")
        calls: list[str] = []
        cache.invalidate(lambda path: calls.append("a") or True)
        cache.invalidate(lambda path: calls.append("b") or False)
        assert cache.serve(make_context("/page")) is False
        assert calls == ["a"]

    def test_hooks_not_called_on_miss(self, cache: PageCache, make_context) -> None:
        calls: list[Path] = []
        cache.invalidate(calls.append)
        assert cache.serve(make_context("/nothing")) is False
        assert calls == []

    def test_no_deduplication(self, cache: PageCache) -> None:
        def hook(path: Path) -> bool:
            return False

        cache.invalidate(hook)
        cache.invalidate(hook)
        assert cache.hooks == (hook, hook)


# ------------------------------------------------------------------ #
# Maintenance
# ------------------------------------------------------------------ #


class TestFlushAndForget:
    def test_flush_keeps_root_and_hooks(
        self, cache: PageCache, make_context, cache_dir: Path
    ) -> None:
        _store_response(cache, make_context, "/a", b"a")
        _store_response(cache, make_context, "/b.json", b"{}")
        hook = lambda path: False  # noqa: E731
        cache.invalidate(hook)

        cache.flush()

        assert cache_dir.is_dir()
        assert list(cache_dir.iterdir()) == []
        assert cache.hooks == (hook,)
        assert _store_response(cache, make_context, "/a", b"again")

    def test_forget_removes_all_variants(self, cache: PageCache, make_context) -> None:
        key = derive_key("/multi")
        cache.store.write(key, "html", b"")
        cache.store.write(key, "json", b"")
        _store_response(cache, make_context, "/other", b"")

        assert cache.forget("/multi") == 2
        assert cache.find_cached_file("/multi") is None
        assert cache.find_cached_file("/other") is not None

    def test_entries(self, cache: PageCache, make_context) -> None:
        _store_response(cache, make_context, "/a", b"a")
        assert [p.name for p in cache.entries()] == [f"{derive_key('/a')}.html"]
