"""Ready-made invalidation hooks for :meth:`PageCache.invalidate`.

A hook is any callable taking the path of the entry about to be served and
returning ``True`` to skip the cache for this request. The helpers below
cover the two common cases: content that changed on disk since the entry was
written, and requests that must never see shared cached output.
"""

from __future__ import annotations

import os
from collections.abc import Callable
from pathlib import Path
from typing import Union

from pagecache.cache.engine import InvalidationHook


def stale_against(*sources: Union[str, Path]) -> InvalidationHook:
    """Bypass entries older than any of *sources*.

    Example::

        cache.invalidate(stale_against("content/", "site.db"))

    Missing sources are ignored, as is an entry that disappeared before its
    modification time could be read (the serve path treats that as a miss).
    """
    paths = tuple(Path(s) for s in sources)

    def _hook(entry: Path) -> bool:
        try:
            entry_mtime = entry.stat().st_mtime_ns
        except OSError:
            return False
        for source in paths:
            try:
                if os.stat(source).st_mtime_ns > entry_mtime:
                    return True
            except OSError:
                continue
        return False

    return _hook


def bypass_when(predicate: Callable[[], bool]) -> InvalidationHook:
    """Adapt a zero-argument predicate (e.g. "user is logged in") into a hook."""

    def _hook(entry: Path) -> bool:
        return bool(predicate())

    return _hook
