"""Prime the cache of a running server over HTTP.

The cache only fills as requests come in. :func:`warm` requests a list of
paths from a server that has :class:`~pagecache.wsgi.CacheMiddleware`
installed so that the next real visitor gets a hit.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Optional

import httpx

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0


@dataclass
class WarmResult:
    """Outcome of one warm-up request."""

    path: str
    status_code: Optional[int] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status_code == 200


def warm(
    base_url: str,
    paths: Iterable[str],
    client: Optional[httpx.Client] = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> list[WarmResult]:
    """GET each of *paths* relative to *base_url*.

    Network failures are recorded on the result instead of being raised, so
    one unreachable page does not stop the rest.

    Args:
        base_url: Server root, e.g. ``http://localhost:8000``.
        paths: Paths (with optional query strings) to request.
        client: Pre-configured client (custom transport, auth, headers);
            one is created and closed when omitted.
        timeout: Per-request timeout for the internally created client.
    """
    owns_client = client is None
    if client is None:
        client = httpx.Client(timeout=timeout, follow_redirects=True)
    results: list[WarmResult] = []
    try:
        for path in paths:
            url = f"{base_url.rstrip('/')}/{path.lstrip('/')}"
            try:
                response = client.get(url)
            except httpx.HTTPError as exc:
                logger.warning("Warming %s failed: %s", path, exc)
                results.append(WarmResult(path=path, error=str(exc) or type(exc).__name__))
                continue
            logger.debug("Warmed %s -> %d", path, response.status_code)
            results.append(WarmResult(path=path, status_code=response.status_code))
    finally:
        if owns_client:
            client.close()
    return results
