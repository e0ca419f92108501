"""WSGI adapter for :class:`~pagecache.cache.engine.PageCache`.

:class:`CacheMiddleware` wraps any WSGI application::

    from pagecache import PageCache
    from pagecache.wsgi import CacheMiddleware

    application = CacheMiddleware(application, PageCache("/var/cache/site"))

GET requests are answered from the cache when an entry exists. Otherwise the
wrapped application runs with its body captured; the response is replayed to
the client unchanged and stored when the status is ``200``. The application
can opt a single response out of caching by setting
``environ["pagecache.skip"] = True`` before it returns.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from http import HTTPStatus
from typing import Any, Optional
from urllib.parse import unquote_plus

from pagecache.cache.engine import PageCache

logger = logging.getLogger(__name__)

SKIP_ENVIRON_KEY = "pagecache.skip"

StartResponse = Callable[..., Callable[[bytes], Any]]
WSGIApp = Callable[[dict[str, Any], StartResponse], Iterable[bytes]]


def _wsgi_decode(value: str) -> str:
    """Re-decode a PEP 3333 latin-1 "native string" as UTF-8.

    Some servers already hand over decoded text; that is returned unchanged.
    """
    try:
        raw = value.encode("latin-1")
    except UnicodeEncodeError:
        return value
    return raw.decode("utf-8", "replace")


class WSGIRequestContext:
    """:class:`~pagecache.cache.context.RequestContext` backed by a WSGI environ.

    Status and headers are recorded rather than sent; :class:`CacheMiddleware`
    forwards them to the server once the body is complete.
    """

    def __init__(self, environ: dict[str, Any]) -> None:
        self.environ = environ
        self.status: Optional[str] = None
        self.headers: list[tuple[str, str]] = []
        self.exc_info: Any = None
        self._body: list[bytes] = []

    @property
    def body(self) -> bytes:
        return b"".join(self._body)

    def stage(self, status: str, headers: list[tuple[str, str]], exc_info: Any = None) -> None:
        """Record the wrapped application's ``start_response`` arguments."""
        self.status = status
        self.headers = list(headers)
        self.exc_info = exc_info

    # RequestContext

    def request_uri(self) -> str:
        environ = self.environ
        path = _wsgi_decode(environ.get("SCRIPT_NAME", "") + environ.get("PATH_INFO", ""))
        query = environ.get("QUERY_STRING", "")
        if query:
            return f"{path}?{unquote_plus(_wsgi_decode(query))}"
        return path

    def response_headers(self) -> list[tuple[str, str]]:
        return self.headers

    def status_code(self) -> Optional[int]:
        if not self.status:
            return None
        try:
            return int(self.status.split(" ", 1)[0])
        except ValueError:
            return None

    def send_headers(self, status: int, content_type: str) -> None:
        self.stage(f"{status} {HTTPStatus(status).phrase}", [("Content-Type", content_type)])

    def write(self, data: bytes) -> None:
        self._body.append(data)


class CacheMiddleware:
    """Serve and populate a :class:`PageCache` around a WSGI application.

    Args:
        app: The wrapped WSGI application.
        cache: The cache engine.
        methods: Request methods eligible for caching. Other methods go
            straight to *app*.
    """

    def __init__(
        self,
        app: WSGIApp,
        cache: PageCache,
        methods: Iterable[str] = ("GET",),
    ) -> None:
        self.app = app
        self.cache = cache
        self.methods = frozenset(m.upper() for m in methods)

    def __call__(self, environ: dict[str, Any], start_response: StartResponse) -> Iterable[bytes]:
        if environ.get("REQUEST_METHOD", "GET").upper() not in self.methods:
            return self.app(environ, start_response)

        context = WSGIRequestContext(environ)
        if self.cache.serve(context):
            return self._respond(context, start_response)

        # A failed serve may have staged headers already; start over.
        context = WSGIRequestContext(environ)
        capture = self.cache.begin_capture(context)

        def _start_response(
            status: str, headers: list[tuple[str, str]], exc_info: Any = None
        ) -> Callable[[bytes], Any]:
            context.stage(status, headers, exc_info)
            return capture.write

        result = self.app(environ, _start_response)
        try:
            for chunk in result:
                capture.write(chunk)
        finally:
            close = getattr(result, "close", None)
            if close is not None:
                close()

        stored = self.cache.end_capture(capture, do_cache=not environ.get(SKIP_ENVIRON_KEY))
        if stored:
            logger.debug("Cached %s", context.request_uri())
        return self._respond(context, start_response)

    def _respond(self, context: WSGIRequestContext, start_response: StartResponse) -> list[bytes]:
        body = context.body
        headers = list(context.headers)
        if not any(name.lower() == "content-length" for name, _ in headers):
            headers.append(("Content-Length", str(len(body))))
        start_response(context.status or "200 OK", headers, context.exc_info)
        return [body]
