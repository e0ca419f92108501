"""Exception hierarchy for pagecache.

All exceptions inherit from :class:`PagecacheError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`pagecache.exit_codes`.
The top-level error handler in :func:`pagecache.app.main` catches
``PagecacheError`` and exits with the appropriate code.

The cache engine itself only raises :class:`ConfigError`, and only while it
is being constructed. Storage failures on the write and serve paths are
reported as ``False`` return values so that a broken cache never breaks the
live response.

Subclass hierarchy::

    PagecacheError (exit 1)
    +-- ConfigError         (exit 1)
    +-- InvalidUsageError   (exit 2)
    +-- NotFoundError       (exit 4)
    +-- CacheStorageError   (exit 5)
"""

from pagecache.exit_codes import (
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_NOT_FOUND,
    EXIT_STORAGE_ERROR,
)


class PagecacheError(Exception):
    """Base exception for all pagecache errors.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class ConfigError(PagecacheError):
    """Raised for configuration problems (empty type map, invalid JSON, missing SHA-256)."""

    exit_code = EXIT_GENERIC_FAILURE


class InvalidUsageError(PagecacheError):
    """Raised for invalid CLI arguments."""

    exit_code = EXIT_INVALID_USAGE


class NotFoundError(PagecacheError):
    """Raised by the CLI when no cache entry exists for a URI."""

    exit_code = EXIT_NOT_FOUND


class CacheStorageError(PagecacheError):
    """Raised by the CLI when the cache directory cannot be purged or listed."""

    exit_code = EXIT_STORAGE_ERROR
