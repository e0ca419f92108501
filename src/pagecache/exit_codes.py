"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~pagecache.exceptions.PagecacheError` subclass.
Shell wrappers and deploy scripts can inspect the exit code to tell a cache
miss apart from a broken configuration without parsing stderr.

Example::

    $ pagecache lookup /about
    $ echo $?
    4   # EXIT_NOT_FOUND -- nothing cached for that URI
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments or missing required parameters."""

EXIT_NOT_FOUND = 4
"""No cache entry exists for the requested URI."""

EXIT_STORAGE_ERROR = 5
"""The cache directory could not be read, written, or purged."""
