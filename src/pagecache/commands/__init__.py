"""Built-in CLI sub-commands for pagecache.

* :mod:`~pagecache.commands.cache` -- ``key``, ``lookup``, ``list``,
  ``forget``, ``flush`` and ``warm``, registered directly on the root app.
* :mod:`~pagecache.commands.config` -- the ``config`` group (``show``,
  ``init``).
"""
