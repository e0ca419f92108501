"""Flat-directory file store with atomic writes.

Every entry is one file, ``<root>/<key>.<extension>``. There is no index or
manifest: the directory listing is the index. Writes go to a uniquely named
temporary file first and are then renamed onto the final name with
``os.replace``, so concurrent readers see either the previous complete file
or the new complete file, never a truncated one. Concurrent writers for the
same key each use their own temp file; the last rename wins.

By default the temporary files live in the system temp directory. When that
directory sits on a different filesystem than the cache root the rename
fails (``EXDEV``) and the write is reported as unsuccessful; point
``temp_dir`` at a directory on the same volume to avoid this.
"""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
from collections.abc import Iterable
from pathlib import Path
from typing import Optional, Union

logger = logging.getLogger(__name__)


class FileStore:
    """Reads and writes cache entries under a single root directory.

    Args:
        root: Cache root. Created on the first write if missing.
        temp_dir: Where in-flight writes are staged. ``None`` uses
            :func:`tempfile.gettempdir`, which is shared with other
            processes; temp names are always unique.
        file_mode: Permission bits applied to each entry before it is
            renamed into place.
    """

    def __init__(
        self,
        root: Union[str, Path],
        temp_dir: Union[str, Path, None] = None,
        file_mode: int = 0o644,
    ) -> None:
        self.root = Path(root)
        self.temp_dir = Path(temp_dir) if temp_dir is not None else None
        self.file_mode = file_mode

    def path_for(self, key: str, extension: str) -> Path:
        return self.root / f"{key}.{extension}"

    def write(self, key: str, extension: str, data: bytes) -> bool:
        """Atomically store *data* as ``<key>.<extension>``.

        Returns:
            ``True`` once the entry is visible under its final name,
            ``False`` if any filesystem step failed. Never raises
            :class:`OSError`.
        """
        target = self.path_for(key, extension)
        tmp_path: Optional[str] = None
        try:
            self.root.mkdir(mode=0o755, parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                mode="wb",
                dir=self.temp_dir,
                prefix=f"{target.name}.",
                suffix=f".{extension}",
                delete=False,
            ) as fh:
                tmp_path = fh.name
                fh.write(data)
                fh.flush()
                os.fsync(fh.fileno())
            os.chmod(tmp_path, self.file_mode)
            os.replace(tmp_path, target)
        except OSError as exc:
            logger.warning("Could not store cache entry %s: %s", target, exc)
            if tmp_path is not None:
                try:
                    os.unlink(tmp_path)
                except OSError:
                    pass
            return False
        logger.debug("Stored %d bytes in %s", len(data), target)
        return True

    def read_exists(self, key: str, extensions: Iterable[str]) -> Optional[Path]:
        """Return the path of the first existing ``<key>.<ext>``, or ``None``."""
        for extension in extensions:
            path = self.path_for(key, extension)
            if path.is_file():
                return path
        return None

    def delete(self, key: str, extensions: Iterable[str]) -> int:
        """Remove the entries of *key* for each extension; return how many existed."""
        removed = 0
        for extension in dict.fromkeys(extensions):
            try:
                self.path_for(key, extension).unlink()
            except FileNotFoundError:
                continue
            removed += 1
        return removed

    def entries(self) -> list[Path]:
        """List the regular files under the root, sorted by name."""
        if not self.root.is_dir():
            return []
        return sorted(p for p in self.root.iterdir() if p.is_file())

    def purge_all(self) -> None:
        """Delete everything below the root, keeping the root itself.

        A missing root is left missing. Errors propagate to the caller.
        """
        if not self.root.is_dir():
            return
        for child in self.root.iterdir():
            if child.is_dir() and not child.is_symlink():
                shutil.rmtree(child)
            else:
                child.unlink()
        logger.info("Flushed cache directory %s", self.root)
