"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/scanner.py
File enumeration for the deduplication core.
Features:
- Walks one or more roots, optionally without recursing
- Filters by glob pattern and regular expression on the file name
- Filters by size range
- Skips symbolic links and files already reached through a hard link or another root
- Yields FileRecords lazily, with a discovery index that is stable between runs
"""

import fnmatch
import logging
import os
import re
import stat
import time
from pathlib import Path
from typing import Callable, Iterator, List, Optional, Set, Tuple

from twinfind.core.errors import EnumerationError, FatalError
from twinfind.core.interfaces import FileEnumerator
from twinfind.core.models import DeduplicationParams, FileRecord

logger = logging.getLogger(__name__)


class FileScannerImpl(FileEnumerator):
    """
    Walks the configured roots and yields the files that pass all filters.

    Directory entries are visited in sorted order so that two runs over an
    unchanged tree assign the same discovery indexes.

    Attributes:
        roots: Root directories to scan
        recursive: Descend into subdirectories
        pattern: Glob matched against the file name (optional)
        regex: Regular expression searched in the file name (optional)
        min_size: Minimum file size in bytes
        max_size: Maximum file size in bytes (optional)
    """

    def __init__(
        self,
        roots: List[str],
        recursive: bool = True,
        pattern: Optional[str] = None,
        regex: Optional[str] = None,
        min_size: int = 1,
        max_size: Optional[int] = None,
        on_error: Optional[Callable[[EnumerationError], None]] = None
    ):
        self.roots = [roots] if isinstance(roots, str) else list(roots)
        self.recursive = recursive
        self.pattern = pattern
        self.min_size = min_size
        self.max_size = max_size
        self.on_error = on_error
        try:
            self.regex = re.compile(regex) if regex else None
        except re.error as e:
            raise ValueError(f"Invalid regular expression '{regex}': {e}") from e
        self._seen_inodes: Set[Tuple[int, int]] = set()

    @classmethod
    def from_params(
        cls,
        params: DeduplicationParams,
        on_error: Optional[Callable[[EnumerationError], None]] = None
    ) -> "FileScannerImpl":
        return cls(
            roots=list(params.roots),
            recursive=params.recursive,
            pattern=params.pattern,
            regex=params.regex,
            min_size=params.min_size,
            max_size=params.max_size,
            on_error=on_error,
        )

    def validate_roots(self) -> None:
        """
        Fail fast before any scanning: every root must exist, be a directory
        and be listable.
        """
        for root in self.roots:
            root_path = Path(root)
            if not root_path.exists():
                raise FatalError(f"Directory does not exist: {root}")
            if not root_path.is_dir():
                raise FatalError(f"Not a directory: {root}")
            try:
                with os.scandir(root_path):
                    pass
            except OSError as e:
                raise FatalError(f"Cannot read directory {root}: {e.strerror or e}") from e

    def scan(self, token=None) -> Iterator[FileRecord]:
        """
        Lazily yields accepted files. Unreadable entries are reported through
        on_error and skipped; the walk goes on.
        """
        self._seen_inodes = set()
        index = 0
        start_time = time.time()
        logger.debug(
            f"Filters: recursive={self.recursive}, pattern={self.pattern}, "
            f"regex={self.regex.pattern if self.regex else None}, "
            f"min_size={self.min_size}, max_size={self.max_size}"
        )

        for root in self.roots:
            logger.debug(f"Scanning directory: {root}")
            for path, size in self._walk(root, token):
                yield FileRecord(path=path, size=size, index=index)
                index += 1

        logger.debug(f"Scan completed in {time.time() - start_time:.2f}s, {index} matching files")

    def _walk(self, root: str, token) -> Iterator[Tuple[str, int]]:
        stack = [root]
        while stack:
            if token is not None and token.cancelled:
                logger.debug("Scan interrupted")
                return
            directory = stack.pop()
            try:
                with os.scandir(directory) as it:
                    entries = sorted(it, key=lambda e: e.name)
            except OSError as e:
                self._report(directory, e.strerror or str(e))
                continue

            subdirs = []
            for entry in entries:
                try:
                    if entry.is_symlink():
                        logger.debug(f"Skipping symbolic link: {entry.path}")
                        continue
                    if entry.is_dir():
                        subdirs.append(entry.path)
                        continue
                    st = entry.stat()
                except OSError as e:
                    self._report(entry.path, e.strerror or str(e))
                    continue

                if not stat.S_ISREG(st.st_mode):
                    continue
                if self._accepts(entry.name, entry.path, st):
                    yield entry.path, st.st_size

            if self.recursive:
                # Reversed so that popping visits subdirectories in name order
                stack.extend(reversed(subdirs))

    def _accepts(self, name: str, path: str, st: os.stat_result) -> bool:
        if not self._size_passes(st.st_size):
            logger.debug(f"Skipping {path} (size {st.st_size} bytes outside range)")
            return False
        if not self._name_passes(name):
            logger.debug(f"Skipping {path} (name filter)")
            return False

        # One path per inode: covers hard links and overlapping roots
        key = (st.st_dev, st.st_ino)
        if key in self._seen_inodes:
            logger.debug(f"Skipping already seen file (hard link or overlapping root): {path}")
            return False
        self._seen_inodes.add(key)

        logger.debug(f"Accepted file: {name} ({st.st_size} bytes)")
        return True

    def _size_passes(self, size: int) -> bool:
        """
        Check if file size is within configured limits.
        """
        if size < self.min_size:
            return False
        if self.max_size is not None and size > self.max_size:
            return False
        return True

    def _name_passes(self, name: str) -> bool:
        if self.pattern and not fnmatch.fnmatch(name, self.pattern):
            return False
        if self.regex and not self.regex.search(name):
            return False
        return True

    def _report(self, path: str, reason: str) -> None:
        error = EnumerationError(path, reason)
        logger.warning(f"Skipping unreadable path {error}")
        if self.on_error:
            self.on_error(error)
