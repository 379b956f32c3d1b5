"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/errors.py
Exception taxonomy of a deduplication run.

Only FatalError stops a run. Everything else is per-file and is turned into
a warning plus a stats entry by whoever catches it.
"""


class DeduplicationError(Exception):
    """Base class for all twinfind errors."""


class FatalError(DeduplicationError):
    """The run cannot start: root missing, not a directory or unreadable."""


class EnumerationError(DeduplicationError):
    """A path could not be listed or stat'ed during traversal."""

    def __init__(self, path: str, reason: str):
        super().__init__(f"{path}: {reason}")
        self.path = path
        self.reason = reason


class FileReadError(DeduplicationError):
    """Reading file content for hashing or comparison failed."""

    def __init__(self, record, reason: str):
        super().__init__(f"{record.path}: {reason}")
        self.record = record
        self.reason = reason


class JobCancelled(DeduplicationError):
    """Raised inside a job when the run-level cancellation token fires."""
