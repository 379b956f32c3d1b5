"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

interfaces.py

Defines core interfaces (Protocols) used throughout the deduplication system.
These protocols enforce structural typing using Python's `typing.Protocol` to ensure
consistency across modules while maintaining flexibility and modularity.

Key Components:
---------------
- HashAlgorithm: Standardized interface for hash functions (xxHash64, BLAKE2b, ...).
- Hasher: Interface for partial/full digests and byte comparison of files.
- FileEnumerator: Interface for walking roots and yielding filtered FileRecords.
- Reporter: Interface for rendering an ordered list of duplicate groups.
"""

from typing import TYPE_CHECKING, Iterable, Iterator, List, Optional, Protocol, TextIO

from twinfind.core.models import (
    ComparisonResult,
    DeduplicationStats,
    DuplicateGroup,
    FileRecord,
    Sample,
)

if TYPE_CHECKING:
    from twinfind.core.scheduler import CancellationToken


# ===== Interfaces =====

class HashState(Protocol):
    """Incremental hash object, as returned by hashlib / xxhash constructors."""
    def update(self, data: bytes) -> None: ...
    def digest(self) -> bytes: ...


class HashAlgorithm(Protocol):
    """
    Interface for generic hash algorithms.

    Allows plugging in different hashing functions like BLAKE2b or xxHash
    without affecting the rest of the deduplication logic.
    """

    def create(self) -> HashState:
        """Returns a fresh incremental hash object."""
        ...

    def hash(self, data: bytes) -> bytes:
        """Computes the hash of the provided byte data."""
        ...


class Hasher(Protocol):
    """Interface for reading file content in the worker pool."""

    def compute_sample(
        self,
        record: FileRecord,
        token: Optional["CancellationToken"] = None
    ) -> Sample:
        """Partial digest over a bounded sample of the file."""
        ...

    def compute_full_hash(
        self,
        record: FileRecord,
        token: Optional["CancellationToken"] = None
    ) -> bytes:
        """Collision-resistant digest over the entire file."""
        ...

    def compare_contents(
        self,
        records: Iterable[FileRecord],
        token: Optional["CancellationToken"] = None
    ) -> ComparisonResult:
        """Split records into subsets with byte-identical content."""
        ...


class FileEnumerator(Protocol):
    """
    Interface for scanning file systems and collecting file metadata.
    Filtering by recursion, name pattern and size range happens here,
    the core only ever sees accepted records.
    """

    def validate_roots(self) -> None:
        """Raise FatalError if the run cannot start."""
        ...

    def scan(self, token: Optional["CancellationToken"] = None) -> Iterator[FileRecord]:
        """Lazily yield accepted files with increasing discovery index."""
        ...


class Reporter(Protocol):
    """Renders groups in the given order, never re-ordering members."""

    def write(
        self,
        groups: List[DuplicateGroup],
        stats: DeduplicationStats,
        out: TextIO
    ) -> None:
        ...
