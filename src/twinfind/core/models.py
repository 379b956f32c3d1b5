"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/models.py
Data models for file enumeration, hashing jobs and duplicate groups.
"""

import os
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

from twinfind.utils.convert_utils import ConvertUtils


# =============================
# Enums
# =============================

class VerificationMode(Enum):
    """
    How candidates that share a partial digest are finally verified.
    """
    HASH = "hash"
    BYTES = "bytes"

    @property
    def display_name(self) -> str:
        """Human-readable name for help text."""
        mapping = {
            VerificationMode.HASH: "Full hash",
            VerificationMode.BYTES: "Byte-by-byte",
        }
        return mapping.get(self, self.value)

    @property
    def description(self) -> str:
        mapping = {
            VerificationMode.HASH:
                "Size → Partial Hash → BLAKE2b full-content hash",
            VerificationMode.BYTES:
                "Size → Partial Hash → byte-for-byte comparison (no trust in digests)",
        }
        return mapping.get(self, self.value)

    def __repr__(self) -> str:
        return self.value


class HashKind(Enum):
    PARTIAL = "partial"
    FULL = "full"

    def __repr__(self) -> str:
        return self.value


class FileState(Enum):
    """Lifecycle of a single file inside the resolver."""
    DISCOVERED = "discovered"
    SIZE_GROUPED = "size-grouped"
    PARTIAL_HASH_PENDING = "partial-hash-pending"
    PARTIAL_HASHED = "partial-hashed"
    UNIQUE = "unique"
    FULL_VERIFICATION_PENDING = "full-verification-pending"
    DUPLICATE = "duplicate"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (FileState.UNIQUE, FileState.DUPLICATE, FileState.FAILED)


class Stage(str, Enum):
    SCAN = "Scanning"
    SIZE = "Size grouping"
    RESOLVE = "Hash and verify"

    @classmethod
    def get_all(cls):
        return [cls.SCAN, cls.SIZE, cls.RESOLVE]


# ======================
#  Core Data Models
# ======================

@dataclass(frozen=True)
class FileRecord:
    """
    A single candidate file as yielded by the enumerator.
    `index` is the discovery order and drives every user-visible ordering.
    """
    path: str
    size: int  # in bytes
    index: int

    @property
    def name(self) -> str:
        return os.path.basename(self.path)

    def __repr__(self):
        return f"<FileRecord #{self.index} path={self.path}, size={self.size}>"


@dataclass(frozen=True)
class SizeBucket:
    """All records sharing one exact byte length, in discovery order."""
    size: int
    files: Tuple[FileRecord, ...]

    def __len__(self) -> int:
        return len(self.files)

    @property
    def first_index(self) -> int:
        return self.files[0].index

    def __repr__(self):
        return f"<SizeBucket size={self.size}, count={len(self.files)}>"


@dataclass(frozen=True)
class HashJob:
    record: FileRecord
    kind: HashKind


@dataclass(frozen=True)
class CompareJob:
    """Byte-for-byte comparison of records that share size and partial digest."""
    records: Tuple[FileRecord, ...]


Job = Union[HashJob, CompareJob]


@dataclass(frozen=True)
class JobHandle:
    job_id: int
    job: Job


@dataclass(frozen=True)
class Sample:
    """
    Result of a partial job. `full` is filled in when the sample already
    covered the whole file, so no second read is needed.
    """
    partial: bytes
    full: Optional[bytes] = None


@dataclass(frozen=True)
class ReadFailure:
    record: FileRecord
    reason: str

    def __str__(self):
        return f"{self.record.path}: {self.reason}"


@dataclass(frozen=True)
class ComparisonResult:
    groups: Tuple[Tuple[FileRecord, ...], ...]
    failures: Tuple[ReadFailure, ...] = ()


@dataclass(frozen=True)
class JobOutcome:
    """
    What a worker sends back through the completion channel.
    Exactly one of value / failure / cancelled / error is meaningful.
    """
    handle: JobHandle
    value: Any = None
    failure: Optional[ReadFailure] = None
    cancelled: bool = False
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.failure is None and not self.cancelled and self.error is None


@dataclass
class Candidate:
    """A record annotated with the digests computed for it so far."""
    record: FileRecord
    partial: Optional[bytes] = None
    full: Optional[bytes] = None


@dataclass(frozen=True)
class DuplicateGroup:
    """
    A verified set of files with identical content.
    Members are ordered by discovery index.
    """
    size: int
    files: Tuple[FileRecord, ...]

    def __post_init__(self):
        if len(self.files) < 2:
            raise ValueError("A duplicate group needs at least two files")
        if any(f.size != self.size for f in self.files):
            raise ValueError("Cannot group files with different sizes")

    @property
    def duplicate_count(self) -> int:
        """How many redundant copies the group holds (all but one)."""
        return len(self.files) - 1

    @property
    def reclaimable_bytes(self) -> int:
        return self.size * self.duplicate_count

    @property
    def paths(self) -> List[str]:
        return [f.path for f in self.files]

    def __repr__(self):
        return f"<DuplicateGroup size={self.size}, count={len(self.files)}>"


class DeduplicationStats:
    """
    Statistics collected while a run progresses.
    """
    def __init__(self):
        self.total_time: float = 0.0
        self.files_scanned: int = 0
        self.enumeration_errors: List[str] = []
        self.read_failures: List[ReadFailure] = []
        self.jobs: Dict[str, int] = {"partial": 0, "full": 0, "compare": 0}
        self.cancelled: bool = False
        self.groups_found: int = 0
        self.duplicate_files: int = 0
        self.reclaimable_bytes: int = 0
        self.stage_stats: Dict[str, Dict[str, Union[int, float]]] = {}
        self._listeners: List[Callable[[str, Dict], None]] = []

    def add_listener(self, listener: Callable[[str, Dict], None]):
        """Adds a listener to receive updates when stats are updated."""
        self._listeners.append(listener)

    def update_stage(
            self,
            stage_name: str,
            groups_found: int,
            files_processed: int,
            duration: float
    ) -> None:
        if stage_name not in self.stage_stats:
            self.stage_stats[stage_name] = {
                "groups": 0,
                "files": 0,
                "time": 0.0
            }
        self.stage_stats[stage_name]["groups"] += groups_found
        self.stage_stats[stage_name]["files"] += files_processed
        self.stage_stats[stage_name]["time"] += duration

        for listener in self._listeners:
            listener(stage_name, self.stage_stats[stage_name])

    def record_totals(self, groups: List[DuplicateGroup]) -> None:
        self.groups_found = len(groups)
        self.duplicate_files = sum(g.duplicate_count for g in groups)
        self.reclaimable_bytes = sum(g.reclaimable_bytes for g in groups)

    def print_summary(self) -> str:
        lines = [
            "Deduplication Statistics:",
            f"Total Execution Time: {self.total_time:.3f}s",
            f"Files scanned: {self.files_scanned}",
            f"Jobs: {self.jobs['partial']} partial / {self.jobs['full']} full / "
            f"{self.jobs['compare']} compare",
            "",
            "Stage: GROUPS / FILES / TIME",
        ]

        for stage, data in self.stage_stats.items():
            lines.append(f"{stage}: {data['groups']} / {data['files']} / {data['time']:.3f}s")

        if self.enumeration_errors or self.read_failures:
            lines.append(
                f"Skipped: {len(self.enumeration_errors)} unreadable paths, "
                f"{len(self.read_failures)} unreadable files"
            )
        if self.cancelled:
            lines.append("Run was cancelled, results are partial")

        return "\n".join(lines)


"""
DTO for deduplication parameters with built-in validation.
Interface-agnostic: built by the CLI, usable by library callers.
"""

@dataclass(frozen=True)
class DeduplicationParams:
    """Immutable run configuration handed to every component."""
    roots: Tuple[str, ...]
    recursive: bool = True
    pattern: Optional[str] = None
    regex: Optional[str] = None
    min_size: int = 1
    max_size: Optional[int] = None
    verification: VerificationMode = VerificationMode.HASH
    workers: Optional[int] = None
    queue_size: Optional[int] = None

    def __post_init__(self):
        """Validate parameters immediately after creation."""
        roots = (self.roots,) if isinstance(self.roots, str) else tuple(self.roots)
        if not roots or any(not r for r in roots):
            raise ValueError("Root directory cannot be empty")
        object.__setattr__(self, "roots", roots)

        if self.min_size < 0:
            raise ValueError("Minimum size cannot be negative")

        if self.max_size is not None and self.max_size < self.min_size:
            raise ValueError("Maximum size cannot be less than minimum size")

        if self.workers is not None and self.workers < 1:
            raise ValueError("Worker count must be at least 1")

        if self.queue_size is not None and self.queue_size < 1:
            raise ValueError("Queue size must be at least 1")

    @property
    def include_empty(self) -> bool:
        """Empty files only take part when the minimum size is explicitly zero."""
        return self.min_size == 0

    @staticmethod
    def from_human_readable(
            roots: Union[str, List[str]],
            min_size_str: str = "1",
            max_size_str: Optional[str] = None,
            recursive: bool = True,
            pattern: Optional[str] = None,
            regex: Optional[str] = None,
            verification: VerificationMode = VerificationMode.HASH,
            workers: Optional[int] = None,
    ) -> 'DeduplicationParams':
        """
        Factory method to create params from human-readable inputs.
        Useful for CLI argument parsing.
        """
        min_size = ConvertUtils.human_to_bytes(min_size_str)
        max_size = ConvertUtils.human_to_bytes(max_size_str) if max_size_str else None

        return DeduplicationParams(
            roots=(roots,) if isinstance(roots, str) else tuple(roots),
            recursive=recursive,
            pattern=pattern or None,
            regex=regex or None,
            min_size=min_size,
            max_size=max_size,
            verification=verification,
            workers=workers,
        )
