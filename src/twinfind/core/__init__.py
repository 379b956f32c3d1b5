"""
Core deduplication engine: enumerator, size grouper, hash engine, scheduler and resolver.

This package contains the performance-critical foundation of twinfind:
- FileScannerImpl: directory traversal with recursion, name and size filters
- SizeGrouper: exact-size bucketing, single-file sizes never reach hashing
- HasherImpl: xxHash64 partial samples, BLAKE2b full digests, byte comparison
- Scheduler: bounded worker pool with backpressure and cancellation
- DedupResolver: staged pipeline (size → partial hash → full verification)
- Models: FileRecord, DuplicateGroup and configuration objects

All components are pure Python and suitable for CLI and library usage.
"""

from .scanner import FileScannerImpl
from .grouper import SizeGrouper, partition
from .hasher import HasherImpl, XXHashAlgorithmImpl, Blake2bAlgorithmImpl, DeduplicationConfig
from .scheduler import Scheduler, CancellationToken
from .resolver import DedupResolver
from .errors import (
    DeduplicationError, FatalError, EnumerationError, FileReadError, JobCancelled)
from .models import (
    FileRecord, SizeBucket, DuplicateGroup, DeduplicationParams, DeduplicationStats,
    VerificationMode, FileState, HashKind, HashJob, CompareJob, ReadFailure, Sample)

__all__ = [
    "FileScannerImpl",
    "SizeGrouper",
    "partition",
    "HasherImpl",
    "XXHashAlgorithmImpl",
    "Blake2bAlgorithmImpl",
    "DeduplicationConfig",
    "Scheduler",
    "CancellationToken",
    "DedupResolver",
    "DeduplicationError",
    "FatalError",
    "EnumerationError",
    "FileReadError",
    "JobCancelled",
    "FileRecord",
    "SizeBucket",
    "DuplicateGroup",
    "DeduplicationParams",
    "DeduplicationStats",
    "VerificationMode",
    "FileState",
    "HashKind",
    "HashJob",
    "CompareJob",
    "ReadFailure",
    "Sample",
]
