"""
twinfind: parallel duplicate file finder.

Core features:
- Staged detection: size → partial xxHash64 sample → full verification
- Full verification by BLAKE2b-256 digest or byte-for-byte comparison
- Bounded worker pool with backpressure and Ctrl+C cancellation
- Deterministic output regardless of worker count
- CLI interface for headless/server usage
"""

# Get version
try:
    from importlib.metadata import PackageNotFoundError, version as _version
    __version__ = _version("twinfind")
except PackageNotFoundError:
    __version__ = "0.0.0.dev0"

# Public API, only what users should import directly
from twinfind.commands import DeduplicationCommand
from twinfind.core import (
    CancellationToken, DeduplicationParams, DeduplicationStats, DuplicateGroup, FileRecord,
    VerificationMode, FatalError)
from twinfind.services import ReportService
from twinfind.utils.convert_utils import ConvertUtils

__all__ = [
    "DeduplicationCommand",
    "DeduplicationParams",
    "DeduplicationStats",
    "DuplicateGroup",
    "FileRecord",
    "VerificationMode",
    "CancellationToken",
    "FatalError",
    "ReportService",
    "ConvertUtils",
    "__version__",
]
