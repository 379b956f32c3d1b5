"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

Unified command orchestrator for deduplication.
This is the SINGLE source of truth for the run workflow, used by the CLI and library callers.
"""
import logging
import time
from typing import Callable, Iterator, List, Optional, Tuple

from twinfind.core.errors import EnumerationError
from twinfind.core.grouper import SizeGrouper
from twinfind.core.interfaces import FileEnumerator, Hasher
from twinfind.core.models import DeduplicationParams, DeduplicationStats, DuplicateGroup, FileRecord, Stage
from twinfind.core.resolver import DedupResolver
from twinfind.core.scanner import FileScannerImpl
from twinfind.core.scheduler import CancellationToken

logger = logging.getLogger(__name__)


class DeduplicationCommand:
    """
    Orchestrates the entire deduplication workflow:
    1. Validate roots (FatalError if the run cannot start)
    2. Enumerate files and bucket them by size
    3. Resolve buckets into verified duplicate groups

    Usage:
        params = DeduplicationParams(roots=("/data",))
        command = DeduplicationCommand()
        groups, stats = command.execute(
            params,
            progress_callback=cli_progress_printer,
            token=token
        )
    """

    def __init__(
        self,
        enumerator_factory: Optional[Callable[..., FileEnumerator]] = None,
        hasher: Optional[Hasher] = None
    ):
        self._enumerator_factory = enumerator_factory or FileScannerImpl.from_params
        self._hasher = hasher

    def execute(
            self,
            params: DeduplicationParams,
            progress_callback: Optional[Callable[[str, int, Optional[int]], None]] = None,
            token: Optional[CancellationToken] = None
    ) -> Tuple[List[DuplicateGroup], DeduplicationStats]:
        """
        Execute deduplication with given parameters.

        Args:
            params: Validated deduplication parameters
            progress_callback: (stage: str, current: int, total: Optional[int]) -> None
            token: run-level cancellation token

        Returns:
            Tuple of (duplicate_groups, statistics)

        Raises:
            FatalError: If a root is missing, not a directory or unreadable
        """
        token = token or CancellationToken()
        stats = DeduplicationStats()
        total_start_time = time.time()

        def on_enumeration_error(error: EnumerationError) -> None:
            stats.enumeration_errors.append(str(error))

        enumerator = self._enumerator_factory(params, on_error=on_enumeration_error)
        enumerator.validate_roots()

        # Step 1: Enumerate + size grouping (single pass, lazily)
        start_time = time.time()
        grouper = SizeGrouper(params)
        buckets = grouper.group(self._counted(enumerator.scan(token), stats, progress_callback))
        stats.update_stage(
            Stage.SIZE.value,
            groups_found=len(buckets),
            files_processed=sum(len(b) for b in buckets),
            duration=time.time() - start_time,
        )
        logger.info(f"Scanned {stats.files_scanned} files, {len(buckets)} size groups to hash")

        # Step 2: Resolve buckets into verified groups
        resolver = DedupResolver(params, hasher=self._hasher)
        groups = resolver.resolve(
            buckets,
            token=token,
            stats=stats,
            progress_callback=progress_callback,
        )

        stats.record_totals(groups)
        stats.total_time = time.time() - total_start_time
        return groups, stats

    @staticmethod
    def _counted(
            records: Iterator[FileRecord],
            stats: DeduplicationStats,
            progress_callback: Optional[Callable[[str, int, Optional[int]], None]]
    ) -> Iterator[FileRecord]:
        progress_interval = 5000
        for record in records:
            stats.files_scanned += 1
            if progress_callback and stats.files_scanned % progress_interval == 0:
                progress_callback(Stage.SCAN.value, stats.files_scanned, None)
            yield record
        if progress_callback:
            progress_callback(Stage.SCAN.value, stats.files_scanned, None)
