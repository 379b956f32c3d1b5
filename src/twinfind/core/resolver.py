"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/resolver.py
Staged duplicate resolution on top of the worker pool.

PIPELINE
--------
  size bucket ──► partial digest per member ──► partition by partial digest
              ──► full verification per sub-group ──► DuplicateGroup(s)

Full verification is either full-digest equality (VerificationMode.HASH)
or byte-for-byte comparison (VerificationMode.BYTES).

OWNERSHIP
---------
The resolver is the only code that touches bucket, candidate and group
state. Workers only see immutable jobs and send back JobOutcomes; the
resolver consumes them in a single loop. Buckets move to verification as
soon as their own partial digests are in, so stages overlap across buckets.

ORDERING
--------
Completion order is arbitrary. Members are sorted by discovery index and
groups by the index of their first member before they are returned, so the
result does not depend on the worker count.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from twinfind.core.grouper import partition
from twinfind.core.hasher import HasherImpl
from twinfind.core.interfaces import Hasher
from twinfind.core.models import (
    Candidate,
    CompareJob,
    ComparisonResult,
    DeduplicationParams,
    DeduplicationStats,
    DuplicateGroup,
    FileRecord,
    FileState,
    HashJob,
    HashKind,
    Job,
    JobOutcome,
    ReadFailure,
    SizeBucket,
    Stage,
    VerificationMode,
)
from twinfind.core.scheduler import CancellationToken, Scheduler

logger = logging.getLogger(__name__)


@dataclass
class _Work:
    """Candidates waiting on a batch of jobs (one bucket or one sub-group)."""
    size: int
    candidates: List[Candidate]
    awaiting: int = 0
    incomplete: bool = False
    verifying: bool = False


@dataclass
class _Pending:
    work: _Work
    candidate: Optional[Candidate] = None


@dataclass
class _RunState:
    token: CancellationToken
    stats: DeduplicationStats
    progress_callback: Optional[Callable[[str, int, object], None]]
    total_files: int = 0
    settled_files: int = 0
    pending: Dict[int, _Pending] = field(default_factory=dict)
    groups: List[DuplicateGroup] = field(default_factory=list)


class DedupResolver:
    """
    Drives size buckets through partial hashing and full verification.

    Usage:
        resolver = DedupResolver(params)
        groups = resolver.resolve(buckets, token=token, stats=stats)
    """

    def __init__(
        self,
        params: Optional[DeduplicationParams] = None,
        hasher: Optional[Hasher] = None,
        verification: Optional[VerificationMode] = None,
        workers: Optional[int] = None,
        queue_size: Optional[int] = None
    ):
        self.hasher = hasher or HasherImpl()
        if params is not None:
            verification = verification or params.verification
            workers = workers or params.workers
            queue_size = queue_size or params.queue_size
        self.verification = verification or VerificationMode.HASH
        self.workers = workers
        self.queue_size = queue_size
        self.states: Dict[int, FileState] = {}
        self._run: Optional[_RunState] = None

    def state_of(self, record: FileRecord) -> FileState:
        return self.states.get(record.index, FileState.DISCOVERED)

    def resolve(
        self,
        buckets: Iterable[SizeBucket],
        token: Optional[CancellationToken] = None,
        stats: Optional[DeduplicationStats] = None,
        progress_callback: Optional[Callable[[str, int, object], None]] = None
    ) -> List[DuplicateGroup]:
        """
        Run every bucket through the pipeline and return verified groups
        in discovery order. After cancellation, groups already verified are
        still returned.
        """
        buckets = [b for b in buckets if len(b) >= 2]
        run = _RunState(
            token=token or CancellationToken(),
            stats=stats if stats is not None else DeduplicationStats(),
            progress_callback=progress_callback,
            total_files=sum(len(b) for b in buckets),
        )
        self._run = run
        self.states = {}
        start_time = time.time()

        with Scheduler(self._execute, self.workers, self.queue_size, run.token) as scheduler:
            logger.debug(
                f"Resolving {len(buckets)} size buckets ({run.total_files} files) "
                f"with {scheduler.workers} workers, verification={self.verification.value}"
            )
            for bucket in buckets:
                if run.token.cancelled:
                    break
                self._start_bucket(scheduler, bucket)
                self._drain(scheduler)

            while run.pending:
                self._handle(scheduler, scheduler.next_outcome())

        if run.token.cancelled:
            run.stats.cancelled = True
            logger.warning("Run cancelled, reporting partial results")

        groups = sorted(run.groups, key=lambda g: g.files[0].index)
        run.stats.read_failures.sort(key=lambda f: f.record.index)
        run.stats.update_stage(
            Stage.RESOLVE.value,
            groups_found=len(groups),
            files_processed=run.total_files,
            duration=time.time() - start_time,
        )
        self._run = None
        return groups

    # =============================
    # Worker side
    # =============================

    def _execute(self, job: Job, token: CancellationToken):
        """Runs on a worker thread: only reads files, never touches resolver state."""
        if isinstance(job, CompareJob):
            return self.hasher.compare_contents(job.records, token)
        if job.kind is HashKind.PARTIAL:
            return self.hasher.compute_sample(job.record, token)
        return self.hasher.compute_full_hash(job.record, token)

    # =============================
    # Dispatch
    # =============================

    def _submit(self, scheduler: Scheduler, job: Job, work: _Work, candidate: Optional[Candidate] = None) -> bool:
        handle = scheduler.submit(job)
        if handle is None:
            work.incomplete = True
            return False
        self._run.pending[handle.job_id] = _Pending(work=work, candidate=candidate)
        if isinstance(job, CompareJob):
            self._run.stats.jobs["compare"] += 1
        else:
            self._run.stats.jobs[job.kind.value] += 1
        return True

    def _start_bucket(self, scheduler: Scheduler, bucket: SizeBucket) -> None:
        work = _Work(size=bucket.size, candidates=[Candidate(record=r) for r in bucket.files])
        for candidate in work.candidates:
            self.states[candidate.record.index] = FileState.SIZE_GROUPED

        # Zero-length files are identical without reading them
        if bucket.size == 0:
            self._emit(0, list(bucket.files))
            return

        for candidate in work.candidates:
            if self._submit(scheduler, HashJob(candidate.record, HashKind.PARTIAL), work, candidate):
                self.states[candidate.record.index] = FileState.PARTIAL_HASH_PENDING
                work.awaiting += 1
            else:
                break

        if work.awaiting == 0:
            self._finish_bucket(scheduler, work)

    def _start_verification(self, scheduler: Scheduler, size: int, candidates: List[Candidate]) -> None:
        work = _Work(size=size, candidates=candidates, verifying=True)
        for candidate in candidates:
            self.states[candidate.record.index] = FileState.FULL_VERIFICATION_PENDING

        if self.verification is VerificationMode.BYTES:
            records = tuple(c.record for c in candidates)
            if self._submit(scheduler, CompareJob(records), work):
                work.awaiting += 1
            return

        for candidate in candidates:
            if candidate.full is not None:
                continue
            if not self._submit(scheduler, HashJob(candidate.record, HashKind.FULL), work, candidate):
                break
            work.awaiting += 1

        if work.awaiting == 0:
            self._finish_verification(work)

    # =============================
    # Completion
    # =============================

    def _drain(self, scheduler: Scheduler) -> None:
        while self._run.pending:
            outcome = scheduler.poll_outcome()
            if outcome is None:
                return
            self._handle(scheduler, outcome)

    def _handle(self, scheduler: Scheduler, outcome: JobOutcome) -> None:
        pending = self._run.pending.pop(outcome.handle.job_id)
        if outcome.error is not None:
            raise outcome.error

        work = pending.work
        work.awaiting -= 1

        if isinstance(outcome.handle.job, CompareJob):
            if outcome.cancelled:
                work.incomplete = True
            else:
                self._finish_comparison(work, outcome.value)
            return

        candidate = pending.candidate
        if outcome.cancelled:
            work.incomplete = True
        elif outcome.failure is not None:
            self._fail(outcome.failure)
        elif outcome.handle.job.kind is HashKind.PARTIAL:
            candidate.partial = outcome.value.partial
            candidate.full = outcome.value.full
            self.states[candidate.record.index] = FileState.PARTIAL_HASHED
        else:
            candidate.full = outcome.value

        if work.awaiting == 0:
            if work.verifying:
                self._finish_verification(work)
            else:
                self._finish_bucket(scheduler, work)

    def _finish_bucket(self, scheduler: Scheduler, work: _Work) -> None:
        if work.incomplete:
            return
        live = [c for c in work.candidates if self.states[c.record.index] != FileState.FAILED]
        subgroups = partition(live, lambda c: c.partial)

        matched = {c.record.index for group in subgroups for c in group}
        for candidate in live:
            if candidate.record.index not in matched:
                self._settle(candidate.record, FileState.UNIQUE)

        for group in subgroups:
            if self._run.token.cancelled:
                break
            self._start_verification(scheduler, work.size, group)

    def _finish_verification(self, work: _Work) -> None:
        """Split a sub-group by full digest. Cancelled members are left out."""
        live = [c for c in work.candidates if self.states[c.record.index] != FileState.FAILED]
        verified = [c for c in live if c.full is not None]
        for group in partition(verified, lambda c: c.full):
            self._emit(work.size, [c.record for c in group])
        if work.incomplete:
            return
        for candidate in live:
            if self.states[candidate.record.index] != FileState.DUPLICATE:
                self._settle(candidate.record, FileState.UNIQUE)

    def _finish_comparison(self, work: _Work, result: ComparisonResult) -> None:
        for failure in result.failures:
            self._fail(failure)
        for records in result.groups:
            self._emit(work.size, list(records))
        for candidate in work.candidates:
            if not self.states[candidate.record.index].is_terminal:
                self._settle(candidate.record, FileState.UNIQUE)

    def _emit(self, size: int, records: List[FileRecord]) -> None:
        members: Tuple[FileRecord, ...] = tuple(sorted(records, key=lambda r: r.index))
        self._run.groups.append(DuplicateGroup(size=size, files=members))
        for record in members:
            self._settle(record, FileState.DUPLICATE)
        logger.debug(f"Duplicate group of {len(members)} files, {size} bytes each")

    def _fail(self, failure: ReadFailure) -> None:
        logger.warning(f"Skipping unreadable file {failure.record.path}: {failure.reason}")
        self._run.stats.read_failures.append(failure)
        self._settle(failure.record, FileState.FAILED)

    def _settle(self, record: FileRecord, state: FileState) -> None:
        self.states[record.index] = state
        self._run.settled_files += 1
        if self._run.progress_callback:
            self._run.progress_callback(Stage.RESOLVE.value, self._run.settled_files, self._run.total_files)
