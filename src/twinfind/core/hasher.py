"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/hasher.py
Reads file content on behalf of the worker pool.

- Partial digest: xxHash64 over the front, middle and end chunks of a file
  (small files are sampled whole and get their full digest in the same read)
- Full digest: BLAKE2b-256 over the entire content, streamed in blocks
- Byte comparison: splits a candidate set into byte-identical subsets

Every block read is a cancellation checkpoint. OSErrors never escape as such:
they are raised as FileReadError carrying the record, so a single unreadable
file cannot abort the run.
"""

import hashlib
import logging
from typing import Dict, Iterable, List, Optional

import xxhash

from twinfind.core.errors import FileReadError, JobCancelled
from twinfind.core.interfaces import HashAlgorithm, Hasher
from twinfind.core.models import ComparisonResult, FileRecord, ReadFailure, Sample

logger = logging.getLogger(__name__)


class DeduplicationConfig:
    READ_BLOCK_SIZE = 64 * 1024   # Streaming block for full hashing and comparison
    SAMPLE_CHUNK_SIZE = 4 * 1024  # Size of each partial-hash sample
    SAMPLE_POINTS = 3             # front, middle, end
    WHOLE_FILE_SAMPLE_LIMIT = SAMPLE_CHUNK_SIZE * SAMPLE_POINTS
    MAX_OPEN_FILES = 100          # Larger comparison sets reopen files per block

    @staticmethod
    def get_sample_offsets(file_size: int) -> List[int]:
        """
        Offsets of the partial-hash chunks for a file of the given size.
        Files up to WHOLE_FILE_SAMPLE_LIMIT are read whole from offset 0.
        """
        chunk = DeduplicationConfig.SAMPLE_CHUNK_SIZE
        if file_size <= DeduplicationConfig.WHOLE_FILE_SAMPLE_LIMIT:
            return [0]
        return [0, (file_size - chunk) // 2, file_size - chunk]


class XXHashAlgorithmImpl(HashAlgorithm):
    """xxHash64: fast, 8-byte digests. Used for the partial pre-filter only."""

    def create(self):
        return xxhash.xxh64()

    def hash(self, data: bytes) -> bytes:
        return xxhash.xxh64(data).digest()


class Blake2bAlgorithmImpl(HashAlgorithm):
    """BLAKE2b with a 256-bit digest. Used for full-content verification."""

    def __init__(self, digest_size: int = 32):
        if digest_size < 16:
            raise ValueError("Full-content digest must be at least 128 bits")
        self.digest_size = digest_size

    def create(self):
        return hashlib.blake2b(digest_size=self.digest_size)

    def hash(self, data: bytes) -> bytes:
        return hashlib.blake2b(data, digest_size=self.digest_size).digest()


def _describe(error: OSError) -> str:
    return error.strerror or str(error)


def _checkpoint(token) -> None:
    if token is not None and token.cancelled:
        raise JobCancelled()


class _ContentCursor:
    """
    Reading position inside one file during byte comparison.
    Keeps the file open unless the comparison set is too large for that.
    """

    def __init__(self, record: FileRecord, keep_open: bool):
        self.record = record
        self.offset = 0
        self._fh = open(record.path, "rb") if keep_open else None

    def read_block(self, size: int) -> bytes:
        if self._fh is not None:
            data = self._fh.read(size)
        else:
            with open(self.record.path, "rb") as f:
                f.seek(self.offset)
                data = f.read(size)
        self.offset += len(data)
        return data

    def close(self) -> None:
        if self._fh is not None:
            self._fh.close()
            self._fh = None


class HasherImpl(Hasher):
    """
    Concrete Hasher. Algorithms are injected so tests can force collisions
    in the partial stage.
    """

    def __init__(
        self,
        partial_algorithm: Optional[HashAlgorithm] = None,
        full_algorithm: Optional[HashAlgorithm] = None,
        block_size: int = DeduplicationConfig.READ_BLOCK_SIZE
    ):
        self.partial_algorithm = partial_algorithm or XXHashAlgorithmImpl()
        self.full_algorithm = full_algorithm or Blake2bAlgorithmImpl()
        self.block_size = block_size

    def compute_sample(self, record: FileRecord, token=None) -> Sample:
        """
        Computes the partial digest of a file.
        For small files the whole content is read once and both digests are returned.
        """
        _checkpoint(token)
        offsets = DeduplicationConfig.get_sample_offsets(record.size)
        try:
            with open(record.path, "rb") as f:
                if len(offsets) == 1:
                    data = f.read(record.size + 1)
                    if len(data) != record.size:
                        raise FileReadError(record, "file changed size during scan")
                    return Sample(
                        partial=self.partial_algorithm.hash(data),
                        full=self.full_algorithm.hash(data),
                    )

                state = self.partial_algorithm.create()
                chunk_size = DeduplicationConfig.SAMPLE_CHUNK_SIZE
                for offset in offsets:
                    _checkpoint(token)
                    f.seek(offset)
                    chunk = f.read(chunk_size)
                    if len(chunk) != chunk_size:
                        raise FileReadError(record, "file changed size during scan")
                    state.update(chunk)
                return Sample(partial=state.digest())
        except OSError as e:
            raise FileReadError(record, _describe(e)) from e

    def compute_full_hash(self, record: FileRecord, token=None) -> bytes:
        """
        Streams the whole file through the full-content algorithm.
        """
        state = self.full_algorithm.create()
        total = 0
        try:
            with open(record.path, "rb") as f:
                while True:
                    _checkpoint(token)
                    block = f.read(self.block_size)
                    if not block:
                        break
                    total += len(block)
                    state.update(block)
        except OSError as e:
            raise FileReadError(record, _describe(e)) from e

        if total != record.size:
            raise FileReadError(record, "file changed size during scan")
        return state.digest()

    def compare_contents(self, records: Iterable[FileRecord], token=None) -> ComparisonResult:
        """
        Reads all records block by block and keeps splitting the set wherever
        blocks differ. Subsets that reach EOF together are byte-identical.
        Unreadable members are reported as failures and dropped; the rest continue.
        """
        records = list(records)
        keep_open = len(records) <= DeduplicationConfig.MAX_OPEN_FILES
        failures: List[ReadFailure] = []
        identical = []
        cursors: List[_ContentCursor] = []

        try:
            for record in records:
                try:
                    cursors.append(_ContentCursor(record, keep_open))
                except OSError as e:
                    failures.append(ReadFailure(record, _describe(e)))

            pending = [cursors] if len(cursors) >= 2 else []
            while pending:
                current = pending.pop()
                _checkpoint(token)

                blocks: Dict[bytes, List[_ContentCursor]] = {}
                for cursor in current:
                    try:
                        data = cursor.read_block(self.block_size)
                    except OSError as e:
                        failures.append(ReadFailure(cursor.record, _describe(e)))
                        cursor.close()
                        continue
                    blocks.setdefault(data, []).append(cursor)

                for data, members in blocks.items():
                    if len(members) < 2:
                        for cursor in members:
                            cursor.close()
                            if self._changed_size(cursor, data):
                                failures.append(ReadFailure(cursor.record, "file changed size during scan"))
                        continue
                    if data:
                        pending.append(members)
                        continue

                    # EOF reached together
                    complete = []
                    for cursor in members:
                        cursor.close()
                        if cursor.offset == cursor.record.size:
                            complete.append(cursor.record)
                        else:
                            failures.append(ReadFailure(cursor.record, "file changed size during scan"))
                    if len(complete) >= 2:
                        identical.append(tuple(complete))
        finally:
            for cursor in cursors:
                cursor.close()

        logger.debug(
            f"Compared {len(records)} files: {len(identical)} identical sets, {len(failures)} failures"
        )
        return ComparisonResult(groups=tuple(identical), failures=tuple(failures))

    def _changed_size(self, cursor: _ContentCursor, data: bytes) -> bool:
        """A split-off member read past its recorded size, or hit EOF before it."""
        if cursor.offset > cursor.record.size:
            return True
        return len(data) < self.block_size and cursor.offset != cursor.record.size
