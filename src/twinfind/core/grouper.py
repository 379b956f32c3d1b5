"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/grouper.py
Size bucketing and the order-preserving partition helper used by every stage.
"""

import logging
from typing import Any, Callable, Dict, Iterable, List, Optional, TypeVar

from twinfind.core.models import DeduplicationParams, FileRecord, SizeBucket

logger = logging.getLogger(__name__)

T = TypeVar("T")


def partition(items: Iterable[T], key_func: Callable[[T], Any]) -> List[List[T]]:
    """
    Groups items by a computed key.
    Keys keep their first-seen order, members keep input order,
    and groups with fewer than two members are dropped.
    """
    groups: Dict[Any, List[T]] = {}
    for item in items:
        groups.setdefault(key_func(item), []).append(item)
    return [group for group in groups.values() if len(group) >= 2]


class SizeGrouper:
    """
    Buckets records by exact byte length without reading any content.

    A size seen once is parked as a single record and only becomes a bucket
    when a second record of that size shows up; the parked singles are
    dropped at the end, so they are never scheduled for hashing.
    """

    def __init__(self, params: Optional[DeduplicationParams] = None, include_empty: Optional[bool] = None):
        if include_empty is None:
            include_empty = params.include_empty if params is not None else False
        self.include_empty = include_empty

    def group(self, records: Iterable[FileRecord]) -> List[SizeBucket]:
        """Consume the enumerator and return buckets ordered by first member."""
        singles: Dict[int, FileRecord] = {}
        buckets: Dict[int, List[FileRecord]] = {}
        skipped_empty = 0

        for record in records:
            if record.size == 0 and not self.include_empty:
                skipped_empty += 1
                continue

            bucket = buckets.get(record.size)
            if bucket is not None:
                bucket.append(record)
                continue

            first = singles.pop(record.size, None)
            if first is None:
                singles[record.size] = record
            else:
                buckets[record.size] = [first, record]

        if skipped_empty:
            logger.debug(f"Ignored {skipped_empty} zero-byte files")
        logger.debug(f"Size grouping: {len(buckets)} buckets, {len(singles)} unique sizes dropped")

        result = [
            SizeBucket(size=size, files=tuple(sorted(files, key=lambda r: r.index)))
            for size, files in buckets.items()
        ]
        result.sort(key=lambda b: b.first_index)
        return result
