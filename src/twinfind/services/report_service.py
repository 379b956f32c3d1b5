"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

services/report_service.py
Plain-text rendering of duplicate groups and the grand total.
Groups and members are written in the order received.
"""
from typing import List, TextIO

from twinfind.core.interfaces import Reporter
from twinfind.core.models import DeduplicationStats, DuplicateGroup
from twinfind.utils.convert_utils import ConvertUtils


class ReportService(Reporter):
    """
    Renders groups either as blocks:

        Size 10 bytes:
            /data/a
            /data/b

    or, in single-line mode, as space-separated paths, one group per line.
    """

    def __init__(self, single_line: bool = False, show_totals: bool = False):
        self.single_line = single_line
        self.show_totals = show_totals

    def write(self, groups: List[DuplicateGroup], stats: DeduplicationStats, out: TextIO) -> None:
        for group in groups:
            out.write(self.format_group(group))
        if self.show_totals:
            out.write(self.format_totals(groups, stats))

    def format_group(self, group: DuplicateGroup) -> str:
        if self.single_line:
            return " ".join(f.path for f in group.files) + "\n"

        lines = [f"Size {group.size} bytes:"]
        lines.extend(f"    {f.path}" for f in group.files)
        return "\n".join(lines) + "\n\n"

    @staticmethod
    def format_totals(groups: List[DuplicateGroup], stats: DeduplicationStats) -> str:
        duplicate_files = sum(g.duplicate_count for g in groups)
        reclaimable = sum(g.reclaimable_bytes for g in groups)
        lines = [
            "Overall results:",
            f"    {stats.files_scanned} files scanned",
            f"    {len(groups)} groups of duplicate files",
            f"    {duplicate_files} files are duplicates",
            f"    {ConvertUtils.bytes_to_human(reclaimable)} of space taken by duplicates",
        ]
        return "\n".join(lines) + "\n"
