"""
Unit tests for FileScannerImpl.
Verifies recursion, name and size filters, link handling and error reporting.
"""
import os
import pytest
from twinfind.core import FileScannerImpl, FatalError, CancellationToken, DeduplicationParams


def _names(records):
    return sorted(os.path.basename(r.path) for r in records)


class TestFileScannerImpl:
    """Test file traversal and filtering."""

    def test_recursive_scan_finds_all_non_empty_files(self, temp_dir, test_files):
        records = list(FileScannerImpl([str(temp_dir)]).scan())
        assert len(records) == len(test_files) - 1  # empty.txt excluded by min_size=1
        assert "dup_in_subdir.txt" in _names(records)

    def test_min_size_zero_includes_empty_files(self, temp_dir, test_files):
        records = list(FileScannerImpl([str(temp_dir)], min_size=0).scan())
        assert "empty.txt" in _names(records)

    def test_no_recurse_stays_in_root(self, temp_dir, test_files):
        records = list(FileScannerImpl([str(temp_dir)], recursive=False).scan())
        assert "dup_in_subdir.txt" not in _names(records)
        assert "dup1_a.txt" in _names(records)

    def test_glob_pattern_matches_file_name(self, temp_dir, test_files):
        records = list(FileScannerImpl([str(temp_dir)], pattern="*.tmp").scan())
        assert _names(records) == ["ignore.tmp"]

    def test_regex_is_searched_in_file_name(self, temp_dir, test_files):
        records = list(FileScannerImpl([str(temp_dir)], regex=r"^dup\d_a").scan())
        assert _names(records) == ["dup1_a.txt", "dup2_a.txt"]

    def test_invalid_regex_raises_value_error(self, temp_dir):
        with pytest.raises(ValueError, match="Invalid regular expression"):
            FileScannerImpl([str(temp_dir)], regex="[unclosed")

    def test_size_range_is_inclusive(self, temp_dir, test_files):
        records = list(FileScannerImpl([str(temp_dir)], min_size=1024, max_size=1500).scan())
        assert {r.size for r in records} == {1024, 1500}

    def test_indexes_follow_sorted_traversal(self, temp_dir, test_files):
        """Two runs over an unchanged tree produce identical records."""
        first = list(FileScannerImpl([str(temp_dir)]).scan())
        second = list(FileScannerImpl([str(temp_dir)]).scan())
        assert first == second
        assert [r.index for r in first] == list(range(len(first)))

    def test_multiple_roots_share_one_index_sequence(self, temp_dir):
        for sub in ("one", "two"):
            (temp_dir / sub).mkdir()
            (temp_dir / sub / "file.bin").write_bytes(b"data")

        scanner = FileScannerImpl([str(temp_dir / "one"), str(temp_dir / "two")])
        records = list(scanner.scan())
        assert [r.index for r in records] == [0, 1]
        assert records[0].path.startswith(str(temp_dir / "one"))

    def test_overlapping_roots_report_each_file_once(self, temp_dir):
        """A root given twice, or a root plus its subdirectory, yields each file once."""
        sub = temp_dir / "sub"
        sub.mkdir()
        (sub / "only.bin").write_bytes(b"content")
        (temp_dir / "top.bin").write_bytes(b"other")

        same_twice = list(FileScannerImpl([str(temp_dir), str(temp_dir)]).scan())
        assert _names(same_twice) == ["only.bin", "top.bin"]

        nested = list(FileScannerImpl([str(temp_dir), str(sub)]).scan())
        assert [r.path for r in nested] == [str(temp_dir / "top.bin"), str(sub / "only.bin")]

        sub_first = list(FileScannerImpl([str(sub), str(temp_dir)]).scan())
        assert [r.path for r in sub_first] == [str(sub / "only.bin"), str(temp_dir / "top.bin")]

    @pytest.mark.skipif(not hasattr(os, "link"), reason="hard links unsupported")
    def test_hard_links_reported_once(self, temp_dir):
        original = temp_dir / "a.bin"
        original.write_bytes(b"linked content")
        os.link(original, temp_dir / "b.bin")

        records = list(FileScannerImpl([str(temp_dir)]).scan())
        assert _names(records) == ["a.bin"]

    @pytest.mark.skipif(not hasattr(os, "symlink"), reason="symlinks unsupported")
    def test_symlinks_are_skipped(self, temp_dir):
        target = temp_dir / "target.bin"
        target.write_bytes(b"content")
        (temp_dir / "link.bin").symlink_to(target)
        (temp_dir / "linkdir").symlink_to(temp_dir)

        records = list(FileScannerImpl([str(temp_dir)]).scan())
        assert _names(records) == ["target.bin"]

    def test_cancelled_token_stops_walk(self, temp_dir, test_files):
        token = CancellationToken()
        token.cancel()
        assert list(FileScannerImpl([str(temp_dir)]).scan(token)) == []

    def test_from_params_copies_filters(self, temp_dir):
        params = DeduplicationParams(
            roots=(str(temp_dir),), recursive=False, pattern="*.jpg", regex="x", min_size=5, max_size=9)
        scanner = FileScannerImpl.from_params(params)
        assert scanner.roots == [str(temp_dir)]
        assert scanner.recursive is False
        assert scanner.pattern == "*.jpg"
        assert scanner.regex.pattern == "x"
        assert (scanner.min_size, scanner.max_size) == (5, 9)


class TestRootValidation:
    """Conditions that stop a run before any scanning."""

    def test_missing_root_is_fatal(self, temp_dir):
        with pytest.raises(FatalError, match="does not exist"):
            FileScannerImpl([str(temp_dir / "missing")]).validate_roots()

    def test_file_root_is_fatal(self, temp_dir):
        path = temp_dir / "plain.txt"
        path.write_bytes(b"x")
        with pytest.raises(FatalError, match="Not a directory"):
            FileScannerImpl([str(path)]).validate_roots()

    def test_valid_roots_pass(self, temp_dir):
        FileScannerImpl([str(temp_dir)]).validate_roots()


@pytest.mark.skipif(os.name != "posix" or os.geteuid() == 0, reason="needs POSIX permissions as non-root")
class TestUnreadablePaths:

    def test_unreadable_subdirectory_is_reported_and_skipped(self, temp_dir):
        (temp_dir / "ok.bin").write_bytes(b"data")
        locked = temp_dir / "locked"
        locked.mkdir()
        (locked / "hidden.bin").write_bytes(b"data")
        locked.chmod(0)

        errors = []
        try:
            records = list(FileScannerImpl([str(temp_dir)], on_error=errors.append).scan())
        finally:
            locked.chmod(0o755)

        assert _names(records) == ["ok.bin"]
        assert [e.path for e in errors] == [str(locked)]

    def test_unreadable_root_is_fatal(self, temp_dir):
        locked = temp_dir / "locked"
        locked.mkdir()
        locked.chmod(0)
        try:
            with pytest.raises(FatalError, match="Cannot read directory"):
                FileScannerImpl([str(locked)]).validate_roots()
        finally:
            locked.chmod(0o755)
