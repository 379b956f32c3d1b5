"""
Shared fixtures for deduplication core tests.
Creates isolated temporary directories with controlled test files.
"""
import pytest
import tempfile
from pathlib import Path
from typing import Dict


@pytest.fixture
def temp_dir():
    """Creates isolated temporary directory, auto-cleanup after test."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def test_files(temp_dir) -> Dict[str, Path]:
    """
    Creates controlled test files for deduplication scenarios:
    - 2 identical files (duplicates) + 1 more copy in a subdirectory
    - 2 identical 2KB files (second duplicate set)
    - 2 unique files (different content)
    - 1 same-size file with different content (size collision only)
    - 1 empty file (ignored unless min size is 0)
    - 1 .tmp file with the same content as the first set
    """
    files = {}

    # Duplicate pair #1 (1KB of 'A')
    content_a = b"A" * 1024
    files["dup1_a"] = temp_dir / "dup1_a.txt"
    files["dup1_b"] = temp_dir / "dup1_b.txt"
    files["dup1_a"].write_bytes(content_a)
    files["dup1_b"].write_bytes(content_a)

    # Duplicate pair #2 (2KB of 'B')
    content_b = b"B" * 2048
    files["dup2_a"] = temp_dir / "dup2_a.txt"
    files["dup2_b"] = temp_dir / "dup2_b.txt"
    files["dup2_a"].write_bytes(content_b)
    files["dup2_b"].write_bytes(content_b)

    # Unique files
    files["unique1"] = temp_dir / "unique1.txt"
    files["unique1"].write_bytes(b"C" * 1500)
    files["unique2"] = temp_dir / "unique2.txt"
    files["unique2"].write_bytes(b"D" * 2500)

    # Same size as pair #1, different content
    files["same_size"] = temp_dir / "same_size.txt"
    files["same_size"].write_bytes(b"Z" * 1024)

    # Empty file (0 bytes)
    files["empty"] = temp_dir / "empty.txt"
    files["empty"].write_bytes(b"")

    # Different extension, same content as pair #1
    files["other_ext"] = temp_dir / "ignore.tmp"
    files["other_ext"].write_bytes(content_a)

    # Subdirectory with duplicates
    subdir = temp_dir / "subdir"
    subdir.mkdir()
    files["sub_dup"] = subdir / "dup_in_subdir.txt"
    files["sub_dup"].write_bytes(content_a)  # Same as dup1_a/b

    return files


@pytest.fixture
def large_collision_pair(temp_dir) -> Dict[str, Path]:
    """
    Two 100KB files that are identical in every sampled region
    (front, middle, end) but differ in one byte between the samples,
    plus a true copy of the first one.
    """
    size = 100 * 1024
    base = bytearray(b"x" * size)
    twisted = bytearray(base)
    twisted[20000] = ord("y")

    files = {
        "original": temp_dir / "original.bin",
        "copy": temp_dir / "copy.bin",
        "twisted": temp_dir / "twisted.bin",
    }
    files["original"].write_bytes(bytes(base))
    files["copy"].write_bytes(bytes(base))
    files["twisted"].write_bytes(bytes(twisted))
    return files
