"""
Tests for size conversion utilities: used by -m/-M and the grand total.
"""
import pytest
from twinfind.utils.convert_utils import ConvertUtils


class TestHumanToBytes:
    """Test conversion from human-readable sizes (e.g., "500KB") to bytes."""

    def test_bytes_without_suffix(self):
        """Plain numbers should be interpreted as bytes."""
        assert ConvertUtils.human_to_bytes("0") == 0
        assert ConvertUtils.human_to_bytes("1") == 1
        assert ConvertUtils.human_to_bytes("1000") == 1000

    def test_binary_suffixes(self):
        """KB/MB/GB multiply by powers of 1024; short and IEC forms are accepted."""
        assert ConvertUtils.human_to_bytes("1KB") == 1024
        assert ConvertUtils.human_to_bytes("1K") == 1024
        assert ConvertUtils.human_to_bytes("4KiB") == 4096
        assert ConvertUtils.human_to_bytes("1.5MB") == int(1.5 * 1024 * 1024)
        assert ConvertUtils.human_to_bytes("2G") == 2 * 1024 ** 3

    def test_case_and_whitespace_tolerance(self):
        assert ConvertUtils.human_to_bytes(" 1kb ") == 1024
        assert ConvertUtils.human_to_bytes("\t1mb\n") == 1024 * 1024

    def test_rejects_negative_values(self):
        with pytest.raises(ValueError, match="Negative size not allowed"):
            ConvertUtils.human_to_bytes("-1")
        with pytest.raises(ValueError, match="Negative size not allowed"):
            ConvertUtils.human_to_bytes("-1KB")

    def test_rejects_invalid_formats(self):
        """Garbage input must raise ValueError."""
        for bad in ["", "abc", "1.5.5KB", "KB"]:
            with pytest.raises(ValueError):
                ConvertUtils.human_to_bytes(bad)
        assert ConvertUtils.is_valid_size_format("10M") is True
        assert ConvertUtils.is_valid_size_format("ten") is False


class TestBytesToHuman:
    """Test rendering used by the grand total line."""

    @pytest.mark.parametrize("size, expected", [
        (0, "0.0 B"),
        (20, "20.0 B"),
        (1024, "1.0 KB"),
        (1536, "1.5 KB"),
        (5 * 1024 * 1024, "5.0 MB"),
    ])
    def test_formats_with_one_decimal(self, size, expected):
        assert ConvertUtils.bytes_to_human(size) == expected

    def test_negative_size_renders_as_zero(self):
        assert ConvertUtils.bytes_to_human(-5) == "0.0 B"
