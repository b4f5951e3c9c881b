"""Tests for sizes.py - parsing, formatting and classification."""

import pytest

from perf_audit.exceptions import InvalidSizeError
from perf_audit.models import Status
from perf_audit.sizes import calculate_delta, classify, format_delta, format_size, parse_size


class TestParseSize:
    @pytest.mark.parametrize(
        "text, expected",
        [
            ("150KB", 150 * 1024),
            ("150kb", 150 * 1024),
            ("2.5MB", int(2.5 * 1024 * 1024)),
            ("512B", 512),
            ("1GB", 1024**3),
            ("  10 KB ", 10 * 1024),
        ],
    )
    def test_valid_sizes(self, text, expected):
        assert parse_size(text) == expected

    def test_fraction_rounds_half_up(self):
        """0.5B rounds up to a whole byte."""
        assert parse_size("0.5B") == 1
        assert parse_size("1.0004KB") == 1024

    @pytest.mark.parametrize("text", ["150", "KB", "abcKB", "15XB", "-5KB", ""])
    def test_invalid_sizes_raise(self, text):
        with pytest.raises(InvalidSizeError):
            parse_size(text)

    def test_non_string_raises(self):
        with pytest.raises(InvalidSizeError):
            parse_size(150)


class TestFormatSize:
    def test_bytes(self):
        assert format_size(512) == "512B"

    def test_kilobytes_trim_trailing_zero(self):
        assert format_size(150 * 1024) == "150KB"

    def test_kilobytes_fraction(self):
        assert format_size(1536) == "1.5KB"

    def test_megabytes(self):
        assert format_size(3 * 1024 * 1024) == "3MB"

    def test_zero_and_negative(self):
        assert format_size(0) == "0B"
        assert format_size(-10) == "0B"

    def test_parse_inverts_format_for_whole_units(self):
        for size in (1, 1023, 1024, 150 * 1024, 5 * 1024 * 1024):
            assert parse_size(format_size(size)) == size


class TestDelta:
    def test_calculate_delta_sign(self):
        assert calculate_delta(150, 100) == 50
        assert calculate_delta(100, 150) == -50

    def test_format_delta(self):
        assert format_delta(15 * 1024) == "+15KB"
        assert format_delta(-200) == "-200B"
        assert format_delta(0) == "+0B"


class TestClassify:
    def test_below_warning_is_ok(self):
        assert classify(99, 100, 200) is Status.OK

    def test_equal_to_warning_is_warning(self):
        assert classify(100, 100, 200) is Status.WARNING

    def test_equal_to_max_is_error(self):
        assert classify(200, 100, 200) is Status.ERROR

    def test_above_max_is_error(self):
        assert classify(10_000, 100, 200) is Status.ERROR

    def test_monotonic(self):
        """Severity never decreases as the value grows."""
        severities = [classify(v, 100, 200).severity for v in range(0, 300, 7)]
        assert severities == sorted(severities)


class TestSizeScenario:
    def test_two_and_a_half_megabytes(self):
        assert parse_size("2.5MB") == 2621440
        assert format_size(2621440) == "2.5MB"
