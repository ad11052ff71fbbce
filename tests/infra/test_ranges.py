"""Tests for byte-range encoding and partial-content interpretation."""

import pytest

from mdsclient.infra.storage.errors import ProtocolError, UnexpectedPayloadError
from mdsclient.infra.storage.ranges import (
    ByteRange,
    extract_payload,
    parse_content_range,
    range_header,
)

BODY = b"TESTBLOB"


class TestByteRange:
    """Test range validation and header encoding."""

    def test_open_range_header(self):
        assert ByteRange(2).header() == "bytes=2-"

    def test_closed_range_header(self):
        """Test the end offset is sent inclusive."""
        assert ByteRange(2, 4).header() == "bytes=2-4"

    def test_single_byte(self):
        byte_range = ByteRange(5, 5)

        assert byte_range.header() == "bytes=5-5"
        assert byte_range.length == 1

    def test_no_range_means_no_header(self):
        assert range_header(None) == {}
        assert range_header(ByteRange(0)) == {"Range": "bytes=0-"}

    def test_negative_start_rejected(self):
        with pytest.raises(ValueError, match="non-negative"):
            ByteRange(-1)

    def test_end_before_start_rejected(self):
        with pytest.raises(ValueError, match="must not precede"):
            ByteRange(4, 2)


class TestParseContentRange:
    """Test Content-Range parsing."""

    def test_with_total(self):
        assert parse_content_range("bytes 2-4/8") == (2, 4, 8)

    def test_unknown_total(self):
        assert parse_content_range("bytes 2-4/*") == (2, 4, None)

    @pytest.mark.parametrize("value", [None, "", "bytes */8", "items 1-2/3"])
    def test_unparseable(self, value):
        assert parse_content_range(value) is None


class TestExtractPayload:
    """Test payload interpretation for full and partial responses."""

    def test_full_object(self):
        assert extract_payload(None, 200, BODY) == BODY

    def test_partial_closed(self):
        payload = extract_payload(ByteRange(2, 4), 206, BODY[2:5], "bytes 2-4/8")

        assert payload == b"STB"

    def test_partial_open(self):
        payload = extract_payload(ByteRange(2), 206, BODY[2:], "bytes 2-7/8")

        assert payload == b"STBLOB"

    def test_partial_open_without_content_range(self):
        """Test an open range cannot be length-checked without Content-Range."""
        assert extract_payload(ByteRange(2), 206, BODY[2:]) == BODY[2:]

    def test_partial_wrong_length(self):
        """Test a short partial body is a protocol error."""
        with pytest.raises(UnexpectedPayloadError) as exc_info:
            extract_payload(ByteRange(2, 4), 206, b"ST", "bytes 2-4/8")

        assert exc_info.value.expected == 3
        assert exc_info.value.actual == 2

    def test_partial_open_wrong_length(self):
        """Test the announced span is enforced for open ranges."""
        with pytest.raises(UnexpectedPayloadError):
            extract_payload(ByteRange(2), 206, b"STB", "bytes 2-7/8")

    def test_partial_wrong_offset(self):
        with pytest.raises(ProtocolError, match="starts at byte 0"):
            extract_payload(ByteRange(2, 4), 206, b"TES", "bytes 0-2/8")

    def test_range_ignored_by_server(self):
        """Test a 200 answer to a ranged request is sliced locally."""
        assert extract_payload(ByteRange(2, 4), 200, BODY) == b"STB"
        assert extract_payload(ByteRange(2), 200, BODY) == b"STBLOB"

    def test_range_ignored_and_past_end(self):
        with pytest.raises(UnexpectedPayloadError):
            extract_payload(ByteRange(2, 20), 200, BODY)

    def test_range_ignored_and_start_past_end(self):
        with pytest.raises(ProtocolError):
            extract_payload(ByteRange(20), 200, BODY)
