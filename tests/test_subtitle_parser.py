"""Tests for SRT/VTT parsing."""

import pytest

from reco.errors import UnsupportedFormatError
from reco.subtitles import (
    SubtitleFormat,
    detect_format,
    parse_srt,
    parse_subtitle_file,
    parse_subtitle_path,
    parse_vtt,
)

SRT_CONTENT = """1
00:00:01,000 --> 00:00:02,500
Hello there.

2
00:00:03,000 --> 00:00:05,000
<i>General</i> Kenobi!
You are a bold one.

3
00:00:06,000 --> 00:00:07,000
Back away.
"""

VTT_CONTENT = """WEBVTT

00:00:01.000 --> 00:00:02.000
First cue

NOTE this is a comment

intro
00:00:03.000 --> 00:00:04.500
<b>Second</b> cue
continues here

00:00:05.000 --> 00:00:06.000
Third cue
"""


class TestDetectFormat:
    """Tests for extension-based format detection."""

    def test_srt(self):
        assert detect_format("movie.srt") == SubtitleFormat.SRT

    def test_vtt_case_insensitive(self):
        """Test the extension is matched case-insensitively."""
        assert detect_format("Movie.EN.VTT") == SubtitleFormat.VTT

    def test_unsupported(self):
        """Test unknown extensions raise and name the extension."""
        with pytest.raises(UnsupportedFormatError) as exc_info:
            detect_format("movie.ass")
        assert exc_info.value.extension == "ass"
        assert ".ass" in exc_info.value.message

    def test_missing_extension(self):
        """Test a filename without an extension is unsupported."""
        with pytest.raises(UnsupportedFormatError):
            detect_format("subtitles")


class TestParseSrt:
    """Tests for the SRT grammar."""

    def test_basic(self):
        """Test well-formed blocks become segments."""
        segments = parse_srt(SRT_CONTENT)

        assert len(segments) == 3
        assert segments[0].start_time == 1000
        assert segments[0].end_time == 2500
        assert segments[0].text == "Hello there."
        assert [s.index for s in segments] == [0, 1, 2]

    def test_multiline_text_joined_and_tags_stripped(self):
        """Test text lines join with a space and markup is removed."""
        segments = parse_srt(SRT_CONTENT)
        assert segments[1].text == "General Kenobi! You are a bold one."

    def test_malformed_block_keeps_position_index(self):
        """Test a skipped block leaves a gap instead of renumbering."""
        content = (
            "1\n00:00:01,000 --> 00:00:02,000\nKept\n\n"
            "2\nMissing timing line\n\n"
            "3\n00:00:05,000 --> 00:00:06,000\nAlso kept\n"
        )
        segments = parse_srt(content)

        assert [s.text for s in segments] == ["Kept", "Also kept"]
        assert [s.index for s in segments] == [0, 2]

    def test_second_block_malformed(self):
        """Test two blocks where the second lacks a timing line."""
        content = "1\n00:00:01,000 --> 00:00:02,000\nOnly one\n\n2\nNo timing here\n"
        segments = parse_srt(content)

        assert len(segments) == 1
        assert segments[0].index == 0

    def test_bad_timing_line_skipped(self):
        """Test a block whose second line is not a timing line is dropped."""
        content = "1\nnot a timing line\ntext\n\n2\n00:00:01,000 --> 00:00:02,000\nGood\n"
        segments = parse_srt(content)

        assert len(segments) == 1
        assert segments[0].index == 1

    def test_crlf_and_trailing_whitespace(self):
        """Test Windows line endings and trailing spaces are tolerated."""
        content = "1  \r\n00:00:01,000 --> 00:00:02,000   \r\nHello  \r\n\r\n  \r\n"
        segments = parse_srt(content)

        assert len(segments) == 1
        assert segments[0].text == "Hello"
        assert segments[0].end_time == 2000

    def test_blank_lines_with_spaces_separate_blocks(self):
        """Test whitespace-only lines count as block separators."""
        content = "1\n00:00:01,000 --> 00:00:02,000\nA\n   \n2\n00:00:03,000 --> 00:00:04,000\nB\n"
        assert [s.index for s in parse_srt(content)] == [0, 1]

    def test_empty(self):
        assert parse_srt("") == []
        assert parse_srt("\n\n  \n") == []

    def test_unique_ids(self):
        """Test each segment gets its own id."""
        segments = parse_srt(SRT_CONTENT)
        assert len({s.id for s in segments}) == len(segments)


class TestParseVtt:
    """Tests for the WebVTT grammar."""

    def test_three_cues_contiguous(self):
        """Test cues get contiguous indexes and valid time ranges."""
        segments = parse_vtt(VTT_CONTENT)

        assert len(segments) == 3
        assert [s.index for s in segments] == [0, 1, 2]
        assert all(s.end_time >= s.start_time for s in segments)

    def test_text_accumulation(self):
        """Test multi-line cue text and tag stripping."""
        segments = parse_vtt(VTT_CONTENT)

        assert segments[0].text == "First cue"
        assert segments[1].text == "Second cue continues here"
        assert segments[1].start_time == 3000
        assert segments[1].end_time == 4500

    def test_timing_line_ends_text(self):
        """Test a new timing line without a blank line starts a new cue."""
        content = (
            "WEBVTT\n"
            "00:00:01.000 --> 00:00:02.000\n"
            "One\n"
            "00:00:02.000 --> 00:00:03.000\n"
            "Two\n"
        )
        segments = parse_vtt(content)
        assert [s.text for s in segments] == ["One", "Two"]

    def test_header_with_title_and_trailing_blank_lines(self):
        """Test a titled header and trailing blank lines."""
        content = "WEBVTT - Episode 1\r\n\r\n00:00:01.000 --> 00:00:02.000 align:start\r\nHi   \r\n\r\n\r\n"
        segments = parse_vtt(content)

        assert len(segments) == 1
        assert segments[0].text == "Hi"

    def test_srt_timing_not_accepted(self):
        """Test comma-separated timings are not VTT timing lines."""
        content = "WEBVTT\n\n00:00:01,000 --> 00:00:02,000\nNope\n"
        assert parse_vtt(content) == []

    def test_byte_order_mark(self):
        """Test a leading BOM does not hide the header."""
        content = "\ufeffWEBVTT\n\n00:00:01.000 --> 00:00:02.000\nHello\n"
        segments = parse_vtt(content)
        assert [s.text for s in segments] == ["Hello"]


class TestParseSubtitleFile:
    """Tests for extension dispatch."""

    def test_dispatch_srt(self):
        segments = parse_subtitle_file(SRT_CONTENT, "movie.SRT")
        assert len(segments) == 3

    def test_dispatch_vtt(self):
        segments = parse_subtitle_file(VTT_CONTENT, "movie.vtt")
        assert len(segments) == 3

    def test_unsupported_before_parsing(self):
        """Test unknown extensions fail even for valid content."""
        with pytest.raises(UnsupportedFormatError):
            parse_subtitle_file(SRT_CONTENT, "movie.txt")

    def test_parse_path(self, tmp_path):
        """Test reading a file from disk."""
        path = tmp_path / "clip.vtt"
        path.write_text(VTT_CONTENT, encoding="utf-8")

        segments = parse_subtitle_path(path)
        assert len(segments) == 3

    def test_parse_path_unsupported(self, tmp_path):
        """Test the extension is checked before the file is read."""
        with pytest.raises(UnsupportedFormatError):
            parse_subtitle_path(tmp_path / "missing.docx")
