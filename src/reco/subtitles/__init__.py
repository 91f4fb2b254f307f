"""Subtitle parsing for reco.

Converts raw SRT or WebVTT text into ordered, timed SubtitleSegments.
"""

from reco.subtitles.parser import (
    SubtitleFormat,
    detect_format,
    parse_srt,
    parse_subtitle_file,
    parse_subtitle_path,
    parse_vtt,
)

__all__ = [
    "SubtitleFormat",
    "detect_format",
    "parse_srt",
    "parse_vtt",
    "parse_subtitle_file",
    "parse_subtitle_path",
]
