"""Parsers for SRT and WebVTT subtitle files.

Supports:
- Selecting the grammar from the file extension
- SRT cue blocks, with malformed blocks skipped
- WebVTT cues, with header, NOTE and cue identifier lines ignored

Styling and positioning are not interpreted; inline markup tags are
stripped from cue text.
"""

from __future__ import annotations

import re
from enum import Enum
from pathlib import Path, PurePath

from reco.errors import UnsupportedFormatError
from reco.logging import get_logger
from reco.models.transcript import SubtitleSegment
from reco.timecode import parse_timecode

logger = get_logger(__name__)

_TAG_RE = re.compile(r"<[^>]*>")
_BLOCK_SPLIT_RE = re.compile(r"\n\s*\n")
_SRT_TIMING_RE = re.compile(
    r"(\d{2}):(\d{2}):(\d{2}),(\d{3})\s+-->\s+(\d{2}):(\d{2}):(\d{2}),(\d{3})"
)
_VTT_TIMING_RE = re.compile(
    r"(\d{2}):(\d{2}):(\d{2})\.(\d{3})\s+-->\s+(\d{2}):(\d{2}):(\d{2})\.(\d{3})"
)


class SubtitleFormat(str, Enum):
    """Supported subtitle grammars, keyed by file extension."""

    SRT = "srt"
    VTT = "vtt"


def detect_format(filename: str) -> SubtitleFormat:
    """Pick the subtitle grammar from a filename's extension.

    Args:
        filename: Original file name; the extension is case-insensitive

    Returns:
        The matching SubtitleFormat

    Raises:
        UnsupportedFormatError: If the extension is missing or unknown
    """
    extension = PurePath(filename).suffix.lstrip(".").lower()
    try:
        return SubtitleFormat(extension)
    except ValueError:
        raise UnsupportedFormatError(extension, context={"file": filename}) from None


def _normalize(content: str) -> str:
    return content.lstrip("\ufeff").replace("\r\n", "\n").replace("\r", "\n")


def _clean_text(lines: list[str]) -> str:
    return _TAG_RE.sub("", " ".join(lines))


def _timing(match: re.Match) -> tuple[int, int]:
    groups = match.groups()
    return parse_timecode(*groups[:4]), parse_timecode(*groups[4:])


def parse_srt(content: str) -> list[SubtitleSegment]:
    """Parse SRT content into segments.

    Each segment's ``index`` is the position of its block in the file, so a
    skipped block leaves a gap. Downstream aggregate ranges are expressed in
    these numbers; do not renumber.

    Args:
        content: SRT file content

    Returns:
        Segments in file order
    """
    content = _normalize(content).strip()
    if not content:
        return []

    segments: list[SubtitleSegment] = []
    for position, block in enumerate(_BLOCK_SPLIT_RE.split(content)):
        lines = [line.strip() for line in block.strip().split("\n")]
        if len(lines) < 3:
            logger.debug("Skipping SRT block with too few lines", extra={"block": position})
            continue

        match = _SRT_TIMING_RE.search(lines[1])
        if not match:
            logger.debug("Skipping SRT block without timing line", extra={"block": position})
            continue

        start_time, end_time = _timing(match)
        segments.append(
            SubtitleSegment(
                start_time=start_time,
                end_time=end_time,
                text=_clean_text(lines[2:]),
                index=position,
            )
        )

    return segments


def parse_vtt(content: str) -> list[SubtitleSegment]:
    """Parse WebVTT content into segments.

    Indexes are assigned contiguously from 0 to emitted cues.

    Args:
        content: VTT file content

    Returns:
        Segments in file order
    """
    lines = _normalize(content).split("\n")
    segments: list[SubtitleSegment] = []

    i = 0
    while i < len(lines):
        line = lines[i].strip()
        i += 1

        if not line or line.startswith("NOTE") or line.split(maxsplit=1)[0] == "WEBVTT":
            continue

        match = _VTT_TIMING_RE.search(line)
        if not match:
            # Cue identifiers, STYLE/REGION blocks and stray text
            continue

        start_time, end_time = _timing(match)
        text_lines = []
        while i < len(lines):
            text_line = lines[i].strip()
            if not text_line or "-->" in text_line:
                break
            text_lines.append(text_line)
            i += 1

        segments.append(
            SubtitleSegment(
                start_time=start_time,
                end_time=end_time,
                text=_clean_text(text_lines),
                index=len(segments),
            )
        )

    return segments


_PARSERS = {
    SubtitleFormat.SRT: parse_srt,
    SubtitleFormat.VTT: parse_vtt,
}


def parse_subtitle_file(content: str, filename: str) -> list[SubtitleSegment]:
    """Parse subtitle content, choosing the grammar by file extension.

    Pure: nothing is stored. The extension is checked before any parsing.

    Args:
        content: Raw file text
        filename: Original file name

    Returns:
        Ordered list of segments

    Raises:
        UnsupportedFormatError: If the extension is not .srt or .vtt
    """
    subtitle_format = detect_format(filename)
    segments = _PARSERS[subtitle_format](content)
    logger.info(
        f"Parsed {len(segments)} segments",
        extra={"file": filename, "format": subtitle_format.value},
    )
    return segments


def parse_subtitle_path(path: Path | str) -> list[SubtitleSegment]:
    """Read a subtitle file from disk and parse it.

    Args:
        path: Path to a .srt or .vtt file

    Returns:
        Ordered list of segments
    """
    path = Path(path)
    detect_format(path.name)
    content = path.read_text(encoding="utf-8")
    return parse_subtitle_file(content, path.name)
