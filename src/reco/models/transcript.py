"""Transcript models for reco.

A Transcript is one parsed subtitle file: an ordered list of timed
SubtitleSegments. Both are immutable once created.
"""

from __future__ import annotations

from datetime import datetime
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, computed_field


def generate_id() -> str:
    """Generate a short unique identifier."""
    return uuid4().hex[:12]


class SubtitleSegment(BaseModel):
    """One timed line of dialogue.

    ``index`` is the segment's position in its source file. For SRT input
    it is the cue block position, so skipped blocks leave gaps.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=generate_id)
    start_time: int  # milliseconds
    end_time: int  # milliseconds
    text: str
    index: int

    @property
    def duration(self) -> int:
        """Duration of this segment in milliseconds."""
        return self.end_time - self.start_time

    def contains(self, query: str) -> bool:
        """Case-insensitive substring test."""
        return query.lower() in self.text.lower()


class Transcript(BaseModel):
    """A parsed subtitle file.

    Segments are kept in ascending ``index`` order.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=generate_id)
    name: str  # display name
    filename: str  # original upload name, determines format
    uploaded_at: datetime = Field(default_factory=datetime.now)
    segments: tuple[SubtitleSegment, ...] = ()

    @computed_field  # type: ignore[prop-decorator]
    @property
    def segment_count(self) -> int:
        """Number of segments in the transcript."""
        return len(self.segments)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total_duration(self) -> int:
        """Latest end time across all segments, 0 when empty.

        Segments are not guaranteed to be strictly increasing, so this is
        the maximum rather than the last segment's end time.
        """
        return max((s.end_time for s in self.segments), default=0)

    def segments_in_range(self, start_index: int, end_index: int) -> list[SubtitleSegment]:
        """Get segments whose ``index`` falls within an inclusive range.

        Args:
            start_index: First index value
            end_index: Last index value

        Returns:
            Matching segments in order
        """
        return [s for s in self.segments if start_index <= s.index <= end_index]
