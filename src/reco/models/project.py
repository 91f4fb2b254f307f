"""Project model for reco.

A Project is a workspace holding a set of loaded transcripts and an ordered
narrative of Aggregates. List position in ``aggregates`` is authoritative;
each aggregate's ``order`` mirrors it and is renumbered on every change.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, model_validator

from reco.models.transcript import generate_id


class Aggregate(BaseModel):
    """A saved, contiguous span of one transcript's segments.

    ``text``, ``start_time`` and ``end_time`` are snapshotted when the
    aggregate is created. ``transcript_id`` is a weak reference: the
    transcript may since have been deleted.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=generate_id)
    transcript_id: str
    start_segment_index: int
    end_segment_index: int  # inclusive
    text: str
    start_time: int  # milliseconds
    end_time: int  # milliseconds
    created_at: datetime = Field(default_factory=datetime.now)
    order: int = 0

    @property
    def duration(self) -> int:
        """Duration of the span in milliseconds."""
        return self.end_time - self.start_time

    @property
    def segment_span(self) -> int:
        """Width of the referenced index range."""
        return self.end_segment_index - self.start_segment_index + 1


class Project(BaseModel):
    """A named workspace with loaded transcripts and a narrative sequence."""

    id: str = Field(default_factory=generate_id)
    name: str
    description: str = ""
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)

    # Transcripts loaded for searching (shared, many-to-many)
    transcript_ids: list[str] = Field(default_factory=list)

    # Narrative sequence; position is authoritative
    aggregates: list[Aggregate] = Field(default_factory=list)

    @model_validator(mode="after")
    def _normalize(self) -> "Project":
        self.transcript_ids = list(dict.fromkeys(self.transcript_ids))
        self._renumber()
        return self

    def _renumber(self) -> None:
        self.aggregates = [
            a if a.order == position else a.model_copy(update={"order": position})
            for position, a in enumerate(self.aggregates)
        ]

    def update_timestamp(self) -> None:
        """Update the updated_at timestamp to now."""
        self.updated_at = datetime.now()

    @property
    def aggregate_ids(self) -> list[str]:
        """Aggregate ids in narrative order."""
        return [a.id for a in self.aggregates]

    def get_aggregate(self, aggregate_id: str) -> Aggregate | None:
        """Find an aggregate by id."""
        for aggregate in self.aggregates:
            if aggregate.id == aggregate_id:
                return aggregate
        return None

    def add_transcript(self, transcript_id: str) -> bool:
        """Load a transcript into the project.

        Returns:
            True if it was not already loaded
        """
        if transcript_id in self.transcript_ids:
            return False
        self.transcript_ids.append(transcript_id)
        self.update_timestamp()
        return True

    def remove_transcript(self, transcript_id: str) -> bool:
        """Unload a transcript. Aggregates referencing it are kept.

        Returns:
            True if it was loaded
        """
        if transcript_id not in self.transcript_ids:
            return False
        self.transcript_ids.remove(transcript_id)
        self.update_timestamp()
        return True

    def append_aggregate(self, aggregate: Aggregate) -> Aggregate:
        """Append an aggregate to the end of the narrative.

        Returns:
            The stored aggregate with its assigned order
        """
        stored = aggregate.model_copy(update={"order": len(self.aggregates)})
        self.aggregates.append(stored)
        self.update_timestamp()
        return stored

    def remove_aggregate(self, aggregate_id: str) -> bool:
        """Remove an aggregate by id; unknown ids are ignored.

        Returns:
            True if an aggregate was removed
        """
        remaining = [a for a in self.aggregates if a.id != aggregate_id]
        if len(remaining) == len(self.aggregates):
            return False
        self.aggregates = remaining
        self._renumber()
        self.update_timestamp()
        return True

    def replace_aggregates(self, aggregates: list[Aggregate]) -> None:
        """Replace the whole narrative sequence and renumber it."""
        self.aggregates = list(aggregates)
        self._renumber()
        self.update_timestamp()
