"""Aggregate management for project narratives.

An aggregate is a non-destructive reference to a contiguous span of one
transcript's segments. A project's aggregates form its narrative: list
position is the order, and ``Aggregate.order`` is renumbered to match after
every create, delete and reorder.

All mutations go through ``LibraryStore.mutate_project`` so concurrent
edits to the same project are serialized.
"""

from __future__ import annotations

from typing import Sequence

from reco.errors import InvalidReorderError, ValidationError
from reco.logging import get_logger
from reco.models.project import Aggregate, Project
from reco.models.transcript import SubtitleSegment
from reco.storage import LibraryStore

logger = get_logger(__name__)


def build_aggregate(
    transcript_id: str,
    start_segment_index: int,
    end_segment_index: int,
    segments: Sequence[SubtitleSegment],
) -> Aggregate:
    """Build an aggregate from the selected slice of a transcript.

    Args:
        transcript_id: Owning transcript id
        start_segment_index: ``index`` of the first selected segment
        end_segment_index: ``index`` of the last selected segment (inclusive)
        segments: The selected segments, in order

    Returns:
        Aggregate with snapshotted text and time range

    Raises:
        ValidationError: If the segments are empty or don't match the range
    """
    context = {
        "transcript_id": transcript_id,
        "start": start_segment_index,
        "end": end_segment_index,
    }
    if not segments:
        raise ValidationError("An aggregate needs at least one segment", context)
    if start_segment_index > end_segment_index:
        raise ValidationError("Aggregate start index is after its end index", context)
    if segments[0].index != start_segment_index or segments[-1].index != end_segment_index:
        raise ValidationError("Selected segments do not match the requested range", context)
    # SRT transcripts may have index gaps, so only strict ordering is required
    if any(b.index <= a.index for a, b in zip(segments, segments[1:])):
        raise ValidationError("Selected segments are not in transcript order", context)

    return Aggregate(
        transcript_id=transcript_id,
        start_segment_index=start_segment_index,
        end_segment_index=end_segment_index,
        text=" ".join(s.text for s in segments),
        start_time=segments[0].start_time,
        end_time=segments[-1].end_time,
    )


def _sequence_ids(new_sequence: Sequence[Aggregate | str]) -> list[str]:
    return [item.id if isinstance(item, Aggregate) else item for item in new_sequence]


def check_permutation(project: Project, new_ids: list[str]) -> None:
    """Ensure ``new_ids`` is a permutation of the project's aggregate ids.

    Raises:
        InvalidReorderError: On duplicates, additions or removals
    """
    current = set(project.aggregate_ids)
    proposed = set(new_ids)
    if len(proposed) != len(new_ids):
        raise InvalidReorderError("Reorder sequence contains duplicate aggregates")
    if proposed != current:
        raise InvalidReorderError(
            "Reorder sequence must contain exactly the project's aggregates",
            missing=current - proposed,
            unexpected=proposed - current,
        )


class AggregateManager:
    """Creates, deletes and reorders the aggregates of stored projects."""

    def __init__(self, store: LibraryStore):
        self.store = store

    def create(
        self,
        project_id: str,
        transcript_id: str,
        start_segment_index: int,
        end_segment_index: int,
        segments: Sequence[SubtitleSegment],
    ) -> Aggregate:
        """Snapshot a segment range and append it to a project's narrative.

        Returns:
            The stored aggregate, carrying its assigned order

        Raises:
            ValidationError: If the segments don't describe the range
            ProjectNotFoundError: If the project doesn't exist
        """
        aggregate = build_aggregate(
            transcript_id, start_segment_index, end_segment_index, segments
        )
        with self.store.mutate_project(project_id) as project:
            stored = project.append_aggregate(aggregate)

        logger.info(
            "Created aggregate",
            extra={
                "project_id": project_id,
                "aggregate_id": stored.id,
                "order": stored.order,
            },
        )
        return stored

    def create_from_transcript(
        self,
        project_id: str,
        transcript_id: str,
        start_segment_index: int,
        end_segment_index: int,
    ) -> Aggregate:
        """Look up a stored transcript's range and create an aggregate from it.

        Raises:
            TranscriptNotFoundError: If the transcript doesn't exist
            ValidationError: If the range selects no segments
            ProjectNotFoundError: If the project doesn't exist
        """
        transcript = self.store.get_transcript_by_id(transcript_id)
        segments = transcript.segments_in_range(start_segment_index, end_segment_index)
        if segments:
            # Snap to the indexes present, since SRT numbering can have gaps
            start_segment_index = segments[0].index
            end_segment_index = segments[-1].index
        return self.create(
            project_id, transcript_id, start_segment_index, end_segment_index, segments
        )

    def delete(self, project_id: str, aggregate_id: str) -> bool:
        """Remove an aggregate from a project's narrative.

        Unknown aggregate ids are a no-op.

        Returns:
            True if an aggregate was removed

        Raises:
            ProjectNotFoundError: If the project doesn't exist
        """
        with self.store.mutate_project(project_id) as project:
            removed = project.remove_aggregate(aggregate_id)
            if not removed:
                project.update_timestamp()

        logger.info(
            "Deleted aggregate" if removed else "Aggregate already absent",
            extra={"project_id": project_id, "aggregate_id": aggregate_id},
        )
        return removed

    def reorder(
        self, project_id: str, new_sequence: Sequence[Aggregate | str]
    ) -> list[Aggregate]:
        """Replace a project's narrative order with a full new sequence.

        Only the order is taken from ``new_sequence``; stored aggregate
        contents are kept.

        Args:
            project_id: Project to reorder
            new_sequence: Every current aggregate (or its id), in the new order

        Returns:
            The aggregates in their new order, renumbered 0..M-1

        Raises:
            InvalidReorderError: If the sequence is not a permutation
            ProjectNotFoundError: If the project doesn't exist
        """
        new_ids = _sequence_ids(new_sequence)
        with self.store.mutate_project(project_id) as project:
            check_permutation(project, new_ids)
            by_id = {a.id: a for a in project.aggregates}
            project.replace_aggregates([by_id[aggregate_id] for aggregate_id in new_ids])
            reordered = list(project.aggregates)

        logger.info(
            "Reordered aggregates",
            extra={"project_id": project_id, "count": len(reordered)},
        )
        return reordered

    def move(self, project_id: str, aggregate_id: str, position: int) -> list[Aggregate]:
        """Move one aggregate to a new position, shifting the others.

        Positions past either end are clamped.

        Raises:
            InvalidReorderError: If the aggregate isn't in the project
            ProjectNotFoundError: If the project doesn't exist
        """
        project = self.store.get_project_by_id(project_id)
        ids = project.aggregate_ids
        if aggregate_id not in ids:
            raise InvalidReorderError(
                f"Aggregate not in project: {aggregate_id}", missing={aggregate_id}
            )
        ids.remove(aggregate_id)
        position = max(0, min(position, len(ids)))
        ids.insert(position, aggregate_id)
        return self.reorder(project_id, ids)

    def list(self, project_id: str) -> list[Aggregate]:
        """A project's aggregates in narrative order.

        Raises:
            ProjectNotFoundError: If the project doesn't exist
        """
        return list(self.store.get_project_by_id(project_id).aggregates)
