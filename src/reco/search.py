"""Dialogue search across transcripts.

Finds every segment whose text contains the query as a case-insensitive
substring and pairs it with a small window of surrounding segments. There
is no ranking: results follow transcript order, then segment order.

This is a linear scan. Transcripts are bounded (thousands of segments), so
an inverted index is not built.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Iterable

from reco.logging import get_logger
from reco.models.transcript import SubtitleSegment, Transcript

if TYPE_CHECKING:
    from reco.storage import LibraryStore

logger = get_logger(__name__)

DEFAULT_CONTEXT_RADIUS = 2


@dataclass
class SearchResult:
    """A single matching segment with its context window.

    Attributes:
        transcript_id: Owning transcript id
        transcript_name: Owning transcript display name
        segment: The matching segment
        context: Contiguous slice of the transcript around the match,
            always including the match itself
    """

    transcript_id: str
    transcript_name: str
    segment: SubtitleSegment
    context: list[SubtitleSegment] = field(default_factory=list)

    @property
    def match_position(self) -> int:
        """Position of the matched segment inside ``context``."""
        for position, segment in enumerate(self.context):
            if segment.id == self.segment.id:
                return position
        return 0

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "transcript_id": self.transcript_id,
            "transcript_name": self.transcript_name,
            "segment": self.segment.model_dump(mode="json"),
            "context": [s.model_dump(mode="json") for s in self.context],
        }


@dataclass
class SearchResults:
    """Collection of search results for a query.

    Attributes:
        query: Original search query
        results: Matches in transcript order, then segment order
        created_at: When the search was performed
    """

    query: str
    results: list[SearchResult] = field(default_factory=list)
    created_at: str = ""

    def __post_init__(self):
        if not self.created_at:
            self.created_at = datetime.now().isoformat()

    def __len__(self) -> int:
        return len(self.results)

    def __iter__(self):
        return iter(self.results)

    @property
    def total_count(self) -> int:
        """Number of matching segments."""
        return len(self.results)

    @property
    def by_transcript(self) -> dict[str, list[SearchResult]]:
        """Group results by transcript id, keeping order."""
        grouped: dict[str, list[SearchResult]] = {}
        for result in self.results:
            grouped.setdefault(result.transcript_id, []).append(result)
        return grouped

    @property
    def transcript_count(self) -> int:
        """Number of transcripts with at least one match."""
        return len(self.by_transcript)

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "query": self.query,
            "results": [r.to_dict() for r in self.results],
            "total_count": self.total_count,
            "created_at": self.created_at,
        }


def context_window(
    segments: list[SubtitleSegment] | tuple[SubtitleSegment, ...],
    position: int,
    radius: int = DEFAULT_CONTEXT_RADIUS,
) -> list[SubtitleSegment]:
    """Slice the segments around a position, clamped to the list bounds.

    Args:
        segments: Transcript segments in order
        position: Array position of the centre segment
        radius: Number of neighbours on each side

    Returns:
        Segments from ``max(0, position - radius)`` to
        ``min(last, position + radius)`` inclusive
    """
    start = max(0, position - radius)
    end = min(len(segments) - 1, position + radius)
    return list(segments[start : end + 1])


def search_transcripts(
    transcripts: Iterable[Transcript],
    query: str,
    transcript_ids: Iterable[str] | None = None,
    context_radius: int = DEFAULT_CONTEXT_RADIUS,
) -> SearchResults:
    """Search segment text across transcripts.

    Args:
        transcripts: Candidate transcripts, in the order results should follow
        query: Substring to look for, case-insensitive
        transcript_ids: Optional restriction set; ignored when empty
        context_radius: Neighbours included on each side of a match

    Returns:
        SearchResults; empty without scanning when the query is blank
    """
    results = SearchResults(query=query)
    if not query or not query.strip():
        return results

    allowed = set(transcript_ids or ())

    for transcript in transcripts:
        if allowed and transcript.id not in allowed:
            continue
        segments = transcript.segments
        for position, segment in enumerate(segments):
            if segment.contains(query):
                results.results.append(
                    SearchResult(
                        transcript_id=transcript.id,
                        transcript_name=transcript.name,
                        segment=segment,
                        context=context_window(segments, position, context_radius),
                    )
                )

    logger.debug(
        f"Search matched {results.total_count} segments",
        extra={"query": query, "transcripts": results.transcript_count},
    )
    return results


class TranscriptSearcher:
    """Searches transcripts held in a LibraryStore.

    Example usage:
        searcher = TranscriptSearcher(store)
        for result in searcher.search_project(project_id, "hello"):
            print(result.transcript_name, result.segment.text)
    """

    def __init__(self, store: "LibraryStore", context_radius: int = DEFAULT_CONTEXT_RADIUS):
        self.store = store
        self.context_radius = context_radius

    def search(self, query: str, transcript_ids: Iterable[str] | None = None) -> SearchResults:
        """Search all stored transcripts, optionally restricted by id."""
        if not query or not query.strip():
            return SearchResults(query=query)
        return search_transcripts(
            self.store.get_transcripts(),
            query,
            transcript_ids=transcript_ids,
            context_radius=self.context_radius,
        )

    def search_project(self, project_id: str, query: str) -> SearchResults:
        """Search only the transcripts loaded into a project.

        A project with no loaded transcripts yields no results.

        Raises:
            ProjectNotFoundError: If the project does not exist
        """
        project = self.store.get_project_by_id(project_id)
        if not project.transcript_ids:
            return SearchResults(query=query)
        return self.search(query, transcript_ids=project.transcript_ids)
