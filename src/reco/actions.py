"""Action boundary for reco.

Each action validates its input, calls into the core and the store, and
returns an ``ActionResult`` instead of raising, so callers always get a
structured outcome to render. Only ``RecoError``s are converted; anything
else is a bug and propagates.
"""

from __future__ import annotations

import time
from pathlib import PurePath
from typing import Any, Callable, Generic, Sequence, TypeVar

from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from reco.aggregates import AggregateManager
from reco.errors import RecoError, ValidationError
from reco.export import ExportFormat, render_narrative
from reco.logging import (
    get_logger,
    log_operation_complete,
    log_operation_failed,
    log_operation_start,
)
from reco.models.project import Aggregate, Project
from reco.models.transcript import SubtitleSegment, Transcript
from reco.search import DEFAULT_CONTEXT_RADIUS, SearchResults, TranscriptSearcher
from reco.storage import LibraryStore
from reco.subtitles.parser import detect_format, parse_subtitle_file

logger = get_logger(__name__)

T = TypeVar("T")
M = TypeVar("M", bound=BaseModel)


class ActionResult(BaseModel, Generic[T]):
    """Outcome of an action: ``data`` on success, ``error`` otherwise."""

    success: bool
    error: str | None = None
    data: T | None = None

    @classmethod
    def ok(cls, data: Any = None) -> "ActionResult":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: str) -> "ActionResult":
        return cls(success=False, error=error)


class CreateTranscriptInput(BaseModel):
    """Input for storing an uploaded transcript."""

    name: str = Field(min_length=1)
    filename: str = Field(min_length=1)
    segments: list[SubtitleSegment]


class CreateProjectInput(BaseModel):
    """Input for creating a project."""

    name: str = Field(min_length=1)
    description: str | None = None


class UpdateProjectInput(BaseModel):
    """Partial project update; omitted fields are left unchanged."""

    name: str | None = Field(default=None, min_length=1)
    description: str | None = None
    transcript_ids: list[str] | None = None


def validate_input(schema: type[M], **values: Any) -> M:
    """Validate raw input against a schema.

    Raises:
        ValidationError: With the first failing field in the context
    """
    try:
        return schema.model_validate(values)
    except PydanticValidationError as e:
        first = e.errors()[0]
        field_name = ".".join(str(p) for p in first["loc"]) or schema.__name__
        raise ValidationError(
            f"Invalid {field_name}: {first['msg']}",
            context={"field": field_name},
        ) from e


class RecoActions:
    """Structured-result entry points over a LibraryStore."""

    def __init__(self, store: LibraryStore, context_radius: int = DEFAULT_CONTEXT_RADIUS):
        self.store = store
        self.aggregates = AggregateManager(store)
        self.searcher = TranscriptSearcher(store, context_radius=context_radius)

    def _run(self, operation: str, func: Callable[[], Any], **context: Any) -> ActionResult:
        log_operation_start(logger, operation, **context)
        started = time.perf_counter()
        try:
            data = func()
        except RecoError as e:
            log_operation_failed(logger, operation, e, **context)
            return ActionResult.fail(e.message)
        log_operation_complete(logger, operation, time.perf_counter() - started, **context)
        return ActionResult.ok(data)

    # Transcripts

    def upload_transcript(
        self, content: str, filename: str, name: str | None = None
    ) -> ActionResult[Transcript]:
        """Parse an uploaded subtitle file and store it as a transcript.

        The display name defaults to the filename without its extension.
        """

        def upload() -> Transcript:
            detect_format(filename)
            display_name = (name if name is not None else PurePath(filename).stem).strip()
            segments = parse_subtitle_file(content, filename)
            data = validate_input(
                CreateTranscriptInput, name=display_name, filename=filename, segments=segments
            )
            return self.store.create_transcript(
                Transcript(name=data.name, filename=data.filename, segments=data.segments)
            )

        return self._run("upload transcript", upload, source_file=filename)

    def get_transcripts(self) -> ActionResult[list[Transcript]]:
        return self._run("list transcripts", self.store.get_transcripts)

    def get_transcript(self, transcript_id: str) -> ActionResult[Transcript]:
        return self._run(
            "get transcript",
            lambda: self.store.get_transcript_by_id(transcript_id),
            transcript_id=transcript_id,
        )

    def delete_transcript(self, transcript_id: str) -> ActionResult[None]:
        return self._run(
            "delete transcript",
            lambda: self.store.delete_transcript(transcript_id),
            transcript_id=transcript_id,
        )

    def search(
        self, query: str, transcript_ids: Sequence[str] | None = None
    ) -> ActionResult[SearchResults]:
        """Search stored transcripts; a blank query returns no results."""
        return self._run(
            "search transcripts",
            lambda: self.searcher.search(query, transcript_ids=transcript_ids),
            query=query,
        )

    def search_project(self, project_id: str, query: str) -> ActionResult[SearchResults]:
        """Search the transcripts loaded into a project."""
        return self._run(
            "search project",
            lambda: self.searcher.search_project(project_id, query),
            project_id=project_id,
            query=query,
        )

    # Projects

    def create_project(self, name: str, description: str | None = None) -> ActionResult[Project]:
        def create() -> Project:
            data = validate_input(CreateProjectInput, name=name, description=description)
            return self.store.create_project(
                Project(name=data.name, description=data.description or "")
            )

        return self._run("create project", create)

    def get_projects(self) -> ActionResult[list[Project]]:
        return self._run("list projects", self.store.get_projects)

    def get_project(self, project_id: str) -> ActionResult[Project]:
        return self._run(
            "get project",
            lambda: self.store.get_project_by_id(project_id),
            project_id=project_id,
        )

    def update_project(
        self,
        project_id: str,
        name: str | None = None,
        description: str | None = None,
        transcript_ids: list[str] | None = None,
    ) -> ActionResult[Project]:
        def update() -> Project:
            data = validate_input(
                UpdateProjectInput,
                name=name,
                description=description,
                transcript_ids=transcript_ids,
            )
            return self.store.update_project(
                project_id,
                name=data.name,
                description=data.description,
                transcript_ids=data.transcript_ids,
            )

        return self._run("update project", update, project_id=project_id)

    def delete_project(self, project_id: str) -> ActionResult[None]:
        return self._run(
            "delete project",
            lambda: self.store.delete_project(project_id),
            project_id=project_id,
        )

    # Aggregates

    def create_aggregate(
        self,
        project_id: str,
        transcript_id: str,
        start_segment_index: int,
        end_segment_index: int,
        segments: Sequence[SubtitleSegment],
    ) -> ActionResult[Aggregate]:
        return self._run(
            "create aggregate",
            lambda: self.aggregates.create(
                project_id, transcript_id, start_segment_index, end_segment_index, segments
            ),
            project_id=project_id,
            transcript_id=transcript_id,
        )

    def delete_aggregate(self, project_id: str, aggregate_id: str) -> ActionResult[bool]:
        return self._run(
            "delete aggregate",
            lambda: self.aggregates.delete(project_id, aggregate_id),
            project_id=project_id,
            aggregate_id=aggregate_id,
        )

    def reorder_aggregates(
        self, project_id: str, new_sequence: Sequence[Aggregate | str]
    ) -> ActionResult[list[Aggregate]]:
        return self._run(
            "reorder aggregates",
            lambda: self.aggregates.reorder(project_id, new_sequence),
            project_id=project_id,
        )

    def move_aggregate(
        self, project_id: str, aggregate_id: str, position: int
    ) -> ActionResult[list[Aggregate]]:
        return self._run(
            "move aggregate",
            lambda: self.aggregates.move(project_id, aggregate_id, position),
            project_id=project_id,
            aggregate_id=aggregate_id,
        )

    # Export

    def export_narrative(
        self, project_id: str, fmt: ExportFormat | str = ExportFormat.PLAIN
    ) -> ActionResult[str]:
        """Render a project's narrative with one of the export templates."""

        def render() -> str:
            try:
                export_format = ExportFormat(fmt)
            except ValueError:
                raise ValidationError(f"Unknown export format: {fmt}") from None
            project = self.store.get_project_by_id(project_id)
            return render_narrative(
                project.aggregates, self.store.transcript_names(), export_format
            )

        return self._run("export narrative", render, project_id=project_id)
