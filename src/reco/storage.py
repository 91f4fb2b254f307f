"""Storage layer for reco.

Provides atomic JSON file operations, manager classes for transcript and
project records, and ``LibraryStore``, the persistence client handed to the
rest of the package. The store is opened and closed explicitly; nothing
here holds module-level connection state.

Layout under the data root::

    transcripts/<id>.json
    projects/<id>.json
"""

from __future__ import annotations

import json
import os
import tempfile
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from reco.errors import (
    ProjectNotFoundError,
    StorageError,
    TranscriptNotFoundError,
)
from reco.logging import get_logger
from reco.models.project import Project
from reco.models.transcript import Transcript

logger = get_logger(__name__)

T = TypeVar("T", bound=BaseModel)


def atomic_write(path: Path, data: str, encoding: str = "utf-8") -> None:
    """Write data to a file atomically.

    Writes to a temporary file in the same directory, then renames it over
    the target so readers never see a partial file.

    Args:
        path: Target file path
        data: String data to write
        encoding: File encoding (default utf-8)

    Raises:
        StorageError: If the write operation fails
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    fd = None
    temp_path = None
    try:
        fd, temp_path = tempfile.mkstemp(
            suffix=".tmp",
            prefix=path.stem + "_",
            dir=path.parent,
        )
        os.write(fd, data.encode(encoding))
        os.fsync(fd)
        os.close(fd)
        fd = None

        os.replace(temp_path, path)
        temp_path = None

    except OSError as e:
        raise StorageError(f"Failed to write {path}: {e}") from e
    finally:
        if fd is not None:
            try:
                os.close(fd)
            except OSError:
                pass
        if temp_path is not None:
            try:
                os.unlink(temp_path)
            except OSError:
                pass


def atomic_write_json(path: Path, data: dict | list, indent: int = 2) -> None:
    """Write JSON data to a file atomically."""
    atomic_write(path, json.dumps(data, indent=indent, default=str))


def read_json(path: Path) -> Any:
    """Read JSON data from a file.

    Raises:
        StorageError: If the file is missing, unreadable or invalid JSON
    """
    try:
        with open(path, encoding="utf-8") as f:
            return json.load(f)
    except FileNotFoundError as e:
        raise StorageError(f"File not found: {path}") from e
    except (OSError, json.JSONDecodeError) as e:
        raise StorageError(f"Invalid JSON in {path}: {e}") from e


def save_model(path: Path, model: BaseModel) -> None:
    """Save a Pydantic model to a JSON file atomically."""
    atomic_write_json(path, model.model_dump(mode="json"))


def load_model(path: Path, model_class: type[T]) -> T:
    """Load a Pydantic model from a JSON file.

    Args:
        path: File path to read
        model_class: Pydantic model class to instantiate

    Returns:
        Instance of the model class

    Raises:
        StorageError: If the file is invalid or doesn't match the model
    """
    data = read_json(path)
    try:
        return model_class.model_validate(data)
    except PydanticValidationError as e:
        raise StorageError(f"Invalid data in {path}: {e}") from e


class ProjectLocks:
    """Registry of per-project write locks.

    Mutations of one project's record are serialized; different projects
    never contend.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[str, threading.Lock] = {}

    def get(self, project_id: str) -> threading.Lock:
        """Get (creating if needed) the lock for a project."""
        with self._guard:
            lock = self._locks.get(project_id)
            if lock is None:
                lock = self._locks[project_id] = threading.Lock()
            return lock

    @contextmanager
    def hold(self, project_id: str) -> Iterator[None]:
        """Hold a project's lock for the duration of the block."""
        with self.get(project_id):
            yield

    def discard(self, project_id: str) -> None:
        """Forget a deleted project's lock."""
        with self._guard:
            self._locks.pop(project_id, None)


class TranscriptManager:
    """Manager for Transcript records."""

    def __init__(self, root: Path):
        self.root = root

    def _path(self, transcript_id: str) -> Path:
        return self.root / f"{transcript_id}.json"

    def exists(self, transcript_id: str) -> bool:
        """Check if a transcript exists."""
        return self._path(transcript_id).exists()

    def save(self, transcript: Transcript) -> Transcript:
        """Write a transcript record."""
        save_model(self._path(transcript.id), transcript)
        return transcript

    def get(self, transcript_id: str) -> Transcript:
        """Get a transcript by id.

        Raises:
            TranscriptNotFoundError: If the transcript doesn't exist
        """
        path = self._path(transcript_id)
        if not path.exists():
            raise TranscriptNotFoundError(transcript_id)
        return load_model(path, Transcript)

    def delete(self, transcript_id: str) -> None:
        """Delete a transcript.

        Raises:
            TranscriptNotFoundError: If the transcript doesn't exist
        """
        try:
            self._path(transcript_id).unlink()
        except FileNotFoundError:
            raise TranscriptNotFoundError(transcript_id) from None

    def list(self) -> list[str]:
        """List all transcript ids."""
        if not self.root.exists():
            return []
        return sorted(f.stem for f in self.root.glob("*.json"))

    def iter_all(self) -> Iterator[Transcript]:
        """Iterate over readable transcripts, skipping corrupt records."""
        for transcript_id in self.list():
            try:
                yield self.get(transcript_id)
            except (TranscriptNotFoundError, StorageError) as e:
                logger.warning(
                    f"Skipping unreadable transcript: {e}",
                    extra={"transcript_id": transcript_id},
                )

    def read_summary(self, transcript_id: str) -> dict:
        """Read transcript metadata without building segment models.

        Raises:
            TranscriptNotFoundError: If the transcript doesn't exist
        """
        path = self._path(transcript_id)
        if not path.exists():
            raise TranscriptNotFoundError(transcript_id)
        data = read_json(path)
        segments = data.get("segments", [])
        return {
            "id": data.get("id", transcript_id),
            "name": data.get("name", ""),
            "filename": data.get("filename", ""),
            "uploaded_at": data.get("uploaded_at"),
            "segment_count": data.get("segment_count", len(segments)),
            "total_duration": data.get(
                "total_duration", max((s["end_time"] for s in segments), default=0)
            ),
        }


class ProjectManager:
    """Manager for Project records."""

    def __init__(self, root: Path):
        self.root = root

    def _path(self, project_id: str) -> Path:
        return self.root / f"{project_id}.json"

    def exists(self, project_id: str) -> bool:
        """Check if a project exists."""
        return self._path(project_id).exists()

    def save(self, project: Project) -> Project:
        """Write a project record."""
        save_model(self._path(project.id), project)
        return project

    def get(self, project_id: str) -> Project:
        """Get a project by id.

        Raises:
            ProjectNotFoundError: If the project doesn't exist
        """
        path = self._path(project_id)
        if not path.exists():
            raise ProjectNotFoundError(project_id)
        return load_model(path, Project)

    def delete(self, project_id: str) -> None:
        """Delete a project.

        Raises:
            ProjectNotFoundError: If the project doesn't exist
        """
        try:
            self._path(project_id).unlink()
        except FileNotFoundError:
            raise ProjectNotFoundError(project_id) from None

    def list(self) -> list[str]:
        """List all project ids."""
        if not self.root.exists():
            return []
        return sorted(f.stem for f in self.root.glob("*.json"))

    def iter_all(self) -> Iterator[Project]:
        """Iterate over readable projects, skipping corrupt records."""
        for project_id in self.list():
            try:
                yield self.get(project_id)
            except (ProjectNotFoundError, StorageError) as e:
                logger.warning(
                    f"Skipping unreadable project: {e}",
                    extra={"project_id": project_id},
                )


class LibraryStore:
    """Persistence client for transcripts and projects.

    Must be opened before use and closed at shutdown; it is also a context
    manager. Project mutations made through ``mutate_project`` hold that
    project's write lock for the whole read-modify-write.

    Example:
        with LibraryStore(Path("reco-data")) as store:
            store.create_transcript(transcript)
    """

    def __init__(self, data_root: Path | str):
        self.data_root = Path(data_root)
        self.transcripts = TranscriptManager(self.data_root / "transcripts")
        self.projects = ProjectManager(self.data_root / "projects")
        self.locks = ProjectLocks()
        self._open = False

    @property
    def is_open(self) -> bool:
        """Whether the store is open."""
        return self._open

    def open(self) -> "LibraryStore":
        """Create the storage directories and mark the store usable."""
        try:
            self.transcripts.root.mkdir(parents=True, exist_ok=True)
            self.projects.root.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"Cannot open data directory {self.data_root}: {e}") from e
        self._open = True
        logger.debug("Opened library store", extra={"data_root": str(self.data_root)})
        return self

    def close(self) -> None:
        """Close the store; further calls raise StorageError."""
        self._open = False
        logger.debug("Closed library store", extra={"data_root": str(self.data_root)})

    def __enter__(self) -> "LibraryStore":
        return self.open()

    def __exit__(self, exc_type: type | None, exc_val: Exception | None, exc_tb: Any) -> None:
        self.close()

    def _require_open(self) -> None:
        if not self._open:
            raise StorageError("Library store is not open")

    # Transcripts

    def create_transcript(self, transcript: Transcript) -> Transcript:
        """Store a newly parsed transcript."""
        self._require_open()
        if self.transcripts.exists(transcript.id):
            raise StorageError(f"Transcript already exists: {transcript.id}")
        self.transcripts.save(transcript)
        logger.info(
            f"Stored transcript '{transcript.name}'",
            extra={"transcript_id": transcript.id, "segments": transcript.segment_count},
        )
        return transcript

    def get_transcripts(self) -> list[Transcript]:
        """All transcripts, most recently uploaded first."""
        self._require_open()
        return sorted(self.transcripts.iter_all(), key=lambda t: t.uploaded_at, reverse=True)

    def get_transcript_by_id(self, transcript_id: str) -> Transcript:
        """Get one transcript.

        Raises:
            TranscriptNotFoundError: If it doesn't exist
        """
        self._require_open()
        return self.transcripts.get(transcript_id)

    def delete_transcript(self, transcript_id: str) -> None:
        """Delete a transcript.

        Aggregates that reference it are left in place.

        Raises:
            TranscriptNotFoundError: If it doesn't exist
        """
        self._require_open()
        self.transcripts.delete(transcript_id)
        logger.info("Deleted transcript", extra={"transcript_id": transcript_id})

    def transcript_names(self) -> dict[str, str]:
        """Map of transcript id to display name."""
        self._require_open()
        names = {}
        for transcript_id in self.transcripts.list():
            try:
                names[transcript_id] = self.transcripts.read_summary(transcript_id)["name"]
            except (TranscriptNotFoundError, StorageError):
                continue
        return names

    # Projects

    def create_project(self, project: Project) -> Project:
        """Store a new project."""
        self._require_open()
        if self.projects.exists(project.id):
            raise StorageError(f"Project already exists: {project.id}")
        self.projects.save(project)
        logger.info(f"Created project '{project.name}'", extra={"project_id": project.id})
        return project

    def get_projects(self) -> list[Project]:
        """All projects, most recently updated first."""
        self._require_open()
        return sorted(self.projects.iter_all(), key=lambda p: p.updated_at, reverse=True)

    def get_project_by_id(self, project_id: str) -> Project:
        """Get one project.

        Raises:
            ProjectNotFoundError: If it doesn't exist
        """
        self._require_open()
        return self.projects.get(project_id)

    @contextmanager
    def mutate_project(self, project_id: str) -> Iterator[Project]:
        """Load a project under its write lock and save it on success.

        If the block raises, nothing is written.

        Raises:
            ProjectNotFoundError: If it doesn't exist
        """
        self._require_open()
        with self.locks.hold(project_id):
            project = self.projects.get(project_id)
            yield project
            self.projects.save(project)

    def update_project(
        self,
        project_id: str,
        name: str | None = None,
        description: str | None = None,
        transcript_ids: list[str] | None = None,
    ) -> Project:
        """Apply a partial update to a project.

        Raises:
            ProjectNotFoundError: If it doesn't exist
        """
        with self.mutate_project(project_id) as project:
            if name is not None:
                project.name = name
            if description is not None:
                project.description = description
            if transcript_ids is not None:
                project.transcript_ids = list(dict.fromkeys(transcript_ids))
            project.update_timestamp()
        return project

    def delete_project(self, project_id: str) -> None:
        """Delete a project and its aggregates.

        Raises:
            ProjectNotFoundError: If it doesn't exist
        """
        self._require_open()
        with self.locks.hold(project_id):
            self.projects.delete(project_id)
        self.locks.discard(project_id)
        logger.info("Deleted project", extra={"project_id": project_id})
