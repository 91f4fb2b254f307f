"""Narrative export templates.

Renders a project's aggregate sequence as plain text. The four templates
are user-facing and their output must stay byte-for-byte stable.
"""

from __future__ import annotations

import re
from enum import Enum
from pathlib import Path
from typing import Mapping, Sequence

from reco.logging import get_logger
from reco.models.project import Aggregate
from reco.storage import atomic_write

logger = get_logger(__name__)

UNKNOWN_TRANSCRIPT = "Unknown"


class ExportFormat(str, Enum):
    """Narrative export templates."""

    PLAIN = "plain"  # texts joined with spaces
    NUMBERED = "numbered"  # "1. text" blocks
    DETAILED = "detailed"  # "1. [Source]" header above each text
    SCRIPT = "script"  # "SOURCE: text" lines


def _plain(aggregates: Sequence[Aggregate], names: Mapping[str, str]) -> str:
    return " ".join(a.text for a in aggregates)


def _numbered(aggregates: Sequence[Aggregate], names: Mapping[str, str]) -> str:
    return "\n\n".join(f"{n}. {a.text}" for n, a in enumerate(aggregates, 1))


def _detailed(aggregates: Sequence[Aggregate], names: Mapping[str, str]) -> str:
    return "\n\n".join(
        f"{n}. [{names.get(a.transcript_id) or UNKNOWN_TRANSCRIPT}]\n{a.text}"
        for n, a in enumerate(aggregates, 1)
    )


def _script(aggregates: Sequence[Aggregate], names: Mapping[str, str]) -> str:
    return "\n\n".join(
        f"{(names.get(a.transcript_id) or UNKNOWN_TRANSCRIPT).upper()}: {a.text}"
        for a in aggregates
    )


_RENDERERS = {
    ExportFormat.PLAIN: _plain,
    ExportFormat.NUMBERED: _numbered,
    ExportFormat.DETAILED: _detailed,
    ExportFormat.SCRIPT: _script,
}


def render_narrative(
    aggregates: Sequence[Aggregate],
    transcript_names: Mapping[str, str],
    fmt: ExportFormat | str = ExportFormat.PLAIN,
) -> str:
    """Render aggregates in narrative order with one of the templates.

    Aggregates whose transcript has no name in ``transcript_names`` (for
    example because it was deleted) are attributed to "Unknown".

    Args:
        aggregates: Aggregates in narrative order
        transcript_names: Transcript id to display name
        fmt: Template to use

    Returns:
        Rendered narrative text
    """
    return _RENDERERS[ExportFormat(fmt)](aggregates, transcript_names)


def narrative_filename(project_name: str) -> str:
    """Download filename for a project's narrative.

    Every non-alphanumeric character becomes an underscore.
    """
    return f"{re.sub(r'[^A-Za-z0-9]', '_', project_name).lower()}_narrative.txt"


def export_narrative(
    path: Path,
    aggregates: Sequence[Aggregate],
    transcript_names: Mapping[str, str],
    fmt: ExportFormat | str = ExportFormat.PLAIN,
) -> Path:
    """Render a narrative and write it to disk atomically.

    Returns:
        Path to the written file
    """
    atomic_write(path, render_narrative(aggregates, transcript_names, fmt))
    logger.info(
        "Exported narrative",
        extra={"path": str(path), "format": ExportFormat(fmt).value, "count": len(aggregates)},
    )
    return path
