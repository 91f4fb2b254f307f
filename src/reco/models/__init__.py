"""Data models for reco.

This module provides Pydantic models for transcripts, segments, projects and
aggregates.
"""

from __future__ import annotations

from reco.models.project import Aggregate, Project
from reco.models.transcript import SubtitleSegment, Transcript, generate_id

__all__ = [
    # Transcript models
    "SubtitleSegment",
    "Transcript",
    # Project models
    "Aggregate",
    "Project",
    "generate_id",
]
