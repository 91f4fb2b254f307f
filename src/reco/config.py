"""Configuration loading for reco.

Settings come from environment variables, optionally populated from a local
``.env`` and then ``~/.reco/.env``. Values already set are never overridden.
"""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, Field

from reco.logging import LogConfig, LogLevel

USER_ENV_FILE = Path.home() / ".reco" / ".env"
DEFAULT_DATA_DIR = "reco-data"

_TRUE_VALUES = {"1", "true", "yes", "on"}


class RecoConfig(BaseModel):
    """Runtime settings for reco."""

    # Directory holding transcripts/ and projects/
    data_dir: Path = Field(default_factory=lambda: Path.cwd() / DEFAULT_DATA_DIR)
    log_level: LogLevel = LogLevel.NORMAL
    log_json: bool = False
    log_file: Path | None = None
    # Segments shown on each side of a search match
    context_radius: int = Field(default=2, ge=0)

    def log_config(self) -> LogConfig:
        """Build the logging configuration for these settings."""
        return LogConfig(
            level=self.log_level,
            log_file=self.log_file,
            json_format=self.log_json,
        )


def load_env_files() -> None:
    """Load local then user-level .env files; real variables always win."""
    local_env = Path.cwd() / ".env"
    if local_env.exists():
        load_dotenv(local_env)
    if USER_ENV_FILE.exists():
        load_dotenv(USER_ENV_FILE)


def load_config(env: dict[str, str] | None = None) -> RecoConfig:
    """Build a RecoConfig from environment variables.

    Recognised variables: ``RECO_DATA_DIR``, ``RECO_LOG_LEVEL``,
    ``RECO_LOG_JSON``, ``RECO_LOG_FILE``, ``RECO_CONTEXT_RADIUS``.

    Args:
        env: Mapping to read instead of ``os.environ`` (no .env loading)

    Returns:
        Resolved configuration
    """
    if env is None:
        load_env_files()
        env = dict(os.environ)

    values: dict = {}
    if env.get("RECO_DATA_DIR"):
        values["data_dir"] = Path(env["RECO_DATA_DIR"]).expanduser()
    if env.get("RECO_LOG_LEVEL"):
        values["log_level"] = LogLevel.from_name(env["RECO_LOG_LEVEL"])
    if env.get("RECO_LOG_JSON"):
        values["log_json"] = env["RECO_LOG_JSON"].strip().lower() in _TRUE_VALUES
    if env.get("RECO_LOG_FILE"):
        values["log_file"] = Path(env["RECO_LOG_FILE"]).expanduser()
    if env.get("RECO_CONTEXT_RADIUS"):
        values["context_radius"] = int(env["RECO_CONTEXT_RADIUS"])

    return RecoConfig(**values)
