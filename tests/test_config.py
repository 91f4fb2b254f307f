"""Tests for configuration loading."""

from pathlib import Path

import pytest

from reco.config import DEFAULT_DATA_DIR, RecoConfig, load_config
from reco.logging import LogLevel


class TestRecoConfig:
    """Tests for RecoConfig defaults."""

    def test_defaults(self):
        config = RecoConfig()

        assert config.data_dir == Path.cwd() / DEFAULT_DATA_DIR
        assert config.log_level == LogLevel.NORMAL
        assert config.log_json is False
        assert config.log_file is None
        assert config.context_radius == 2

    def test_negative_radius_rejected(self):
        with pytest.raises(ValueError):
            RecoConfig(context_radius=-1)

    def test_log_config(self, tmp_path):
        config = RecoConfig(log_level=LogLevel.DEBUG, log_json=True, log_file=tmp_path / "x.log")
        log_config = config.log_config()

        assert log_config.level == LogLevel.DEBUG
        assert log_config.json_format is True
        assert log_config.log_file == tmp_path / "x.log"


class TestLoadConfig:
    """Tests for load_config."""

    def test_empty_env(self):
        assert load_config({}) == RecoConfig()

    def test_all_variables(self, tmp_path):
        config = load_config(
            {
                "RECO_DATA_DIR": str(tmp_path / "library"),
                "RECO_LOG_LEVEL": "verbose",
                "RECO_LOG_JSON": "true",
                "RECO_LOG_FILE": str(tmp_path / "reco.log"),
                "RECO_CONTEXT_RADIUS": "4",
            }
        )

        assert config.data_dir == tmp_path / "library"
        assert config.log_level == LogLevel.VERBOSE
        assert config.log_json is True
        assert config.log_file == tmp_path / "reco.log"
        assert config.context_radius == 4

    @pytest.mark.parametrize("value,expected", [("1", True), ("YES", True), ("no", False)])
    def test_log_json_flag(self, value, expected):
        assert load_config({"RECO_LOG_JSON": value}).log_json is expected

    def test_reads_dotenv(self, tmp_path, monkeypatch):
        """Test a local .env supplies unset variables."""
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("RECO_CONTEXT_RADIUS", "0")
        monkeypatch.delenv("RECO_CONTEXT_RADIUS")
        (tmp_path / ".env").write_text("RECO_CONTEXT_RADIUS=5\n", encoding="utf-8")

        assert load_config().context_radius == 5

    def test_environment_beats_dotenv(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("RECO_CONTEXT_RADIUS", "1")
        (tmp_path / ".env").write_text("RECO_CONTEXT_RADIUS=5\n", encoding="utf-8")

        assert load_config().context_radius == 1
