"""Tests for error handling and logging modules."""

import json
import logging
from unittest.mock import Mock

import pytest

from reco.errors import (
    ErrorCategory,
    InvalidReorderError,
    NotFoundError,
    ProjectNotFoundError,
    RecoError,
    StorageError,
    TranscriptNotFoundError,
    UnsupportedFormatError,
    ValidationError,
    format_error_for_display,
)
from reco.logging import (
    ROOT_LOGGER_NAME,
    LogConfig,
    LogLevel,
    StructuredFormatter,
    configure_logging,
    enable_file_logging,
    get_logger,
    log_operation_complete,
    log_operation_failed,
    log_operation_start,
    set_verbosity,
)


def make_record(msg="Test message", level=logging.INFO, **extra):
    record = logging.LogRecord(
        name="test",
        level=level,
        pathname="",
        lineno=0,
        msg=msg,
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


@pytest.fixture(autouse=True)
def reset_logging():
    yield
    configure_logging(LogConfig())


class TestErrorCategory:
    """Tests for ErrorCategory enum."""

    def test_categories(self):
        """Test error category values."""
        assert ErrorCategory.VALIDATION.value == "validation"
        assert ErrorCategory.RESOURCE.value == "resource"
        assert ErrorCategory.STORAGE.value == "storage"
        assert ErrorCategory.INTERNAL.value == "internal"


class TestRecoError:
    """Tests for RecoError base class."""

    def test_basic_error(self):
        """Test basic error creation."""
        error = RecoError("Test error")

        assert str(error) == "Test error"
        assert error.message == "Test error"
        assert error.context == {}
        assert error.category == ErrorCategory.INTERNAL

    def test_error_with_context(self):
        """Test error with context."""
        error = RecoError("Test error", context={"key": "value"})

        assert "context: {'key': 'value'}" in str(error)
        assert error.context == {"key": "value"}


class TestSpecificErrors:
    """Tests for specific error types."""

    def test_validation_error(self):
        error = ValidationError("Invalid input")
        assert error.category == ErrorCategory.VALIDATION

    def test_unsupported_format(self):
        """Test the message names the rejected extension."""
        error = UnsupportedFormatError("ass")

        assert error.message == "Unsupported subtitle format: .ass"
        assert error.category == ErrorCategory.VALIDATION
        assert isinstance(error, ValidationError)

    def test_unsupported_without_extension(self):
        assert "(no extension)" in UnsupportedFormatError("").message

    def test_invalid_reorder(self):
        """Test missing and unexpected ids land in the context."""
        error = InvalidReorderError("Bad order", missing={"b", "a"}, unexpected={"z"})

        assert error.context == {"missing": ["a", "b"], "unexpected": ["z"]}
        assert error.missing == {"a", "b"}
        assert error.category == ErrorCategory.VALIDATION

    def test_not_found(self):
        project_error = ProjectNotFoundError("p1")
        transcript_error = TranscriptNotFoundError("t1")

        assert isinstance(project_error, NotFoundError)
        assert project_error.category == ErrorCategory.RESOURCE
        assert project_error.message == "Project not found: p1"
        assert transcript_error.transcript_id == "t1"

    def test_storage_error(self):
        assert StorageError("disk full").category == ErrorCategory.STORAGE


class TestFormatErrorForDisplay:
    """Tests for format_error_for_display function."""

    def test_format_reco_error(self):
        """Test formatting reco errors."""
        error = ValidationError("Invalid name", context={"field": "name"})
        formatted = format_error_for_display(error)

        assert formatted == "[validation] Invalid name (field=name)"

    def test_format_without_context(self):
        assert format_error_for_display(ProjectNotFoundError("p1")) == "[resource] Project not found: p1"

    def test_format_generic_error(self):
        """Test formatting generic errors."""
        formatted = format_error_for_display(ValueError("Something wrong"))

        assert "ValueError" in formatted
        assert "Something wrong" in formatted


class TestLogLevel:
    """Tests for LogLevel enum."""

    def test_levels(self):
        """Test log level values."""
        assert LogLevel.QUIET == 0
        assert LogLevel.NORMAL == 1
        assert LogLevel.VERBOSE == 2
        assert LogLevel.DEBUG == 3

    def test_from_name(self):
        assert LogLevel.from_name(" debug ") == LogLevel.DEBUG
        assert LogLevel.from_name("nonsense") == LogLevel.NORMAL


class TestLogConfig:
    """Tests for LogConfig dataclass."""

    def test_defaults(self):
        """Test default configuration."""
        config = LogConfig()

        assert config.level == LogLevel.NORMAL
        assert config.log_file is None
        assert config.json_format is False
        assert config.include_timestamp is True


class TestStructuredFormatter:
    """Tests for StructuredFormatter."""

    def test_text_format(self):
        """Test text formatting."""
        formatter = StructuredFormatter(
            json_format=False,
            include_timestamp=False,
            include_context=False,
            color=False,
        )

        formatted = formatter.format(make_record())

        assert "INFO" in formatted
        assert "Test message" in formatted

    def test_json_format(self):
        """Test JSON formatting."""
        formatter = StructuredFormatter(json_format=True, include_timestamp=True)

        data = json.loads(formatter.format(make_record(project_id="p1")))

        assert data["level"] == "info"
        assert data["message"] == "Test message"
        assert data["logger"] == "test"
        assert "timestamp" in data
        assert data["context"] == {"project_id": "p1"}

    def test_json_unserializable_context(self):
        """Test non-JSON context values are stringified."""
        formatter = StructuredFormatter(json_format=True)

        data = json.loads(formatter.format(make_record(value=object())))
        assert isinstance(data["context"]["value"], str)

    def test_context_in_text(self):
        """Test context inclusion in text format."""
        formatter = StructuredFormatter(
            json_format=False,
            include_timestamp=False,
            include_context=True,
            color=False,
        )

        formatted = formatter.format(make_record(transcript_id="t1", segments=3))

        assert "transcript_id=t1" in formatted
        assert "segments=3" in formatted

    def test_no_color_codes_when_disabled(self):
        formatter = StructuredFormatter(color=False)
        assert "\033[" not in formatter.format(make_record())


class TestConfigureLogging:
    """Tests for configure_logging function."""

    def test_configure_default(self):
        """Test default configuration."""
        configure_logging()

        logger = get_logger("reco.test_configure")
        assert logger is not None

    def test_configure_verbose(self):
        """Test verbose configuration."""
        configure_logging(LogConfig(level=LogLevel.VERBOSE))

        assert logging.getLogger(ROOT_LOGGER_NAME).level <= logging.INFO

    def test_quiet_hides_warnings(self):
        configure_logging(LogConfig(level=LogLevel.QUIET))

        root = logging.getLogger(ROOT_LOGGER_NAME)
        assert not root.isEnabledFor(logging.WARNING)


class TestGetLogger:
    """Tests for get_logger function."""

    def test_get_logger(self):
        """Test getting a logger."""
        logger = get_logger("reco.module")

        assert logger.name == "reco.module"


class TestSetVerbosity:
    """Tests for set_verbosity function."""

    def test_set_verbosity(self):
        """Test setting verbosity level."""
        set_verbosity(LogLevel.DEBUG)

        assert logging.getLogger(ROOT_LOGGER_NAME).level == logging.DEBUG


class TestEnableFileLogging:
    """Tests for enable_file_logging function."""

    def test_enable_file_logging(self, tmp_path):
        """Test enabling file logging."""
        log_file = tmp_path / "logs" / "reco.log"
        enable_file_logging(log_file)

        get_logger("reco.file_test").info("Written to file")
        for handler in logging.getLogger(ROOT_LOGGER_NAME).handlers:
            handler.flush()

        assert "Written to file" in log_file.read_text(encoding="utf-8")

        for handler in logging.getLogger(ROOT_LOGGER_NAME).handlers:
            handler.close()
        configure_logging(LogConfig())


class TestLogOperationHelpers:
    """Tests for log operation helper functions."""

    def test_log_operation_start(self):
        """Test logging operation start."""
        logger = Mock()
        log_operation_start(logger, "test_operation", param="value")

        logger.info.assert_called_once()
        call_args = logger.info.call_args
        assert "Starting" in call_args[0][0]
        assert call_args[1]["extra"]["param"] == "value"

    def test_log_operation_complete(self):
        """Test logging operation completion with a rounded duration."""
        logger = Mock()
        log_operation_complete(logger, "test_operation", duration=1.23456)

        call_args = logger.info.call_args
        assert "Completed" in call_args[0][0]
        assert call_args[1]["extra"]["duration_seconds"] == 1.235

    def test_log_operation_failed(self):
        """Test logging operation failure."""
        logger = Mock()
        log_operation_failed(logger, "test_operation", ValueError("boom"))

        logger.error.assert_called_once()
        extra = logger.error.call_args[1]["extra"]
        assert extra["error_type"] == "ValueError"
        assert extra["error_message"] == "boom"
