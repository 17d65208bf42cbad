"""Tests for config/models.py module.

Covers:
- LogOutputConfig model
- LoggingConfig model
- DeclarationsConfig model
- CompletionConfig model
- ValhallaConfig root model
"""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from valhalla.config.models import (
    CompletionConfig,
    DeclarationsConfig,
    LoggingConfig,
    LogOutputConfig,
    ValhallaConfig,
)


class TestLogOutputConfig:
    """Tests for LogOutputConfig model."""

    def test_defaults(self) -> None:
        config = LogOutputConfig()
        assert config.format == "console"
        assert config.destination == "stderr"
        assert config.level is None

    @pytest.mark.parametrize("destination", ["stderr", "stdout", "/var/log/valhalla.log"])
    def test_valid_destinations(self, destination: str) -> None:
        assert LogOutputConfig(destination=destination).destination == destination

    def test_relative_path_fails(self) -> None:
        """Relative path is rejected."""
        with pytest.raises(ValidationError, match="absolute"):
            LogOutputConfig(destination="logs/valhalla.log")


class TestLoggingConfig:
    """Tests for LoggingConfig model."""

    def test_defaults(self) -> None:
        config = LoggingConfig()
        assert config.level == "INFO"
        assert len(config.outputs) == 1

    def test_invalid_level(self) -> None:
        with pytest.raises(ValidationError):
            LoggingConfig(level="LOUD")  # type: ignore[arg-type]


class TestDeclarationsConfig:
    """Tests for DeclarationsConfig model."""

    def test_defaults(self) -> None:
        config = DeclarationsConfig()
        assert config.directory is None
        assert config.extension == ".vapi"
        assert config.max_unit_bytes == 4 * 1024 * 1024

    def test_extension_requires_dot(self) -> None:
        with pytest.raises(ValidationError, match="must start with"):
            DeclarationsConfig(extension="vapi")

    @pytest.mark.parametrize("size", [0, -5])
    def test_max_unit_bytes_must_be_positive(self, size: int) -> None:
        with pytest.raises(ValidationError, match="positive"):
            DeclarationsConfig(max_unit_bytes=size)


class TestCompletionConfig:
    """Tests for CompletionConfig model."""

    def test_defaults(self) -> None:
        config = CompletionConfig()
        assert config.default_usings == ["GLib"]
        assert config.source_extensions == [".vala"]
        assert config.empty_line_policy == "pending"
        assert config.keywords_path is None

    def test_empty_policy(self) -> None:
        assert CompletionConfig(empty_line_policy="empty").empty_line_policy == "empty"

    def test_unknown_policy_rejected(self) -> None:
        with pytest.raises(ValidationError):
            CompletionConfig(empty_line_policy="never")  # type: ignore[arg-type]


class TestValhallaConfig:
    """Tests for ValhallaConfig root model."""

    def test_sections_default(self) -> None:
        config = ValhallaConfig()
        assert isinstance(config.logging, LoggingConfig)
        assert isinstance(config.declarations, DeclarationsConfig)
        assert isinstance(config.completion, CompletionConfig)

    def test_from_nested_dict(self) -> None:
        config = ValhallaConfig.model_validate(
            {"declarations": {"directory": "/vapi"}, "completion": {"default_usings": []}}
        )
        assert config.declarations.directory == "/vapi"
        assert config.completion.default_usings == []
