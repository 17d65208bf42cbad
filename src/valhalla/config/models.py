"""Pydantic configuration models with env var support.

Configuration Hierarchy (highest to lowest precedence):
1. Direct kwargs to load_config()
2. Environment variables (VALHALLA__SECTION__KEY)
3. Project YAML (.valhalla/config.yaml)
4. Global YAML (~/.config/valhalla/config.yaml)
5. Built-in defaults (this file)

Environment Variable Format:
    VALHALLA__<SECTION>__<KEY>=<VALUE>

Examples:
    VALHALLA__LOGGING__LEVEL=DEBUG
    VALHALLA__DECLARATIONS__DIRECTORY=/usr/share/vala/vapi
    VALHALLA__COMPLETION__EMPTY_LINE_POLICY=empty
"""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
EmptyLinePolicy = Literal["pending", "empty"]


class LogOutputConfig(BaseModel):
    """Single logging output configuration.

    Env vars: Not directly configurable via env (use YAML for multi-output).
    """

    format: Literal["json", "console"] = "console"
    destination: str = "stderr"  # stderr, stdout, or absolute file path
    level: LogLevel | None = None  # Inherits from parent if None

    @field_validator("destination")
    @classmethod
    def validate_destination(cls, v: str) -> str:
        if v in ("stderr", "stdout"):
            return v
        path = Path(v).expanduser()
        if not path.is_absolute():
            raise ValueError(f"File destination must be absolute path: {v}")
        return str(path)


class LoggingConfig(BaseModel):
    """Logging configuration.

    Env vars:
        VALHALLA__LOGGING__LEVEL: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """

    level: LogLevel = Field(
        default="INFO",
        description="Root log level. DEBUG logs every parsed unit and completion request.",
    )
    outputs: list[LogOutputConfig] = Field(default_factory=lambda: [LogOutputConfig()])


class DeclarationsConfig(BaseModel):
    """Read-only interface-declaration (.vapi) loading.

    Env vars:
        VALHALLA__DECLARATIONS__DIRECTORY: Directory scanned at startup
        VALHALLA__DECLARATIONS__EXTENSION: File suffix of declaration units
        VALHALLA__DECLARATIONS__MAX_UNIT_BYTES: Skip units larger than this
    """

    directory: str | None = Field(
        default=None,
        description="Directory holding .vapi files. None disables the bulk load.",
    )
    extension: str = Field(
        default=".vapi",
        description="Suffix of interface-declaration files.",
    )
    max_unit_bytes: int = Field(
        default=4 * 1024 * 1024,
        description="Units larger than this are not parsed. "
        "Parsing runs on the caller's event loop, so this bounds its worst-case stall.",
    )

    @field_validator("extension")
    @classmethod
    def validate_extension(cls, v: str) -> str:
        if not v.startswith("."):
            raise ValueError(f"Extension must start with '.': {v}")
        return v

    @field_validator("max_unit_bytes")
    @classmethod
    def validate_max_unit_bytes(cls, v: int) -> int:
        if v <= 0:
            raise ValueError(f"max_unit_bytes must be positive, got {v}")
        return v


class CompletionConfig(BaseModel):
    """Completion engine configuration.

    Env vars:
        VALHALLA__COMPLETION__EMPTY_LINE_POLICY: pending | empty
        VALHALLA__COMPLETION__KEYWORDS_PATH: YAML keyword table override
    """

    default_usings: list[str] = Field(
        default_factory=lambda: ["GLib"],
        description="Namespaces visible in every unit without a using directive.",
    )
    source_extensions: list[str] = Field(
        default_factory=lambda: [".vala"],
        description="Suffixes of live-edited source units.",
    )
    empty_line_policy: EmptyLinePolicy = Field(
        default="pending",
        description="What a request on an empty line yields. 'pending' never resolves "
        "the request; 'empty' resolves it with no candidates.",
    )
    keywords_path: str | None = Field(
        default=None,
        description="YAML keyword table replacing the built-in one.",
    )


class ValhallaConfig(BaseModel):
    """Root configuration for Valhalla.

    All settings can be configured via:
    1. Environment variables: VALHALLA__SECTION__KEY
    2. YAML config files (project or global)
    3. Direct kwargs to load_config()
    """

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    declarations: DeclarationsConfig = Field(default_factory=DeclarationsConfig)
    completion: CompletionConfig = Field(default_factory=CompletionConfig)
