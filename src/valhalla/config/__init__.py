"""Config module exports."""

from valhalla.config.loader import ValhallaSettings, load_config
from valhalla.config.models import (
    CompletionConfig,
    DeclarationsConfig,
    LoggingConfig,
    LogOutputConfig,
    ValhallaConfig,
)

__all__ = [
    "load_config",
    "ValhallaConfig",
    "ValhallaSettings",
    "CompletionConfig",
    "DeclarationsConfig",
    "LoggingConfig",
    "LogOutputConfig",
]
