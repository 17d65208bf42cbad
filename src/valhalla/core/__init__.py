"""Core module exports."""

from valhalla.core.errors import (
    ConfigError,
    DeclarationError,
    ErrorCode,
    InternalError,
    UnitError,
    ValhallaError,
)
from valhalla.core.logging import (
    clear_request_id,
    configure_logging,
    get_request_id,
    request_context,
    set_request_id,
)

__all__ = [
    # Errors
    "ValhallaError",
    "ConfigError",
    "DeclarationError",
    "ErrorCode",
    "InternalError",
    "UnitError",
    # Logging
    "clear_request_id",
    "configure_logging",
    "get_request_id",
    "request_context",
    "set_request_id",
]
