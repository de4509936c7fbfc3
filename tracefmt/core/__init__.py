"""Errors and process-wide constants for tracefmt."""

from .errors import (
    ErrorCode,
    ERROR_METADATA,
    TraceFormatError,
    ParseError,
    LayoutError,
    OffsetOrderError,
    DecodeError,
    ConfigError,
)
from .byteorder import NATIVE_ORDER

__all__ = [
    # Errors
    'ErrorCode',
    'ERROR_METADATA',
    'TraceFormatError',
    'ParseError',
    'LayoutError',
    'OffsetOrderError',
    'DecodeError',
    'ConfigError',
    # Byte order
    'NATIVE_ORDER',
]
