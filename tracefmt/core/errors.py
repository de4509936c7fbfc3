"""
Error codes for tracefmt.

Structured error codes for machine-parseable reports.

Format: E{category}{number}
- E1xxx: Schema parse errors
- E2xxx: Layout errors
- E3xxx: Decode errors
- E4xxx: Configuration errors
"""

from enum import Enum
from typing import Optional


class ErrorCode(Enum):
    """Structured error codes."""

    # E1xxx: Schema parse errors
    E1001_INVALID_FIELD_LINE = "E1001"
    E1002_INVALID_FIELD_NAME = "E1002"
    E1003_INVALID_NUMBER = "E1003"
    E1004_INVALID_FORMAT_ID = "E1004"
    E1005_INVALID_DATA_TYPE = "E1005"
    E1006_INVALID_ARRAY_SIZE = "E1006"
    E1007_UNSUPPORTED_WIDTH = "E1007"

    # E2xxx: Layout errors
    E2001_OFFSET_ORDER = "E2001"
    E2002_DUPLICATE_FIELD = "E2002"
    E2003_OFFSET_MISMATCH = "E2003"
    E2004_ALIGNMENT_FALLBACK = "E2004"
    E2005_UNSUPPORTED_DYNAMIC_ELEMENT = "E2005"
    E2006_UNRESOLVABLE_FALLBACK = "E2006"
    E2007_DUPLICATE_FORMAT_ID = "E2007"

    # E3xxx: Decode errors
    E3001_TRUNCATED_BUFFER = "E3001"
    E3002_FIELD_COUNT_MISMATCH = "E3002"
    E3003_DYNAMIC_ARRAY_BOUNDS = "E3003"
    E3004_UNALIGNED_SIZE_MISMATCH = "E3004"
    E3005_INVALID_FIELD_KIND = "E3005"
    E3006_TYPE_MISMATCH = "E3006"
    E3007_UNKNOWN_FORMAT_ID = "E3007"

    # E4xxx: Configuration errors
    E4001_INVALID_CONFIG = "E4001"
    E4002_UNKNOWN_ABI = "E4002"


# Error code metadata
ERROR_METADATA = {
    ErrorCode.E1001_INVALID_FIELD_LINE: {
        'severity': 'error',
        'message': 'Invalid field line',
        'recoverable': False,
    },
    ErrorCode.E1002_INVALID_FIELD_NAME: {
        'severity': 'error',
        'message': 'Invalid field description',
        'recoverable': False,
    },
    ErrorCode.E1003_INVALID_NUMBER: {
        'severity': 'error',
        'message': 'Invalid numeric token',
        'recoverable': False,
    },
    ErrorCode.E1004_INVALID_FORMAT_ID: {
        'severity': 'error',
        'message': 'Invalid format id',
        'recoverable': False,
    },
    ErrorCode.E1005_INVALID_DATA_TYPE: {
        'severity': 'error',
        'message': 'Invalid data type',
        'recoverable': False,
    },
    ErrorCode.E1006_INVALID_ARRAY_SIZE: {
        'severity': 'error',
        'message': 'Invalid size for array',
        'recoverable': False,
    },
    ErrorCode.E1007_UNSUPPORTED_WIDTH: {
        'severity': 'error',
        'message': 'Unsupported integer width',
        'recoverable': False,
    },
    ErrorCode.E2001_OFFSET_ORDER: {
        'severity': 'error',
        'message': 'Field offsets overlap or go backwards',
        'recoverable': False,
    },
    ErrorCode.E2002_DUPLICATE_FIELD: {
        'severity': 'error',
        'message': 'Duplicate field name',
        'recoverable': False,
    },
    ErrorCode.E2003_OFFSET_MISMATCH: {
        'severity': 'error',
        'message': 'Could not generate correct field offset',
        'recoverable': False,
    },
    ErrorCode.E2004_ALIGNMENT_FALLBACK: {
        'severity': 'warning',
        'message': 'Unaligned or dynamic array fields in record',
        'recoverable': True,
    },
    ErrorCode.E2005_UNSUPPORTED_DYNAMIC_ELEMENT: {
        'severity': 'error',
        'message': 'Unsupported dynamic array element type',
        'recoverable': False,
    },
    ErrorCode.E2006_UNRESOLVABLE_FALLBACK: {
        'severity': 'error',
        'message': 'Cannot restore type of unaligned field',
        'recoverable': False,
    },
    ErrorCode.E2007_DUPLICATE_FORMAT_ID: {
        'severity': 'error',
        'message': 'Format id already registered',
        'recoverable': False,
    },
    ErrorCode.E3001_TRUNCATED_BUFFER: {
        'severity': 'error',
        'message': 'Event buffer truncated',
        'recoverable': True,
    },
    ErrorCode.E3002_FIELD_COUNT_MISMATCH: {
        'severity': 'error',
        'message': 'Mismatched field count',
        'recoverable': True,
    },
    ErrorCode.E3003_DYNAMIC_ARRAY_BOUNDS: {
        'severity': 'error',
        'message': 'Invalid dynamic data indexes',
        'recoverable': True,
    },
    ErrorCode.E3004_UNALIGNED_SIZE_MISMATCH: {
        'severity': 'error',
        'message': 'Mismatched size for unaligned field',
        'recoverable': True,
    },
    ErrorCode.E3005_INVALID_FIELD_KIND: {
        'severity': 'error',
        'message': 'Invalid kind for field',
        'recoverable': True,
    },
    ErrorCode.E3006_TYPE_MISMATCH: {
        'severity': 'error',
        'message': 'Mismatched type for field',
        'recoverable': True,
    },
    ErrorCode.E3007_UNKNOWN_FORMAT_ID: {
        'severity': 'error',
        'message': 'No decoder registered for event id',
        'recoverable': True,
    },
    ErrorCode.E4001_INVALID_CONFIG: {
        'severity': 'error',
        'message': 'Invalid configuration',
        'recoverable': False,
    },
    ErrorCode.E4002_UNKNOWN_ABI: {
        'severity': 'error',
        'message': 'Unknown ABI profile',
        'recoverable': False,
    },
}


class TraceFormatError(Exception):
    """
    Structured error with context.

    Example:
        raise ParseError(
            ErrorCode.E1001_INVALID_FIELD_LINE,
            context={'line': line},
        )
    """

    def __init__(self, code: ErrorCode, context: Optional[dict] = None):
        self.code = code
        self.context = context
        super().__init__(self.message)

    @property
    def severity(self) -> str:
        return ERROR_METADATA.get(self.code, {}).get('severity', 'error')

    @property
    def message(self) -> str:
        base_msg = ERROR_METADATA.get(self.code, {}).get('message', 'Unknown error')
        if self.context:
            return f"{base_msg}: {self.context}"
        return base_msg

    @property
    def recoverable(self) -> bool:
        return ERROR_METADATA.get(self.code, {}).get('recoverable', False)

    def to_dict(self) -> dict:
        return {
            'code': self.code.value,
            'severity': self.severity,
            'message': self.message,
            'recoverable': self.recoverable,
            'context': self.context,
        }


class ParseError(TraceFormatError):
    """Malformed schema text; the schema cannot be registered."""


class LayoutError(TraceFormatError):
    """The parsed schema cannot be turned into an offset-exact layout."""


class OffsetOrderError(LayoutError, ParseError):
    """
    Declared offsets overlap or go backwards.

    Detected by the layout builder as negative padding, but it is equally a
    fault in the schema text, so it is catchable as either family.
    """


class DecodeError(TraceFormatError):
    """A single event buffer could not be decoded. The layout stays valid."""


class ConfigError(TraceFormatError):
    """Invalid configuration file or value."""
