"""
tracefmt - Record layouts and decoders for kernel trace event formats.

Turns a tracing "format" description (as found under
/sys/kernel/tracing/events/<group>/<event>/format) into an offset-exact
record layout, then decodes raw event buffers against it.

This package provides:
- formats: Format parsing, type resolution, layouts and decoding
- adapters: Fast (aligned) and slow (logical) decode paths
- registry: Format id keyed dispatch table
- config: YAML configuration with environment variable support
- core: Structured error codes and the native byte order
- cli: Command-line interface
"""

__version__ = "1.0.0"

from .formats import (
    FieldDescriptor,
    ParsedSchema,
    parse_format,
    Scalar,
    FixedArray,
    DynamicArrayRef,
    DataField,
    PaddingField,
    RecordLayout,
    AlignmentReport,
    LayoutResult,
    build_layout,
    load_layout,
    export_name,
    LogicalLayout,
    derive_logical_layout,
    decode,
    decode_record,
)
from .adapters import EventAdapter, DecodedEvent, RecordAdapter, LogicalAdapter, adapter_for
from .registry import EventRegistry
from .config import TracefmtConfig, load_config
from .core import (
    ErrorCode,
    TraceFormatError,
    ParseError,
    LayoutError,
    OffsetOrderError,
    DecodeError,
    ConfigError,
    NATIVE_ORDER,
)

__all__ = [
    # Version
    '__version__',
    # Formats
    'FieldDescriptor',
    'ParsedSchema',
    'parse_format',
    'Scalar',
    'FixedArray',
    'DynamicArrayRef',
    'DataField',
    'PaddingField',
    'RecordLayout',
    'AlignmentReport',
    'LayoutResult',
    'build_layout',
    'load_layout',
    'export_name',
    'LogicalLayout',
    'derive_logical_layout',
    'decode',
    'decode_record',
    # Adapters
    'EventAdapter',
    'DecodedEvent',
    'RecordAdapter',
    'LogicalAdapter',
    'adapter_for',
    # Registry
    'EventRegistry',
    # Config
    'TracefmtConfig',
    'load_config',
    # Core
    'ErrorCode',
    'TraceFormatError',
    'ParseError',
    'LayoutError',
    'OffsetOrderError',
    'DecodeError',
    'ConfigError',
    'NATIVE_ORDER',
]
