"""Format description parsing, layout construction and decoding."""

from .parser import FieldDescriptor, ParsedSchema, parse_format
from .canonical import (
    Scalar,
    FixedArray,
    DynamicArrayRef,
    AbiProfile,
    ABI_PROFILES,
    DEFAULT_ABI,
    resolve_type,
    dynamic_element_type,
)
from .layout import (
    DataField,
    PaddingField,
    RecordLayout,
    AlignmentReport,
    LayoutResult,
    build_layout,
    load_layout,
    export_name,
)
from .logical import LogicalLayout, derive_logical_layout
from .decoder import (
    decode,
    decode_record,
    read_uint,
    read_int,
    read_bytes,
    read_dynamic_array,
)

__all__ = [
    # Parser
    'FieldDescriptor',
    'ParsedSchema',
    'parse_format',
    # Types
    'Scalar',
    'FixedArray',
    'DynamicArrayRef',
    'AbiProfile',
    'ABI_PROFILES',
    'DEFAULT_ABI',
    'resolve_type',
    'dynamic_element_type',
    # Layout
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
    # Decoding
    'decode',
    'decode_record',
    'read_uint',
    'read_int',
    'read_bytes',
    'read_dynamic_array',
]
