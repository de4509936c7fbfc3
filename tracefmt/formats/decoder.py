"""
Event record decoding.

Two entry points:
- decode_record(): read every field straight off a RecordLayout. Valid when
  build_layout() returned no AlignmentReport (the fast path).
- decode(): read through a LogicalLayout, restoring alignment fallback
  fields and resolving __data_loc arrays (the slow path).

__data_loc descriptors follow the kernel convention:

    #define __get_dynamic_array(field)
        ((void *)__entry + (__entry->__data_loc_##field & 0xffff))

    #define __get_dynamic_array_len(field)
        ((__entry->__data_loc_##field >> 16) & 0xffff)

The low 16 bits are a byte offset from the start of the event buffer, the
high 16 bits an element count. Dynamic arrays are returned as memoryviews
over the caller's buffer, not copies; terminating NUL bytes are kept.

All multi-byte values use the machine's native byte order.
"""

import logging
import struct
from typing import Any, Dict, List, Optional

from ..core.byteorder import NATIVE_ORDER
from ..core.errors import DecodeError, ErrorCode
from .canonical import CanonicalType, DynamicArrayRef, FixedArray, Scalar, DATA_LOC_SIZE
from .layout import AlignmentReport, DataField, PaddingField, RecordLayout, byte_array_size
from .logical import LogicalLayout

logger = logging.getLogger(__name__)


def read_uint(data, offset: int, width: int) -> int:
    """Read an unsigned native-order integer of width bytes at offset."""
    return struct.unpack_from('=' + Scalar(width, False).code, data, offset)[0]


def read_int(data, offset: int, width: int) -> int:
    """Read a signed native-order integer of width bytes at offset."""
    return struct.unpack_from('=' + Scalar(width, True).code, data, offset)[0]


def read_bytes(data, offset: int, size: int) -> bytes:
    """Copy size raw bytes starting at offset."""
    return bytes(data[offset:offset + size])


def read_dynamic_array(data, offset: int, element: Scalar) -> memoryview:
    """
    Resolve the __data_loc descriptor stored at offset.

    Returns:
        A view of count elements borrowed from data. Unsigned byte arrays
        are left as a plain byte view, so bytes(view) gives the raw string.

    Raises:
        DecodeError: If the referenced range is outside data
    """
    loc = read_uint(data, offset, DATA_LOC_SIZE)
    start = loc & 0xffff
    count = loc >> 16
    end = start + count * element.width
    if start > len(data) or end > len(data):
        raise DecodeError(
            ErrorCode.E3003_DYNAMIC_ARRAY_BOUNDS,
            {'offset': start, 'len': count, 'buffer': len(data)},
        )

    view = _byte_view(data)[start:end]
    if element.width == 1 and not element.signed:
        return view
    return view.cast(element.code)


def decode_record(layout: RecordLayout, data) -> Dict[str, Any]:
    """
    Decode data directly against a record layout.

    Fallback fields come back as tuples of raw bytes and __data_loc fields
    as their packed descriptor, exactly as stored. Layouts that came with an
    AlignmentReport (layout.requires_logical) need decode() for real values.

    Returns:
        Field values keyed by C field name, in declaration order
    """
    _check_size(layout.total_size, data)
    if logger.isEnabledFor(logging.DEBUG) and layout.requires_logical:
        logger.debug("%s: fast path decode returns raw fallback fields", layout.name)

    values = {}
    for f in layout.fields:
        if isinstance(f, PaddingField):
            continue
        values[f.name] = _read_value(f.type, data, f.offset)
    return values


def decode(logical: LogicalLayout, report: Optional[AlignmentReport], data) -> Dict[str, Any]:
    """
    Decode data through a logical layout.

    Args:
        logical: Layout from derive_logical_layout
        report: AlignmentReport from build_layout, or None
        data: The complete event record, including out-of-line data

    Returns:
        Field values keyed by C field name, in declaration order

    Raises:
        DecodeError: On a short buffer, mismatched layouts, out of range
            dynamic data, or an unaligned field that cannot be restored
    """
    _check_size(logical.total_size, data)

    src_fields = logical.record.fields
    dst_fields = logical.fields
    if len(dst_fields) != len(src_fields):
        raise DecodeError(
            ErrorCode.E3002_FIELD_COUNT_MISMATCH,
            {'logical': len(dst_fields), 'record': len(src_fields)},
        )
    unaligned = report.unaligned if report is not None and report.unaligned else None
    if unaligned is not None and len(unaligned) != len(dst_fields):
        raise DecodeError(
            ErrorCode.E3002_FIELD_COUNT_MISMATCH,
            {'unaligned': len(unaligned), 'fields': len(dst_fields)},
        )

    values: Dict[str, Any] = {}
    deferred: List[int] = []
    for i, (dst, src) in enumerate(zip(dst_fields, src_fields)):
        if isinstance(dst, PaddingField):
            continue

        if isinstance(dst.type, DynamicArrayRef):
            values[dst.name] = read_dynamic_array(data, dst.offset, dst.type.element)
            continue

        if unaligned is not None and unaligned[i]:
            # Keep declaration order; filled in below.
            values[dst.name] = None
            deferred.append(i)
            continue

        if not isinstance(src, DataField) or src.type != dst.type:
            raise DecodeError(
                ErrorCode.E3006_TYPE_MISMATCH,
                {'field': i, 'logical': dst.code, 'record': src.code},
            )
        values[dst.name] = _read_value(dst.type, data, dst.offset)

    for i in deferred:
        dst = dst_fields[i]
        src = src_fields[i]
        if not isinstance(dst.type, Scalar):
            raise DecodeError(
                ErrorCode.E3005_INVALID_FIELD_KIND,
                {'field': i, 'kind': str(dst.type)},
            )
        src_size = byte_array_size(src.type) if isinstance(src, DataField) else None
        if src_size != dst.type.width:
            raise DecodeError(
                ErrorCode.E3004_UNALIGNED_SIZE_MISMATCH,
                {'field': i, 'logical': dst.type.width, 'record': src_size},
            )
        raw = read_bytes(data, dst.offset, src_size)
        values[dst.name] = int.from_bytes(raw, NATIVE_ORDER, signed=dst.type.signed)

    return values


def _read_value(typ: CanonicalType, data, offset: int):
    if isinstance(typ, FixedArray):
        return struct.unpack_from('=' + typ.code, data, offset)
    return struct.unpack_from('=' + typ.code, data, offset)[0]


def _check_size(size: int, data) -> None:
    if len(data) < size:
        raise DecodeError(
            ErrorCode.E3001_TRUNCATED_BUFFER,
            {'size': len(data), 'want': size},
        )


def _byte_view(data) -> memoryview:
    view = memoryview(data)
    if view.format != 'B' or view.ndim != 1:
        view = view.cast('B')
    return view
