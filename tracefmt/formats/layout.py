"""
Record layout construction.

A RecordLayout is the fixed-size part of one event record, reproduced field
for field at the offsets the kernel declared:

    Idx  Field                 Offset  Size  Type
    0    common_type           0       2     u16
    1    common_flags          2       1     u8
    2    common_preempt_count  3       1     u8
    3    common_pid            4       4     s32
    4    _pad0                 8       4     padding
    5    __probe_ip            12      4     u32
    ...

Gaps between declared fields become one Padding field each. A field whose
type cannot sit at its declared offset under native alignment is stored as
a byte array of its declared size (alignment fallback) and reported in an
AlignmentReport. The report is not an error: the layout is still valid, but
decoding must go through the logical layout to restore those fields.

Field indices in the report count padding fields, so they index directly
into RecordLayout.fields.
"""

import logging
import struct
from dataclasses import dataclass
from typing import Iterable, List, NamedTuple, Optional, Tuple, Union

from ..core.errors import ErrorCode, ERROR_METADATA, LayoutError, OffsetOrderError
from .canonical import CanonicalType, FixedArray, is_dynamic, resolve_type
from .parser import ParsedSchema, parse_format

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DataField:
    """
    A declared field positioned in a layout.

    Attributes:
        name: C field name
        ctyp: C type spelling
        offset: Declared byte offset
        size: Declared byte size
        signed: Declared signedness
        type: Canonical type (a byte array when alignment_fallback is set)
        alignment_fallback: True if the field's real type could not be
            placed at offset and is stored as raw bytes
    """
    name: str
    ctyp: str
    offset: int
    size: int
    signed: bool
    type: CanonicalType
    alignment_fallback: bool = False

    @property
    def display_name(self) -> str:
        return export_name(self.name)

    @property
    def is_dynamic(self) -> bool:
        """True for __data_loc fields."""
        return is_dynamic(self.ctyp)

    @property
    def code(self) -> str:
        return self.type.code


@dataclass(frozen=True)
class PaddingField:
    """Unnamed gap between two declared fields."""
    offset: int
    size: int
    index: int = 0

    @property
    def name(self) -> str:
        return f"_pad{self.index}"

    @property
    def code(self) -> str:
        return f"{self.size}x"


RecordField = Union[DataField, PaddingField]


@dataclass(frozen=True)
class AlignmentReport:
    """
    Fields that need the logical decode path.

    Attributes:
        fields: Indices of alignment fallback fields
        unaligned: unaligned[i] is True for field i; same length as the
            layout's field sequence
        dynamic_array: The record has a __data_loc field
    """
    fields: Tuple[int, ...]
    unaligned: Tuple[bool, ...]
    dynamic_array: bool = False

    def __str__(self) -> str:
        if not self.fields and self.dynamic_array:
            return "dynamic array in struct"
        if self.dynamic_array:
            return f"dynamic array and unaligned fields in struct: {list(self.fields)}"
        return f"unaligned fields in struct: {list(self.fields)}"

    def to_dict(self) -> dict:
        code = ErrorCode.E2004_ALIGNMENT_FALLBACK
        return {
            'code': code.value,
            'severity': ERROR_METADATA[code]['severity'],
            'message': str(self),
            'recoverable': True,
            'fields': list(self.fields),
            'dynamic_array': self.dynamic_array,
        }


@dataclass(frozen=True)
class RecordLayout:
    """
    Offset-exact layout of an event record's fixed-size part.

    Attributes:
        name: Probe name
        id: 16-bit format id
        fields: Ordered fields, padding included
        total_size: End offset of the last declared field
    """
    name: str
    id: int
    fields: Tuple[RecordField, ...]
    total_size: int

    @property
    def data_fields(self) -> List[DataField]:
        return [f for f in self.fields if isinstance(f, DataField)]

    @property
    def requires_logical(self) -> bool:
        """True if values are only correct when decoded through a LogicalLayout."""
        return any(f.alignment_fallback or f.is_dynamic for f in self.data_fields)

    @property
    def struct_format(self) -> str:
        """Native struct format for the whole record."""
        return '@' + ''.join(f.code for f in self.fields)

    def field(self, name: str) -> DataField:
        """Look up a data field by C name."""
        for f in self.fields:
            if isinstance(f, DataField) and f.name == name:
                return f
        raise KeyError(name)

    def describe(self) -> dict:
        """Layout description for a caller building a decode dispatch table."""
        return {
            'name': self.name,
            'id': self.id,
            'size': self.total_size,
            'logical': self.requires_logical,
            'fields': [
                {
                    'name': f.display_name,
                    'ctyp': f.ctyp,
                    'offset': f.offset,
                    'size': f.size,
                    'type': str(f.type),
                    'unaligned': f.alignment_fallback,
                }
                for f in self.data_fields
            ],
        }


class LayoutResult(NamedTuple):
    """A usable layout plus an optional non-fatal alignment report."""
    layout: RecordLayout
    report: Optional[AlignmentReport]


def export_name(name: str) -> str:
    """
    Convert a C field name to a display identifier.

    Leading underscores are stripped and the first remaining character is
    upper cased: '__probe_ip' -> 'Probe_ip', 'dfd' -> 'Dfd'. A name made of
    underscores only is returned unchanged.
    """
    n = name.lstrip('_')
    if not n:
        return name
    return n[0].upper() + n[1:]


def build_layout(schema: ParsedSchema) -> LayoutResult:
    """
    Assemble parsed field descriptors into an offset-exact RecordLayout.

    Raises:
        ParseError: If a field's type cannot be resolved
        LayoutError: On overlapping offsets, duplicate display names, or if
            the native struct layout does not reproduce a declared offset
    """
    fields: List[RecordField] = []
    fallback: List[int] = []
    dynamic = False
    seen = set()
    next_offset = 0
    pad_idx = 0

    for i, desc in enumerate(schema.fields):
        pad = desc.offset - next_offset
        if pad < 0:
            raise OffsetOrderError(
                ErrorCode.E2001_OFFSET_ORDER,
                {'field': i, 'name': desc.name, 'offset': desc.offset},
            )
        if pad > 0:
            fields.append(PaddingField(offset=next_offset, size=pad, index=pad_idx))
            pad_idx += 1

        if is_dynamic(desc.ctyp):
            dynamic = True

        typ, unaligned = resolve_type(desc.size, desc.signed, desc.ctyp, desc.offset)
        if unaligned:
            logger.debug(
                "%s: field %s (%s) at offset %d stored as %d raw bytes",
                schema.name, desc.name, desc.ctyp, desc.offset, desc.size,
            )
            fallback.append(len(fields))

        display = export_name(desc.name)
        if display in seen:
            raise LayoutError(
                ErrorCode.E2002_DUPLICATE_FIELD,
                {'name': display},
            )
        seen.add(display)

        fields.append(DataField(
            name=desc.name,
            ctyp=desc.ctyp,
            offset=desc.offset,
            size=desc.size,
            signed=desc.signed,
            type=typ,
            alignment_fallback=unaligned,
        ))
        next_offset = desc.offset + desc.size

    _verify_offsets(fields)

    layout = RecordLayout(
        name=schema.name,
        id=schema.id,
        fields=tuple(fields),
        # Not struct.calcsize: the record may end without the trailing
        # padding a native struct would add.
        total_size=next_offset,
    )

    report = None
    if fallback or dynamic:
        report = AlignmentReport(
            fields=tuple(fallback),
            unaligned=tuple(i in fallback for i in range(len(fields))),
            dynamic_array=dynamic,
        )
    return LayoutResult(layout, report)


def load_layout(source: Union[str, Iterable[str]]) -> LayoutResult:
    """Parse a format description and build its layout."""
    return build_layout(parse_format(source))


def _verify_offsets(fields: List[RecordField]) -> None:
    """Check that native struct packing puts every field where it was declared."""
    prefix = '@'
    for f in fields:
        got = struct.calcsize(prefix + f.code) - struct.calcsize('@' + f.code)
        if got != f.offset:
            raise LayoutError(
                ErrorCode.E2003_OFFSET_MISMATCH,
                {'name': f.name, 'got': got, 'want': f.offset},
            )
        prefix += f.code


def byte_array_size(typ: CanonicalType) -> Optional[int]:
    """Size of a fallback byte array type, or None for anything else."""
    if isinstance(typ, FixedArray) and typ.element.width == 1 and not typ.element.signed:
        return typ.count
    return None
