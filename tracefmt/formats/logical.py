"""
Logical (decode-time) view of a record layout.

The logical layout keeps the record's field order so that indices from an
AlignmentReport still line up, but:
- padding fields shrink to zero length
- alignment fallback fields get their real scalar or array type back
- __data_loc fields become DynamicArrayRef with a resolved element type
"""

from dataclasses import dataclass, replace
from typing import List, Tuple

from ..core.errors import ErrorCode, LayoutError, ParseError
from .canonical import DEFAULT_ABI, DynamicArrayRef, dynamic_element_type, resolve_type
from .layout import DataField, PaddingField, RecordField, RecordLayout


@dataclass(frozen=True)
class LogicalLayout:
    """Decode-time layout derived from a RecordLayout."""
    record: RecordLayout
    fields: Tuple[RecordField, ...]

    @property
    def name(self) -> str:
        return self.record.name

    @property
    def id(self) -> int:
        return self.record.id

    @property
    def total_size(self) -> int:
        return self.record.total_size

    @property
    def data_fields(self) -> List[DataField]:
        return [f for f in self.fields if isinstance(f, DataField)]


def derive_logical_layout(layout: RecordLayout, abi: str = DEFAULT_ABI) -> LogicalLayout:
    """
    Derive the logical layout for a record layout.

    Args:
        layout: Layout returned by build_layout
        abi: ABI profile used for named C element types of __data_loc arrays

    Raises:
        LayoutError: If a dynamic array element type is unsupported, or a
            fallback field's type cannot be restored
    """
    fields: List[RecordField] = []
    for f in layout.fields:
        if isinstance(f, PaddingField):
            fields.append(replace(f, size=0))
            continue

        if f.is_dynamic:
            elem = dynamic_element_type(f.ctyp, abi)
            fields.append(replace(f, type=DynamicArrayRef(elem), alignment_fallback=False))
            continue

        if not f.alignment_fallback:
            fields.append(f)
            continue

        try:
            typ, _ = resolve_type(f.size, f.signed, f.ctyp, f.offset, aligned=False)
        except ParseError as err:
            raise LayoutError(
                ErrorCode.E2006_UNRESOLVABLE_FALLBACK,
                {'name': f.name, 'ctyp': f.ctyp, 'cause': err.message},
            ) from err
        fields.append(replace(f, type=typ, alignment_fallback=False))

    return LogicalLayout(record=layout, fields=tuple(fields))
