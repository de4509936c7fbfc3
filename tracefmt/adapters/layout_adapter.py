"""
Adapters over compiled record layouts.

Two paths:
- RecordAdapter: layout consistent with native alignment and no dynamic
  arrays, so fields are read straight off the RecordLayout.
- LogicalAdapter: unaligned fields or dynamic arrays present, so fields
  are read through the LogicalLayout with the AlignmentReport.
"""

from typing import Optional

from ..formats.canonical import DEFAULT_ABI
from ..formats.decoder import decode, decode_record
from ..formats.layout import AlignmentReport, LayoutResult, RecordLayout
from ..formats.logical import LogicalLayout, derive_logical_layout
from .base import DecodedEvent, EventAdapter


class RecordAdapter(EventAdapter):
    """Fast path decoder for fully aligned, fixed-size records."""

    def __init__(self, layout: RecordLayout):
        self.layout = layout

    @property
    def name(self) -> str:
        return self.layout.name

    @property
    def id(self) -> int:
        return self.layout.id

    def record_size(self) -> int:
        return self.layout.total_size

    def decode(self, raw: bytes) -> DecodedEvent:
        return DecodedEvent(
            name=self.layout.name,
            id=self.layout.id,
            values=decode_record(self.layout, raw),
        )


class LogicalAdapter(EventAdapter):
    """Slow path decoder for records with unaligned fields or dynamic arrays."""

    def __init__(self, layout: RecordLayout, report: Optional[AlignmentReport],
                 abi: str = DEFAULT_ABI):
        self.layout = layout
        self.report = report
        self.logical: LogicalLayout = derive_logical_layout(layout, abi)

    @property
    def name(self) -> str:
        return self.layout.name

    @property
    def id(self) -> int:
        return self.layout.id

    def record_size(self) -> int:
        return self.layout.total_size

    def decode(self, raw: bytes) -> DecodedEvent:
        return DecodedEvent(
            name=self.layout.name,
            id=self.layout.id,
            values=decode(self.logical, self.report, raw),
        )


def adapter_for(result: LayoutResult, abi: str = DEFAULT_ABI) -> EventAdapter:
    """
    Pick the decode path for a built layout.

    Args:
        result: Return value of build_layout
        abi: ABI profile for dynamic array element widths

    Returns:
        RecordAdapter when there is no AlignmentReport, else LogicalAdapter
    """
    if result.report is None:
        return RecordAdapter(result.layout)
    return LogicalAdapter(result.layout, result.report, abi)
