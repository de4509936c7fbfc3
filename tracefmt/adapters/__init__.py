"""
Event adapters.

Adapters decode raw event bytes into DecodedEvent objects.
Each adapter wraps one compiled format.
"""

from .base import EventAdapter, DecodedEvent
from .layout_adapter import RecordAdapter, LogicalAdapter, adapter_for

__all__ = [
    'EventAdapter',
    'DecodedEvent',
    'RecordAdapter',
    'LogicalAdapter',
    'adapter_for',
]
