"""
Base classes for event adapters.

EventAdapter is the abstract base class that both decode paths inherit.
DecodedEvent is the value object every adapter returns.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

from ..formats.layout import export_name


@dataclass
class DecodedEvent:
    """
    One decoded event record.

    Attributes:
        name: Probe name
        id: Format id of the layout used for decoding
        values: Field values keyed by C field name, in declaration order.
            Dynamic arrays are memoryviews borrowing the source buffer.
    """
    name: str
    id: int
    values: Dict[str, Any] = field(default_factory=dict)

    def __getitem__(self, key: str) -> Any:
        return self.values[key]

    def __contains__(self, key: str) -> bool:
        return key in self.values

    def as_bytes(self, key: str) -> bytes:
        """Copy a byte array or dynamic byte view out as bytes."""
        value = self.values[key]
        if isinstance(value, memoryview):
            return value.tobytes()
        return bytes(value)

    def by_display_name(self) -> Dict[str, Any]:
        """Values keyed by exported display name."""
        return {export_name(k): v for k, v in self.values.items()}

    def to_dict(self) -> dict:
        """Convert to a JSON-safe dictionary. Views are copied."""
        fields = {}
        for key, value in self.values.items():
            if isinstance(value, memoryview):
                value = value.tolist()
            elif isinstance(value, tuple):
                value = list(value)
            fields[key] = value
        return {'name': self.name, 'id': self.id, 'fields': fields}

    def __repr__(self) -> str:
        return f"DecodedEvent(name={self.name!r}, id={self.id}, fields={len(self.values)})"


class EventAdapter(ABC):
    """
    Abstract base class for event decoders.

    Adapters are immutable once built: decode() only reads the layout and
    the caller's buffer, so one adapter may be shared between threads.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Probe name."""

    @property
    @abstractmethod
    def id(self) -> int:
        """Format id."""

    @abstractmethod
    def record_size(self) -> int:
        """
        Size of the fixed part of one record in bytes.

        Buffers shorter than this are rejected before any field is read.
        """

    @abstractmethod
    def decode(self, raw: bytes) -> DecodedEvent:
        """
        Decode a single event record.

        Args:
            raw: The complete event record, including any dynamic data

        Returns:
            Decoded event

        Raises:
            DecodeError: If the buffer cannot be decoded
        """

    def validate(self, event: DecodedEvent) -> Optional[str]:
        """
        Validate a decoded event.

        Returns:
            Error message if invalid, None if valid
        """
        common_type = event.values.get('common_type')
        if common_type is not None and common_type != self.id:
            return f"Event type {common_type} does not match format id {self.id}"
        return None

    def decode_file(self, path: Path) -> DecodedEvent:
        """Decode a file holding exactly one raw event record."""
        return self.decode(Path(path).read_bytes())
