"""
Format registry keyed by format id.

Usage:
    registry = EventRegistry()
    for text in formats:
        registry.register(text)

    for data in events:
        event = registry.unpack(data)

Registration builds each layout once. Decoding looks the format id up in the
first two bytes of the record (common_type) and runs the matching adapter.

The id -> adapter map is never mutated in place: register() copies it,
adds the new entry, and swaps the reference under a lock. unpack() reads the
current reference without locking, so registration may overlap decoding.
"""

import logging
import threading
from types import MappingProxyType
from typing import Iterable, List, Mapping, Optional, Union

from .adapters import DecodedEvent, EventAdapter, adapter_for
from .config import TracefmtConfig
from .core.errors import DecodeError, ErrorCode, LayoutError
from .formats.decoder import read_uint
from .formats.layout import load_layout

logger = logging.getLogger(__name__)

# common_type is a u16 at offset 0 of every event record
FORMAT_ID_SIZE = 2


class EventRegistry:
    """Dispatch table from format id to event adapter."""

    def __init__(self, config: Optional[TracefmtConfig] = None):
        self.config = config or TracefmtConfig()
        # Validates the ABI name up front.
        self.abi = self.config.abi.profile.name
        self._lock = threading.Lock()
        self._adapters: Mapping[int, EventAdapter] = MappingProxyType({})

    def register(self, source: Union[str, Iterable[str]]) -> str:
        """
        Register one event format description.

        Args:
            source: Format text or an iterable of its lines

        Returns:
            The event's probe name

        Raises:
            ParseError: If the format text is malformed
            LayoutError: If no layout can be built, or the id is already
                registered and replace_existing is off
        """
        result = load_layout(source)
        adapter = adapter_for(result, self.abi)
        layout = result.layout

        if result.report is not None:
            logger.debug("%s: %s", layout.name, result.report)

        with self._lock:
            current = self._adapters
            if layout.id in current:
                if not self.config.registry.replace_existing:
                    raise LayoutError(
                        ErrorCode.E2007_DUPLICATE_FORMAT_ID,
                        {'id': layout.id, 'name': layout.name,
                         'registered': current[layout.id].name},
                    )
                logger.warning(
                    "replacing format id %d: %s -> %s",
                    layout.id, current[layout.id].name, layout.name,
                )
            adapters = dict(current)
            adapters[layout.id] = adapter
            self._adapters = MappingProxyType(adapters)

        logger.info(
            "registered %s id=%d size=%d path=%s",
            layout.name, layout.id, layout.total_size,
            'slow' if result.report is not None else 'fast',
        )
        return layout.name

    def register_all(self, sources: Iterable[Union[str, Iterable[str]]]) -> List[str]:
        """Register several formats in order."""
        return [self.register(s) for s in sources]

    def get(self, format_id: int) -> Optional[EventAdapter]:
        return self._adapters.get(format_id)

    def __contains__(self, format_id: int) -> bool:
        return format_id in self._adapters

    def __len__(self) -> int:
        return len(self._adapters)

    @property
    def adapters(self) -> Mapping[int, EventAdapter]:
        """Read-only snapshot of the current dispatch table."""
        return self._adapters

    def unpack(self, data: bytes) -> DecodedEvent:
        """
        Decode one event record using its format id.

        Raises:
            DecodeError: If the buffer is too short, the id is unknown,
                or decoding fails
        """
        if len(data) < FORMAT_ID_SIZE:
            raise DecodeError(
                ErrorCode.E3001_TRUNCATED_BUFFER,
                {'size': len(data), 'want': FORMAT_ID_SIZE},
            )
        format_id = read_uint(data, 0, FORMAT_ID_SIZE)
        adapter = self._adapters.get(format_id)
        if adapter is None:
            raise DecodeError(ErrorCode.E3007_UNKNOWN_FORMAT_ID, {'id': format_id})
        return adapter.decode(data)
