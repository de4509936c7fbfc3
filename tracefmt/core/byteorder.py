"""
Native byte order of the executing machine.

Resolved once at import by writing a known two-byte pattern and reading it
back as a 16-bit integer. Event buffers are produced by the kernel of the
same machine, so no cross-endian conversion is ever applied.
"""

import struct


def _probe_byte_order() -> str:
    order = bytes((0x01, 0x02))
    value, = struct.unpack('=H', order)
    if value == 0x0102:
        return 'big'
    if value == 0x0201:
        return 'little'
    raise RuntimeError(f"invalid endianness: 0x{value:04x}")


# 'little' or 'big', suitable for int.from_bytes
NATIVE_ORDER = _probe_byte_order()
