"""
Canonical field types and the C type resolver.

Every field in a format description resolves to one of:
- Scalar:          1, 2, 4 or 8 byte integer, signed or unsigned
- FixedArray:      N scalars, e.g. 'u8[8]' or 'char[40]'
- DynamicArrayRef: a __data_loc field, a 32 bit (offset:16, count:16)
                   descriptor pointing at data after the fixed record

Resolution only looks at (size, signed, ctyp). The C type name itself
matters only for the array suffix and for the element type of __data_loc
arrays, where the name is the only width information available.

Native alignment is taken from the host's struct module, which follows the
platform C ABI. Element widths for named C types ('long', 'short', ...) are
not introspected; they come from an explicit ABI profile table.
"""

import struct
from dataclasses import dataclass
from typing import Dict, Tuple, Union

from ..core.errors import ErrorCode, ParseError, LayoutError, ConfigError


# Out-of-line array marker on the type spelling
DATA_LOC_PREFIX = '__data_loc '

# Width in bytes of the packed __data_loc descriptor
DATA_LOC_SIZE = 4

# (byte width, signed) -> native struct format character
_STRUCT_CODES = {
    (1, True): 'b',
    (2, True): 'h',
    (4, True): 'i',
    (8, True): 'q',

    (1, False): 'B',
    (2, False): 'H',
    (4, False): 'I',
    (8, False): 'Q',
}


def _native_alignment(code: str) -> int:
    # A leading byte forces the item to its aligned position.
    return struct.calcsize('@B' + code) - struct.calcsize('@' + code)


_ALIGNMENT = {code: _native_alignment(code) for code in _STRUCT_CODES.values()}


@dataclass(frozen=True)
class Scalar:
    """Fixed width integer."""
    width: int
    signed: bool

    @property
    def code(self) -> str:
        """Native struct format character."""
        return _STRUCT_CODES[(self.width, self.signed)]

    @property
    def size(self) -> int:
        return self.width

    @property
    def alignment(self) -> int:
        return _ALIGNMENT[self.code]

    def __str__(self) -> str:
        return f"{'s' if self.signed else 'u'}{self.width * 8}"


@dataclass(frozen=True)
class FixedArray:
    """Fixed count of scalars stored inline."""
    element: Scalar
    count: int

    @property
    def code(self) -> str:
        return f"{self.count}{self.element.code}"

    @property
    def size(self) -> int:
        return self.element.width * self.count

    @property
    def alignment(self) -> int:
        return self.element.alignment

    def __str__(self) -> str:
        return f"{self.element}[{self.count}]"


@dataclass(frozen=True)
class DynamicArrayRef:
    """Variable length array referenced by a __data_loc descriptor."""
    element: Scalar

    @property
    def code(self) -> str:
        return 'I'

    @property
    def size(self) -> int:
        return DATA_LOC_SIZE

    @property
    def alignment(self) -> int:
        return _ALIGNMENT['I']

    def __str__(self) -> str:
        return f"{self.element}[]"


CanonicalType = Union[Scalar, FixedArray, DynamicArrayRef]


def scalar(width: int, signed: bool) -> Scalar:
    """Look up a scalar in the fixed width table."""
    if (width, signed) not in _STRUCT_CODES:
        raise ParseError(
            ErrorCode.E1007_UNSUPPORTED_WIDTH,
            {'width': width, 'signed': signed},
        )
    return Scalar(width, signed)


def raw_bytes(size: int) -> FixedArray:
    """Byte array storage used for fields that cannot be aligned."""
    return FixedArray(Scalar(1, False), size)


def is_dynamic(ctyp: str) -> bool:
    return ctyp.startswith(DATA_LOC_PREFIX)


def array_size(ctyp: str) -> Tuple[int, bool]:
    """
    Return the element count and dynamic flag for a type spelling.

    'u32' -> (1, False), 'u8[8]' -> (8, False),
    '__data_loc char[]' -> (1, True). An empty '[]' without the
    __data_loc prefix is invalid.
    """
    if not ctyp.endswith(']'):
        return 1, False

    body = ctyp[:-1]
    digits = body.rstrip('0123456789')
    if not digits.endswith('['):
        raise ParseError(ErrorCode.E1005_INVALID_DATA_TYPE, {'ctyp': ctyp})

    count = body[len(digits):]
    if count == '':
        if not is_dynamic(ctyp):
            raise ParseError(ErrorCode.E1005_INVALID_DATA_TYPE, {'ctyp': ctyp})
        return 1, True
    return int(count), False


def resolve_type(size: int, signed: bool, ctyp: str, offset: int,
                 aligned: bool = True) -> Tuple[CanonicalType, bool]:
    """
    Resolve a field to its canonical type.

    If aligned is true and the resolved scalar cannot sit at offset under
    native alignment, a byte array of the same size is returned instead and
    fallback is True.

    Args:
        size: Declared byte size of the whole field
        signed: Declared signedness
        ctyp: Type spelling, including any array suffix
        offset: Declared byte offset
        aligned: Whether to check alignment against offset

    Returns:
        Tuple of (type, fallback)

    Raises:
        ParseError: For bad array syntax, sizes or widths
    """
    n, dynamic = array_size(ctyp)
    if n == 0 or size % n != 0:
        raise ParseError(
            ErrorCode.E1006_INVALID_ARRAY_SIZE,
            {'size': size, 'elements': n},
        )

    typ = scalar(size // n, signed and not dynamic)
    if aligned and offset % typ.alignment != 0:
        return raw_bytes(size), True
    if n > 1:
        return FixedArray(typ, n), False
    return typ, False


@dataclass(frozen=True)
class AbiProfile:
    """Byte widths of the named C integer types on one target ABI."""
    name: str
    char_size: int = 1
    short_size: int = 2
    int_size: int = 4
    long_size: int = 8
    long_long_size: int = 8


ABI_PROFILES: Dict[str, AbiProfile] = {
    # x86_64, arm64, riscv64, ppc64, s390x
    'lp64': AbiProfile('lp64', long_size=8),
    # i386, arm, riscv32
    'ilp32': AbiProfile('ilp32', long_size=4),
}

DEFAULT_ABI = 'lp64'


def dynamic_element_types(abi: AbiProfile) -> Dict[str, Scalar]:
    """Element types of __data_loc arrays, keyed by spelling without the marker."""
    table = {
        # char is special cased to unsigned bytes
        'char[]': Scalar(abi.char_size, False),
        'schar[]': Scalar(abi.char_size, True),
        'signed char[]': Scalar(abi.char_size, True),
        'uchar[]': Scalar(abi.char_size, False),
        'unsigned char[]': Scalar(abi.char_size, False),

        'short[]': Scalar(abi.short_size, True),
        'signed short[]': Scalar(abi.short_size, True),
        'unsigned short[]': Scalar(abi.short_size, False),

        'int[]': Scalar(abi.int_size, True),
        'signed int[]': Scalar(abi.int_size, True),
        'unsigned int[]': Scalar(abi.int_size, False),

        'long[]': Scalar(abi.long_size, True),
        'signed long[]': Scalar(abi.long_size, True),
        'unsigned long[]': Scalar(abi.long_size, False),

        'long long[]': Scalar(abi.long_long_size, True),
        'signed long long[]': Scalar(abi.long_long_size, True),
        'unsigned long long[]': Scalar(abi.long_long_size, False),
    }
    for width in (1, 2, 4, 8):
        table[f's{width * 8}[]'] = Scalar(width, True)
        table[f'u{width * 8}[]'] = Scalar(width, False)
    return table


_DYNAMIC_TABLES = {
    name: dynamic_element_types(profile) for name, profile in ABI_PROFILES.items()
}


def get_abi(name: str) -> AbiProfile:
    """Look up an ABI profile by name."""
    try:
        return ABI_PROFILES[name]
    except KeyError:
        raise ConfigError(
            ErrorCode.E4002_UNKNOWN_ABI,
            {'abi': name, 'known': sorted(ABI_PROFILES)},
        ) from None


def dynamic_element_type(ctyp: str, abi: str = DEFAULT_ABI) -> Scalar:
    """
    Resolve the element type of a __data_loc array.

    Args:
        ctyp: Spelling with or without the '__data_loc ' marker, e.g.
            '__data_loc char[]' or 'u32[]'
        abi: ABI profile name used for named C types

    Raises:
        LayoutError: If the element spelling is not supported
    """
    if is_dynamic(ctyp):
        ctyp = ctyp[len(DATA_LOC_PREFIX):]
    table = _DYNAMIC_TABLES[get_abi(abi).name]
    elem = table.get(ctyp.lstrip('_'))
    if elem is None:
        raise LayoutError(
            ErrorCode.E2005_UNSUPPORTED_DYNAMIC_ELEMENT,
            {'ctyp': ctyp},
        )
    return elem
