"""
Parser for the tracing subsystem's per-event format description.

The text looks like:

    name: do_sys_open
    ID: 656
    format:
    	field:unsigned short common_type;	offset:0;	size:2;	signed:0;
    	field:int common_pid;	offset:4;	size:4;	signed:1;

    	field:__data_loc char[] filename;	offset:8;	size:4;	signed:1;

    print fmt: "..."

Only three line shapes carry information:
- "name: <text>"     probe name (last occurrence wins)
- "ID: <decimal>"    16-bit format identifier
- "\tfield:..."      one field, four tab-separated tokens

Everything else, including the print fmt line, is ignored.
"""

import io
from dataclasses import dataclass, field
from typing import Iterable, List, Tuple, Union

from ..core.errors import ErrorCode, ParseError


FIELD_PREFIX = '\tfield:'
NAME_PREFIX = 'name: '
ID_PREFIX = 'ID: '

# Format IDs are a u16 in the record's common_type field
MAX_FORMAT_ID = 0xFFFF


@dataclass(frozen=True)
class FieldDescriptor:
    """
    One declared field.

    Attributes:
        name: C field name, without any array suffix
        ctyp: C type spelling, with the array suffix moved onto it
        offset: Byte offset from the start of the record
        size: Total byte size, including array multiplicity
        signed: Signedness as declared by the kernel
    """
    name: str
    ctyp: str
    offset: int
    size: int
    signed: bool


@dataclass
class ParsedSchema:
    """Ordered field descriptors plus the probe name and format id."""
    name: str = ''
    id: int = 0
    fields: List[FieldDescriptor] = field(default_factory=list)


def parse_format(source: Union[str, Iterable[str]]) -> ParsedSchema:
    """
    Parse a format description into a ParsedSchema.

    Args:
        source: Format text, or any iterable of lines (an open text file)

    Returns:
        ParsedSchema with fields in declaration order

    Raises:
        ParseError: On a malformed field line, bad numeric token or bad ID
    """
    if isinstance(source, str):
        source = io.StringIO(source)

    schema = ParsedSchema()
    for line in source:
        line = line.rstrip('\r\n')

        if line.startswith(FIELD_PREFIX):
            schema.fields.append(parse_field_line(line))
        elif line.startswith(NAME_PREFIX):
            schema.name = line[len(NAME_PREFIX):]
        elif line.startswith(ID_PREFIX):
            schema.id = _parse_id(line[len(ID_PREFIX):])

    return schema


def parse_field_line(line: str) -> FieldDescriptor:
    """Parse one '\\tfield:...' line."""
    tokens = line[1:].split('\t')
    if len(tokens) != 4:
        raise ParseError(ErrorCode.E1001_INVALID_FIELD_LINE, {'line': line})

    ctyp, name = split_field_name(tokens[0])
    offset = _parse_number(tokens[1], 'offset:')
    size = _parse_number(tokens[2], 'size:')
    signed = _parse_number(tokens[3], 'signed:')
    if signed not in (0, 1):
        raise ParseError(ErrorCode.E1003_INVALID_NUMBER, {'token': tokens[3]})

    return FieldDescriptor(
        name=name,
        ctyp=ctyp,
        offset=offset,
        size=size,
        signed=signed == 1,
    )


def split_field_name(token: str) -> Tuple[str, str]:
    """
    Split a 'field:<ctyp> <name>;' token into (ctyp, name).

    The split is at the last space. An array suffix on the name is moved
    onto the type, so 'u8 arg2[8]' gives ('u8[8]', 'arg2').
    """
    s = token
    if s.startswith('field:'):
        s = s[len('field:'):]
    if s.endswith(';'):
        s = s[:-1]

    i = s.rfind(' ')
    if i < 0:
        raise ParseError(ErrorCode.E1002_INVALID_FIELD_NAME, {'field': s})

    ctyp, name = s[:i], s[i + 1:]
    idx = name.find('[')
    if idx >= 0:
        ctyp += name[idx:]
        name = name[:idx]
    return ctyp, name


def _parse_number(token: str, prefix: str) -> int:
    s = token
    if s.startswith(prefix):
        s = s[len(prefix):]
    if s.endswith(';'):
        s = s[:-1]
    if not (s.isascii() and s.isdigit()):
        raise ParseError(ErrorCode.E1003_INVALID_NUMBER, {'token': token})
    return int(s)


def _parse_id(text: str) -> int:
    s = text.strip()
    if not (s.isascii() and s.isdigit()):
        raise ParseError(ErrorCode.E1004_INVALID_FORMAT_ID, {'id': text})
    n = int(s)
    if n > MAX_FORMAT_ID:
        raise ParseError(
            ErrorCode.E1004_INVALID_FORMAT_ID,
            {'id': n, 'reason': 'format id overflows uint16'},
        )
    return n
