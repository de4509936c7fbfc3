"""
Tests for Phase 1: Format Parsing.

These tests verify:
1. The kernel's own example format parses field for field
2. Array suffixes move from the name onto the type
3. Malformed lines, numbers and ids are rejected with structured codes
"""

import pytest

from tracefmt.core.errors import ErrorCode, ParseError
from tracefmt.formats.parser import (
    FieldDescriptor,
    ParsedSchema,
    parse_format,
    parse_field_line,
    split_field_name,
)

from conftest import COMMON_FIELDS, make_format


class TestParseFormat:
    """Test whole-description parsing."""

    def test_kprobetrace_example(self, kprobetrace_format):
        """Kernel documentation example parses completely."""
        schema = parse_format(kprobetrace_format)

        assert schema.name == 'myprobe'
        assert schema.id == 780
        assert len(schema.fields) == 10
        assert schema.fields[0] == FieldDescriptor(
            name='common_type', ctyp='unsigned short', offset=0, size=2, signed=False,
        )
        assert schema.fields[3] == FieldDescriptor(
            name='common_pid', ctyp='int', offset=4, size=4, signed=True,
        )
        assert schema.fields[4] == FieldDescriptor(
            name='__probe_ip', ctyp='unsigned long', offset=12, size=4, signed=False,
        )
        assert schema.fields[-1].name == 'mode'

    def test_print_fmt_ignored(self, kprobetrace_format):
        """print fmt and its continuation line are not fields."""
        schema = parse_format(kprobetrace_format)
        assert all(not f.name.startswith('REC') for f in schema.fields)

    def test_accepts_lines(self, kprobetrace_format):
        """An iterable of lines parses the same as the text."""
        from_text = parse_format(kprobetrace_format)
        from_lines = parse_format(kprobetrace_format.splitlines(keepends=True))
        assert from_lines == from_text

    def test_accepts_open_file(self, tmp_path, vfs_read_format):
        """An open text file can be passed directly."""
        path = tmp_path / 'format'
        path.write_text(vfs_read_format)
        with open(path) as f:
            schema = parse_format(f)
        assert schema.name == 'vfs_read'
        assert len(schema.fields) == 7

    def test_crlf_line_endings(self, vfs_read_format):
        """Windows line endings do not leak into values."""
        schema = parse_format(vfs_read_format.replace('\n', '\r\n'))
        assert schema.name == 'vfs_read'
        assert schema.fields[-1].signed is False

    def test_array_suffix(self, vfs_read_format):
        """'u8 arg2[8]' is stored as name arg2, type u8[8]."""
        schema = parse_format(vfs_read_format)
        arg2 = schema.fields[-1]
        assert arg2.name == 'arg2'
        assert arg2.ctyp == 'u8[8]'
        assert arg2.size == 8

    def test_data_loc_type(self, do_sys_open_format):
        """__data_loc marker stays on the type spelling."""
        schema = parse_format(do_sys_open_format)
        filename = schema.fields[6]
        assert filename.name == 'filename'
        assert filename.ctyp == '__data_loc char[]'
        assert filename.signed is True

    def test_empty_input(self):
        """Empty text gives an empty schema."""
        assert parse_format('') == ParsedSchema()

    def test_last_name_wins(self):
        """Repeated name lines keep the last value."""
        schema = parse_format("name: first\nname: second\n")
        assert schema.name == 'second'

    def test_unrelated_lines_ignored(self):
        """Lines without a known prefix are skipped."""
        schema = parse_format("format:\n  field:int x;\nprint fmt: \"\"\n")
        assert schema.fields == []

    def test_field_order_preserved(self):
        """Fields come back in declaration order."""
        text = make_format('order', 1, COMMON_FIELDS + [('u32 z', 8, 4, 0), ('u32 a', 12, 4, 0)])
        names = [f.name for f in parse_format(text).fields]
        assert names == ['common_type', 'common_flags', 'common_preempt_count',
                         'common_pid', 'z', 'a']


class TestFormatId:
    """Test ID line handling."""

    def test_max_id(self):
        """65535 fits the u16 common_type."""
        assert parse_format("ID: 65535\n").id == 65535

    def test_id_overflow(self):
        """Ids above 65535 are rejected."""
        with pytest.raises(ParseError) as exc:
            parse_format("ID: 65536\n")
        assert exc.value.code == ErrorCode.E1004_INVALID_FORMAT_ID

    def test_id_not_numeric(self):
        """Non-numeric ids are rejected."""
        with pytest.raises(ParseError) as exc:
            parse_format("ID: abc\n")
        assert exc.value.code == ErrorCode.E1004_INVALID_FORMAT_ID


class TestFieldLine:
    """Test single field line parsing."""

    def test_valid_line(self):
        """Four tokens with the expected prefixes."""
        desc = parse_field_line("\tfield:u16 lport;\toffset:34;\tsize:2;\tsigned:0;")
        assert desc == FieldDescriptor('lport', 'u16', 34, 2, False)

    def test_multiword_type(self):
        """Type spellings may contain spaces; the name is the last word."""
        desc = parse_field_line(
            "\tfield:unsigned char common_preempt_count;\toffset:3;\tsize:1;\tsigned:0;"
        )
        assert desc.ctyp == 'unsigned char'
        assert desc.name == 'common_preempt_count'

    def test_wrong_token_count(self):
        """Missing signed token is a malformed line."""
        with pytest.raises(ParseError) as exc:
            parse_field_line("\tfield:u32 x;\toffset:0;\tsize:4;")
        assert exc.value.code == ErrorCode.E1001_INVALID_FIELD_LINE

    def test_missing_name(self):
        """A declaration without a space has no name."""
        with pytest.raises(ParseError) as exc:
            parse_field_line("\tfield:u32;\toffset:0;\tsize:4;\tsigned:0;")
        assert exc.value.code == ErrorCode.E1002_INVALID_FIELD_NAME

    def test_bad_offset(self):
        """Offsets must be decimal."""
        with pytest.raises(ParseError) as exc:
            parse_field_line("\tfield:u32 x;\toffset:0x10;\tsize:4;\tsigned:0;")
        assert exc.value.code == ErrorCode.E1003_INVALID_NUMBER

    def test_negative_size(self):
        """Sizes cannot be negative."""
        with pytest.raises(ParseError) as exc:
            parse_field_line("\tfield:u32 x;\toffset:0;\tsize:-4;\tsigned:0;")
        assert exc.value.code == ErrorCode.E1003_INVALID_NUMBER

    def test_signed_out_of_range(self):
        """signed must be 0 or 1."""
        with pytest.raises(ParseError) as exc:
            parse_field_line("\tfield:u32 x;\toffset:0;\tsize:4;\tsigned:2;")
        assert exc.value.code == ErrorCode.E1003_INVALID_NUMBER

    def test_error_is_reported_in_context(self):
        """Error message carries the offending line."""
        line = "\tfield:u32 x;\toffset:0;"
        with pytest.raises(ParseError) as exc:
            parse_field_line(line)
        assert exc.value.context == {'line': line}
        assert exc.value.to_dict()['code'] == 'E1001'


class TestSplitFieldName:
    """Test name and type splitting."""

    def test_plain(self):
        assert split_field_name('field:int common_pid;') == ('int', 'common_pid')

    def test_fixed_array(self):
        assert split_field_name('field:char cmd_name[40];') == ('char[40]', 'cmd_name')

    def test_pointer(self):
        assert split_field_name('field:void* workload;') == ('void*', 'workload')
