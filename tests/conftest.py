"""Pytest fixtures: event format descriptions and raw event records."""

import struct
import sys
from typing import List, Optional, Tuple

import pytest


COMMON_FIELDS = [
    ('unsigned short common_type', 0, 2, 0),
    ('unsigned char common_flags', 2, 1, 0),
    ('unsigned char common_preempt_count', 3, 1, 0),
    ('int common_pid', 4, 4, 1),
]


def make_format(name: str, format_id: int, fields: List[Tuple[str, int, int, int]],
                print_fmt: Optional[str] = None) -> str:
    """Render a format description the way the kernel prints it."""
    lines = [f"name: {name}", f"ID: {format_id}", "format:"]
    for i, (decl, offset, size, signed) in enumerate(fields):
        if i == len(COMMON_FIELDS) and fields[:i] == COMMON_FIELDS:
            lines.append("")
        lines.append(f"\tfield:{decl};\toffset:{offset};\tsize:{size};\tsigned:{signed};")
    if print_fmt is not None:
        lines.append("")
        lines.append(f"print fmt: {print_fmt}")
    return "\n".join(lines) + "\n"


# Verbatim from https://www.kernel.org/doc/html/latest/trace/kprobetrace.html
KPROBETRACE_FORMAT = (
    "name: myprobe\n"
    "ID: 780\n"
    "format:\n"
    "\tfield:unsigned short common_type;\toffset:0;\tsize:2;\tsigned:0;\n"
    "\tfield:unsigned char common_flags;\toffset:2;\tsize:1;\tsigned:0;\n"
    "\tfield:unsigned char common_preempt_count;\toffset:3;\tsize:1;\tsigned:0;\n"
    "\tfield:int common_pid;\toffset:4;\tsize:4;\tsigned:1;\n"
    "\n"
    "\tfield:unsigned long __probe_ip;\toffset:12;\tsize:4;\tsigned:0;\n"
    "\tfield:int __probe_nargs;\toffset:16;\tsize:4;\tsigned:1;\n"
    "\tfield:unsigned long dfd;\toffset:20;\tsize:4;\tsigned:0;\n"
    "\tfield:unsigned long filename;\toffset:24;\tsize:4;\tsigned:0;\n"
    "\tfield:unsigned long flags;\toffset:28;\tsize:4;\tsigned:0;\n"
    "\tfield:unsigned long mode;\toffset:32;\tsize:4;\tsigned:0;\n"
    "\n"
    "\n"
    "print fmt: \"(%lx) dfd=%lx filename=%lx flags=%lx mode=%lx\", REC->__probe_ip,\n"
    "REC->dfd, REC->filename, REC->flags, REC->mode\n"
)

DO_SYS_OPEN_FORMAT = make_format('do_sys_open', 7090, COMMON_FIELDS + [
    ('unsigned long __probe_ip', 8, 8, 0),
    ('u32 dfd', 16, 4, 0),
    ('__data_loc char[] filename', 20, 4, 1),
    ('u32 flags', 24, 4, 0),
    ('u32 mode', 28, 4, 0),
])

DO_SYS_OPEN_EVENT = bytes([
    0xb2, 0x1b, 0x00, 0x00, 0xc1, 0x7f, 0x00, 0x00,
    0xf0, 0xa1, 0x6d, 0xae, 0xff, 0xff, 0xff, 0xff,
    0x30, 0xa5, 0x6d, 0xae, 0x20, 0x00, 0x0a, 0x00,
    0x41, 0x82, 0x08, 0x00, 0xa4, 0x01, 0x00, 0x00,
    0x66, 0x69, 0x6c, 0x65, 0x2e, 0x74, 0x65, 0x78,
    0x74, 0x00, 0x00, 0x00,
])

IP_LOCAL_OUT_CALL_FORMAT = make_format('ip_local_out_call', 3965, COMMON_FIELDS + [
    ('unsigned long __probe_ip', 8, 8, 0),
    ('u64 sock', 16, 8, 0),
    ('u32 size', 24, 4, 0),
    ('u16 af', 28, 2, 0),
    ('u32 laddr', 30, 4, 0),
    ('u16 lport', 34, 2, 0),
    ('u32 raddr', 36, 4, 0),
    ('u16 rport', 40, 2, 0),
], print_fmt='"(%lx) sock=0x%Lx size=%u af=%u laddr=%u lport=%u raddr=%u rport=%u", '
             'REC->__probe_ip, REC->sock, REC->size, REC->af, REC->laddr, '
             'REC->lport, REC->raddr, REC->rport')

IP_LOCAL_OUT_CALL_EVENT = bytes([
    0x7d, 0x0f, 0x00, 0x00, 0xc7, 0x29, 0x00, 0x00,
    0x0f, 0x2b, 0xdb, 0xef, 0x00, 0x00, 0x00, 0x00,
    0x40, 0xe0, 0x73, 0x97, 0x7d, 0x9e, 0x00, 0x00,
    0x3c, 0x00, 0x00, 0x00, 0x02, 0x00, 0x7f, 0x00,
    0x00, 0x01, 0xde, 0xad, 0x7f, 0x00, 0x00, 0x01,
    0xbe, 0xef, 0x00, 0x00,
])

VFS_READ_FORMAT = make_format('vfs_read', 3842, COMMON_FIELDS + [
    ('unsigned long __probe_ip', 8, 8, 0),
    ('u64 arg1', 16, 8, 0),
    ('u8 arg2[8]', 24, 8, 0),
])

VFS_READ_EVENT = bytes([
    0x02, 0x0f, 0x00, 0x00, 0x73, 0x1e, 0x00, 0x00,
    0x0f, 0xeb, 0xd4, 0x3f, 0x00, 0x00, 0x00, 0x00,
    0xb0, 0x1d, 0xfa, 0xce, 0x11, 0xe5, 0x00, 0x00,
    0x52, 0x12, 0x1b, 0x81, 0xff, 0xff, 0xff, 0xff,
])

GVT_COMMAND_FORMAT = make_format('gvt_command', 2034, COMMON_FIELDS + [
    ('u8 vgpu_id', 8, 1, 0),
    ('u8 ring_id', 9, 1, 0),
    ('u32 ip_gma', 12, 4, 0),
    ('u32 buf_type', 16, 4, 0),
    ('u32 buf_addr_type', 20, 4, 0),
    ('u32 cmd_len', 24, 4, 0),
    ('void* workload', 32, 8, 0),
    ('__data_loc u32[] raw_cmd', 40, 4, 0),
    ('char cmd_name[40]', 44, 40, 1),
])

ATH10K_FORMAT = make_format('ath10k_htt_stats', 2059, COMMON_FIELDS + [
    ('__data_loc char[] device', 8, 4, 1),
    ('__data_loc char[] driver', 12, 4, 1),
    ('size_t buf_len', 16, 8, 0),
    ('__data_loc u8[] buf', 24, 4, 0),
])


def gvt_command_event() -> bytes:
    """84 byte fixed record followed by two u32 of dynamic data."""
    record = bytearray(84)
    # cmd_name
    record[44:84] = bytes(range(40))
    # raw_cmd: offset 84, two elements
    struct.pack_into('<I', record, 40, 84 | (2 << 16))
    return bytes(record) + struct.pack('<2I', 0x12345678, 0x9abcdef)


little_endian_only = pytest.mark.skipif(
    sys.byteorder != 'little',
    reason="event fixtures were captured on a little-endian machine",
)


@pytest.fixture
def kprobetrace_format() -> str:
    return KPROBETRACE_FORMAT


@pytest.fixture
def do_sys_open_format() -> str:
    return DO_SYS_OPEN_FORMAT


@pytest.fixture
def do_sys_open_event() -> bytes:
    return DO_SYS_OPEN_EVENT


@pytest.fixture
def ip_local_out_call_format() -> str:
    return IP_LOCAL_OUT_CALL_FORMAT


@pytest.fixture
def ip_local_out_call_event() -> bytes:
    return IP_LOCAL_OUT_CALL_EVENT


@pytest.fixture
def vfs_read_format() -> str:
    return VFS_READ_FORMAT


@pytest.fixture
def vfs_read_event() -> bytes:
    return VFS_READ_EVENT


@pytest.fixture
def gvt_command_format() -> str:
    return GVT_COMMAND_FORMAT


@pytest.fixture
def gvt_event() -> bytes:
    return gvt_command_event()


@pytest.fixture
def ath10k_format() -> str:
    return ATH10K_FORMAT
