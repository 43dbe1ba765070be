"""Synthetic UPDATE.APP containers for tools and tests."""
from __future__ import annotations

import struct
from typing import Iterable

from updata_core.crc import ChecksumEngine
from updata_core.protocol import HEADER_FMT, MAGIC_CHUNK, MIN_HEADER_LEN, PREAMBLE_LEN

DEFAULT_BLOCK_SIZE = 4096


def _fixed(text: str | bytes, width: int) -> bytes:
    raw = text.encode("utf-8") if isinstance(text, str) else bytes(text)
    if len(raw) > width:
        raise ValueError(f"{raw!r} does not fit in {width} bytes")
    return raw.ljust(width, b"\x00")


def pack_header(
    filename: str | bytes,
    payload_size: int,
    checksum_field_size: int = 0,
    block_size: int = DEFAULT_BLOCK_SIZE,
    hardware_id: int = 0,
    sequence: int = 0,
    date: str = "2026.01.01",
    time: str = "00.00.00",
    header_checksum: int = 0,
    unknown_field: int = 1,
    header_len: int | None = None,
) -> bytes:
    """Pack the 98 fixed header bytes. ``header_len`` overrides the computed length."""
    if header_len is None:
        header_len = MIN_HEADER_LEN + checksum_field_size
    return struct.pack(
        HEADER_FMT,
        MAGIC_CHUNK,
        header_len,
        unknown_field,
        hardware_id.to_bytes(8, "little"),
        sequence.to_bytes(4, "little"),
        payload_size,
        _fixed(date, 16),
        _fixed(time, 16),
        _fixed(filename, 32),
        header_checksum,
        block_size,
    )


def pack_chunk(
    filename: str | bytes,
    payload: bytes,
    block_size: int = DEFAULT_BLOCK_SIZE,
    checksum: bytes | None = None,
    **header_fields,
) -> bytes:
    """Header + stored checksum + payload.

    The stored checksum defaults to the block CRC of ``payload``.
    """
    if checksum is None:
        checksum = ChecksumEngine(block_size).compute(payload)
    header = pack_header(
        filename,
        len(payload),
        checksum_field_size=len(checksum),
        block_size=block_size,
        **header_fields,
    )
    return header + checksum + payload


def build_container(chunks: Iterable[bytes], gaps: Iterable[bytes] = ()) -> bytes:
    """Preamble followed by ``chunks``; ``gaps[i]`` is inserted after ``chunks[i]``."""
    out = bytearray(PREAMBLE_LEN)
    gap_list = list(gaps)
    for i, chunk in enumerate(chunks):
        out += chunk
        if i < len(gap_list):
            out += gap_list[i]
    return bytes(out)
