"""Decoder for the fixed-layout chunk header."""
from __future__ import annotations

import struct
from dataclasses import dataclass

from updata_core.errors import FormatError, TextDecodeError
from updata_core.protocol import HEADER_FMT, MAGIC_CHUNK, MIN_HEADER_LEN


def strip_trailing_nulls(buffer: bytes) -> bytes:
    """Drop NUL bytes at the end of ``buffer`` only; inner NULs are kept."""
    return buffer.rstrip(b"\x00")


@dataclass(frozen=True)
class ChunkHeader:
    header_len: int
    unknown_field: bytes
    hardware_id_raw: bytes
    sequence_raw: bytes
    file_size: int
    file_date: bytes
    file_time: bytes
    file_type: bytes
    header_checksum: int
    blocksize: int

    @classmethod
    def decode(cls, data: bytes) -> "ChunkHeader":
        """Decode a header from the first 98 bytes of ``data``.

        Raises FormatError when there is not enough data, when the magic number is
        missing or when the declared header length is below the minimum.
        """
        if len(data) < MIN_HEADER_LEN:
            raise FormatError(f"Unable to parse: not enough data provided ({len(data)} bytes)")
        if bytes(data[:4]) != MAGIC_CHUNK:
            raise FormatError("Unable to parse: data doesn't start with magic number")

        (
            _magic,
            header_len,
            unknown_field,
            hardware_id,
            sequence,
            file_size,
            file_date,
            file_time,
            file_type,
            header_checksum,
            blocksize,
        ) = struct.unpack_from(HEADER_FMT, data)

        if header_len < MIN_HEADER_LEN:
            raise FormatError(f"Unable to parse: header is too small ({header_len} bytes)")

        return cls(
            header_len=header_len,
            unknown_field=struct.pack("<I", unknown_field),
            hardware_id_raw=hardware_id,
            sequence_raw=sequence,
            file_size=file_size,
            file_date=file_date,
            file_time=file_time,
            file_type=file_type,
            header_checksum=header_checksum,
            blocksize=blocksize,
        )

    def filename(self) -> str:
        try:
            return strip_trailing_nulls(self.file_type).decode("utf-8")
        except UnicodeDecodeError as e:
            raise TextDecodeError(f"conversion error: {e}") from e

    def filename_lossy(self) -> str:
        return strip_trailing_nulls(self.file_type).decode("utf-8", errors="replace")

    @property
    def header_size(self) -> int:
        return self.header_len

    @property
    def payload_size(self) -> int:
        return self.file_size

    @property
    def payload_offset(self) -> int:
        """Full size in bytes of the chunk: header, stored checksum and payload."""
        return self.payload_size + self.header_size

    @property
    def block_size(self) -> int:
        return self.blocksize

    @property
    def checksum_field_size(self) -> int:
        return self.header_len - MIN_HEADER_LEN

    @property
    def hardware_id(self) -> int:
        return int.from_bytes(self.hardware_id_raw, "little")

    @property
    def sequence(self) -> int:
        return int.from_bytes(self.sequence_raw, "little")

    @property
    def date(self) -> str:
        return strip_trailing_nulls(self.file_date).decode("utf-8", errors="replace")

    @property
    def time(self) -> str:
        return strip_trailing_nulls(self.file_time).decode("utf-8", errors="replace")

    def as_row(self) -> dict:
        """Every header field, raw byte fields rendered as hex, for tabular display."""
        return {
            "Header size (bytes)": self.header_len,
            "Unknown field": self.unknown_field.hex(" "),
            "Hardware ID": self.hardware_id_raw.hex(" "),
            "File sequence": self.sequence_raw.hex(" "),
            "File size (bytes)": self.file_size,
            "File date": self.date,
            "File time": self.time,
            "File name": self.filename_lossy(),
            "Header checksum": f"0x{self.header_checksum:x}",
            "Block size (bytes)": self.blocksize,
            "File checksum size (bytes)": self.checksum_field_size,
        }
