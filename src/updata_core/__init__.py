"""UPDATE.APP core - layout, header decoding and block checksums."""
from .crc import ChecksumEngine
from .errors import (
    AlreadyExists,
    ChunkIOError,
    FormatError,
    InvalidPreamble,
    ShortRead,
    TextDecodeError,
    UpdataError,
)
from .header import ChunkHeader

__all__ = [
    "ChecksumEngine",
    "ChunkHeader",
    "UpdataError",
    "FormatError",
    "InvalidPreamble",
    "ChunkIOError",
    "ShortRead",
    "AlreadyExists",
    "TextDecodeError",
]
