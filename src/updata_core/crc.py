"""Block CRC16 as used by the UPDATE.APP stored file checksums.

Follows HuaweiUpdateLibrary's UpdateCrc16: reversed CCITT polynomial, one
little-endian digest per block, running value reset between blocks.
"""
from __future__ import annotations

from typing import BinaryIO

from updata_core.errors import ChunkIOError, ShortRead
from updata_core.protocol import CRC_INITIAL_SUM, CRC_POLYNOMIAL, CRC_XOR_VALUE


def build_table(polynomial: int = CRC_POLYNOMIAL) -> tuple[int, ...]:
    table = []
    for i in range(256):
        value = 0
        temp = i
        for _ in range(8):
            if (value ^ temp) & 0x0001:
                value = (value >> 1) ^ polynomial
            else:
                value >>= 1
            temp >>= 1
        table.append(value)
    return tuple(table)


# Derived once, read-only, shared by every engine.
CRC_TABLE = build_table()


class ChecksumEngine:
    """Per-block CRC16.

    ``compute`` and ``compute_from_stream`` return the concatenation of one
    2-byte digest per ``block_size`` bytes of input, the last block possibly short.
    ``update``/``digest`` expose the same machinery one block at a time.
    """

    def __init__(self, block_size: int, table: tuple[int, ...] = CRC_TABLE):
        if block_size < 1:
            raise ValueError(f"block size must be positive, got {block_size}")
        self.block_size = int(block_size)
        self.table = table
        self._sum = CRC_INITIAL_SUM

    @property
    def state(self) -> int:
        return self._sum

    def update(self, block: bytes, bit_length: int | None = None) -> None:
        """Fold ``bit_length`` bits of ``block`` (default: all of it) into the running value.

        Whole bytes go through the table. A remainder of fewer than 8 bits is
        processed bit by bit with zero input bits.
        """
        size = len(block) * 8 if bit_length is None else bit_length
        if not 0 <= size <= len(block) * 8:
            raise ValueError(f"bit length must be within 0..{len(block) * 8}, got {size}")
        table = self.table
        running = self._sum

        i = 0
        while size >= 8:
            running = table[(block[i] ^ running) & 0xFF] ^ (running >> 8)
            size -= 8
            i += 1

        while size > 0:
            size -= 1
            flag = (running & 1) == 0
            running >>= 1
            if flag:
                running ^= CRC_POLYNOMIAL

        self._sum = running

    def digest(self) -> bytes:
        """Emit the current block digest and reinitialize for the next block."""
        result = self._sum ^ CRC_XOR_VALUE
        self._sum = CRC_INITIAL_SUM
        return result.to_bytes(2, "little")

    def compute(self, data: bytes) -> bytes:
        view = memoryview(data)
        out = bytearray()
        for offset in range(0, len(view), self.block_size):
            self.update(view[offset:offset + self.block_size])
            out += self.digest()
        return bytes(out)

    def compute_range(self, source: BinaryIO, offset: int, size: int) -> bytes:
        """Checksum ``size`` bytes of ``source`` starting at ``offset``."""
        out = bytearray()
        try:
            source.seek(offset)
            done = 0
            while done < size:
                block = source.read(min(size - done, self.block_size))
                if not block:
                    raise ShortRead(f"Read 0 bytes at offset {offset + done} ({done}/{size} read)")
                self.update(block)
                out += self.digest()
                done += len(block)
        except OSError as e:
            raise ChunkIOError.from_os_error(e) from e
        finally:
            self._sum = CRC_INITIAL_SUM
        return bytes(out)

    def compute_from_stream(self, source: BinaryIO) -> bytes:
        """Checksum a whole seekable stream, its size found by seeking to the end."""
        try:
            size = source.seek(0, 2)
        except OSError as e:
            raise ChunkIOError.from_os_error(e) from e
        return self.compute_range(source, 0, size)
