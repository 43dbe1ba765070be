from __future__ import annotations

import io
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO
from warnings import warn

from updata_core.errors import ChunkIOError, FormatError, InvalidPreamble, ShortRead
from updata_core.header import ChunkHeader
from updata_core.protocol import (
    FILE_CHECKSUM_OFFSET,
    MAGIC_CHUNK,
    MIN_DATA_LEN,
    PREAMBLE_LEN,
    RESYNC_CHUNK_SIZE,
)


@dataclass(frozen=True)
class ChunkRecord:
    """One located chunk.

    ``padding`` is the number of unrecognized bytes right before the chunk (for the
    first chunk, between the preamble and the header). ``trailing`` is the number of
    bytes after the payload up to the next header or end-of-container.
    """

    header: ChunkHeader
    offset: int
    padding: int = 0
    trailing: int = 0
    truncated: bool = False

    @property
    def filename(self) -> str:
        return self.header.filename_lossy()

    @property
    def checksum_start(self) -> int:
        return self.offset + FILE_CHECKSUM_OFFSET

    @property
    def payload_start(self) -> int:
        return self.offset + self.header.header_size

    @property
    def end(self) -> int:
        return self.offset + self.header.payload_offset


class ContainerScanner:
    """Locates chunk headers in an UPDATE.APP byte stream.

    - The container is checked for its all-zero preamble.
    - Headers are tried at the cursor; a valid one moves the cursor past its chunk.
    - Anything else is skipped up to the next magic number and counted as padding.
    """

    def __init__(self, source: BinaryIO):
        self.f = source
        try:
            self.size = source.seek(0, io.SEEK_END)
        except OSError as e:
            raise ChunkIOError.from_os_error(e) from e
        self.scan_stats = {
            "records": 0,
            "resyncs": 0,
            "garbage_bytes": 0,
            "rejected_headers": 0,
        }

    def get_scan_stats(self) -> dict:
        return dict(self.scan_stats)

    def validate(self) -> None:
        """The container must start with PREAMBLE_LEN zero bytes."""
        try:
            self.f.seek(0)
            head = self.f.read(PREAMBLE_LEN)
        except OSError as e:
            raise ChunkIOError.from_os_error(e) from e
        if len(head) < PREAMBLE_LEN or head.count(0) != PREAMBLE_LEN:
            raise InvalidPreamble("File doesn't contain a valid data header")

    def _resync_to_magic(self, start_pos: int) -> int:
        """Scan forward to find the next magic sequence.

        Returns the absolute offset where magic starts, or -1 if the end of the
        container is reached first.
        """
        # Keep a small overlap so magic split across reads can still be found.
        overlap = len(MAGIC_CHUNK) - 1
        prev_tail = b""

        self.f.seek(start_pos)
        while True:
            chunk = self.f.read(RESYNC_CHUNK_SIZE)
            if not chunk:
                return -1

            hay = prev_tail + chunk
            pos = hay.find(MAGIC_CHUNK)
            if pos != -1:
                start_of_hay = self.f.tell() - len(hay)
                return start_of_hay + pos

            prev_tail = hay[-overlap:]

    def _walk(self) -> list[tuple[ChunkHeader, int]]:
        found: list[tuple[ChunkHeader, int]] = []
        cursor = PREAMBLE_LEN

        while cursor + MIN_DATA_LEN <= self.size:
            self.f.seek(cursor)
            window = self.f.read(MIN_DATA_LEN)
            if len(window) < MIN_DATA_LEN:
                raise ShortRead(f"Read {len(window)} of {MIN_DATA_LEN} bytes at offset {cursor}")

            try:
                header = ChunkHeader.decode(window)
            except FormatError as e:
                if window[:4] == MAGIC_CHUNK:
                    self.scan_stats["rejected_headers"] += 1
                    warn(f"Rejected chunk header at offset {cursor}: {e}")

                next_off = self._resync_to_magic(cursor + 1)
                if next_off == -1:
                    break

                self.scan_stats["garbage_bytes"] += next_off - cursor
                self.scan_stats["resyncs"] += 1
                cursor = next_off
                continue

            found.append((header, cursor))
            self.scan_stats["records"] += 1
            cursor += header.payload_offset

        return found

    def scan(self) -> tuple[ChunkRecord, ...]:
        """Walk the container and return its chunks in order."""
        try:
            found = self._walk()
        except OSError as e:
            raise ChunkIOError.from_os_error(e) from e

        records: list[ChunkRecord] = []
        prev_end = PREAMBLE_LEN
        for i, (header, offset) in enumerate(found):
            end = offset + header.payload_offset
            next_start = found[i + 1][1] if i + 1 < len(found) else self.size
            truncated = end > self.size
            if truncated:
                warn(
                    f"Chunk {header.filename_lossy()!r} at offset {offset} declares "
                    f"{header.payload_offset} bytes, container ends at {self.size}"
                )
            records.append(
                ChunkRecord(
                    header=header,
                    offset=offset,
                    padding=offset - prev_end,
                    trailing=max(0, next_start - end),
                    truncated=truncated,
                )
            )
            prev_end = end

        return tuple(records)


def scan_container(path: Path) -> tuple[ChunkRecord, ...]:
    try:
        f = open(path, "rb")
    except OSError as e:
        raise ChunkIOError.from_os_error(e) from e
    with f:
        scanner = ContainerScanner(f)
        scanner.validate()
        return scanner.scan()


def scan_bytes(data: bytes) -> tuple[ChunkRecord, ...]:
    scanner = ContainerScanner(io.BytesIO(data))
    scanner.validate()
    return scanner.scan()
