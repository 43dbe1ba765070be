"""Copies chunk payloads and stored checksums out of a container.

Each chunk is handled with its own container handle so workers never share a
file position. Per-chunk failures are reported in the results; anything that
is not an UpdataError is fatal for the whole batch.
"""
from __future__ import annotations

import os
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import BinaryIO, Callable, Iterable, Sequence
from warnings import warn

from updata_core.crc import ChecksumEngine
from updata_core.errors import AlreadyExists, ChunkIOError, FormatError, ShortRead, UpdataError
from updata_core.protocol import CHECKSUM_SUFFIX, COPY_BUFFER_SIZE, PAYLOAD_SUFFIX
from updata_extract.scanner import ChunkRecord


class VerifyStatus(str, Enum):
    OK = "OK"
    MISMATCH = "MISMATCH"


@dataclass(frozen=True)
class ExtractionResult:
    record: ChunkRecord
    path: Path | None = None
    verify: VerifyStatus | None = None
    error: str | None = None

    @property
    def status(self) -> str:
        if self.error is not None:
            return "ERROR"
        if self.verify is not None:
            return self.verify.value
        return "DONE"


def copy_range(src: BinaryIO, dst: BinaryIO, offset: int, size: int) -> None:
    """Copy ``size`` bytes starting at ``offset``; EOF before that is a ShortRead."""
    src.seek(offset)
    copied = 0
    while copied < size:
        buf = src.read(min(COPY_BUFFER_SIZE, size - copied))
        if not buf:
            raise ShortRead(f"Read 0 bytes at offset {offset + copied} ({copied}/{size} copied)")
        dst.write(buf)
        copied += len(buf)


def read_range(src: BinaryIO, offset: int, size: int) -> bytes:
    src.seek(offset)
    data = src.read(size)
    if len(data) != size:
        raise ShortRead(f"Read {len(data)} of {size} bytes at offset {offset}")
    return data


class Extractor:
    def __init__(self, container_path: Path, records: Sequence[ChunkRecord], out_dir: Path | None = None):
        self.container_path = Path(container_path)
        self.records = tuple(records)
        self.out_dir = Path(out_dir) if out_dir is not None else Path.cwd()

    def _open_container(self) -> BinaryIO:
        try:
            return open(self.container_path, "rb")
        except OSError as e:
            raise ChunkIOError.from_os_error(e) from e

    def output_path(self, record: ChunkRecord, suffix: str) -> Path:
        """Target path for ``record``; names escaping out_dir are refused."""
        name = record.filename + suffix
        if "\x00" in name:
            raise FormatError(f"Refusing unsafe output name {name!r} (chunk at offset {record.offset})")
        base = self.out_dir.resolve()
        target = (base / name).resolve()
        if os.path.commonpath([base, target]) != str(base) or target == base:
            raise FormatError(f"Refusing unsafe output name {name!r} (chunk at offset {record.offset})")
        return target

    def _write_range(self, target: Path, offset: int, size: int) -> Path:
        try:
            out = open(target, "xb")
        except FileExistsError:
            raise AlreadyExists(f"File {target.name} already exists") from None
        except OSError as e:
            raise ChunkIOError.from_os_error(e) from e

        try:
            try:
                with out, self._open_container() as src:
                    copy_range(src, out, offset, size)
            except OSError as e:
                raise ChunkIOError.from_os_error(e) from e
        except UpdataError:
            # Created above with exclusive mode, so only our own partial output is removed.
            target.unlink(missing_ok=True)
            raise
        return target

    def extract_payload(self, record: ChunkRecord) -> Path:
        target = self.output_path(record, PAYLOAD_SUFFIX)
        return self._write_range(target, record.payload_start, record.header.payload_size)

    def extract_checksum_field(self, record: ChunkRecord) -> Path:
        target = self.output_path(record, CHECKSUM_SUFFIX)
        return self._write_range(target, record.checksum_start, record.header.checksum_field_size)

    def verify(self, record: ChunkRecord, payload_path: Path) -> VerifyStatus:
        """Recompute the block checksum of ``payload_path`` and compare it with the stored one."""
        header = record.header
        if header.block_size == 0:
            raise FormatError(f"Chunk {record.filename!r} declares a block size of 0")

        try:
            with self._open_container() as src:
                expected = read_range(src, record.checksum_start, header.checksum_field_size)
            with open(payload_path, "rb") as img:
                computed = ChecksumEngine(header.block_size).compute_from_stream(img)
        except OSError as e:
            raise ChunkIOError.from_os_error(e) from e

        if computed != expected:
            warn(f"Checksum mismatch for {payload_path.name}")
            return VerifyStatus.MISMATCH
        return VerifyStatus.OK

    def _extract_one(self, record: ChunkRecord, verify: bool) -> ExtractionResult:
        try:
            path = self.extract_payload(record)
            status = self.verify(record, path) if verify else None
        except UpdataError as e:
            return ExtractionResult(record, error=str(e))
        return ExtractionResult(record, path=path, verify=status)

    def _checksum_one(self, record: ChunkRecord) -> ExtractionResult:
        try:
            path = self.extract_checksum_field(record)
        except UpdataError as e:
            return ExtractionResult(record, error=str(e))
        return ExtractionResult(record, path=path)

    def _run(
        self,
        task: Callable[[ChunkRecord], ExtractionResult],
        jobs: int | None,
        on_result: Callable[[ExtractionResult], None] | None,
    ) -> list[ExtractionResult]:
        if jobs == 1:
            results = []
            for record in self.records:
                result = task(record)
                if on_result is not None:
                    on_result(result)
                results.append(result)
            return results

        with ThreadPoolExecutor(max_workers=jobs) as executor:
            futures = [executor.submit(task, record) for record in self.records]
        # Leaving the with-block joins every worker before any result is read.
        results = []
        for future in futures:
            result = future.result()
            if on_result is not None:
                on_result(result)
            results.append(result)
        return results

    def extract_all(
        self,
        verify: bool = True,
        jobs: int | None = None,
        on_result: Callable[[ExtractionResult], None] | None = None,
    ) -> list[ExtractionResult]:
        """Extract every payload (and verify it), results in container order."""
        return self._run(lambda record: self._extract_one(record, verify), jobs, on_result)

    def extract_checksums(
        self,
        jobs: int | None = None,
        on_result: Callable[[ExtractionResult], None] | None = None,
    ) -> list[ExtractionResult]:
        return self._run(self._checksum_one, jobs, on_result)


def failed(results: Iterable[ExtractionResult]) -> list[ExtractionResult]:
    return [r for r in results if r.error is not None]
