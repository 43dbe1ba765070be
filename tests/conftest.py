from pathlib import Path

import pytest

from updata_core.builder import build_container, pack_chunk


def reference_crc(data: bytes) -> int:
    """Bit-serial reflected CRC16 (poly 0x8408, init/xorout 0xFFFF)."""
    crc = 0xFFFF
    for byte in data:
        crc ^= byte
        for _ in range(8):
            crc = (crc >> 1) ^ 0x8408 if crc & 1 else crc >> 1
    return crc ^ 0xFFFF


@pytest.fixture
def payloads() -> dict[str, bytes]:
    return {
        "BOOT": bytes(range(256)) * 3,
        "RECOVERY": b"recovery-image" * 40,
        "ERECOVERY_RAMDISK": b"\x00\x01" * 700,
    }


@pytest.fixture
def container_bytes(payloads) -> bytes:
    chunks = [pack_chunk(name, data, block_size=512) for name, data in payloads.items()]
    return build_container(chunks)


@pytest.fixture
def container_file(tmp_path: Path, container_bytes: bytes) -> Path:
    p = tmp_path / "UPDATE.APP"
    p.write_bytes(container_bytes)
    return p
