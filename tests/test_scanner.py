import io

import pytest

from updata_core.builder import build_container, pack_chunk
from updata_core.errors import InvalidPreamble
from updata_core.protocol import MIN_HEADER_LEN, PREAMBLE_LEN
from updata_extract.scanner import ContainerScanner, scan_bytes, scan_container


def test_round_trip_offsets_and_names(payloads, container_bytes):
    records = scan_bytes(container_bytes)

    assert [r.filename for r in records] == list(payloads)
    expected_offset = PREAMBLE_LEN
    for record, data in zip(records, payloads.values()):
        assert record.offset == expected_offset
        assert record.padding == 0
        assert record.trailing == 0
        assert record.header.payload_size == len(data)
        expected_offset = record.end
    assert records[-1].end == len(container_bytes)


def test_scan_container_from_file(container_file, payloads):
    records = scan_container(container_file)
    assert len(records) == len(payloads)


def test_padding_attributed_to_following_chunk():
    first = pack_chunk("A", b"first payload", block_size=16)
    second = pack_chunk("B", b"second payload", block_size=16)
    data = build_container([first, second], gaps=[b"\x01\x02\x03\x04\x05"])

    records = scan_bytes(data)

    assert len(records) == 2
    assert records[0].padding == 0
    assert records[0].trailing == 5
    assert records[1].padding == 5
    assert records[1].offset == PREAMBLE_LEN + len(first) + 5


def test_trailing_bytes_belong_to_last_chunk():
    chunk = pack_chunk("A", b"x" * 20, block_size=16)
    data = build_container([chunk], gaps=[b"\x00" * 3])

    (record,) = scan_bytes(data)

    assert record.trailing == 3
    assert record.trailing == len(data) - (record.offset + record.header.payload_size + record.header.header_size)


def test_zero_chunks():
    assert scan_bytes(bytes(PREAMBLE_LEN)) == ()
    assert scan_bytes(bytes(PREAMBLE_LEN + 500)) == ()


def test_invalid_preamble():
    data = bytearray(build_container([pack_chunk("A", b"abc")]))
    data[10] = 0x01
    with pytest.raises(InvalidPreamble):
        scan_bytes(bytes(data))


def test_container_shorter_than_preamble():
    with pytest.raises(InvalidPreamble):
        scan_bytes(bytes(PREAMBLE_LEN - 1))


def test_minimal_chunk_runs_to_end():
    chunk = pack_chunk("a", bytes([1, 2, 3, 4]), block_size=16, checksum=b"")
    data = build_container([chunk])

    (record,) = scan_bytes(data)

    assert record.header.header_size == MIN_HEADER_LEN
    assert record.header.checksum_field_size == 0
    assert record.filename == "a"
    assert record.trailing == 0


def test_rejected_header_is_skipped_with_warning():
    first = pack_chunk("A", b"payload-a", block_size=16)
    second = pack_chunk("B", b"payload-b", block_size=16)
    bogus = b"\x55\xaa\x5a\xa5" + b"\x01\x00\x00\x00"  # header length 1
    data = build_container([first, second], gaps=[bogus])

    scanner = ContainerScanner(io.BytesIO(data))
    scanner.validate()
    with pytest.warns(UserWarning, match="Rejected chunk header"):
        records = scanner.scan()

    assert [r.filename for r in records] == ["A", "B"]
    assert records[1].padding == len(bogus)
    stats = scanner.get_scan_stats()
    assert stats["rejected_headers"] == 1
    assert stats["resyncs"] == 1
    assert stats["garbage_bytes"] == len(bogus)
    assert stats["records"] == 2


def test_truncated_chunk_is_flagged():
    chunk = pack_chunk("BIG", b"z" * 400, block_size=64)
    data = build_container([chunk])[:-100]

    with pytest.warns(UserWarning, match="container ends"):
        (record,) = scan_bytes(data)

    assert record.truncated
    assert record.trailing == 0


def test_padding_before_first_chunk():
    chunk = pack_chunk("A", b"abc", block_size=16)
    data = bytes(PREAMBLE_LEN) + b"\x00\x00" + chunk

    (record,) = scan_bytes(data)

    assert record.offset == PREAMBLE_LEN + 2
    assert record.padding == 2
