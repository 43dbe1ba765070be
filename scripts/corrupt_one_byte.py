import sys
from pathlib import Path

from updata_extract.scanner import scan_bytes

def main():
    if len(sys.argv) not in (2, 3):
        print("Usage: corrupt_one_byte.py <UPDATE.APP> [chunk_index]")
        raise SystemExit(2)

    p = Path(sys.argv[1])
    index = int(sys.argv[2]) if len(sys.argv) == 3 else 0
    b = bytearray(p.read_bytes())
    records = scan_bytes(bytes(b))
    if index >= len(records) or records[index].header.payload_size == 0:
        print("No payload byte to corrupt at that chunk index.")
        raise SystemExit(2)

    # Flip the first payload byte: the header still decodes, the stored checksum no longer matches.
    idx = records[index].payload_start
    b[idx] ^= 0x01
    p.write_bytes(bytes(b))
    print(f"Corrupted 1 byte at offset {idx} ({records[index].filename}) in {p}")

if __name__ == "__main__":
    main()
