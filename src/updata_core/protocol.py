"""UPDATE.APP container layout constants.

Single source of truth for the on-disk preamble, magic value and header layout.
Scanner, extractor, verifier and builder must remain synchronized with it.

Container:
    |---------------------------------------------------------|
    | 0x00 * 92 | chunk header + data | ... | chunk header + data |
    |---------------------------------------------------------|

Chunk header (little endian), 98 bytes followed by the stored file checksum:
    magic(4) | header_len(4) | unknown(4) | hardware_id(8) | sequence(4)
    | payload_size(4) | date(16) | time(16) | filename(32)
    | header_checksum(2) | block_size(4)
The filename is 32 bytes wide, not 16 + 16 blank bytes (ERECOVERY_RAMDISK needs
17), and the block size is 4 bytes wide, not 2 + 2 blank bytes. Both readings
decode identically when the blank fields are zero.
"""

# Chunk magic
MAGIC_CHUNK = b"\x55\xaa\x5a\xa5"

# Leading all-zero validation block
PREAMBLE_LEN = 92

# Header: [Magic(4) | HeaderLen(4) | Unknown(4) | HwId(8) | Seq(4) | Size(4)
#          | Date(16) | Time(16) | Filename(32) | HeaderCrc(2) | BlockSize(4)] = 98 bytes
HEADER_FMT = "<4sII8s4sI16s16s32sHI"
MIN_HEADER_LEN = 98

# 98 header bytes + 4 bytes of checksum/data: smallest window the scanner tries
MIN_DATA_LEN = 102

# The stored file checksum starts right after the fixed header fields
FILE_CHECKSUM_OFFSET = 98

# Output naming
PAYLOAD_SUFFIX = ".img"
CHECKSUM_SUFFIX = ".sum"

# Checksum engine (CRC16, reversed 0x1021)
CRC_POLYNOMIAL = 0x8408
CRC_INITIAL_SUM = 0xFFFF
CRC_XOR_VALUE = 0xFFFF

# I/O sizing
COPY_BUFFER_SIZE = 8 * 1024 * 1024  # 8 MiB per read during extraction
RESYNC_CHUNK_SIZE = 64 * 1024  # 64 KiB scan window while hunting for magic
