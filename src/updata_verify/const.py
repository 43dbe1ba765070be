ERRORS = {
  "E_LAYOUT_MISSING": "Container file missing",
  "E_PREAMBLE": "Container does not start with the zero preamble",
  "E_IO": "Container could not be read",
  "E_TRUNCATED": "Chunk extends past end of container",
  "E_BLOCK_SIZE": "Chunk declares a zero block size",
  "E_CHECKSUM_MISMATCH": "Stored checksum does not match payload",
}
