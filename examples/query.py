"""Query a chunk index - list the largest chunks of a scanned container."""
from __future__ import annotations

import sys
from pathlib import Path

import duckdb


def main() -> None:
    if len(sys.argv) < 2:
        print("Usage: python query.py <index.parquet> [min_size_bytes]")
        print("Example: updata-extract UPDATE.APP -C --parquet index.parquet && python query.py index.parquet 1048576")
        sys.exit(1)

    index = Path(sys.argv[1])
    min_size = int(sys.argv[2]) if len(sys.argv) > 2 else 0

    con = duckdb.connect(":memory:")
    con.execute(f"CREATE VIEW chunks AS SELECT * FROM '{index}'")

    sql = """
    SELECT
        "File name" AS name,
        "File size (bytes)" AS size,
        "Offset (bytes)" AS offset,
        "Padding (bytes)" + "Trailing (bytes)" AS slack
    FROM chunks
    WHERE "File size (bytes)" >= ?
    ORDER BY size DESC
    """

    print(f"--- Chunks >= {min_size} bytes ---\n")

    df = con.execute(sql, [min_size]).fetchdf()
    if df.empty:
        print("No chunks found.")
    else:
        for _, row in df.iterrows():
            print(f"CHUNK: {row['name']}")
            print(f"  Size: {row['size']}")
            print(f"  Offset: 0x{int(row['offset']):x}")
            print(f"  Slack: {row['slack']}")
            print()


if __name__ == "__main__":
    main()
