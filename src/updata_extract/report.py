"""Tabular views of a scanned container: text tables, CSV and parquet."""
from __future__ import annotations

from pathlib import Path
from typing import Sequence

import pandas as pd
import pyarrow as pa
import pyarrow.parquet as pq

from updata_extract.scanner import ChunkRecord

INDEX_SCHEMA = pa.schema(
    [
        ("ID", pa.int32()),
        ("File name", pa.string()),
        ("File size (bytes)", pa.int64()),
        ("Header size (bytes)", pa.int64()),
        ("Total size (bytes)", pa.int64()),
        ("Offset (bytes)", pa.int64()),
        ("Padding (bytes)", pa.int64()),
        ("Trailing (bytes)", pa.int64()),
    ]
)


def records_frame(records: Sequence[ChunkRecord]) -> pd.DataFrame:
    rows = []
    for i, record in enumerate(records):
        header = record.header
        rows.append({
            "ID": i + 1,
            "File name": record.filename,
            "File size (bytes)": header.payload_size,
            "Header size (bytes)": header.header_size,
            "Total size (bytes)": header.payload_offset,
            "Offset (bytes)": record.offset,
            "Padding (bytes)": record.padding,
            "Trailing (bytes)": record.trailing,
        })
    return pd.DataFrame(rows, columns=INDEX_SCHEMA.names)


def headers_frame(records: Sequence[ChunkRecord]) -> pd.DataFrame:
    rows = [{"ID": i + 1, **record.header.as_row()} for i, record in enumerate(records)]
    return pd.DataFrame(rows)


def summary_table(container: Path | str, size: int, records: Sequence[ChunkRecord]) -> str:
    df = records_frame(records)
    body = df.to_string(index=False) if not df.empty else "(no chunks)"
    return f"Filename: {container}, size: {size} bytes\n\n{body}"


def full_table(records: Sequence[ChunkRecord]) -> str:
    df = headers_frame(records)
    if df.empty:
        return "(no chunks)"
    return df.to_string(index=False)


def export_csv(records: Sequence[ChunkRecord]) -> str:
    return records_frame(records).to_csv(index=False)


def write_parquet(records: Sequence[ChunkRecord], out_path: Path) -> None:
    df = records_frame(records)
    if df.empty:
        table = INDEX_SCHEMA.empty_table()
    else:
        table = pa.Table.from_pandas(df, schema=INDEX_SCHEMA, preserve_index=False)
    Path(out_path).parent.mkdir(parents=True, exist_ok=True)
    pq.write_table(table, out_path)
