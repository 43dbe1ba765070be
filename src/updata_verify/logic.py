import json
from pathlib import Path
from updata_core.crc import ChecksumEngine
from updata_core.errors import InvalidPreamble, UpdataError
from updata_extract.extractor import read_range
from updata_extract.scanner import ChunkRecord, ContainerScanner
from .const import ERRORS

CANONICAL_JSON_KW = {"sort_keys": True, "separators": (",", ":"), "ensure_ascii": False}

def canonical_json(obj) -> str:
    return json.dumps(obj, **CANONICAL_JSON_KW)

def _fail(errors: list, code: str, **extra) -> dict:
    errors.append({"code": code, "message": ERRORS[code], **extra})
    return {"status": "FAIL", "chunk_count": 0, "error_count": len(errors), "errors": errors, "chunks": []}

def _check_chunk(f, record: ChunkRecord) -> tuple[str, dict | None]:
    header = record.header
    where = {"filename": record.filename, "offset": record.offset}
    if record.truncated:
        return "TRUNCATED", {"code": "E_TRUNCATED", "message": ERRORS["E_TRUNCATED"], **where}
    if header.block_size == 0:
        return "BAD_BLOCK_SIZE", {"code": "E_BLOCK_SIZE", "message": ERRORS["E_BLOCK_SIZE"], **where}

    expected = read_range(f, record.checksum_start, header.checksum_field_size)
    computed = ChecksumEngine(header.block_size).compute_range(f, record.payload_start, header.payload_size)
    if computed != expected:
        return "MISMATCH", {
            "code": "E_CHECKSUM_MISMATCH",
            "message": ERRORS["E_CHECKSUM_MISMATCH"],
            "expected": expected.hex(),
            "computed": computed.hex(),
            **where,
        }
    return "VERIFIED", None

def verify_container(container_path: Path) -> dict:
    """Scan a container and check every chunk's stored checksum in place; nothing is written."""
    errors = []
    container_path = Path(container_path)
    if not container_path.is_file():
        return _fail(errors, "E_LAYOUT_MISSING", path=str(container_path))

    chunks = []
    try:
        with open(container_path, "rb") as f:
            scanner = ContainerScanner(f)
            scanner.validate()
            records = scanner.scan()
            for record in records:
                status, error = _check_chunk(f, record)
                if error is not None:
                    errors.append(error)
                chunks.append({
                    "filename": record.filename,
                    "offset": record.offset,
                    "payload_size": record.header.payload_size,
                    "padding": record.padding,
                    "trailing": record.trailing,
                    "status": status,
                })
    except InvalidPreamble as e:
        return _fail(errors, "E_PREAMBLE", detail=str(e))
    except (OSError, UpdataError) as e:
        return _fail(errors, "E_IO", detail=str(e))

    return {
        "status": "FAIL" if errors else "PASS",
        "chunk_count": len(chunks),
        "error_count": len(errors),
        "errors": errors,
        "chunks": chunks,
        "scan": scanner.get_scan_stats(),
    }
