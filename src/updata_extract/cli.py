"""UPDATE.APP extractor - list, dump and extract the chunks of a firmware container."""
from __future__ import annotations

import os
from pathlib import Path

import click

from updata_core.errors import ChunkIOError, UpdataError
from updata_extract.extractor import ExtractionResult, Extractor, VerifyStatus, failed
from updata_extract.report import export_csv, full_table, summary_table, write_parquet
from updata_extract.scanner import ChunkRecord, ContainerScanner


def load_container(input_path: Path) -> tuple[int, tuple[ChunkRecord, ...]]:
    """Validate and scan ``input_path``; returns (container size, records)."""
    if not input_path.exists():
        raise UpdataError(f"File {input_path} does not exist")
    try:
        f = open(input_path, "rb")
    except OSError as e:
        raise ChunkIOError.from_os_error(e) from e
    with f:
        scanner = ContainerScanner(f)
        scanner.validate()
        return scanner.size, scanner.scan()


def _echo_result(result: ExtractionResult) -> None:
    name = result.record.filename
    if result.error is not None:
        click.echo(f"Extracting {name}... FAILED: {result.error}", err=True)
    elif result.verify is None:
        click.echo(f"Extracting {name}... Done")
    elif result.verify is VerifyStatus.OK:
        click.echo(f"Extracting {name}... Done... Verifying checksum... OK")
    else:
        click.echo(f"Extracting {name}... Done... Verifying checksum... Error")


def run(
    input_path: Path,
    action: str,
    out_dir: Path | None = None,
    verify: bool = True,
    jobs: int | None = None,
    parquet: Path | None = None,
) -> int:
    """Execute one action. Returns the number of chunks that failed."""
    size, records = load_container(input_path)

    if parquet is not None:
        write_parquet(records, parquet)

    if action == "content":
        click.echo(summary_table(input_path, size, records))
        return 0
    if action == "headers":
        click.echo(full_table(records))
        return 0
    if action == "csv":
        click.echo(export_csv(records), nl=False)
        return 0

    if out_dir is not None:
        out_dir.mkdir(parents=True, exist_ok=True)
    extractor = Extractor(input_path, records, out_dir)
    if jobs is None:
        jobs = os.cpu_count() or 1

    if action == "checksum":
        results = extractor.extract_checksums(jobs=jobs, on_result=_echo_result)
    else:
        results = extractor.extract_all(verify=verify, jobs=jobs, on_result=_echo_result)

    return len(failed(results))


@click.command()
@click.argument("input_path", default="UPDATE.APP", type=click.Path(dir_okay=False, path_type=Path))
@click.option("-C", "--show-content", "action", flag_value="content", help="Show content of file instead of extracting.")
@click.option("-H", "--show-headers", "action", flag_value="headers", help="Show header summary instead of extracting.")
@click.option("-d", "--dump-headers", "action", flag_value="csv", help="Dump header table as CSV.")
@click.option("-e", "--extract-img", "action", flag_value="img", default=True, help="Extract the img files (default).")
@click.option("-S", "--extract-checksum", "action", flag_value="checksum", help="Extract the checksum of the img files.")
@click.option("--verify/--no-verify", default=True, help="Verify extracted img files against their stored checksum.")
@click.option("-j", "--jobs", type=click.IntRange(min=1), default=None, help="Parallel extraction workers (default: CPU count).")
@click.option("-o", "--out-dir", type=click.Path(file_okay=False, path_type=Path), default=None, help="Output directory (default: current directory).")
@click.option("--parquet", type=click.Path(dir_okay=False, path_type=Path), default=None, help="Also write the chunk index as parquet.")
def main(
    input_path: Path,
    action: str,
    verify: bool,
    jobs: int | None,
    out_dir: Path | None,
    parquet: Path | None,
) -> None:
    """Extract the files packed in an UPDATE.APP firmware container.

    INPUT_PATH defaults to UPDATE.APP.
    """
    try:
        failures = run(input_path, action, out_dir=out_dir, verify=verify, jobs=jobs, parquet=parquet)
    except Exception as e:
        # Fail closed, with a single-line reason.
        click.echo(f"FATAL: {e}", err=True)
        raise SystemExit(1)

    if failures:
        click.echo(f"FATAL: {failures} chunk(s) could not be extracted", err=True)
        raise SystemExit(1)


if __name__ == "__main__":
    main()
