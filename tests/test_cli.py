import pyarrow.parquet as pq
from click.testing import CliRunner

from updata_core.builder import build_container, pack_chunk
from updata_extract import cli
from updata_extract.cli import main
from updata_extract.extractor import Extractor


def test_show_content(container_file):
    result = CliRunner().invoke(main, [str(container_file), "-C"])
    assert result.exit_code == 0, result.output
    assert f"Filename: {container_file}, size: {container_file.stat().st_size} bytes" in result.output
    assert "ERECOVERY_RAMDISK" in result.output
    assert not (container_file.parent / "BOOT.img").exists()


def test_show_headers(container_file):
    result = CliRunner().invoke(main, [str(container_file), "--show-headers"])
    assert result.exit_code == 0, result.output
    assert "Block size (bytes)" in result.output
    assert "RECOVERY" in result.output


def test_dump_headers_csv(container_file):
    result = CliRunner().invoke(main, [str(container_file), "-d"])
    assert result.exit_code == 0, result.output
    lines = result.output.strip().splitlines()
    assert lines[0].startswith("ID,File name,File size (bytes)")
    assert lines[1].startswith("1,BOOT,768,")
    assert len(lines) == 4


def test_default_action_extracts_and_verifies(container_file, tmp_path, payloads):
    out = tmp_path / "out"
    result = CliRunner().invoke(main, [str(container_file), "-o", str(out), "-j", "2"])

    assert result.exit_code == 0, result.output
    assert result.output.count("Verifying checksum... OK") == len(payloads)
    for name, data in payloads.items():
        assert (out / f"{name}.img").read_bytes() == data


def test_second_extraction_fails(container_file, tmp_path):
    out = tmp_path / "out"
    runner = CliRunner()
    assert runner.invoke(main, [str(container_file), "-e", "-o", str(out)]).exit_code == 0

    result = runner.invoke(main, [str(container_file), "-e", "-o", str(out)])

    assert result.exit_code == 1
    assert "already exists" in result.output
    assert "FATAL: 3 chunk(s) could not be extracted" in result.output


def test_extract_checksum(container_file, tmp_path):
    out = tmp_path / "sums"
    result = CliRunner().invoke(main, [str(container_file), "-S", "-o", str(out)])
    assert result.exit_code == 0, result.output
    assert sorted(p.name for p in out.iterdir()) == ["BOOT.sum", "ERECOVERY_RAMDISK.sum", "RECOVERY.sum"]


def test_mismatch_is_not_an_exit_failure(tmp_path):
    container = tmp_path / "UPDATE.APP"
    container.write_bytes(build_container([pack_chunk("BOOT", b"abcd" * 8, block_size=16, checksum=b"\xff" * 4)]))

    result = CliRunner().invoke(main, [str(container), "-o", str(tmp_path / "out")])

    assert result.exit_code == 0, result.output
    assert "Verifying checksum... Error" in result.output


def test_missing_input(tmp_path):
    result = CliRunner().invoke(main, [str(tmp_path / "nope.app")])
    assert result.exit_code == 1
    assert "FATAL: File" in result.output
    assert "does not exist" in result.output


def test_invalid_preamble(tmp_path):
    bad = tmp_path / "bad.app"
    bad.write_bytes(b"\x01" * 200)
    result = CliRunner().invoke(main, [str(bad), "-C"])
    assert result.exit_code == 1
    assert "FATAL: File doesn't contain a valid data header" in result.output


def test_parquet_index(container_file, tmp_path, payloads):
    index = tmp_path / "idx" / "index.parquet"
    result = CliRunner().invoke(main, [str(container_file), "-C", "--parquet", str(index)])
    assert result.exit_code == 0, result.output

    table = pq.read_table(index)
    assert table.num_rows == len(payloads)
    assert table.column("File name").to_pylist() == list(payloads)


def test_default_jobs_is_cpu_count(container_file, tmp_path, monkeypatch):
    seen = {}

    def fake_extract_all(self, verify=True, jobs=None, on_result=None):
        seen["jobs"] = jobs
        return []

    monkeypatch.setattr(cli.os, "cpu_count", lambda: 3)
    monkeypatch.setattr(Extractor, "extract_all", fake_extract_all)

    result = CliRunner().invoke(main, [str(container_file), "-o", str(tmp_path / "out")])

    assert result.exit_code == 0, result.output
    assert seen["jobs"] == 3
