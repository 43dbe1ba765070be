import json
import subprocess
import sys
from pathlib import Path

def run(cmd, cwd):
    return subprocess.run(cmd, cwd=cwd, check=False, capture_output=True, text=True)

def test_generate_extract_corrupt_verify(tmp_path):
    repo = Path(__file__).resolve().parents[1]
    container = tmp_path / "UPDATE.APP"
    out = tmp_path / "out"

    r = run([sys.executable, "tools/make_container.py", str(container), "--chunks", "4", "--garbage", "--seed", "7"], cwd=repo)
    assert r.returncode == 0, r.stderr + r.stdout
    assert container.exists()

    r = run([sys.executable, "-m", "updata_extract.cli", str(container), "-o", str(out)], cwd=repo)
    assert r.returncode == 0, r.stderr + r.stdout
    assert r.stdout.count("Verifying checksum... OK") == 4
    assert sorted(p.name for p in out.iterdir()) == ["CRC.img", "CURVER.img", "SHA256RSA.img", "VERLIST.img"]

    r = run([sys.executable, "-m", "updata_verify.cli", "container", str(container)], cwd=repo)
    assert r.returncode == 0, r.stderr + r.stdout
    assert json.loads(r.stdout)["status"] == "PASS"

    # Corrupt and ensure failure
    r = run([sys.executable, "scripts/corrupt_one_byte.py", str(container), "2"], cwd=repo)
    assert r.returncode == 0, r.stderr + r.stdout

    r = run([sys.executable, "-m", "updata_verify.cli", "container", str(container)], cwd=repo)
    report = json.loads(r.stdout)
    assert report["status"] == "FAIL"
    assert report["errors"][0]["code"] == "E_CHECKSUM_MISMATCH"
    assert report["errors"][0]["filename"] == "CURVER"
