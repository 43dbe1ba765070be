import random
import sys
from datetime import datetime, timezone
from pathlib import Path

from updata_core.builder import build_container, pack_chunk

# --- CONFIGURATION ---
PARTITIONS = ["SHA256RSA", "CRC", "CURVER", "VERLIST", "BOOT", "RECOVERY", "ERECOVERY_RAMDISK", "SYSTEM"]
BLOCK_SIZE = 4096
MAX_PAYLOAD = 64 * 1024


def generate_container(output: str, chunks: int = 4, garbage: bool = False, seed: int | None = None) -> Path:
    rng = random.Random(seed)
    now = datetime.now(timezone.utc)
    date = now.strftime("%Y.%m.%d")
    time = now.strftime("%H.%M.%S")

    packed = []
    gaps = []
    for seq, name in enumerate(PARTITIONS[:chunks]):
        payload = rng.randbytes(rng.randint(1, MAX_PAYLOAD))
        packed.append(pack_chunk(
            name,
            payload,
            block_size=BLOCK_SIZE,
            hardware_id=0x485755,
            sequence=seq,
            date=date,
            time=time,
        ))
        if garbage:
            # Alignment-style filler, never containing the magic number.
            gaps.append(b"\x00" * rng.randint(0, 3) + b"\xff" * rng.randint(0, 8))
        else:
            gaps.append(b"\x00" * (-len(packed[-1]) % 4))

    out = Path(output)
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_bytes(build_container(packed, gaps))

    print(f"GENERATED: {out}")
    return out


if __name__ == "__main__":
    # Usage:
    #   python tools/make_container.py OUT_FILE [--chunks N] [--garbage] [--seed S]

    args = [a for a in sys.argv[1:] if a]

    def pop_flag(arg_list: list[str], flag: str) -> tuple[bool, list[str]]:
        """Remove a boolean flag from an argv-style list."""
        if flag in arg_list:
            return True, [a for a in arg_list if a != flag]
        return False, arg_list

    def pop_value(arg_list: list[str], flag: str) -> tuple[str | None, list[str]]:
        if flag not in arg_list:
            return None, arg_list
        i = arg_list.index(flag)
        if i + 1 >= len(arg_list):
            raise SystemExit(f"{flag} requires a value")
        return arg_list[i + 1], arg_list[:i] + arg_list[i + 2:]

    garbage, args = pop_flag(args, "--garbage")
    chunks, args = pop_value(args, "--chunks")
    seed, args = pop_value(args, "--seed")

    out = args[0] if len(args) > 0 else "UPDATE.APP"
    generate_container(
        out,
        chunks=int(chunks) if chunks is not None else 4,
        garbage=garbage,
        seed=int(seed) if seed is not None else None,
    )
