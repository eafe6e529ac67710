#!/usr/bin/env python3
import json
import sys
from pathlib import Path

import requests

from study_config import REGISTRY_JSON


def fetch_registry(url: str, out_path: Path = REGISTRY_JSON, force: bool = False, timeout: float = 120) -> bool:
    """Download the company registry JSON. Returns False if an existing file was kept."""
    if out_path.exists() and out_path.stat().st_size > 0 and not force:
        print(f"[SKIP] {out_path} exists (use --force to re-download)")
        return False

    out_path.parent.mkdir(parents=True, exist_ok=True)
    tmp = out_path.with_suffix(out_path.suffix + ".part")

    try:
        with requests.get(url, stream=True, timeout=timeout) as r:
            r.raise_for_status()
            with open(tmp, "wb") as o:
                for chunk in r.iter_content(chunk_size=1024 * 1024):
                    if chunk:
                        o.write(chunk)
    except (requests.RequestException, OSError):
        tmp.unlink(missing_ok=True)
        raise

    try:
        with tmp.open("r", encoding="utf-8") as f:
            records = json.load(f)
        if not isinstance(records, list):
            raise ValueError("expected a JSON list of company records")
    except ValueError:
        tmp.unlink()
        raise

    tmp.replace(out_path)
    print(f"[OK] {out_path} ({len(records)} companies)")
    return True


def main(argv=None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    force = "--force" in argv
    rest = [a for a in argv if a != "--force"]
    if len(rest) not in (1, 2):
        print(f"Usage: {sys.argv[0]} <registry_url> [out.json] [--force]")
        return 2

    out_path = Path(rest[1]) if len(rest) == 2 else REGISTRY_JSON
    try:
        fetch_registry(rest[0], out_path, force=force)
    except (requests.RequestException, ValueError) as e:
        print(f"[FAIL] {rest[0]} -> {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
