from __future__ import annotations

from pathlib import Path

from catalogpdf.config import get_settings


def downloads_root(override: Path | None = None) -> Path:
    root = Path(override) if override is not None else get_settings().output_dir
    root.mkdir(parents=True, exist_ok=True)
    return root


def write_bytes_atomic(path: Path, payload: bytes) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(path.suffix + '.tmp')
    tmp.write_bytes(payload)
    tmp.replace(path)
    return path
