from __future__ import annotations
from pathlib import Path
import os, re, time

_UNSAFE = re.compile(r"[^a-z0-9\s-]")
_SPACES = re.compile(r"\s+")

def slugify(title: str, max_len: int = 30) -> str:
    slug = _UNSAFE.sub("", title.lower())
    slug = _SPACES.sub("-", slug)
    return slug[:max_len]

def plan_id(title: str) -> str:
    # kebab-case title + epoch millis; an empty slug still yields "-<ms>"
    return f"{slugify(title)}-{int(time.time() * 1000)}"

def step_id(step_number: int) -> str:
    return f"step-{step_number}"

def jail_path(root: Path, p: str | Path) -> Path:
    root = root.resolve()
    pp = (root / p).resolve()
    if pp != root and root not in pp.parents:
        raise PermissionError(f"path escapes jail: {p}")
    return pp

def atomic_write(path: Path, data: bytes) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(path.suffix + ".tmp")
    try:
        with open(tmp, "wb") as f:
            f.write(data)
        os.replace(tmp, path)
    except OSError:
        tmp.unlink(missing_ok=True)
        raise
