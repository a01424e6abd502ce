# utils/io.py
from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Union

import yaml

# -------- Path helpers --------
PathLike = Union[str, Path]


def to_path(p: PathLike) -> Path:
    """Convert string-like to pathlib.Path."""
    return p if isinstance(p, Path) else Path(p)


def ensure_dir(p: PathLike) -> Path:
    """Ensure a directory exists and return it."""
    d = to_path(p)
    d.mkdir(parents=True, exist_ok=True)
    return d


def ensure_parent(path: PathLike) -> Path:
    """Ensure parent directory exists for a file path."""
    p = to_path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    return p


def discover(root: PathLike, pattern: str) -> list[Path]:
    """
    Files under root matching a manifest include pattern such as
    "./nodes/**/*.yaml". Sorted, so discovery order is stable across runs.
    """
    pattern = pattern.strip()
    while pattern.startswith("./"):
        pattern = pattern[2:]
    base = to_path(root)
    return sorted(p for p in base.glob(pattern) if p.is_file())


def relative(path: PathLike, root: PathLike) -> str:
    """Path of a project file relative to the project root, for messages."""
    p, r = to_path(path), to_path(root)
    try:
        return p.relative_to(r).as_posix()
    except ValueError:
        return str(p)


# -------- Text / JSON / YAML --------
def read_text(path: PathLike, encoding: str = "utf-8") -> str:
    """Read a whole text file."""
    return to_path(path).read_text(encoding=encoding)


def write_text(path: PathLike, text: str, encoding: str = "utf-8") -> Path:
    """Write text atomically (via temp file then replace)."""
    p = ensure_parent(path)
    tmp = p.with_suffix(p.suffix + ".tmp")
    tmp.write_text(text, encoding=encoding)
    tmp.replace(p)
    return p


def read_json(path: PathLike) -> Any:
    """Load JSON file with UTF-8."""
    with to_path(path).open("r", encoding="utf-8") as f:
        return json.load(f)


def dump_json(data: Any, minify: bool = False) -> str:
    """Serialize to JSON text, pretty (indent 2) unless minify is set."""
    if minify:
        return json.dumps(data, ensure_ascii=False, separators=(",", ":"))
    return json.dumps(data, ensure_ascii=False, indent=2)


def write_json(path: PathLike, data: Any, minify: bool = False) -> Path:
    """Write JSON atomically."""
    return write_text(path, dump_json(data, minify=minify))


def read_yaml(path: PathLike) -> Any:
    """Load YAML with the safe loader."""
    with to_path(path).open("r", encoding="utf-8") as f:
        return yaml.safe_load(f)


def dump_yaml(data: Any) -> str:
    """Block-style YAML, insertion order kept, no line folding."""
    return yaml.safe_dump(
        data,
        sort_keys=False,
        allow_unicode=True,
        default_flow_style=False,
        indent=2,
        width=float("inf"),
    )


def write_yaml(path: PathLike, data: Any) -> Path:
    """Write YAML atomically."""
    return write_text(path, dump_yaml(data))
