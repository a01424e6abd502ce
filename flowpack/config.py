# flowpack/config.py
# Environment-driven settings and workflow name -> path resolution.

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional, Tuple

from flowpack.model.catalog import slugify_name
from flowpack.model.layout import DEFAULT_OUTPUT

DEFAULT_WORKFLOWS_DIR = "workflows"


def workflows_root() -> Path:
    """Directory bare workflow names resolve under (FLOWPACK_WORKFLOWS_DIR)."""
    return Path(os.getenv("FLOWPACK_WORKFLOWS_DIR", DEFAULT_WORKFLOWS_DIR))


def _looks_like_path(identifier: str) -> bool:
    return "/" in identifier or "\\" in identifier


def resolve_project_dir(identifier: str) -> Path:
    """
    "./workflows/custom" -> used as is
    "My Workflow"        -> <workflows root>/my-workflow
    """
    if _looks_like_path(identifier) or Path(identifier).is_dir():
        return Path(identifier)
    return workflows_root() / slugify_name(identifier)


def resolve_unpack_paths(identifier: str, output_dir: Optional[str] = None) -> Tuple[Path, Path]:
    """
    Returns (document path, output directory).

    A path to a .json document needs an explicit output directory; a bare
    workflow name unpacks <root>/<slug>/workflow.json into the same folder.
    """
    if identifier.lower().endswith(".json") or _looks_like_path(identifier):
        if not output_dir:
            raise ValueError("an output directory is required when unpacking a document file")
        return Path(identifier), Path(output_dir)

    project = workflows_root() / slugify_name(identifier)
    document = project / Path(DEFAULT_OUTPUT).name
    return document, Path(output_dir) if output_dir else project
