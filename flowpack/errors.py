# flowpack/errors.py
from __future__ import annotations

from typing import List


class FlowpackError(Exception):
    """Base class for fatal pack/unpack/validate failures."""


class ManifestError(FlowpackError):
    """workflow.yaml is missing or cannot be parsed."""


class DocumentError(FlowpackError):
    """The serialized workflow document is missing, unreadable or malformed."""


class ProjectLayoutError(FlowpackError):
    """A project directory is missing or cannot be created."""


class WorkflowValidationError(FlowpackError):
    """
    Raised once with every invariant violation found in an assembled document.
    """

    def __init__(self, errors: List[str]):
        self.errors = list(errors)
        super().__init__(f"Workflow validation failed with {len(self.errors)} error(s)")
