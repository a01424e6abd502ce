# flowpack/model/layout.py
# On-disk layout of a modular workflow project.

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

MANIFEST_FILE = "workflow.yaml"
PROJECT_FILE = "project.json"
README_FILE = "README.md"
DEFAULT_OUTPUT = "./workflow.json"

CONNECTIONS_FILE = "connections/main-flow.yaml"
EXECUTION_SETTINGS_FILE = "settings/execution.yaml"
ERROR_SETTINGS_FILE = "settings/error-handling.yaml"
PINNED_DATA_FILE = "data/pinned/pinned-data.yaml"
STATIC_DATA_FILE = "data/static/static-data.yaml"
CREDENTIAL_MAPPINGS_FILE = "credentials/credential-mappings.yaml"
ENV_TEMPLATE_FILE = "credentials/.env.example"


@dataclass(frozen=True)
class ResourceCategory:
    """
    One concern of the modular tree: where its files live, which manifest
    include selects them, and which top-level key each file carries.
    """
    name: str
    directory: str
    include_path: Tuple[str, ...]
    default_pattern: str
    root_key: Optional[str] = None

    def pattern(self, manifest: Optional[Dict[str, Any]] = None) -> str:
        """Include pattern from the manifest, falling back to the default."""
        cur: Any = (manifest or {}).get("includes") or {}
        for part in self.include_path:
            if not isinstance(cur, dict):
                return self.default_pattern
            cur = cur.get(part)
        return cur if isinstance(cur, str) and cur.strip() else self.default_pattern


NODES = ResourceCategory("nodes", "nodes", ("nodes",), "./nodes/**/*.yaml", "node")
CONNECTIONS = ResourceCategory("connections", "connections", ("connections",), "./connections/**/*.yaml", "connections")
SETTINGS = ResourceCategory("settings", "settings", ("settings",), "./settings/**/*.yaml")
PINNED_DATA = ResourceCategory("pinned", "data/pinned", ("data", "pinned"), "./data/pinned/**/*.yaml", "pinned_data")
STATIC_DATA = ResourceCategory("static", "data/static", ("data", "static"), "./data/static/**/*.yaml", "static_data")
CREDENTIALS = ResourceCategory("credentials", "credentials", ("credentials",), "./" + CREDENTIAL_MAPPINGS_FILE, "credentials")

# Pack loads these in this order.
RESOURCE_CATEGORIES = (NODES, CONNECTIONS, SETTINGS, PINNED_DATA, STATIC_DATA, CREDENTIALS)

# The validator requires these to exist.
REQUIRED_FILES = (MANIFEST_FILE, PROJECT_FILE)
REQUIRED_DIRS = (NODES.directory, CONNECTIONS.directory, SETTINGS.directory, CREDENTIALS.directory)


def default_includes() -> Dict[str, Any]:
    return {
        "nodes": NODES.default_pattern,
        "connections": CONNECTIONS.default_pattern,
        "settings": SETTINGS.default_pattern,
        "credentials": CREDENTIALS.default_pattern,
        "data": {
            "static": STATIC_DATA.default_pattern,
            "pinned": PINNED_DATA.default_pattern,
        },
    }


def default_build() -> Dict[str, Any]:
    return {"output": DEFAULT_OUTPUT, "validate": True, "minify": False}
