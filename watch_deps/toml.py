"""TOML reading utilities.

Uses tomlkit, which keeps key order and comments, so configuration and pin
files are read exactly as written.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import tomlkit


def load_document(path: Path) -> tomlkit.TOMLDocument:
    """Load and parse a TOML file."""
    return tomlkit.parse(path.read_text())


def get_key_path(doc: Any, dotted: str) -> Any:
    """Walk a nested mapping along a dotted key path.

    Examples:
        get_key_path(doc, "tool.watch-deps") → doc["tool"]["watch-deps"]

    Raises:
        KeyError: If any segment is missing or a non-mapping is traversed.
    """
    node = doc
    for segment in dotted.split("."):
        if not hasattr(node, "get") or segment not in node:
            raise KeyError(dotted)
        node = node[segment]
    return node


def get_tool_table(doc: tomlkit.TOMLDocument, tool: str) -> dict[str, Any] | None:
    """Return the plain-Python ``[tool.<tool>]`` table, or None if absent."""
    table = doc.get("tool", {}).get(tool)
    if table is None:
        return None
    return table.unwrap() if hasattr(table, "unwrap") else dict(table)
