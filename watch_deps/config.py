"""Loading the watch configuration.

Targets live in ``watch-deps.toml`` at the repository root, or under
``[tool.watch-deps]`` in ``pyproject.toml``::

    [pull_request]
    author = "Bot <bot@example.org>"

    [[target]]
    name = "chp"
    source = { kind = "registry", registry = "registry.hub.docker.com", repository = "jupyterhub/configurable-http-proxy" }
    pin = { path = "jupyterhub/values.yaml", key = "proxy.chp.image.tag" }
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import ValidationError
from tomlkit.exceptions import TOMLKitError

from .models import WatchConfig
from .toml import get_tool_table, load_document

CONFIG_FILENAME = "watch-deps.toml"
TOOL_NAME = "watch-deps"


class ConfigError(ValueError):
    """The configuration file is missing or invalid."""


def find_config(root: Path) -> Path:
    """Locate the configuration file under ``root``.

    Prefers ``watch-deps.toml``; falls back to ``pyproject.toml`` when it has
    a ``[tool.watch-deps]`` table.

    Raises:
        ConfigError: If neither is present.
    """
    candidate = root / CONFIG_FILENAME
    if candidate.exists():
        return candidate
    pyproject = root / "pyproject.toml"
    if pyproject.exists() and get_tool_table(load_document(pyproject), TOOL_NAME):
        return pyproject
    raise ConfigError(
        f"No {CONFIG_FILENAME} or [tool.{TOOL_NAME}] table found in {root}"
    )


def parse_config(data: dict[str, Any], source: str = "<config>") -> WatchConfig:
    """Validate already-parsed configuration data."""
    try:
        return WatchConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration in {source}:\n{exc}") from exc


def load_config(path: Path) -> WatchConfig:
    """Load and validate a configuration file.

    ``pyproject.toml`` files are read from their ``[tool.watch-deps]`` table;
    any other file is read whole.

    Raises:
        ConfigError: If the file is missing, unparsable or invalid.
    """
    if not path.exists():
        raise ConfigError(f"Configuration file not found: {path}")
    try:
        doc = load_document(path)
    except TOMLKitError as exc:
        raise ConfigError(f"Cannot parse {path}: {exc}") from exc

    if path.name == "pyproject.toml":
        data = get_tool_table(doc, TOOL_NAME)
        if data is None:
            raise ConfigError(f"No [tool.{TOOL_NAME}] table in {path}")
    else:
        data = doc.unwrap()
    return parse_config(data, str(path))
