"""Listing the versions a source offers.

Every source kind is read through the same capability: given a source,
return the raw version strings it publishes. Registries are listed with
skopeo, which speaks to Docker Hub, GCR, Quay and friends uniformly; package
indexes are read from their JSON API.
"""

from __future__ import annotations

import json
import subprocess
from collections.abc import Sequence
from typing import Any, Protocol

import requests

from .models import PackageIndexSource, RegistrySource
from .shell import capture

DEFAULT_SKOPEO = ("skopeo",)
DEFAULT_TIMEOUT = 30.0


class SourceError(RuntimeError):
    """A source could not be listed."""


class VersionLister(Protocol):
    def list_versions(self, source: Any) -> list[str]: ...


class RegistryLister:
    """List image tags with ``skopeo list-tags``.

    Args:
        command: Command prefix that runs skopeo, e.g.
            ("docker", "run", "--rm", "quay.io/skopeo/stable").
    """

    def __init__(self, command: Sequence[str] = DEFAULT_SKOPEO):
        self.command = tuple(command)

    def list_versions(self, source: RegistrySource) -> list[str]:
        try:
            output = capture(*self.command, "list-tags", f"docker://{source.locator}")
        except (subprocess.CalledProcessError, OSError) as exc:
            raise SourceError(f"Cannot list tags of {source.locator}: {exc}") from exc
        try:
            tags = json.loads(output).get("Tags")
        except (json.JSONDecodeError, AttributeError) as exc:
            raise SourceError(f"Unexpected skopeo output for {source.locator}") from exc
        if not isinstance(tags, list):
            raise SourceError(f"No tag list in skopeo output for {source.locator}")
        return [t for t in tags if isinstance(t, str)]


class PackageIndexLister:
    """List releases from a PyPI-compatible JSON API."""

    def __init__(self, timeout: float = DEFAULT_TIMEOUT, session: Any = None):
        self.timeout = timeout
        self.session = session or requests

    def list_versions(self, source: PackageIndexSource) -> list[str]:
        try:
            resp = self.session.get(source.locator, timeout=self.timeout)
            resp.raise_for_status()
            data = resp.json()
        except (requests.RequestException, ValueError) as exc:
            raise SourceError(f"Cannot fetch {source.locator}: {exc}") from exc

        releases = data.get("releases") if isinstance(data, dict) else None
        if not isinstance(releases, dict):
            raise SourceError(f"No releases in {source.locator}")

        versions: list[str] = []
        for version, files in releases.items():
            if source.skip_yanked and _all_yanked(files):
                continue
            versions.append(version)
        return versions


def _all_yanked(files: Any) -> bool:
    """True if a release has files and every one of them is yanked."""
    if not isinstance(files, list) or not files:
        return False
    return all(isinstance(f, dict) and f.get("yanked") for f in files)


def default_listers() -> dict[str, VersionLister]:
    """Map each source kind to its lister."""
    return {
        "registry": RegistryLister(),
        "pypi": PackageIndexLister(),
    }
