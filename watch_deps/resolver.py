"""Resolving the latest qualifying version of a watched target."""

from __future__ import annotations

from collections.abc import Mapping

from .models import ResolutionResult, WatchTarget
from .sources import VersionLister, default_listers
from .versions import latest_tag


def resolve(
    target: WatchTarget, listers: Mapping[str, VersionLister] | None = None
) -> ResolutionResult:
    """Find the newest version of ``target`` that passes its filter rules.

    Lists every raw version the target's source publishes, keeps those that
    match ``v?MAJOR.MINOR(.PATCH)`` with the target's prefix, patch and
    minimum rules, and picks the highest.

    Args:
        target: The watched artifact.
        listers: Map of source kind to lister; defaults to default_listers().

    Returns:
        A ResolutionResult whose ``latest`` is None when nothing qualified.
        That is a normal outcome, not an error.

    Raises:
        SourceError: If the source cannot be listed.
    """
    listers = listers if listers is not None else default_listers()
    raws = listers[target.source.kind].list_versions(target.source)
    return ResolutionResult(
        target=target,
        latest=latest_tag(raws, target.filters),
        candidates=len(raws),
    )
