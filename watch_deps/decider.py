"""Deciding whether a pinned version needs updating.

The decision is a pure description: which substitutions to make and which
pull request to open. Nothing here touches the filesystem or the network;
see ``edits`` and ``pipeline`` for that.
"""

from __future__ import annotations

from .models import (
    VERSION_PLACEHOLDER,
    PinnedValue,
    PullRequest,
    PullRequestSettings,
    RefreshTask,
    ResolutionResult,
    Substitution,
    UpdateDecision,
    VersionTag,
    WatchTarget,
)
from .versions import bump_kind, coerce_tag


def render(template: str, version: str) -> str:
    """Fill the ``{version}`` placeholder of a substitution template."""
    return template.replace(VERSION_PLACEHOLDER, version)


def decide(
    local: PinnedValue | VersionTag | str,
    resolved: ResolutionResult,
    settings: PullRequestSettings | None = None,
) -> UpdateDecision:
    """Compare a pinned version with the resolved latest one.

    The comparison is on raw strings: "1.2" and "1.2.0" differ, so a
    formatting difference alone triggers a rewrite.

    Args:
        local: The pinned value. A PinnedValue carries the exact text around
            the version in the pin file; a VersionTag or plain string falls
            back to the pin's default template.
        resolved: Result of resolve() for the same target.
        settings: Labels, identities and base branch for the pull request.

    Returns:
        An UpdateDecision. When nothing qualified upstream, or the versions
        are equal, ``changed`` is False and there is nothing to do.
    """
    target = resolved.target
    settings = settings or PullRequestSettings()
    if isinstance(local, PinnedValue):
        raw, template = local.raw, local.template
    else:
        raw = local.raw if isinstance(local, VersionTag) else local
        template = target.pin.default_template()
    local_tag = local if isinstance(local, VersionTag) else coerce_tag(raw)

    latest = resolved.latest
    if latest is None or latest.raw == raw:
        return UpdateDecision(target=target, local=local_tag, latest=latest, changed=False)

    substitutions = [
        Substitution(
            path=target.pin.path,
            old=render(template, raw),
            new=render(template, latest.raw),
        )
    ]
    for extra in target.substitutions:
        substitutions.append(
            Substitution(
                path=extra.path,
                old=render(extra.template, raw),
                new=render(extra.template, latest.raw),
            )
        )

    return UpdateDecision(
        target=target,
        local=local_tag,
        latest=latest,
        changed=True,
        substitutions=substitutions,
        pull_request=describe_pull_request(target, raw, latest.raw, settings),
    )


def describe_pull_request(
    target: WatchTarget, old: str, new: str, settings: PullRequestSettings
) -> PullRequest:
    """Build the pull request for bumping ``target`` from ``old`` to ``new``.

    Image targets get an ``update-image-<name>`` branch, package targets an
    ``update-<name>`` branch, so reruns land on the same PR.
    """
    subject = target.source.display_name
    if target.source.kind == "registry":
        branch = f"update-image-{target.name}"
        title = f"Update {subject} version from {old} to {new}"
        body = f"A new {subject} image version has been detected, version `{new}`."
    else:
        branch = f"update-{target.name}"
        title = f"Update {subject} from {old} to {new}"
        body = f"A new {subject} version has been detected, version `{new}`."

    kind = bump_kind(old, new)
    if kind:
        body += f"\n\nThis is a {kind} version bump."

    return PullRequest(
        branch=branch,
        title=title,
        body=body,
        commit_message=title,
        labels=list(settings.labels),
        author=settings.author,
        committer=settings.effective_committer,
        base=settings.base,
    )


def describe_refresh(task: RefreshTask, settings: PullRequestSettings) -> PullRequest:
    """Build the pull request for a refresh task."""
    title = task.title or f"Refresh {task.name}"
    return PullRequest(
        branch=task.branch or f"refresh-{task.name}",
        title=title,
        body=task.body or f"`{task.name}` has been refreshed.",
        commit_message=title,
        labels=list(task.labels if task.labels is not None else settings.labels),
        author=settings.author,
        committer=settings.effective_committer,
        base=settings.base,
    )
