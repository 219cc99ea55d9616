"""Watch pipeline: resolve → read pin → decide → edit → pull request.

For each watched target:
1. List the versions its source publishes and pick the latest qualifying one
2. Read the version currently pinned in the repository
3. Decide whether they differ and describe the substitutions and PR
4. Optionally apply the substitutions and run post-update commands
5. Optionally commit to a dedicated branch and open (or refresh) a PR

Refresh tasks skip steps 1-3: their commands run on a dedicated branch and a
PR is opened when they leave a diff.

Targets are independent: a failure on one is reported and the others still
run. A failure after the branch was created resets the working tree before
switching back to the base branch.
"""

from __future__ import annotations

import json
import subprocess
from collections.abc import Iterator, Mapping, Sequence
from contextlib import contextmanager
from email.utils import parseaddr
from pathlib import Path

from .decider import decide, describe_refresh
from .edits import apply_substitutions
from .models import (
    PullRequest,
    PullRequestSettings,
    RefreshTask,
    UpdateDecision,
    WatchConfig,
    WatchTarget,
)
from .pins import PinNotFoundError, read_pin
from .resolver import resolve
from .shell import error, gh, git, run, step
from .sources import SourceError, VersionLister

TARGET_ERRORS = (PinNotFoundError, SourceError, subprocess.CalledProcessError)


def check_target(
    target: WatchTarget,
    root: Path,
    *,
    listers: Mapping[str, VersionLister] | None = None,
    settings: PullRequestSettings | None = None,
) -> UpdateDecision:
    """Resolve one target and compare it with its pin.

    Raises:
        PinNotFoundError: If the pinned value cannot be read.
        SourceError: If the source cannot be listed.
    """
    step(f"Checking {target.name} ({target.source.locator})")
    local = read_pin(target.pin, root)
    resolved = resolve(target, listers)
    decision = decide(local, resolved, settings)

    print(f"  pinned: {local.raw} ({target.pin.path})")
    if resolved.latest is None:
        print(f"  latest: <none> (no qualifying version among {resolved.candidates})")
    else:
        print(f"  latest: {resolved.latest.raw} (of {resolved.candidates} listed)")
    print(f"  {'update available' if decision.changed else 'up to date'}")
    return decision


def check_targets(
    targets: Sequence[WatchTarget],
    root: Path,
    *,
    listers: Mapping[str, VersionLister] | None = None,
    settings: PullRequestSettings | None = None,
) -> tuple[list[UpdateDecision], list[str]]:
    """Check every target, collecting decisions and the names that failed."""
    decisions: list[UpdateDecision] = []
    failed: list[str] = []
    for target in targets:
        try:
            decisions.append(
                check_target(target, root, listers=listers, settings=settings)
            )
        except TARGET_ERRORS as exc:
            error(f"{target.name}: {exc}")
            failed.append(target.name)
    return decisions, failed


def run_commands(commands: Sequence[Sequence[str]], root: Path) -> None:
    for command in commands:
        print(f"  $ {' '.join(command)}")
        run(*command, cwd=root)


def apply_update(decision: UpdateDecision, root: Path) -> list[str]:
    """Apply a decision's substitutions and run the target's post-update commands.

    Returns:
        Paths changed by the substitutions.
    """
    changed = apply_substitutions(decision.substitutions, root)
    if changed:
        run_commands(decision.target.post_update, root)
    return changed


def _identity_args(identity: str) -> list[str]:
    """git -c options setting the committer from "Name <email>"."""
    name, email = parseaddr(identity)
    if not name or not email:
        return []
    return ["-c", f"user.name={name}", "-c", f"user.email={email}"]


def commit_update(pr: PullRequest, root: Path) -> None:
    """Stage everything and commit with the PR's identities."""
    git("add", "--all", cwd=root)
    args = [*_identity_args(pr.committer), "commit", "-m", pr.commit_message]
    if pr.author:
        args += ["--author", pr.author]
    git(*args, cwd=root)


def find_open_pull_request(branch: str, root: Path) -> int | None:
    """Return the number of the open PR from ``branch``, if any."""
    output = gh(
        "pr",
        "list",
        "--head",
        branch,
        "--state",
        "open",
        "--json",
        "number",
        check=False,
        cwd=root,
    )
    if not output:
        return None
    try:
        prs = json.loads(output)
    except json.JSONDecodeError:
        return None
    return prs[0].get("number") if prs else None


def submit_pull_request(pr: PullRequest, root: Path) -> None:
    """Push the branch and create the PR, or refresh the open one."""
    git("push", "--force", "origin", pr.branch, cwd=root)
    label_args = [arg for label in pr.labels for arg in ("--label", label)]

    number = find_open_pull_request(pr.branch, root)
    if number is not None:
        add_labels = [arg for label in pr.labels for arg in ("--add-label", label)]
        gh(
            "pr",
            "edit",
            str(number),
            "--title",
            pr.title,
            "--body",
            pr.body,
            *add_labels,
            cwd=root,
        )
        print(f"  Updated PR #{number}")
        return

    url = gh(
        "pr",
        "create",
        "--head",
        pr.branch,
        "--base",
        pr.base,
        "--title",
        pr.title,
        "--body",
        pr.body,
        *label_args,
        cwd=root,
    )
    print(f"  Opened {url}")


def discard_changes(root: Path) -> None:
    """Drop tracked edits and untracked files left by a failed update."""
    git("reset", "--hard", cwd=root)
    git("clean", "-fd", cwd=root)


@contextmanager
def on_branch(pr: PullRequest, root: Path) -> Iterator[None]:
    """Recreate ``pr.branch`` from the base branch and switch back afterwards.

    If the body raises, the working tree is reset before switching back.
    """
    git("checkout", "-B", pr.branch, pr.base, cwd=root)
    try:
        yield
    except Exception:
        discard_changes(root)
        raise
    finally:
        git("checkout", pr.base, cwd=root)


def publish(pr: PullRequest, root: Path) -> None:
    """Show the diff, commit it and push the pull request."""
    run("git", "--no-pager", "diff", check=False, cwd=root)
    commit_update(pr, root)
    submit_pull_request(pr, root)


def open_pull_request(decision: UpdateDecision, root: Path) -> bool:
    """Carry out a changed decision on its own branch and open a PR.

    The branch is recreated from the base branch each run, so the PR always
    holds exactly one up-to-date commit.

    Returns:
        True if a commit was pushed, False if the edits changed nothing.
    """
    pr = decision.pull_request
    if pr is None:
        return False

    step(f"Opening pull request for {decision.target.name}")
    with on_branch(pr, root):
        if not apply_update(decision, root):
            print("  Nothing to commit")
            return False
        publish(pr, root)
        return True


def refresh(
    task: RefreshTask,
    root: Path,
    *,
    settings: PullRequestSettings | None = None,
    create_pr: bool = True,
) -> bool:
    """Run a refresh task and open a PR if it changed anything.

    Returns:
        True if the commands left a diff behind.
    """
    step(f"Refreshing {task.name}")
    if not create_pr:
        run_commands(task.commands, root)
        return bool(git("status", "--porcelain", check=False, cwd=root))

    pr = describe_refresh(task, settings or PullRequestSettings())
    with on_branch(pr, root):
        run_commands(task.commands, root)
        if not git("status", "--porcelain", cwd=root):
            print("  Nothing to commit")
            return False
        publish(pr, root)
        return True


def run_watch(
    config: WatchConfig,
    root: Path,
    *,
    names: Sequence[str] = (),
    create_pr: bool = True,
    listers: Mapping[str, VersionLister] | None = None,
) -> int:
    """Check the selected targets and update the changed ones.

    Args:
        config: Loaded configuration.
        root: Repository root.
        names: Target names to process; all targets when empty.
        create_pr: If True, commit each update on its own branch and open a
            PR; if False, only edit the working tree.
        listers: Map of source kind to lister (for tests).

    Returns:
        Number of targets that failed.
    """
    targets = config.select(list(names))
    decisions, failed = check_targets(
        targets, root, listers=listers, settings=config.pull_request
    )

    updated = 0
    for decision in decisions:
        if not decision.changed:
            continue
        try:
            if create_pr:
                done = open_pull_request(decision, root)
            else:
                step(f"Updating {decision.target.name}")
                done = bool(apply_update(decision, root))
        except (subprocess.CalledProcessError, OSError) as exc:
            error(f"{decision.target.name}: {exc}")
            failed.append(decision.target.name)
            continue
        updated += done

    print(f"\n{'=' * 60}")
    print(f"{len(targets)} checked, {updated} updated, {len(failed)} failed")
    print("=" * 60)
    return len(failed)


def run_refresh(
    config: WatchConfig,
    root: Path,
    *,
    names: Sequence[str] = (),
    create_pr: bool = True,
) -> int:
    """Run the selected refresh tasks, one pull request each.

    Returns:
        Number of tasks that failed.
    """
    tasks = config.select_refresh(list(names))
    refreshed = 0
    failed: list[str] = []
    for task in tasks:
        try:
            refreshed += refresh(
                task, root, settings=config.pull_request, create_pr=create_pr
            )
        except (subprocess.CalledProcessError, OSError) as exc:
            error(f"{task.name}: {exc}")
            failed.append(task.name)

    print(f"\n{'=' * 60}")
    print(f"{len(tasks)} run, {refreshed} changed, {len(failed)} failed")
    print("=" * 60)
    return len(failed)
