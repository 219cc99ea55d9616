"""Shell, git and gh utilities.

Provides simple wrappers around subprocess calls for running shell commands,
git and GitHub CLI operations, plus output formatting helpers.
"""

from __future__ import annotations

import subprocess
import sys
from pathlib import Path


def git(*args: str, check: bool = True, cwd: Path | None = None) -> str:
    """Run a git command and return stdout.

    Args:
        *args: Arguments to pass to git (e.g., "status", "--short").
        check: If True (default), raise on non-zero exit. Set to False
               for commands that may legitimately fail (e.g., branch lookup).
        cwd: Working directory; defaults to the current directory.

    Returns:
        Stripped stdout from the git command.
    """
    return capture("git", *args, check=check, cwd=cwd)


def gh(*args: str, check: bool = True, cwd: Path | None = None) -> str:
    """Run a GitHub CLI command and return stdout (see git())."""
    return capture("gh", *args, check=check, cwd=cwd)


def capture(*args: str, check: bool = True, cwd: Path | None = None) -> str:
    """Run a command and return its stripped stdout.

    Raises:
        subprocess.CalledProcessError: If check is True and the command fails.
        FileNotFoundError: If the executable does not exist.
    """
    result = subprocess.run(args, capture_output=True, text=True, check=check, cwd=cwd)
    return result.stdout.strip()


def run(
    *args: str, check: bool = True, cwd: Path | None = None
) -> subprocess.CompletedProcess[bytes]:
    """Run an arbitrary shell command.

    Unlike git(), this doesn't capture output - it streams directly to
    the terminal so users can see progress of e.g. a refreeze script.

    Args:
        *args: Command and arguments (e.g., "ci/refreeze").
        check: If True (default), raise on non-zero exit.
        cwd: Working directory; defaults to the current directory.

    Returns:
        CompletedProcess with returncode for checking success.
    """
    return subprocess.run(args, check=check, cwd=cwd)


def step(msg: str) -> None:
    """Print a visually distinct step header.

    Used to separate targets and phases in CI logs.
    """
    print(f"\n{'─' * 60}\n{msg}\n{'─' * 60}")


def error(msg: str) -> None:
    """Print an error message to stderr without exiting."""
    print(f"ERROR: {msg}", file=sys.stderr)
