"""Applying substitution instructions to files on disk."""

from __future__ import annotations

import re
from collections.abc import Iterable
from pathlib import Path

from .models import Substitution

# Characters that continue a version or key on either side of a match.
_TOKEN_CHAR = r"[\w.+-]"


def substitution_pattern(old: str) -> re.Pattern[str]:
    """Match ``old`` only where it is not part of a longer token.

    ``tag: 1.2`` matches in "tag: 1.2  # pinned" but not in "tag: 1.23.0",
    and ``jupyterhub==4.0.1`` does not match inside
    "oauthenticator-jupyterhub==4.0.1".
    """
    pattern = re.escape(old)
    if old and re.match(_TOKEN_CHAR, old[0]):
        pattern = rf"(?<!{_TOKEN_CHAR})" + pattern
    if old and re.match(_TOKEN_CHAR, old[-1]):
        pattern += rf"(?!{_TOKEN_CHAR})"
    return re.compile(pattern)


def apply_substitution(sub: Substitution, root: Path) -> int:
    """Replace every whole occurrence of ``sub.old`` with ``sub.new`` in place.

    Returns:
        Number of occurrences replaced (0 leaves the file untouched).

    Raises:
        FileNotFoundError: If the file does not exist.
    """
    path = root / sub.path
    text = path.read_text()
    new_text, count = substitution_pattern(sub.old).subn(lambda _: sub.new, text)
    if count:
        path.write_text(new_text)
    return count


def apply_substitutions(subs: Iterable[Substitution], root: Path) -> list[str]:
    """Apply substitutions in order and return the paths that changed.

    A substitution that matches nothing is reported and skipped, so one stale
    template does not block the rest of the update.
    """
    changed: list[str] = []
    for sub in subs:
        count = apply_substitution(sub, root)
        if not count:
            print(f"  Warning: {sub.old!r} not found in {sub.path}")
            continue
        print(f"  {sub.path}: {sub.old} → {sub.new} ({count}x)")
        if sub.path not in changed:
            changed.append(sub.path)
    return changed
