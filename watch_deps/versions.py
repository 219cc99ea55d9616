"""Version tag filtering, parsing and ordering.

Registry tag lists and package index release lists are noisy: they contain
pre-releases, build variants ("1.2.3-alpine") and floating tags ("latest").
Only tags of the form ``v?MAJOR.MINOR(.PATCH)`` qualify, optionally narrowed
by a prefix and a minimum floor. Qualifying tags are compared by their
numeric segments.
"""

from __future__ import annotations

import re
from collections.abc import Iterable

import semver

from .models import FilterRules, VersionTag

# Matched with fullmatch; ASCII digits only.
_PATTERN_PATCH_REQUIRED = re.compile(r"v?[0-9]+\.[0-9]+(\.[0-9]+)")
_PATTERN_PATCH_OPTIONAL = re.compile(r"v?[0-9]+\.[0-9]+(\.[0-9]+)?")
_LEADING_NUMERIC = re.compile(r"v?([0-9]+(?:\.[0-9]+)*)")


def tag_pattern(rules: FilterRules) -> re.Pattern[str]:
    """Return the regex a raw tag must fully match under ``rules``."""
    return _PATTERN_PATCH_OPTIONAL if rules.patch_optional else _PATTERN_PATCH_REQUIRED


def parse_tag(raw: str) -> VersionTag:
    """Parse a qualifying tag such as "v1.23.1" or "2.7".

    Raises:
        ValueError: If ``raw`` is not of the form v?MAJOR.MINOR(.PATCH).
    """
    if not _PATTERN_PATCH_OPTIONAL.fullmatch(raw):
        raise ValueError(f"not a MAJOR.MINOR(.PATCH) version: {raw!r}")
    return VersionTag(parts=tuple(int(p) for p in raw.removeprefix("v").split(".")), raw=raw)


def coerce_tag(raw: str) -> VersionTag:
    """Leniently parse a pinned value.

    Keeps the leading numeric segments ("1.2.3-r1" → (1, 2, 3)). Values with
    none, such as "latest", get empty parts; the raw string is always kept.
    """
    m = _LEADING_NUMERIC.match(raw.strip())
    parts = tuple(int(p) for p in m.group(1).split(".")) if m else ()
    return VersionTag(parts=parts, raw=raw)


def matches(raw: str, rules: FilterRules) -> bool:
    """True if ``raw`` passes the pattern and prefix of ``rules``."""
    return bool(tag_pattern(rules).fullmatch(raw)) and raw.startswith(rules.prefix)


def filter_tags(raws: Iterable[str], rules: FilterRules) -> list[VersionTag]:
    """Parse the raw tags that qualify under ``rules``, dropping the rest.

    Never raises for malformed input; non-qualifying strings are skipped.
    """
    floor = coerce_tag(rules.minimum).parts if rules.minimum else None
    tags: list[VersionTag] = []
    for raw in raws:
        if not isinstance(raw, str) or not matches(raw, rules):
            continue
        tag = parse_tag(raw)
        if floor is not None and tag.parts < floor:
            continue
        tags.append(tag)
    return tags


def latest_tag(raws: Iterable[str], rules: FilterRules) -> VersionTag | None:
    """Return the highest qualifying tag, or None if none qualifies."""
    tags = sorted(filter_tags(raws, rules))
    return tags[-1] if tags else None


def parse_version(version_str: str) -> semver.Version:
    """Parse a version string into a semver.Version object.

    Handles incomplete versions and a leading "v" by padding with zeros:
    - "1" → "1.0.0"
    - "v1.2" → "1.2.0"
    - "1.2.3" → "1.2.3"

    Only the first 3 components are used (major.minor.patch).
    """
    parts = version_str.removeprefix("v").split(".")
    while len(parts) < 3:
        parts.append("0")
    return semver.Version.parse(".".join(parts[:3]))


def bump_kind(old: str, new: str) -> str | None:
    """Classify the move from ``old`` to ``new``.

    Returns "major", "minor" or "patch" for an upgrade, and None when either
    side does not parse or ``new`` is not higher.

    Examples:
        bump_kind("1.2.3", "2.0.0") → "major"
        bump_kind("v1.23.0", "v1.23.1") → "patch"
    """
    try:
        a, b = parse_version(old), parse_version(new)
    except ValueError:
        return None
    if b <= a:
        return None
    if b.major != a.major:
        return "major"
    if b.minor != a.minor:
        return "minor"
    return "patch"
