"""Data models for watch-deps.

These Pydantic models describe what is watched (targets, sources, pins and
filter rules) and what a run produces (resolution results, substitution
instructions and pull request descriptions). All of them are frozen: a run
builds them fresh and never mutates them.
"""

from __future__ import annotations

from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

VERSION_PLACEHOLDER = "{version}"


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


class FilterRules(_Frozen):
    """Which raw tags qualify as release versions.

    Attributes:
        prefix: Tags must start with this string. Empty matches everything.
            Used to hold a target on a minor line, e.g. "v1.23".
        patch_optional: Accept "MAJOR.MINOR" tags in addition to
            "MAJOR.MINOR.PATCH".
        minimum: Optional inclusive floor; tags sorting below it are ignored.
    """

    prefix: str = ""
    patch_optional: bool = False
    minimum: str | None = None


class RegistrySource(_Frozen):
    """A container image repository in an OCI/Docker registry."""

    kind: Literal["registry"] = "registry"
    registry: str
    repository: str

    @property
    def locator(self) -> str:
        return f"{self.registry}/{self.repository}"

    @property
    def display_name(self) -> str:
        return self.repository


class PackageIndexSource(_Frozen):
    """A project on a PyPI-compatible package index (JSON API)."""

    kind: Literal["pypi"] = "pypi"
    package: str
    index_url: str = "https://pypi.org/pypi"
    skip_yanked: bool = True

    @property
    def locator(self) -> str:
        return f"{self.index_url.rstrip('/')}/{self.package}/json"

    @property
    def display_name(self) -> str:
        return self.package


Source = Annotated[Union[RegistrySource, PackageIndexSource], Field(discriminator="kind")]


class Pin(_Frozen):
    """Where the locally pinned version lives.

    Exactly one of ``key`` (a dotted key path into a YAML or TOML mapping,
    e.g. "proxy.chp.image.tag") or ``requirement`` (a project name pinned as
    ``name==version`` in a requirements file) must be set.
    """

    path: str
    key: str | None = None
    requirement: str | None = None

    @model_validator(mode="after")
    def _one_locator(self) -> "Pin":
        if (self.key is None) == (self.requirement is None):
            raise ValueError("pin needs exactly one of 'key' or 'requirement'")
        return self

    def default_template(self) -> str:
        """Template used when the pin file has not been read."""
        if self.requirement is not None:
            return f"{self.requirement}=={VERSION_PLACEHOLDER}"
        last = (self.key or "").split(".")[-1]
        return f'{last}: "{VERSION_PLACEHOLDER}"'


class ExtraSubstitution(_Frozen):
    """Another file that repeats the pinned version."""

    path: str
    template: str

    @model_validator(mode="after")
    def _has_placeholder(self) -> "ExtraSubstitution":
        if VERSION_PLACEHOLDER not in self.template:
            raise ValueError(f"template must contain {VERSION_PLACEHOLDER}")
        return self


class WatchTarget(_Frozen):
    """One watched artifact: where to look upstream and where it is pinned."""

    name: str
    source: Source
    pin: Pin
    filters: FilterRules = Field(default_factory=FilterRules)
    substitutions: list[ExtraSubstitution] = Field(default_factory=list)
    post_update: list[list[str]] = Field(default_factory=list)


class RefreshTask(_Frozen):
    """Commands that regenerate files without a version change.

    For example re-running a lock script so transitive requirements pick up
    new releases. A pull request is opened only when the commands leave a
    diff behind.

    Attributes:
        name: Identifies the task on the command line.
        commands: Commands to run, in order, from the repository root.
        branch: PR branch; defaults to "refresh-<name>".
        title: PR title and commit message; defaults to "Refresh <name>".
        body: PR body.
        labels: PR labels; defaults to the repository-wide labels.
    """

    name: str
    commands: list[list[str]] = Field(min_length=1)
    branch: str = ""
    title: str = ""
    body: str = ""
    labels: list[str] | None = None


class VersionTag(_Frozen):
    """A parsed version: numeric segments plus the raw string they came from.

    Ordering is by ``parts`` as a tuple, so "2.7" < "2.7.0" < "2.7.1".
    Equal parts fall back to ``raw`` to keep the order total.
    """

    parts: tuple[int, ...]
    raw: str

    @property
    def sort_key(self) -> tuple[tuple[int, ...], str]:
        return (self.parts, self.raw)

    def __lt__(self, other: "VersionTag") -> bool:
        return self.sort_key < other.sort_key

    def __le__(self, other: "VersionTag") -> bool:
        return self.sort_key <= other.sort_key

    def __gt__(self, other: "VersionTag") -> bool:
        return self.sort_key > other.sort_key

    def __ge__(self, other: "VersionTag") -> bool:
        return self.sort_key >= other.sort_key

    def __str__(self) -> str:
        return self.raw


class ResolutionResult(_Frozen):
    """Outcome of resolving a target. ``latest`` is None when nothing qualified."""

    target: WatchTarget
    latest: VersionTag | None = None
    candidates: int = 0

    @property
    def found(self) -> bool:
        return self.latest is not None


class PinnedValue(_Frozen):
    """The pinned version as read from disk.

    Attributes:
        raw: The pinned version string.
        template: The literal text around it in the pin file, with
            ``{version}`` in place of the value (e.g. 'tag: "{version}"').
    """

    raw: str
    template: str


class Substitution(_Frozen):
    """Replace every occurrence of ``old`` with ``new`` in ``path``."""

    path: str
    old: str
    new: str


class PullRequest(_Frozen):
    """Everything needed to open (or refresh) a pull request."""

    branch: str
    title: str
    body: str
    commit_message: str
    labels: list[str] = Field(default_factory=list)
    author: str = ""
    committer: str = ""
    base: str = "main"


class UpdateDecision(_Frozen):
    """Result of comparing a pinned version with the resolved latest one."""

    target: WatchTarget
    local: VersionTag
    latest: VersionTag | None
    changed: bool
    substitutions: list[Substitution] = Field(default_factory=list)
    pull_request: PullRequest | None = None


class PullRequestSettings(_Frozen):
    """Repository-wide pull request settings."""

    labels: list[str] = Field(default_factory=lambda: ["maintenance", "dependencies"])
    author: str = ""
    committer: str = ""
    base: str = "main"

    @property
    def effective_committer(self) -> str:
        return self.committer or self.author


class WatchConfig(_Frozen):
    """Top-level configuration: the watched targets and PR settings."""

    targets: list[WatchTarget] = Field(default_factory=list, alias="target")
    refresh: list[RefreshTask] = Field(default_factory=list)
    pull_request: PullRequestSettings = Field(default_factory=PullRequestSettings)

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    @model_validator(mode="after")
    def _unique_names(self) -> "WatchConfig":
        seen: set[str] = set()
        for target in self.targets:
            if target.name in seen:
                raise ValueError(f"duplicate target name: {target.name}")
            seen.add(target.name)
        refresh_names: set[str] = set()
        for task in self.refresh:
            if task.name in refresh_names:
                raise ValueError(f"duplicate refresh name: {task.name}")
            refresh_names.add(task.name)
        return self

    def select(self, names: list[str] | tuple[str, ...]) -> list[WatchTarget]:
        """Return targets by name, in the given order; all targets when empty.

        Raises:
            KeyError: If a name is not configured.
        """
        if not names:
            return list(self.targets)
        by_name = {t.name: t for t in self.targets}
        return [by_name[name] for name in names]

    def select_refresh(self, names: list[str] | tuple[str, ...]) -> list[RefreshTask]:
        """Return refresh tasks by name (see select())."""
        if not names:
            return list(self.refresh)
        by_name = {t.name: t for t in self.refresh}
        return [by_name[name] for name in names]
