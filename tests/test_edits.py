"""Tests for watch_deps.edits."""

from __future__ import annotations

from pathlib import Path

import pytest

from watch_deps.edits import apply_substitution, apply_substitutions
from watch_deps.models import Substitution


class TestApplySubstitution:
    def test_replaces_in_place(self, repo: Path) -> None:
        sub = Substitution(
            path="jupyterhub/Chart.yaml", old='appVersion: "4.0.1"', new='appVersion: "4.0.2"'
        )

        assert apply_substitution(sub, repo) == 1
        assert 'appVersion: "4.0.2"' in (repo / "jupyterhub" / "Chart.yaml").read_text()

    def test_replaces_every_occurrence(self, tmp_path: Path) -> None:
        (tmp_path / "values.yaml").write_text('a:\n  tag: "1.0"\nb:\n  tag: "1.0"\n')
        sub = Substitution(path="values.yaml", old='tag: "1.0"', new='tag: "1.1"')

        assert apply_substitution(sub, tmp_path) == 2
        assert (tmp_path / "values.yaml").read_text().count('tag: "1.1"') == 2

    def test_no_match_leaves_file_untouched(self, repo: Path) -> None:
        path = repo / "jupyterhub" / "values.yaml"
        before = path.read_text()
        sub = Substitution(path="jupyterhub/values.yaml", old="nope", new="yes")

        assert apply_substitution(sub, repo) == 0
        assert path.read_text() == before

    def test_unquoted_value_is_not_a_prefix_match(self, tmp_path: Path) -> None:
        path = tmp_path / "values.yaml"
        path.write_text("a:\n  tag: 1.23.0\nb:\n  tag: 1.2  # pinned\n")
        sub = Substitution(path="values.yaml", old="tag: 1.2", new="tag: 1.3")

        assert apply_substitution(sub, tmp_path) == 1
        assert path.read_text() == "a:\n  tag: 1.23.0\nb:\n  tag: 1.3  # pinned\n"

    def test_requirement_needs_whole_name(self, tmp_path: Path) -> None:
        path = tmp_path / "requirements.txt"
        path.write_text("oauthenticator-jupyterhub==4.0.1\njupyterhub==4.0.1\n")
        sub = Substitution(
            path="requirements.txt", old="jupyterhub==4.0.1", new="jupyterhub==4.0.2"
        )

        assert apply_substitution(sub, tmp_path) == 1
        assert path.read_text() == (
            "oauthenticator-jupyterhub==4.0.1\njupyterhub==4.0.2\n"
        )

    def test_replacement_is_literal(self, tmp_path: Path) -> None:
        (tmp_path / "x.txt").write_text("v: 1.0\n")
        sub = Substitution(path="x.txt", old="v: 1.0", new=r"v: \1.1")

        apply_substitution(sub, tmp_path)

        assert (tmp_path / "x.txt").read_text() == "v: \\1.1\n"

    def test_missing_file_raises(self, tmp_path: Path) -> None:
        sub = Substitution(path="missing.yaml", old="a", new="b")
        with pytest.raises(FileNotFoundError):
            apply_substitution(sub, tmp_path)


class TestApplySubstitutions:
    def test_returns_changed_paths_once(self, repo: Path) -> None:
        subs = [
            Substitution(
                path="images/hub/requirements.in",
                old="jupyterhub==4.0.1",
                new="jupyterhub==4.0.2",
            ),
            Substitution(
                path="images/hub/requirements.in",
                old="oauthenticator>=15.0",
                new="oauthenticator>=16.0",
            ),
            Substitution(
                path="jupyterhub/Chart.yaml",
                old='appVersion: "4.0.1"',
                new='appVersion: "4.0.2"',
            ),
        ]

        changed = apply_substitutions(subs, repo)

        assert changed == ["images/hub/requirements.in", "jupyterhub/Chart.yaml"]

    def test_warns_and_continues_on_stale_template(
        self, repo: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        subs = [
            Substitution(path="jupyterhub/Chart.yaml", old="appVersion: 9", new="x"),
            Substitution(
                path="jupyterhub/Chart.yaml",
                old='appVersion: "4.0.1"',
                new='appVersion: "4.0.2"',
            ),
        ]

        changed = apply_substitutions(subs, repo)

        assert changed == ["jupyterhub/Chart.yaml"]
        assert "Warning: 'appVersion: 9' not found" in capsys.readouterr().out
