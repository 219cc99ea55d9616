"""Tests for watch_deps.config."""

from __future__ import annotations

from pathlib import Path

import pytest

from watch_deps.config import ConfigError, find_config, load_config, parse_config
from watch_deps.models import PackageIndexSource, RegistrySource

CONFIG = """\
[pull_request]
labels = ["dependencies"]
author = "Bot <bot@example.org>"

[[target]]
name = "chp"
source = { kind = "registry", registry = "registry.hub.docker.com", repository = "jupyterhub/configurable-http-proxy" }
pin = { path = "jupyterhub/values.yaml", key = "proxy.chp.image.tag" }

[[target]]
name = "pause"
source = { kind = "registry", registry = "registry.k8s.io", repository = "pause" }
pin = { path = "jupyterhub/values.yaml", key = "scheduling.userPlaceholder.image.tag" }
filters = { patch_optional = true }

[[target]]
name = "jupyterhub"
source = { kind = "pypi", package = "jupyterhub" }
pin = { path = "images/hub/requirements.in", requirement = "jupyterhub" }
post_update = [["ci/refreeze"]]

[[target.substitutions]]
path = "jupyterhub/Chart.yaml"
template = 'appVersion: "{version}"'
"""


class TestLoadConfig:
    def test_loads_targets(self, tmp_path: Path) -> None:
        path = tmp_path / "watch-deps.toml"
        path.write_text(CONFIG)

        config = load_config(path)

        assert [t.name for t in config.targets] == ["chp", "pause", "jupyterhub"]
        assert isinstance(config.targets[0].source, RegistrySource)
        assert isinstance(config.targets[2].source, PackageIndexSource)
        assert config.targets[1].filters.patch_optional is True
        assert config.targets[2].post_update == [["ci/refreeze"]]
        assert config.targets[2].substitutions[0].template == 'appVersion: "{version}"'
        assert config.pull_request.labels == ["dependencies"]
        assert config.pull_request.author == "Bot <bot@example.org>"

    def test_loads_from_pyproject_tool_table(self, tmp_path: Path) -> None:
        path = tmp_path / "pyproject.toml"
        path.write_text(
            '[project]\nname = "chart"\n\n'
            "[[tool.watch-deps.target]]\n"
            'name = "jupyterhub"\n'
            'source = { kind = "pypi", package = "jupyterhub" }\n'
            'pin = { path = "requirements.in", requirement = "jupyterhub" }\n'
        )

        config = load_config(path)

        assert [t.name for t in config.targets] == ["jupyterhub"]

    def test_pyproject_without_table(self, tmp_path: Path) -> None:
        path = tmp_path / "pyproject.toml"
        path.write_text('[project]\nname = "x"\n')
        with pytest.raises(ConfigError, match=r"\[tool.watch-deps\]"):
            load_config(path)

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="not found"):
            load_config(tmp_path / "watch-deps.toml")

    def test_unparsable_file(self, tmp_path: Path) -> None:
        path = tmp_path / "watch-deps.toml"
        path.write_text("[[target]\nname = ")
        with pytest.raises(ConfigError, match="Cannot parse"):
            load_config(path)

    def test_invalid_target(self, tmp_path: Path) -> None:
        path = tmp_path / "watch-deps.toml"
        path.write_text('[[target]]\nname = "x"\n')
        with pytest.raises(ConfigError, match="Invalid configuration"):
            load_config(path)

    def test_config_error_is_value_error(self) -> None:
        with pytest.raises(ValueError):
            parse_config({"target": [{"name": "x", "unknown": 1}]})


class TestFindConfig:
    def test_prefers_watch_deps_toml(self, tmp_path: Path) -> None:
        (tmp_path / "watch-deps.toml").write_text(CONFIG)
        (tmp_path / "pyproject.toml").write_text("[tool.watch-deps]\ntarget = []\n")
        assert find_config(tmp_path) == tmp_path / "watch-deps.toml"

    def test_falls_back_to_pyproject(self, tmp_path: Path) -> None:
        (tmp_path / "pyproject.toml").write_text(
            '[tool.watch-deps.pull_request]\nlabels = ["deps"]\n'
        )
        assert find_config(tmp_path) == tmp_path / "pyproject.toml"

    def test_nothing_found(self, tmp_path: Path) -> None:
        (tmp_path / "pyproject.toml").write_text('[project]\nname = "x"\n')
        with pytest.raises(ConfigError, match="No watch-deps.toml"):
            find_config(tmp_path)
