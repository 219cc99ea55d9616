"""Shared test fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest

from watch_deps.models import (
    ExtraSubstitution,
    FilterRules,
    PackageIndexSource,
    Pin,
    RegistrySource,
    WatchTarget,
)


class FakeLister:
    """Lister returning canned versions and recording what it was asked."""

    def __init__(self, versions: list[str]):
        self.versions = versions
        self.calls: list[object] = []

    def list_versions(self, source: object) -> list[str]:
        self.calls.append(source)
        return list(self.versions)


VALUES_YAML = """\
proxy:
  chp:
    image:
      name: quay.io/jupyterhub/configurable-http-proxy
      tag: "4.5.3"
  traefik:
    image:
      name: traefik
      tag: v2.8.0 # traefik
scheduling:
  userScheduler:
    image:
      name: registry.k8s.io/kube-scheduler
      tag: 'v1.23.10'
  userPlaceholder:
    image:
      name: registry.k8s.io/pause
      tag: "3.7"
"""

REQUIREMENTS_IN = """\
# Pinned so the image matches the chart's appVersion
jupyterhub==4.0.1
oauthenticator>=15.0
"""

CHART_YAML = """\
apiVersion: v2
name: jupyterhub
version: 0.0.1-set.by.chartpress
appVersion: "4.0.1"
"""


@pytest.fixture
def repo(tmp_path: Path) -> Path:
    """A repository tree with a Helm chart and image requirements."""
    (tmp_path / "jupyterhub").mkdir()
    (tmp_path / "jupyterhub" / "values.yaml").write_text(VALUES_YAML)
    (tmp_path / "jupyterhub" / "Chart.yaml").write_text(CHART_YAML)
    for image in ("hub", "singleuser-sample"):
        (tmp_path / "images" / image).mkdir(parents=True)
        (tmp_path / "images" / image / "requirements.in").write_text(REQUIREMENTS_IN)
    return tmp_path


@pytest.fixture
def chp_target() -> WatchTarget:
    return WatchTarget(
        name="chp",
        source=RegistrySource(
            registry="registry.hub.docker.com",
            repository="jupyterhub/configurable-http-proxy",
        ),
        pin=Pin(path="jupyterhub/values.yaml", key="proxy.chp.image.tag"),
    )


@pytest.fixture
def scheduler_target() -> WatchTarget:
    return WatchTarget(
        name="kube-scheduler",
        source=RegistrySource(registry="registry.k8s.io", repository="kube-scheduler"),
        pin=Pin(path="jupyterhub/values.yaml", key="scheduling.userScheduler.image.tag"),
        filters=FilterRules(prefix="v1.23"),
    )


@pytest.fixture
def hub_target() -> WatchTarget:
    return WatchTarget(
        name="jupyterhub",
        source=PackageIndexSource(package="jupyterhub"),
        pin=Pin(path="images/hub/requirements.in", requirement="jupyterhub"),
        substitutions=[
            ExtraSubstitution(
                path="images/singleuser-sample/requirements.in",
                template="jupyterhub=={version}",
            ),
            ExtraSubstitution(
                path="jupyterhub/Chart.yaml", template='appVersion: "{version}"'
            ),
        ],
        post_update=[["ci/refreeze"]],
    )
