"""Shared test fixtures for fluxops tests."""

from unittest.mock import MagicMock, patch

import pytest

from fluxops.models import GitHubCredentials, ReleaseContext, TeamParams


@pytest.fixture
def mock_kube_contexts():
    """Mock kubernetes config contexts."""
    with patch("kubernetes.config.list_kube_config_contexts") as mock:
        mock.return_value = ([{"name": "test-context"}, {"name": "other-context"}], {"name": "test-context"})
        yield mock


@pytest.fixture
def mock_kube_config():
    """Mock kubernetes config loading."""
    with patch("kubernetes.config.load_kube_config") as mock:
        yield mock


@pytest.fixture
def mock_core_v1_api():
    """Mock CoreV1Api."""
    with patch("kubernetes.client.CoreV1Api") as mock:
        api_instance = MagicMock()
        mock.return_value = api_instance
        yield api_instance


@pytest.fixture
def cluster_mocks(mock_kube_contexts, mock_kube_config, mock_core_v1_api):
    """Combined fixture for creating a Cluster instance."""
    return {
        "contexts": mock_kube_contexts,
        "config": mock_kube_config,
        "core_api": mock_core_v1_api,
    }


@pytest.fixture
def mock_subprocess():
    """Mock subprocess.run for command execution."""
    with patch("fluxops.runner.subprocess.run") as mock:
        mock.return_value = MagicMock(returncode=0, stdout="", stderr="")
        yield mock


@pytest.fixture
def credentials():
    """Sample GitHub credentials."""
    return GitHubCredentials(username="octocat", token="ghp_testtoken")


@pytest.fixture
def github_env(monkeypatch):
    """Set the GitHub environment variables the setup workflows read."""
    monkeypatch.setenv("GITHUB_USERNAME", "octocat")
    monkeypatch.setenv("GITHUB_TOKEN", "ghp_testtoken")
    monkeypatch.delenv("GITHUB_USER", raising=False)
    monkeypatch.delenv("GITHUB_OWNER", raising=False)


@pytest.fixture
def release_context():
    """Release context matching the base chart with registry labels enabled."""
    return ReleaseContext(
        chart_name="spring-boot-base",
        release_name="orders",
        chart_version="0.1.0",
        app_version="1.4.2",
        values={
            "image": {"registry": "ghcr.io", "repository": "acme/orders", "tag": "v1"},
            "githubPackages": {"enabled": True},
        },
    )


@pytest.fixture
def team_params():
    """Sample onboarding parameters."""
    return TeamParams(
        team="team-a",
        service="orders",
        repository_url="https://github.com/acme/orders.git",
        branch="main",
        namespace="gitops-poc",
        image_repository="acme/orders",
        image_tag="v1.2.0",
        chart_path="./helm",
    )


CHART_YAML = """apiVersion: v2
name: spring-boot-base
description: Base chart for Spring Boot services
type: application
version: 0.1.0
appVersion: "1.0.0"
"""

VALUES_YAML = """image:
  registry: ghcr.io
  repository: acme/service
  tag: ""
githubPackages:
  enabled: false
serviceAccount:
  create: true
  name: ""
"""

NAMESPACE_YAML = """apiVersion: v1
kind: Namespace
metadata:
  name: gitops-poc
"""

SOURCE_YAML = """apiVersion: source.toolkit.fluxcd.io/v1
kind: GitRepository
metadata:
  name: team-a-service
  namespace: flux-system
spec:
  interval: 1m
  url: https://github.com/acme/team-a-service.git
  ref:
    branch: main
"""

RELEASE_YAML = """apiVersion: helm.toolkit.fluxcd.io/v2
kind: HelmRelease
metadata:
  name: team-a-service
  namespace: flux-system
spec:
  interval: 5m
  targetNamespace: gitops-poc
  chart:
    spec:
      chart: ./helm
      sourceRef:
        kind: GitRepository
        name: team-a-service
  values:
    image:
      registry: ghcr.io
      repository: acme/team-a-service
    imagePullSecrets:
      - name: github-packages-secret
"""

KUSTOMIZATION_YAML = """apiVersion: kustomize.config.k8s.io/v1beta1
kind: Kustomization
resources:
  - team-a-service.yaml
"""


@pytest.fixture
def chart_dir(tmp_path):
    """A minimal chart directory with every required file."""
    chart = tmp_path / "chart"
    (chart / "templates").mkdir(parents=True)
    (chart / "Chart.yaml").write_text(CHART_YAML)
    (chart / "values.yaml").write_text(VALUES_YAML)
    for name in ("deployment.yaml", "service.yaml", "_helpers.tpl"):
        (chart / "templates" / name).write_text("# template\n")
    return chart


@pytest.fixture
def repo_root(tmp_path):
    """A GitOps repository checkout with valid manifests and the base chart."""
    root = tmp_path / "repo"
    fluxcd = root / "infrastructure" / "fluxcd"
    for sub in ("namespaces", "sources", "releases"):
        (fluxcd / sub).mkdir(parents=True)
    (fluxcd / "namespaces" / "gitops-poc.yaml").write_text(NAMESPACE_YAML)
    (fluxcd / "sources" / "team-a-service.yaml").write_text(SOURCE_YAML)
    (fluxcd / "releases" / "team-a-service.yaml").write_text(RELEASE_YAML)
    (fluxcd / "releases" / "kustomization.yaml").write_text(KUSTOMIZATION_YAML)

    chart = root / "infrastructure" / "helm-templates" / "spring-boot-base"
    (chart / "templates").mkdir(parents=True)
    (chart / "Chart.yaml").write_text(CHART_YAML)
    (chart / "values.yaml").write_text(VALUES_YAML)
    for name in ("deployment.yaml", "service.yaml", "_helpers.tpl"):
        (chart / "templates" / name).write_text("# template\n")
    return root
