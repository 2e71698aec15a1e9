"""Tests for the GitHub Packages secret workflow."""

import base64
import json
from unittest.mock import MagicMock, patch

import pytest

from fluxops.exceptions import BinaryNotFoundError, CommandFailedError, FluxopsError, MissingCredentialsError
from fluxops.setup.packages_secret import (
    TEST_POD_NAME,
    PackagesSecretOptions,
    build_dockerconfigjson,
    create_secret,
    pull_test_pod_manifest,
    run_pull_test,
    secret_labels,
    setup_packages_secret,
    verify_secret,
)


@pytest.fixture
def host():
    return MagicMock()


@pytest.fixture
def cluster():
    mock = MagicMock()
    mock.secret_exists.return_value = False
    mock.delete_pod.return_value = False
    mock.describe_secret.return_value = {"Name": "github-packages-secret"}
    return mock


class TestDockerConfigJson:
    """Tests for the registry auth document."""

    def test_structure(self, credentials):
        doc = json.loads(build_dockerconfigjson(credentials))

        entry = doc["auths"]["ghcr.io"]
        assert entry["username"] == "octocat"
        assert entry["password"] == "ghp_testtoken"
        assert base64.b64decode(entry["auth"]).decode() == "octocat:ghp_testtoken"

    def test_custom_registry(self, credentials):
        doc = json.loads(build_dockerconfigjson(credentials, "registry.example.com"))
        assert list(doc["auths"]) == ["registry.example.com"]


class TestManifests:
    """Tests for labels and the pull test pod."""

    def test_secret_labels(self):
        assert secret_labels("pull") == {
            "app.kubernetes.io/name": "pull",
            "app.kubernetes.io/part-of": "gitops-poc",
            "github.com/packages-integration": "true",
        }

    def test_pull_test_pod(self):
        pod = pull_test_pod_manifest("gitops-poc", "pull", "ghcr.io/acme/orders:v1")

        assert pod["metadata"]["name"] == TEST_POD_NAME
        assert pod["spec"]["restartPolicy"] == "Never"
        assert pod["spec"]["imagePullSecrets"] == [{"name": "pull"}]
        assert pod["spec"]["containers"][0]["image"] == "ghcr.io/acme/orders:v1"
        assert pod["spec"]["activeDeadlineSeconds"] == 300


class TestCreateSecret:
    """Tests for secret creation."""

    def test_create_new(self, cluster, credentials):
        assert create_secret(cluster, credentials, PackagesSecretOptions()) is True

        name, namespace, payload, labels = cluster.create_dockerconfig_secret.call_args[0]
        assert (name, namespace) == ("github-packages-secret", "gitops-poc")
        assert "ghcr.io" in json.loads(payload)["auths"]
        assert labels["github.com/packages-integration"] == "true"
        cluster.delete_secret.assert_not_called()

    def test_existing_kept_when_declined(self, cluster, credentials):
        cluster.secret_exists.return_value = True
        with patch("fluxops.setup.packages_secret.confirm", return_value=False):
            assert create_secret(cluster, credentials, PackagesSecretOptions()) is False
        cluster.delete_secret.assert_not_called()
        cluster.create_dockerconfig_secret.assert_not_called()

    def test_existing_replaced(self, cluster, credentials):
        cluster.secret_exists.return_value = True
        with patch("fluxops.setup.packages_secret.confirm", return_value=True) as mock_confirm:
            assert create_secret(cluster, credentials, PackagesSecretOptions(assume_yes=True)) is True
        assert mock_confirm.call_args.kwargs["assume_yes"] is True
        cluster.delete_secret.assert_called_once_with("github-packages-secret", "gitops-poc")
        cluster.create_dockerconfig_secret.assert_called_once()


class TestVerifySecret:
    """Tests for secret verification."""

    def test_verified(self, cluster):
        cluster.secret_exists.return_value = True
        verify_secret(cluster, "github-packages-secret", "gitops-poc")
        cluster.describe_secret.assert_called_once_with("github-packages-secret", "gitops-poc")

    def test_missing(self, cluster):
        with pytest.raises(FluxopsError) as exc_info:
            verify_secret(cluster, "github-packages-secret", "gitops-poc")
        assert str(exc_info.value) == "Secret verification failed"


class TestPullTest:
    """Tests for the image pull test pod."""

    def test_success_cleans_up(self, cluster):
        cluster.pod_phase.return_value = "Succeeded"
        with patch("fluxops.setup.packages_secret.runner.run") as mock_run:
            assert run_pull_test(cluster, PackagesSecretOptions()) is True

        assert "--for=condition=Ready" in mock_run.call_args[0][0]
        cluster.create_pod.assert_called_once()
        cluster.delete_pod.assert_called_with(TEST_POD_NAME, "gitops-poc")

    def test_failure_is_warning_and_cleans_up(self, cluster):
        cluster.pod_phase.return_value = "Pending"
        cluster.pod_logs.return_value = "<logs unavailable: Bad Request>"
        cluster.pod_events.return_value = ["Warning\tFailed\tErrImagePull"]
        error = CommandFailedError("timed out", cmd=["kubectl"], returncode=1)
        with patch("fluxops.setup.packages_secret.runner.run", side_effect=error):
            assert run_pull_test(cluster, PackagesSecretOptions()) is False

        cluster.pod_events.assert_called_once()
        cluster.delete_pod.assert_called_with(TEST_POD_NAME, "gitops-poc")

    def test_stale_pod_removed_first(self, cluster):
        cluster.delete_pod.side_effect = [True, True]
        cluster.pod_phase.return_value = "Succeeded"
        with patch("fluxops.setup.packages_secret.runner.run") as mock_run:
            assert run_pull_test(cluster, PackagesSecretOptions()) is True

        first_wait = mock_run.call_args_list[0].args[0]
        assert "--for=delete" in first_wait
        assert f"pod/{TEST_POD_NAME}" in first_wait
        assert cluster.delete_pod.call_count == 2
        cluster.create_pod.assert_called_once()

    def test_no_leftover_pod_skips_wait(self, cluster):
        cluster.pod_phase.return_value = "Succeeded"
        with patch("fluxops.setup.packages_secret.runner.run") as mock_run:
            run_pull_test(cluster, PackagesSecretOptions())

        assert all("--for=delete" not in call.args[0] for call in mock_run.call_args_list)

    def test_cleanup_on_unexpected_error(self, cluster):
        cluster.pod_phase.side_effect = RuntimeError("api down")
        with patch("fluxops.setup.packages_secret.runner.run"):
            with pytest.raises(RuntimeError):
                run_pull_test(cluster, PackagesSecretOptions())
        assert cluster.delete_pod.call_count == 2


class TestSetupPackagesSecret:
    """Tests for the whole workflow."""

    def test_full_run(self, host, cluster, github_env):
        cluster.secret_exists.side_effect = [False, True]
        cluster.pod_phase.return_value = "Succeeded"
        with patch("fluxops.setup.packages_secret.runner.run"):
            setup_packages_secret(PackagesSecretOptions(), host=host, cluster=cluster)

        host.require_binaries.assert_called_once_with(["kubectl", "docker"])
        host.docker_login.assert_called_once()
        cluster.ensure_namespace.assert_called_once_with("gitops-poc")
        cluster.create_dockerconfig_secret.assert_called_once()
        cluster.create_pod.assert_called_once()

    def test_skip_test(self, host, cluster, github_env):
        cluster.secret_exists.side_effect = [False, True]
        setup_packages_secret(PackagesSecretOptions(skip_test=True), host=host, cluster=cluster)
        cluster.create_pod.assert_not_called()

    def test_missing_credentials_stop_before_cluster(self, host, cluster, github_env, monkeypatch):
        monkeypatch.delenv("GITHUB_TOKEN")
        with pytest.raises(MissingCredentialsError):
            setup_packages_secret(PackagesSecretOptions(), host=host, cluster=cluster)
        host.docker_login.assert_not_called()
        cluster.ensure_namespace.assert_not_called()

    def test_missing_binary_stops_first(self, host, cluster, github_env):
        host.require_binaries.side_effect = BinaryNotFoundError("docker is not installed or not in PATH")
        with pytest.raises(BinaryNotFoundError):
            setup_packages_secret(PackagesSecretOptions(), host=host, cluster=cluster)
        cluster.ensure_namespace.assert_not_called()
