"""GitHub Packages registry secret.

Creates the ``kubernetes.io/dockerconfigjson`` secret workloads use to pull
images from GitHub Container Registry, then optionally proves it works
with a short-lived test pod.
"""

import base64
import json
from dataclasses import dataclass
from typing import Any

from icecream import ic

from fluxops import config, console, runner
from fluxops.cluster import Cluster
from fluxops.exceptions import CommandFailedError, FluxopsError
from fluxops.host import Host
from fluxops.models import GitHubCredentials
from fluxops.prompts import confirm

TEST_POD_NAME = "github-packages-test"
_TEST_POD_DEADLINE_SECONDS = 300
_EVENTS_LIMIT = 10


@dataclass(frozen=True, slots=True)
class PackagesSecretOptions:
    """Settings for a registry secret run.

    Attributes:
        namespace: Namespace the secret is created in.
        secret_name: Name of the secret.
        registry: Registry host the credentials are for.
        skip_test: Do not run the image pull test pod.
        test_image: Image the test pod pulls.
        assume_yes: Replace an existing secret without asking.

    """

    namespace: str = config.DEFAULT_NAMESPACE
    secret_name: str = config.DEFAULT_SECRET_NAME
    registry: str = config.DEFAULT_REGISTRY
    skip_test: bool = False
    test_image: str = config.DEFAULT_TEST_IMAGE
    assume_yes: bool = False


def build_dockerconfigjson(credentials: GitHubCredentials, registry: str = config.DEFAULT_REGISTRY) -> str:
    """Build the ``.dockerconfigjson`` document for a single registry.

    Args:
        credentials: Registry username and token.
        registry: Registry host used as the auths key.

    Returns:
        The JSON document as a string.

    """
    auth = base64.b64encode(f"{credentials.username}:{credentials.token}".encode()).decode()
    return json.dumps(
        {
            "auths": {
                registry: {
                    "username": credentials.username,
                    "password": credentials.token,
                    "auth": auth,
                }
            }
        },
        indent=2,
    )


def secret_labels(secret_name: str) -> dict[str, str]:
    return {
        "app.kubernetes.io/name": secret_name,
        "app.kubernetes.io/part-of": config.PART_OF_LABEL_VALUE,
        "github.com/packages-integration": "true",
    }


def pull_test_pod_manifest(namespace: str, secret_name: str, image: str) -> dict[str, Any]:
    """Pod that only succeeds if the image can be pulled with the secret."""
    return {
        "apiVersion": "v1",
        "kind": "Pod",
        "metadata": {
            "name": TEST_POD_NAME,
            "namespace": namespace,
            "labels": {"test": "github-packages"},
        },
        "spec": {
            "restartPolicy": "Never",
            "imagePullSecrets": [{"name": secret_name}],
            "containers": [
                {
                    "name": "test",
                    "image": image,
                    "command": ["echo", "Image pull successful"],
                }
            ],
            "activeDeadlineSeconds": _TEST_POD_DEADLINE_SECONDS,
        },
    }


def check_dependencies(host: Host) -> None:
    console.header("Checking dependencies...")
    host.require_binaries(["kubectl", "docker"])
    console.success("Dependencies check passed")


def check_registry_auth(host: Host, credentials: GitHubCredentials, registry: str) -> None:
    console.header("Testing GitHub authentication...")
    with console.spinner(f"Logging in to {registry}..."):
        host.docker_login(credentials, registry)
    console.success("GitHub authentication successful")


def create_secret(cluster: Cluster, credentials: GitHubCredentials, options: PackagesSecretOptions) -> bool:
    """Create the registry secret, asking before replacing an existing one.

    Returns:
        False if the user chose to keep the existing secret.

    """
    console.header(
        f"Creating GitHub Packages secret {console.highlight(options.secret_name)} "
        f"in namespace {console.highlight(options.namespace)}..."
    )

    if cluster.secret_exists(options.secret_name, options.namespace):
        console.warning(f"Secret '{options.secret_name}' already exists in namespace '{options.namespace}'")
        if not confirm("Do you want to replace it?", assume_yes=options.assume_yes):
            console.info("Skipping secret creation")
            return False
        cluster.delete_secret(options.secret_name, options.namespace)

    cluster.create_dockerconfig_secret(
        options.secret_name,
        options.namespace,
        build_dockerconfigjson(credentials, options.registry),
        secret_labels(options.secret_name),
    )
    console.success(f"Secret '{options.secret_name}' created successfully")
    return True


def verify_secret(cluster: Cluster, secret_name: str, namespace: str) -> None:
    """Confirm the secret is readable and show it without its values.

    Raises:
        FluxopsError: If the secret cannot be found.

    """
    console.header(f"Verifying secret {console.highlight(secret_name)}...")
    if not cluster.secret_exists(secret_name, namespace):
        raise FluxopsError("Secret verification failed")

    console.success("Secret exists and is accessible")
    console.summary_panel("Secret Details", cluster.describe_secret(secret_name, namespace))


def run_pull_test(cluster: Cluster, options: PackagesSecretOptions) -> bool:
    """Run the image pull test pod and always clean it up.

    A pod left over from an interrupted run is deleted first. A failed
    pull is reported as a warning, not an error.

    Returns:
        True if the pod reached Running or Succeeded.

    """
    console.header("Creating test pod to verify image pull capabilities...")
    if cluster.delete_pod(TEST_POD_NAME, options.namespace):
        console.step("Removing test pod left over from a previous run...")
        runner.run(
            [
                "kubectl",
                "wait",
                "--for=delete",
                f"pod/{TEST_POD_NAME}",
                "-n",
                options.namespace,
                f"--timeout={config.WAIT_TIMEOUT}",
            ]
        )

    manifest = pull_test_pod_manifest(options.namespace, options.secret_name, options.test_image)
    cluster.create_pod(options.namespace, manifest)

    try:
        console.step("Waiting for test pod to complete...")
        try:
            runner.run(
                [
                    "kubectl",
                    "wait",
                    "--for=condition=Ready",
                    f"pod/{TEST_POD_NAME}",
                    "-n",
                    options.namespace,
                    f"--timeout={config.WAIT_TIMEOUT}",
                ]
            )
        except CommandFailedError as err:
            ic(err.stderr)

        phase = cluster.pod_phase(TEST_POD_NAME, options.namespace)
        ic(phase)
        if phase in ("Succeeded", "Running"):
            console.success("Image pull test successful")
            return True

        console.warning("Image pull test failed or pod is still running")
        console.info(f"Pod status: {console.highlight(phase)}")
        console.info("Pod logs:")
        console.output_block(cluster.pod_logs(TEST_POD_NAME, options.namespace))
        console.info("Pod events:")
        console.output_block("\n".join(cluster.pod_events(TEST_POD_NAME, options.namespace)), limit=_EVENTS_LIMIT)
        return False
    finally:
        cluster.delete_pod(TEST_POD_NAME, options.namespace)


def show_next_steps(options: PackagesSecretOptions) -> None:
    console.newline()
    console.success("GitHub Packages secret setup completed successfully!")
    console.next_steps(
        [
            f"Your applications can now use imagePullSecrets with name: {options.secret_name}",
            "Apply your FluxCD configurations to start GitOps deployments",
            f"Monitor deployments with: kubectl get pods -n {options.namespace}",
        ]
    )


def setup_packages_secret(
    options: PackagesSecretOptions,
    *,
    host: Host | None = None,
    cluster: Cluster | None = None,
) -> None:
    """Create and verify the GitHub Packages registry secret.

    Args:
        options: Secret settings.
        host: Host helper, created when None.
        cluster: Cluster client, created when None.

    Raises:
        FluxopsError: On the first failed step.

    """
    host = host or Host()

    check_dependencies(host)
    credentials = config.packages_credentials()
    console.success("GitHub credentials validated")
    check_registry_auth(host, credentials, options.registry)

    cluster = cluster or Cluster()
    cluster.ensure_namespace(options.namespace)
    create_secret(cluster, credentials, options)
    verify_secret(cluster, options.secret_name, options.namespace)

    if not options.skip_test:
        run_pull_test(cluster, options)

    show_next_steps(options)
