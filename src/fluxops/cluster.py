"""Kubernetes cluster interaction utilities.

This module provides the Cluster class for the namespace, secret and pod
operations the setup workflows perform against the current kubeconfig
context.
"""

import base64
from typing import Any

from icecream import ic
from kubernetes import client, config
from kubernetes.client.exceptions import ApiException
from kubernetes.config.config_exception import ConfigException
from urllib3.exceptions import MaxRetryError

from fluxops import console
from fluxops.exceptions import ClusterConnectionError, KubernetesApiError

_DOCKERCONFIG_TYPE = "kubernetes.io/dockerconfigjson"
_DOCKERCONFIG_KEY = ".dockerconfigjson"


def _is_not_found(err: ApiException) -> bool:
    return err.status == 404


def _api_error(action: str, err: ApiException) -> KubernetesApiError:
    return KubernetesApiError(f"Failed to {action}: {err.reason} (HTTP {err.status})")


class Cluster:
    """Manages Kubernetes cluster interactions for the setup workflows.

    Attributes:
        context: The active Kubernetes context name.
        api: CoreV1Api client bound to that context.

    """

    def __init__(self, *, context: str | None = None) -> None:
        """Load the kubeconfig and bind an API client.

        Args:
            context: Context to use; the current context when None.

        Raises:
            ClusterConnectionError: If the kubeconfig is invalid or missing.

        """
        self.context: str = self._resolve_context(context)
        try:
            config.load_kube_config(context=self.context)
        except ConfigException as e:
            raise ClusterConnectionError(f"Invalid or missing kubeconfig: {e}") from e
        self.api = client.CoreV1Api()

    @staticmethod
    def _resolve_context(context: str | None) -> str:
        try:
            contexts, current_context = config.list_kube_config_contexts()
        except ConfigException as e:
            raise ClusterConnectionError(f"Invalid or missing kubeconfig: {e}") from e

        if context is None:
            context = str(current_context["name"])
        elif context not in [ctx["name"] for ctx in contexts]:
            raise ClusterConnectionError(f"Context '{context}' not found in kubeconfig")

        console.action(f"Working with {console.highlight(context)} cluster")
        return context

    def check_connection(self) -> str:
        """Verify the API server answers, like ``kubectl cluster-info``.

        Returns:
            The server's git version.

        Raises:
            ClusterConnectionError: If the cluster is unreachable.

        """
        try:
            version = client.VersionApi().get_code()
        except MaxRetryError as e:
            raise ClusterConnectionError(f"Cannot connect to Kubernetes cluster: {e.reason}") from e
        except ApiException as e:
            raise ClusterConnectionError(f"Cannot connect to Kubernetes cluster: {e.reason}") from e
        ic(version.git_version)
        return str(version.git_version)

    def namespace_exists(self, name: str) -> bool:
        try:
            self.api.read_namespace(name)
        except ApiException as e:
            if _is_not_found(e):
                return False
            raise _api_error(f"read namespace '{name}'", e) from e
        return True

    def ensure_namespace(self, name: str) -> bool:
        """Create the namespace unless it already exists.

        Returns:
            True if the namespace was created.

        """
        if self.namespace_exists(name):
            console.info(f"Namespace {console.highlight(name)} already exists")
            return False

        console.action(f"Creating namespace {console.highlight(name)}...")
        try:
            self.api.create_namespace(client.V1Namespace(metadata=client.V1ObjectMeta(name=name)))
        except ApiException as e:
            raise _api_error(f"create namespace '{name}'", e) from e
        return True

    def secret_exists(self, name: str, namespace: str) -> bool:
        try:
            self.api.read_namespaced_secret(name, namespace)
        except ApiException as e:
            if _is_not_found(e):
                return False
            raise _api_error(f"read secret '{name}' in namespace '{namespace}'", e) from e
        return True

    def delete_secret(self, name: str, namespace: str) -> None:
        try:
            self.api.delete_namespaced_secret(name, namespace)
        except ApiException as e:
            raise _api_error(f"delete secret '{name}' in namespace '{namespace}'", e) from e

    def create_dockerconfig_secret(
        self,
        name: str,
        namespace: str,
        dockerconfigjson: str,
        labels: dict[str, str],
    ) -> None:
        """Create a ``kubernetes.io/dockerconfigjson`` secret.

        Args:
            name: Secret name.
            namespace: Target namespace.
            dockerconfigjson: The JSON document with the registry auths.
            labels: Labels to set on the secret.

        Raises:
            KubernetesApiError: If the API rejects the secret.

        """
        body = client.V1Secret(
            metadata=client.V1ObjectMeta(name=name, namespace=namespace, labels=labels),
            type=_DOCKERCONFIG_TYPE,
            data={_DOCKERCONFIG_KEY: base64.b64encode(dockerconfigjson.encode()).decode()},
        )
        try:
            self.api.create_namespaced_secret(namespace, body)
        except ApiException as e:
            raise _api_error(f"create secret '{name}' in namespace '{namespace}'", e) from e

    def describe_secret(self, name: str, namespace: str) -> dict[str, str]:
        """Summarise a secret without revealing its values.

        Returns:
            Mapping of display labels to values for a summary panel.

        """
        try:
            secret = self.api.read_namespaced_secret(name, namespace)
        except ApiException as e:
            raise _api_error(f"read secret '{name}' in namespace '{namespace}'", e) from e
        data = secret.data or {}
        labels = secret.metadata.labels or {}
        return {
            "Name": secret.metadata.name,
            "Namespace": secret.metadata.namespace,
            "Type": str(secret.type),
            "Labels": ", ".join(f"{key}={value}" for key, value in sorted(labels.items())) or "<none>",
            "Data": ", ".join(f"{key} ({len(base64.b64decode(value))} bytes)" for key, value in data.items())
            or "<none>",
        }

    def create_pod(self, namespace: str, manifest: dict[str, Any]) -> None:
        try:
            self.api.create_namespaced_pod(namespace, manifest)
        except ApiException as e:
            pod = manifest.get("metadata", {}).get("name", "")
            raise _api_error(f"create pod '{pod}' in namespace '{namespace}'", e) from e

    def pod_phase(self, name: str, namespace: str) -> str:
        try:
            return str(self.api.read_namespaced_pod(name, namespace).status.phase)
        except ApiException as e:
            raise _api_error(f"read pod '{name}' in namespace '{namespace}'", e) from e

    def pod_logs(self, name: str, namespace: str) -> str:
        try:
            return str(self.api.read_namespaced_pod_log(name, namespace))
        except ApiException as e:
            return f"<logs unavailable: {e.reason}>"

    def pod_events(self, name: str, namespace: str) -> list[str]:
        """Return the pod's events formatted like the tail of ``kubectl describe``."""
        try:
            events = self.api.list_namespaced_event(namespace, field_selector=f"involvedObject.name={name}").items
        except ApiException as e:
            return [f"<events unavailable: {e.reason}>"]
        return [f"{event.type}\t{event.reason}\t{event.message}" for event in events]

    def delete_pod(self, name: str, namespace: str) -> bool:
        """Delete a pod, ignoring it if it is already gone.

        Returns:
            True if a pod was deleted.

        """
        try:
            self.api.delete_namespaced_pod(name, namespace)
        except ApiException as e:
            if _is_not_found(e):
                return False
            raise _api_error(f"delete pod '{name}' in namespace '{namespace}'", e) from e
        return True

    def __repr__(self) -> str:
        """Return a detailed string representation for debugging."""
        return f"Cluster(context={self.context!r})"
