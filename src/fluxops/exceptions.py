"""Custom exceptions for fluxops.

This module defines the exception hierarchy used throughout the application
to provide meaningful error messages and proper error handling.
"""


class FluxopsError(Exception):
    """Base exception for all fluxops errors.

    Every workflow failure is raised as a subclass of this class, so the
    CLI can report it and exit with a non-zero status from one place.
    """

    pass


class BinaryNotFoundError(FluxopsError):
    """Raised when a required binary (kubectl, flux, helm, docker) is not found.

    This can occur when:
    - The binary is not installed
    - The binary is not in the system PATH
    """

    pass


class MissingCredentialsError(FluxopsError):
    """Raised when a required GitHub environment variable is not set."""

    pass


class AuthenticationError(FluxopsError):
    """Raised when GitHub or the container registry rejects the credentials."""

    pass


class ClusterConnectionError(FluxopsError):
    """Raised when connection to the Kubernetes cluster fails.

    This can occur when:
    - The kubeconfig is invalid or missing
    - The cluster is unreachable
    - Authentication fails
    """

    pass


class KubernetesApiError(FluxopsError):
    """Raised when the Kubernetes API rejects or fails a request."""

    pass


class CommandFailedError(FluxopsError):
    """Raised when an external command exits with a non-zero status.

    Attributes:
        cmd: The command that was executed.
        returncode: The exit status of the command.
        stderr: Captured standard error, stripped (may be empty).

    """

    def __init__(self, message: str, *, cmd: list[str], returncode: int, stderr: str = "") -> None:
        super().__init__(message)
        self.cmd = cmd
        self.returncode = returncode
        self.stderr = stderr


class ManifestError(FluxopsError):
    """Raised when a manifest or chart file cannot be read or written.

    This can occur when:
    - The file does not exist
    - The file is not valid YAML
    - A generated file would overwrite an existing one
    """

    pass
