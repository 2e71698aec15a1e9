"""fluxops: tooling for a FluxCD + Helm GitOps repository.

This package bootstraps FluxCD, creates the GitHub Packages pull secret,
validates the repository's manifests, onboards team services and derives
the names and labels the base Helm chart gives a release.

Example usage:
    from fluxops import ReleaseContext, helpers

    ctx = ReleaseContext(chart_name="spring-boot-base", release_name="orders", chart_version="0.1.0")
    helpers.fullname(ctx)  # 'orders-spring-boot-base'
"""

__version__ = "0.3.0"

from fluxops import helpers
from fluxops.cli import cli
from fluxops.exceptions import (
    AuthenticationError,
    BinaryNotFoundError,
    ClusterConnectionError,
    CommandFailedError,
    FluxopsError,
    KubernetesApiError,
    ManifestError,
    MissingCredentialsError,
)
from fluxops.models import ReleaseContext, TeamParams

__all__ = [
    # Version
    "__version__",
    # Main CLI
    "cli",
    # Chart helpers
    "helpers",
    # Models
    "ReleaseContext",
    "TeamParams",
    # Exceptions
    "FluxopsError",
    "AuthenticationError",
    "BinaryNotFoundError",
    "ClusterConnectionError",
    "CommandFailedError",
    "KubernetesApiError",
    "ManifestError",
    "MissingCredentialsError",
]
