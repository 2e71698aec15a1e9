"""Default settings and environment handling for fluxops.

Every default here can be overridden from the command line; the GitHub
identity is read from the environment the same way the setup scripts
always did.
"""

import os
from pathlib import Path

from fluxops.exceptions import MissingCredentialsError
from fluxops.models import GitHubCredentials

# Application namespace and registry secret
DEFAULT_NAMESPACE = "gitops-poc"
DEFAULT_SECRET_NAME = "github-packages-secret"
PART_OF_LABEL_VALUE = "gitops-poc"

# Container registry
DEFAULT_REGISTRY = "ghcr.io"
DEFAULT_TEST_IMAGE = "ghcr.io/duggireddy-nsf/team-a-service:latest"

# FluxCD bootstrap
FLUX_NAMESPACE = "flux-system"
FLUX_PATH = "./infrastructure/fluxcd/flux-system"
FLUX_INSTALL_URL = "https://fluxcd.io/install.sh"
FLUX_CONTROLLERS = (
    "source-controller",
    "kustomize-controller",
    "helm-controller",
    "notification-controller",
)
DEFAULT_GITHUB_OWNER = "Duggireddy-NSF"
DEFAULT_GITHUB_REPOSITORY = "devops-gitops"
DEFAULT_BRANCH = "main"
GITHUB_API_URL = "https://api.github.com"

# kubectl wait timeout, passed straight through
WAIT_TIMEOUT = "300s"
HTTP_TIMEOUT = 30

# Repository layout
INFRASTRUCTURE_DIR = Path("infrastructure")
FLUXCD_DIR = INFRASTRUCTURE_DIR / "fluxcd"
NAMESPACES_DIR = FLUXCD_DIR / "namespaces"
SOURCES_DIR = FLUXCD_DIR / "sources"
RELEASES_DIR = FLUXCD_DIR / "releases"
SECRETS_DIR = FLUXCD_DIR / "secrets"
NAMESPACE_MANIFEST = NAMESPACES_DIR / "gitops-poc.yaml"
DEFAULT_CHART_DIR = INFRASTRUCTURE_DIR / "helm-templates" / "spring-boot-base"


def packages_credentials() -> GitHubCredentials:
    """Read registry credentials from GITHUB_USERNAME and GITHUB_TOKEN.

    Returns:
        GitHubCredentials for the container registry.

    Raises:
        MissingCredentialsError: If either variable is unset or empty.

    """
    username = os.environ.get("GITHUB_USERNAME", "")
    token = os.environ.get("GITHUB_TOKEN", "")

    if not username:
        raise MissingCredentialsError(
            "GITHUB_USERNAME environment variable is not set. "
            "Please set it using: export GITHUB_USERNAME=your-github-username"
        )
    if not token:
        raise MissingCredentialsError(
            "GITHUB_TOKEN environment variable is not set. "
            "Please set it using: export GITHUB_TOKEN=your-github-token "
            "(the token needs 'packages:read' and 'packages:write' permissions)"
        )
    return GitHubCredentials(username=username, token=token)


def bootstrap_credentials(owner: str) -> tuple[GitHubCredentials, bool]:
    """Read flux bootstrap credentials from GITHUB_TOKEN and GITHUB_USER.

    GITHUB_USER falls back to the repository owner.

    Args:
        owner: The repository owner used when GITHUB_USER is unset.

    Returns:
        Tuple of (credentials, used_fallback).

    Raises:
        MissingCredentialsError: If GITHUB_TOKEN is unset or empty.

    """
    token = os.environ.get("GITHUB_TOKEN", "")
    if not token:
        raise MissingCredentialsError(
            "GITHUB_TOKEN is not set. Please create a GitHub Personal Access Token with: "
            "repo (full control), write:packages, read:packages"
        )

    user = os.environ.get("GITHUB_USER", "")
    if user:
        return GitHubCredentials(username=user, token=token), False
    return GitHubCredentials(username=owner, token=token), True
