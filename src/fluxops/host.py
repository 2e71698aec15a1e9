"""Host system utilities for fluxops.

This module provides the Host class for checking the tools a workflow
needs, installing the flux CLI and verifying GitHub credentials.
"""

import json
import shutil
from collections.abc import Iterable

import requests
from icecream import ic

from fluxops import console, runner
from fluxops.config import DEFAULT_REGISTRY, FLUX_INSTALL_URL, GITHUB_API_URL, HTTP_TIMEOUT
from fluxops.exceptions import AuthenticationError, BinaryNotFoundError, CommandFailedError
from fluxops.models import GitHubCredentials


class Host:
    """Manages host system operations for the setup workflows.

    Attributes:
        install_url: URL of the official flux installation script.
        api_url: Base URL of the GitHub REST API.

    """

    def __init__(self, *, install_url: str = FLUX_INSTALL_URL, api_url: str = GITHUB_API_URL) -> None:
        self.install_url: str = install_url
        self.api_url: str = api_url

    def __repr__(self) -> str:
        """Return a detailed string representation for debugging."""
        return f"Host(install_url={self.install_url!r}, api_url={self.api_url!r})"

    @staticmethod
    def has_binary(binary: str) -> bool:
        """Return whether the binary can be found on PATH."""
        return shutil.which(binary) is not None

    def missing_binaries(self, binaries: Iterable[str]) -> list[str]:
        """Return the binaries from the list that are not on PATH."""
        missing = [binary for binary in binaries if not self.has_binary(binary)]
        ic(missing)
        return missing

    def require_binaries(self, binaries: Iterable[str]) -> None:
        """Ensure every binary is available.

        Raises:
            BinaryNotFoundError: Naming the first missing binary.

        """
        missing = self.missing_binaries(binaries)
        if missing:
            raise BinaryNotFoundError(f"{missing[0]} is not installed or not in PATH")

    @staticmethod
    def flux_version() -> str | None:
        """Return the installed flux CLI version, or None if flux is unusable."""
        try:
            result = runner.run(["flux", "version", "--client", "-o", "json"])
        except (BinaryNotFoundError, CommandFailedError):
            return None

        try:
            payload = json.loads(result.stdout)
        except json.JSONDecodeError:
            return None
        ic(payload)
        if not isinstance(payload, dict):
            return None
        version = payload.get("flux") or payload.get("fluxVersion")
        return str(version) if version else None

    def install_flux_cli(self) -> str:
        """Install the flux CLI with the official installation script.

        The script is downloaded and piped into ``sudo bash``.

        Returns:
            The installed flux version.

        Raises:
            CommandFailedError: If the installation script fails.
            BinaryNotFoundError: If flux is still unusable afterwards.

        """
        console.action("Installing FluxCD CLI using official script...")
        with console.spinner("Downloading install script..."):
            response = requests.get(self.install_url, timeout=HTTP_TIMEOUT)
            response.raise_for_status()

        runner.run(["sudo", "bash"], input_data=response.text, capture=False)

        version = self.flux_version()
        if version is None:
            raise BinaryNotFoundError("FluxCD CLI installation failed")
        return version

    def verify_github_token(self, credentials: GitHubCredentials) -> str:
        """Check the token against the GitHub API.

        Returns:
            The login the token belongs to.

        Raises:
            AuthenticationError: If the API is unreachable or rejects the token.

        """
        try:
            response = requests.get(
                f"{self.api_url}/user",
                headers={
                    "Authorization": f"token {credentials.token}",
                    "Accept": "application/vnd.github+json",
                },
                timeout=HTTP_TIMEOUT,
            )
        except requests.RequestException as err:
            raise AuthenticationError(f"GitHub authentication failed: {err}") from err

        if response.status_code != 200:
            raise AuthenticationError(f"GitHub authentication failed (HTTP {response.status_code})")

        login = str(response.json().get("login", ""))
        ic(login)
        return login

    @staticmethod
    def docker_login(credentials: GitHubCredentials, registry: str = DEFAULT_REGISTRY) -> None:
        """Log in to the container registry, passing the token on stdin.

        Raises:
            AuthenticationError: If docker login fails.

        """
        cmd = ["docker", "login", registry, "-u", credentials.username, "--password-stdin"]
        if not runner.succeeds(cmd, input_data=credentials.token):
            raise AuthenticationError(
                f"Failed to authenticate with {registry}. Please check your GITHUB_USERNAME and GITHUB_TOKEN"
            )
