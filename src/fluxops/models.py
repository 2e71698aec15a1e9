"""Data models for fluxops.

This module provides type-safe data structures for the application,
replacing loosely-typed dictionaries with proper Python data classes.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, NamedTuple


@dataclass(frozen=True, slots=True)
class ReleaseContext:
    """Everything the chart helpers need to derive names and labels.

    Attributes:
        chart_name: The `name` field of Chart.yaml.
        release_name: The Helm release name.
        chart_version: The `version` field of Chart.yaml.
        app_version: The `appVersion` field of Chart.yaml (may be empty).
        values: The merged values mapping.
        release_service: The tool managing the release.

    """

    chart_name: str
    release_name: str
    chart_version: str
    app_version: str = ""
    values: dict[str, Any] = field(default_factory=dict)
    release_service: str = "Helm"


class ImageRef(NamedTuple):
    """A container image split into its parts."""

    registry: str
    repository: str
    tag: str


@dataclass(frozen=True, slots=True)
class GitHubCredentials:
    """GitHub identity used for the API, the registry and flux bootstrap.

    The token is excluded from the repr so it never ends up in debug output.
    """

    username: str
    token: str = field(repr=False)


@dataclass(frozen=True, slots=True)
class TeamParams:
    """Parameters for onboarding a team service into the GitOps repository.

    Attributes:
        team: Team identifier, used as a name prefix.
        service: Service name within the team.
        repository_url: Git URL holding the service chart.
        branch: Branch FluxCD tracks.
        namespace: Target namespace for the Helm release.
        image_repository: Image repository under the registry (org/name).
        image_tag: Image tag to deploy.
        chart_path: Chart path inside the repository.
        interval: Source polling interval.

    """

    team: str
    service: str
    repository_url: str
    branch: str
    namespace: str
    image_repository: str
    image_tag: str
    chart_path: str
    interval: str = "1m"

    @property
    def resource_name(self) -> str:
        """Name shared by the generated GitRepository and HelmRelease."""
        return f"{self.team}-{self.service}"


class CheckStatus(str, Enum):
    """Outcome of a single validation check.

    Inherits from str to allow direct use in string contexts.
    """

    PASSED = "passed"
    WARNING = "warning"
    FAILED = "failed"
    SKIPPED = "skipped"


class CheckResult(NamedTuple):
    """Result of one validation check."""

    name: str
    status: CheckStatus
    message: str


@dataclass(slots=True)
class ValidationReport:
    """Collected results of a validation run."""

    results: list[CheckResult] = field(default_factory=list)

    def add(self, name: str, status: CheckStatus, message: str) -> CheckResult:
        result = CheckResult(name=name, status=status, message=message)
        self.results.append(result)
        return result

    def _count(self, status: CheckStatus) -> int:
        return sum(1 for result in self.results if result.status is status)

    @property
    def errors(self) -> int:
        return self._count(CheckStatus.FAILED)

    @property
    def warnings(self) -> int:
        return self._count(CheckStatus.WARNING)

    @property
    def passed(self) -> int:
        return self._count(CheckStatus.PASSED)

    @property
    def skipped(self) -> int:
        return self._count(CheckStatus.SKIPPED)

    @property
    def ok(self) -> bool:
        return self.errors == 0
