"""Team onboarding.

Generates the two FluxCD resources a new team service needs, a
GitRepository pointing at the team's chart and a HelmRelease deploying
it, writes them into the GitOps repository and applies them.
"""

from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Any

from icecream import ic

from fluxops import config, console, runner
from fluxops.exceptions import ManifestError
from fluxops.helpers import format_image
from fluxops.manifests import load_mapping, write_documents
from fluxops.models import TeamParams

SOURCE_API_VERSION = "source.toolkit.fluxcd.io/v1"
HELM_API_VERSION = "helm.toolkit.fluxcd.io/v2"
KUSTOMIZE_API_VERSION = "kustomize.config.k8s.io/v1beta1"
RELEASE_INTERVAL = "5m"
REMEDIATION_RETRIES = 3


@dataclass(frozen=True, slots=True)
class OnboardingResult:
    """Files produced for one team service."""

    source_path: Path
    release_path: Path
    kustomization_path: Path
    applied: bool


def _chart_dir(chart_path: str) -> str:
    """Normalise a chart path to the ``/dir`` form used in ignore rules.

    Returns an empty string for a chart at the repository root.
    """
    relative = str(PurePosixPath(chart_path.strip().lstrip("/")))
    return "" if relative == "." else f"/{relative}"


def render_git_repository(params: TeamParams, *, git_secret: str | None = None) -> dict[str, Any]:
    """Build the GitRepository for a team service.

    Everything outside the chart directory is ignored so unrelated commits
    do not produce new artifacts. A chart at the repository root gets no
    ignore rules.
    """
    spec: dict[str, Any] = {
        "interval": params.interval,
        "url": params.repository_url,
        "ref": {"branch": params.branch},
    }
    if git_secret:
        spec["secretRef"] = {"name": git_secret}
    chart_dir = _chart_dir(params.chart_path)
    if chart_dir:
        spec["ignore"] = f"/*\n!{chart_dir}/\n"

    return {
        "apiVersion": SOURCE_API_VERSION,
        "kind": "GitRepository",
        "metadata": {
            "name": params.resource_name,
            "namespace": config.FLUX_NAMESPACE,
            "labels": {
                "app.kubernetes.io/part-of": config.PART_OF_LABEL_VALUE,
                "team": params.team,
            },
        },
        "spec": spec,
    }


def render_helm_release(
    params: TeamParams,
    *,
    pull_secret: str = config.DEFAULT_SECRET_NAME,
    registry: str = config.DEFAULT_REGISTRY,
) -> dict[str, Any]:
    """Build the HelmRelease for a team service.

    Install and upgrade failures are remediated by helm-controller, which
    retries and rolls back on its own.
    """
    organization = params.image_repository.split("/", 1)[0] if "/" in params.image_repository else params.team

    return {
        "apiVersion": HELM_API_VERSION,
        "kind": "HelmRelease",
        "metadata": {
            "name": params.resource_name,
            "namespace": config.FLUX_NAMESPACE,
            "labels": {
                "app.kubernetes.io/part-of": config.PART_OF_LABEL_VALUE,
                "team": params.team,
            },
        },
        "spec": {
            "interval": RELEASE_INTERVAL,
            "targetNamespace": params.namespace,
            "releaseName": params.service,
            "chart": {
                "spec": {
                    "chart": params.chart_path,
                    "sourceRef": {
                        "kind": "GitRepository",
                        "name": params.resource_name,
                        "namespace": config.FLUX_NAMESPACE,
                    },
                    "interval": params.interval,
                }
            },
            "install": {
                "createNamespace": True,
                "remediation": {"retries": REMEDIATION_RETRIES},
            },
            "upgrade": {
                "remediation": {
                    "retries": REMEDIATION_RETRIES,
                    "remediateLastFailure": True,
                }
            },
            "values": {
                "image": {
                    "registry": registry,
                    "repository": params.image_repository,
                    "tag": params.image_tag,
                },
                "imagePullSecrets": [{"name": pull_secret}],
                "githubPackages": {
                    "enabled": True,
                    "organization": organization,
                },
            },
        },
    }


def register_release(kustomization_path: Path, release_file: str) -> bool:
    """Add a release file to the releases kustomization, creating it if needed.

    Returns:
        True if the kustomization changed.

    """
    if kustomization_path.exists():
        kustomization = load_mapping(kustomization_path)
    else:
        kustomization = {"apiVersion": KUSTOMIZE_API_VERSION, "kind": "Kustomization", "resources": []}

    resources = kustomization.get("resources") or []
    if release_file in resources:
        return False

    kustomization["resources"] = [*resources, release_file]
    write_documents(kustomization_path, [kustomization], overwrite=True)
    return True


def onboard_team(
    params: TeamParams,
    root: Path,
    *,
    apply: bool = True,
    force: bool = False,
    git_secret: str | None = None,
    pull_secret: str = config.DEFAULT_SECRET_NAME,
    registry: str = config.DEFAULT_REGISTRY,
) -> OnboardingResult:
    """Write the team's GitRepository and HelmRelease and optionally apply them.

    Args:
        params: Team service parameters.
        root: GitOps repository root.
        apply: Apply both manifests with kubectl after writing them.
        force: Overwrite existing manifests.
        git_secret: Secret holding Git credentials for private repositories.
        pull_secret: Image pull secret referenced by the release values.
        registry: Registry the image is pulled from.

    Returns:
        The written paths.

    Raises:
        ManifestError: If a manifest exists and force is False.
        CommandFailedError: If kubectl apply fails.

    """
    file_name = f"{params.resource_name}.yaml"
    source_path = root / config.SOURCES_DIR / file_name
    release_path = root / config.RELEASES_DIR / file_name
    kustomization_path = root / config.RELEASES_DIR / "kustomization.yaml"
    ic(source_path, release_path)

    console.header(f"Onboarding {console.highlight(params.resource_name)}...")

    if not force:
        for path in (source_path, release_path):
            if path.exists():
                raise ManifestError(f"File '{path}' already exists (use --force to overwrite)")

    write_documents(source_path, [render_git_repository(params, git_secret=git_secret)], overwrite=force)
    console.step(f"Wrote {source_path.relative_to(root)}")
    write_documents(
        release_path,
        [render_helm_release(params, pull_secret=pull_secret, registry=registry)],
        overwrite=force,
    )
    console.step(f"Wrote {release_path.relative_to(root)}")

    if register_release(kustomization_path, file_name):
        console.step(f"Registered {file_name} in {kustomization_path.relative_to(root)}")

    if apply:
        with console.spinner("Applying manifests..."):
            runner.run(["kubectl", "apply", "-f", str(source_path)])
            runner.run(["kubectl", "apply", "-f", str(release_path)])
        console.success("Manifests applied")
    else:
        console.info("Skipping kubectl apply")

    console.summary_panel(
        "Team Onboarded",
        {
            "Team": params.team,
            "Service": params.service,
            "Source": params.repository_url,
            "Branch": params.branch,
            "Namespace": params.namespace,
            "Image": format_image(registry, params.image_repository, params.image_tag),
        },
    )

    return OnboardingResult(
        source_path=source_path,
        release_path=release_path,
        kustomization_path=kustomization_path,
        applied=apply,
    )
