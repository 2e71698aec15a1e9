"""Chart naming and label helpers.

Python counterparts of the named templates in the base chart's
``_helpers.tpl``. Every function is a pure function of a
:class:`~fluxops.models.ReleaseContext`, so the names a release will get
can be computed without rendering the chart.
"""

from typing import Any

from fluxops.config import DEFAULT_REGISTRY
from fluxops.manifests import get_path
from fluxops.models import ImageRef, ReleaseContext

# Kubernetes DNS label limit (RFC 1123)
DNS_LABEL_MAX_LENGTH = 63

PACKAGES_INTEGRATION_LABEL = "github.com/packages-integration"
REGISTRY_LABEL = "github.com/registry"
ORGANIZATION_LABEL = "github.com/organization"


def trunc_name(value: str) -> str:
    """Truncate to the DNS label limit and strip trailing hyphens.

    Args:
        value: The candidate name.

    Returns:
        At most 63 characters, never ending in '-'.

    """
    return value[:DNS_LABEL_MAX_LENGTH].rstrip("-")


def lookup(values: dict[str, Any], path: str, default: Any = None) -> Any:
    """Read a dotted path such as ``image.tag`` from a values mapping."""
    value = get_path(values, path)
    return default if value is None else value


def name(ctx: ReleaseContext) -> str:
    """Expand the name of the chart (``chart.name``)."""
    return trunc_name(lookup(ctx.values, "nameOverride") or ctx.chart_name)


def fullname(ctx: ReleaseContext) -> str:
    """Create a default fully qualified app name (``chart.fullname``).

    If the release name already contains the chart name it is used as is,
    otherwise the two are joined with a hyphen.
    """
    override = lookup(ctx.values, "fullnameOverride")
    if override:
        return trunc_name(override)

    base = lookup(ctx.values, "nameOverride") or ctx.chart_name
    if base in ctx.release_name:
        return trunc_name(ctx.release_name)
    return trunc_name(f"{ctx.release_name}-{base}")


def chart(ctx: ReleaseContext) -> str:
    """Create the chart name and version as used by the chart label."""
    return trunc_name(f"{ctx.chart_name}-{ctx.chart_version}".replace("+", "_"))


def selector_labels(ctx: ReleaseContext) -> dict[str, str]:
    return {
        "app.kubernetes.io/name": name(ctx),
        "app.kubernetes.io/instance": ctx.release_name,
    }


def packages_integration_enabled(ctx: ReleaseContext) -> bool:
    return bool(lookup(ctx.values, "githubPackages.enabled", False))


def organization(ctx: ReleaseContext) -> str:
    """Registry organization: explicit value, else the first repository segment."""
    explicit = lookup(ctx.values, "githubPackages.organization")
    if explicit:
        return str(explicit)
    repository = str(lookup(ctx.values, "image.repository", ""))
    return repository.split("/", 1)[0] if "/" in repository else ""


def labels(ctx: ReleaseContext) -> dict[str, str]:
    """Common labels (``chart.labels``).

    The five standard keys are always present. The registry labels are
    added only when ``githubPackages.enabled`` is true.
    """
    result = {"helm.sh/chart": chart(ctx)}
    result.update(selector_labels(ctx))
    result["app.kubernetes.io/version"] = str(ctx.app_version or ctx.chart_version)
    result["app.kubernetes.io/managed-by"] = ctx.release_service

    if packages_integration_enabled(ctx):
        result[PACKAGES_INTEGRATION_LABEL] = "true"
        result[REGISTRY_LABEL] = str(lookup(ctx.values, "image.registry", DEFAULT_REGISTRY))
        org = organization(ctx)
        if org:
            result[ORGANIZATION_LABEL] = org

    return result


def service_account_name(ctx: ReleaseContext) -> str:
    """Name of the service account to use."""
    if lookup(ctx.values, "serviceAccount.create", False):
        return str(lookup(ctx.values, "serviceAccount.name") or fullname(ctx))
    return str(lookup(ctx.values, "serviceAccount.name") or "default")


def format_image(registry: str, repository: str, tag: str = "", *, fallback_tag: str = "") -> str:
    """Format an image reference as ``registry/repository:tag``.

    Args:
        registry: Registry host; an empty value omits the prefix.
        repository: Repository path under the registry.
        tag: Image tag.
        fallback_tag: Used when tag is empty.

    Returns:
        The image reference string.

    Example:
        >>> format_image("ghcr.io", "org/svc", "v1")
        'ghcr.io/org/svc:v1'

    """
    ref = f"{registry.rstrip('/')}/{repository}" if registry else repository
    effective_tag = tag or fallback_tag
    return f"{ref}:{effective_tag}" if effective_tag else ref


def image_ref(ctx: ReleaseContext) -> ImageRef:
    """Resolve the image parts from values, falling back to the chart versions."""
    return ImageRef(
        registry=str(lookup(ctx.values, "image.registry", DEFAULT_REGISTRY)),
        repository=str(lookup(ctx.values, "image.repository", ctx.chart_name)),
        tag=str(lookup(ctx.values, "image.tag", "") or ctx.app_version or ctx.chart_version),
    )


def image(ctx: ReleaseContext) -> str:
    """Full image reference (``chart.image``)."""
    ref = image_ref(ctx)
    return format_image(ref.registry, ref.repository, ref.tag)
