"""Interactive user prompts.

This module provides the y/N confirmations used by the setup workflows and
the questions asked when onboarding a team without every flag given.
"""

import re

import questionary

from fluxops.config import DEFAULT_BRANCH, DEFAULT_NAMESPACE
from fluxops.exceptions import FluxopsError
from fluxops.models import TeamParams
from fluxops.styles import PROMPT_STYLE, QMARK

# Kubernetes DNS label name validation (RFC 1123)
_DNS_LABEL_MAX_LENGTH = 63
_DNS_LABEL_PATTERN = r"^[a-z0-9]([-a-z0-9]*[a-z0-9])?$"
_GIT_URL_PATTERN = r"^(https://|ssh://|git@).+"


def validate_k8s_name(name: str) -> bool | str:
    """Validate a Kubernetes resource name (DNS label).

    Args:
        name: The name to validate.

    Returns:
        True if valid, or an error message string if invalid.

    """
    if not name:
        return "Name cannot be empty"
    if len(name) > _DNS_LABEL_MAX_LENGTH:
        return f"Name must be {_DNS_LABEL_MAX_LENGTH} characters or less"
    if not re.match(_DNS_LABEL_PATTERN, name):
        return "Name must consist of lowercase alphanumeric characters or '-', and must start and end with an alphanumeric character"
    return True


def validate_git_url(url: str) -> bool | str:
    if not re.match(_GIT_URL_PATTERN, url or ""):
        return "Must be an https://, ssh:// or git@ URL"
    return True


def confirm(message: str, *, assume_yes: bool = False) -> bool:
    """Ask a yes/no question defaulting to no.

    Args:
        message: The question to display.
        assume_yes: Skip the prompt and answer yes.

    Returns:
        The user's answer.

    """
    if assume_yes:
        return True
    return bool(
        questionary.confirm(
            message,
            default=False,
            style=PROMPT_STYLE,
            qmark=QMARK,
        ).unsafe_ask()
    )


def _require_valid(label: str, value: str, validator) -> str:
    result = validator(value)
    if result is not True:
        raise FluxopsError(f"Invalid {label} '{value}': {result}")
    return value


def _ask_text(message: str, *, default: str = "", validate=None) -> str:
    return str(
        questionary.text(
            message,
            default=default,
            validate=validate,
            style=PROMPT_STYLE,
            qmark=QMARK,
        ).unsafe_ask()
    ).strip()


def collect_team_parameters(
    *,
    team: str | None = None,
    service: str | None = None,
    repository_url: str | None = None,
    branch: str | None = None,
    namespace: str | None = None,
    image_repository: str | None = None,
    image_tag: str | None = None,
    chart_path: str | None = None,
    interval: str = "1m",
) -> TeamParams:
    """Fill in the onboarding parameters, prompting only for the missing ones.

    Values given up front are checked with the same validators as the
    prompts, before anything is asked.

    Returns:
        TeamParams with every field set.

    Raises:
        FluxopsError: If a given value is not a valid name or git URL.

    """
    for label, value, validator in (
        ("team name", team, validate_k8s_name),
        ("service name", service, validate_k8s_name),
        ("namespace", namespace, validate_k8s_name),
        ("repository URL", repository_url, validate_git_url),
    ):
        if value is not None:
            _require_valid(label, value, validator)

    team = team or _ask_text("Team name", validate=validate_k8s_name)
    service = service or _ask_text("Service name", validate=validate_k8s_name)
    _require_valid("resource name", f"{team}-{service}", validate_k8s_name)
    repository_url = repository_url or _ask_text(
        "Git repository URL",
        default=f"https://github.com/{team}/{service}.git",
        validate=validate_git_url,
    )
    branch = branch or _ask_text("Branch to track", default=DEFAULT_BRANCH)
    namespace = namespace or _ask_text("Target namespace", default=DEFAULT_NAMESPACE, validate=validate_k8s_name)
    image_repository = image_repository or _ask_text("Image repository (org/name)", default=f"{team}/{service}")
    image_tag = image_tag or _ask_text("Image tag", default="latest")
    chart_path = chart_path or _ask_text("Chart path in the repository", default="./helm")
    return TeamParams(
        team=team,
        service=service,
        repository_url=repository_url,
        branch=branch,
        namespace=namespace,
        image_repository=image_repository,
        image_tag=image_tag,
        chart_path=chart_path,
        interval=interval,
    )
