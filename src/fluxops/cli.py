#!/usr/bin/env python
"""Command-line interface for fluxops.

This module provides the main CLI entry point for the fluxops tool,
handling command-line argument parsing and dispatching to the setup,
validation, onboarding and chart inspection workflows.
"""

import sys
from collections.abc import Generator
from contextlib import contextmanager
from pathlib import Path

import click
from icecream import ic
from rich.markup import escape

from fluxops import __version__, config, console, helpers
from fluxops.chart import load_release_context, parse_set_values
from fluxops.exceptions import FluxopsError
from fluxops.manifests import find_repo_root
from fluxops.onboarding import onboard_team
from fluxops.prompts import collect_team_parameters
from fluxops.setup.flux import BootstrapOptions, bootstrap_flux
from fluxops.setup.packages_secret import PackagesSecretOptions, setup_packages_secret
from fluxops.validation import show_report, validate_repository


@contextmanager
def reported_errors() -> Generator[None, None, None]:
    """Print any fluxops error and exit with status 1."""
    try:
        yield
    except FluxopsError as e:
        console.error(escape(str(e)))
        sys.exit(1)


@click.group(
    help="Set up, validate and extend a FluxCD + Helm GitOps repository",
    invoke_without_command=True,
)
@click.option("--version", "-v", required=False, is_flag=True, help="print version")
@click.option("--debug", required=False, is_flag=True, help="print debug information")
@click.pass_context
def cli(ctx: click.Context, version: bool, debug: bool) -> None:
    """Process global options.

    Args:
        ctx: Click context.
        version: Print version and exit.
        debug: Enable debug output.

    """
    if not debug:
        ic.disable()

    if version:
        click.echo(__version__)
        ctx.exit(0)

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


@cli.command(help="Install the flux CLI and bootstrap FluxCD from GitHub")
@click.option("--owner", envvar="GITHUB_OWNER", default=config.DEFAULT_GITHUB_OWNER, show_default=True, help="GitHub owner")
@click.option("--repository", default=config.DEFAULT_GITHUB_REPOSITORY, show_default=True, help="GitOps repository name")
@click.option("--branch", default=config.DEFAULT_BRANCH, show_default=True, help="branch flux commits to")
@click.option("--path", "flux_path", default=config.FLUX_PATH, show_default=True, help="flux-system path in the repository")
@click.option("--namespace", default=config.FLUX_NAMESPACE, show_default=True, help="flux namespace")
@click.option(
    "--root",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=Path("."),
    help="checkout holding the initial configs",
)
@click.option("--skip-install", is_flag=True, help="never install or reinstall the flux CLI")
@click.option("--yes", "-y", "assume_yes", is_flag=True, help="answer yes to confirmations")
def bootstrap(
    owner: str,
    repository: str,
    branch: str,
    flux_path: str,
    namespace: str,
    root: Path,
    skip_install: bool,
    assume_yes: bool,
) -> None:
    console.title("FluxCD Installation and Bootstrap")
    options = BootstrapOptions(
        owner=owner,
        repository=repository,
        branch=branch,
        path=flux_path,
        namespace=namespace,
        root=root,
        skip_install=skip_install,
        assume_yes=assume_yes,
    )
    ic(options)
    with reported_errors():
        bootstrap_flux(options)


@cli.command("packages-secret", help="Create the GitHub Packages image pull secret")
@click.option("--namespace", "-n", default=config.DEFAULT_NAMESPACE, show_default=True, help="Kubernetes namespace")
@click.option("--secret-name", "-s", default=config.DEFAULT_SECRET_NAME, show_default=True, help="secret name")
@click.option("--registry", default=config.DEFAULT_REGISTRY, show_default=True, help="container registry host")
@click.option("--skip-test", is_flag=True, help="skip image pull test")
@click.option("--test-image", default=config.DEFAULT_TEST_IMAGE, show_default=True, help="image pulled by the test pod")
@click.option("--yes", "-y", "assume_yes", is_flag=True, help="replace an existing secret without asking")
def packages_secret(
    namespace: str,
    secret_name: str,
    registry: str,
    skip_test: bool,
    test_image: str,
    assume_yes: bool,
) -> None:
    """Create the registry secret.

    GITHUB_USERNAME and GITHUB_TOKEN must be set; the token needs the
    packages:read and packages:write permissions.
    """
    console.title("GitHub Packages Secret Setup")
    options = PackagesSecretOptions(
        namespace=namespace,
        secret_name=secret_name,
        registry=registry,
        skip_test=skip_test,
        test_image=test_image,
        assume_yes=assume_yes,
    )
    ic(options)
    with reported_errors():
        setup_packages_secret(options)


@cli.command(help="Validate FluxCD manifests and the base Helm chart")
@click.option(
    "--root",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=None,
    help="repository root (searched upwards from the working directory by default)",
)
@click.option(
    "--chart",
    type=click.Path(path_type=Path),
    default=None,
    help="chart directory to validate, relative to the working directory",
)
@click.option("--table", is_flag=True, help="print every check in a table")
def validate(root: Path | None, chart: Path | None, table: bool) -> None:
    console.title("GitOps Configuration Validation")
    with reported_errors():
        report = validate_repository(root, chart)

    show_report(report, table=table)
    if not report.ok:
        sys.exit(1)


@cli.command(help="Onboard a team service: generate its GitRepository and HelmRelease")
@click.option("--team", help="team name")
@click.option("--service", help="service name")
@click.option("--repo-url", "repository_url", help="Git URL of the service repository")
@click.option("--branch", help="branch to track")
@click.option("--namespace", help="target namespace")
@click.option("--image-repository", help="image repository under the registry (org/name)")
@click.option("--tag", "image_tag", help="image tag")
@click.option("--chart-path", help="chart path in the service repository")
@click.option("--interval", default="1m", show_default=True, help="source polling interval")
@click.option("--git-secret", default=None, help="secret with Git credentials for private repositories")
@click.option("--pull-secret", default=config.DEFAULT_SECRET_NAME, show_default=True, help="image pull secret")
@click.option("--registry", default=config.DEFAULT_REGISTRY, show_default=True, help="container registry host")
@click.option(
    "--root",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=None,
    help="repository root (searched upwards from the working directory by default)",
)
@click.option("--no-apply", is_flag=True, help="write the manifests without applying them")
@click.option("--force", is_flag=True, help="overwrite existing manifests")
def onboard(
    team: str | None,
    service: str | None,
    repository_url: str | None,
    branch: str | None,
    namespace: str | None,
    image_repository: str | None,
    image_tag: str | None,
    chart_path: str | None,
    interval: str,
    git_secret: str | None,
    pull_secret: str,
    registry: str,
    root: Path | None,
    no_apply: bool,
    force: bool,
) -> None:
    console.title("Team Onboarding")
    with reported_errors():
        repo_root = find_repo_root(root)
        params = collect_team_parameters(
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
        ic(params)
        onboard_team(
            params,
            repo_root,
            apply=not no_apply,
            force=force,
            git_secret=git_secret,
            pull_secret=pull_secret,
            registry=registry,
        )


@cli.command(help="Show the names, labels and image a chart derives for a release")
@click.argument("chart_dir", type=click.Path(exists=True, file_okay=False, path_type=Path))
@click.option("--release", "-r", "release_name", required=True, help="release name")
@click.option("--set", "assignments", multiple=True, help="override a value (key.path=value)")
def names(chart_dir: Path, release_name: str, assignments: tuple[str, ...]) -> None:
    with reported_errors():
        ctx = load_release_context(chart_dir, release_name, parse_set_values(list(assignments)))

    console.summary_panel(
        "Release Names",
        {
            "Name": helpers.name(ctx),
            "Fullname": helpers.fullname(ctx),
            "Chart": helpers.chart(ctx),
            "Service account": helpers.service_account_name(ctx),
            "Image": helpers.image(ctx),
        },
    )
    console.summary_panel("Labels", helpers.labels(ctx), border_style="cyan")


if __name__ == "__main__":
    cli()
