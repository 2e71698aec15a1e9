"""FluxCD installation and bootstrap.

Runs the bootstrap worklist once, top to bottom: dependency checks, GitHub
credentials, flux CLI installation, pre-flight checks, ``flux bootstrap
github``, controller readiness and the initial GitOps configuration.
"""

from dataclasses import dataclass
from pathlib import Path

from icecream import ic

from fluxops import config, console, runner
from fluxops.cluster import Cluster
from fluxops.exceptions import CommandFailedError
from fluxops.host import Host
from fluxops.models import GitHubCredentials
from fluxops.prompts import confirm


@dataclass(frozen=True, slots=True)
class BootstrapOptions:
    """Settings for a bootstrap run.

    Attributes:
        owner: GitHub owner of the GitOps repository.
        repository: Repository name.
        branch: Branch flux commits its manifests to.
        path: Path inside the repository for the flux-system manifests.
        namespace: Namespace flux is installed into.
        root: Local checkout used for the initial configs.
        skip_install: Never install or reinstall the flux CLI.
        assume_yes: Answer yes to every confirmation.

    """

    owner: str = config.DEFAULT_GITHUB_OWNER
    repository: str = config.DEFAULT_GITHUB_REPOSITORY
    branch: str = config.DEFAULT_BRANCH
    path: str = config.FLUX_PATH
    namespace: str = config.FLUX_NAMESPACE
    root: Path = Path(".")
    skip_install: bool = False
    assume_yes: bool = False


def check_dependencies(host: Host, cluster: Cluster) -> None:
    """Require kubectl and a reachable cluster."""
    console.header("Checking dependencies...")
    host.require_binaries(["kubectl"])
    with console.spinner("Contacting Kubernetes API..."):
        version = cluster.check_connection()
    console.success(f"Dependencies check passed (server {console.highlight(version)})")


def validate_github_credentials(host: Host, owner: str) -> GitHubCredentials:
    """Read the bootstrap token and check it against the GitHub API."""
    console.header("Validating GitHub credentials...")
    credentials, used_fallback = config.bootstrap_credentials(owner)
    if used_fallback:
        console.warning(f"GITHUB_USER not set, using GITHUB_OWNER: {console.highlight(owner)}")

    with console.spinner("Checking token against GitHub API..."):
        login = host.verify_github_token(credentials)
    console.success(f"GitHub credentials validated ({console.highlight(login or credentials.username)})")
    return credentials


def install_flux_cli(host: Host, *, skip_install: bool, assume_yes: bool) -> None:
    """Install the flux CLI, or offer to reinstall an existing one."""
    console.header("Installing FluxCD CLI...")

    current_version = host.flux_version()
    if current_version is not None:
        console.info(f"FluxCD CLI already installed (version: {console.highlight(current_version)})")
        if skip_install or not confirm("Do you want to reinstall FluxCD CLI?", assume_yes=assume_yes):
            return
    elif skip_install:
        host.require_binaries(["flux"])

    installed = host.install_flux_cli()
    console.success(f"FluxCD CLI successfully installed (version: {console.highlight(installed)})")


def run_precheck() -> None:
    console.header("Running FluxCD pre-flight checks...")
    runner.run(["flux", "check", "--pre"], capture=False)
    console.success("Pre-flight checks passed")


def bootstrap(cluster: Cluster, credentials: GitHubCredentials, options: BootstrapOptions) -> None:
    """Run ``flux bootstrap github`` with token authentication.

    The token reaches flux through the GITHUB_TOKEN environment variable
    inherited by the subprocess; it is never part of the command line.
    """
    console.header("Bootstrapping FluxCD...")
    console.summary_panel(
        "Bootstrap Target",
        {
            "Owner": options.owner,
            "Repository": options.repository,
            "Branch": options.branch,
            "Path": options.path,
            "Namespace": options.namespace,
        },
    )

    if cluster.namespace_exists(options.namespace):
        console.warning(f"Namespace {console.highlight(options.namespace)} already exists")

    cmd = [
        "flux",
        "bootstrap",
        "github",
        f"--owner={options.owner}",
        f"--repository={options.repository}",
        f"--branch={options.branch}",
        f"--path={options.path}",
        f"--namespace={options.namespace}",
        "--personal",
        "--token-auth",
    ]
    ic(credentials)
    runner.run(cmd, capture=False)
    console.success("FluxCD bootstrap completed successfully")


def verify_installation(namespace: str) -> None:
    """Wait for every flux controller, then run the flux health check."""
    console.header("Verifying FluxCD installation...")

    for controller in config.FLUX_CONTROLLERS:
        console.step(f"Waiting for {console.highlight(controller)}...")
        try:
            runner.run(
                [
                    "kubectl",
                    "wait",
                    "--for=condition=ready",
                    "pod",
                    "-l",
                    f"app={controller}",
                    "-n",
                    namespace,
                    f"--timeout={config.WAIT_TIMEOUT}",
                ]
            )
        except CommandFailedError as err:
            raise CommandFailedError(
                f"{controller} failed to become ready",
                cmd=err.cmd,
                returncode=err.returncode,
                stderr=err.stderr,
            ) from err

    runner.run(["flux", "check"], capture=False)
    console.success("FluxCD is healthy and ready")
    runner.run(["flux", "get", "all", "-n", namespace], capture=False)


def apply_initial_configs(root: Path) -> list[str]:
    """Apply the namespace, sources and releases that exist in the checkout.

    Returns:
        The paths that were applied.

    """
    console.header("Applying initial GitOps configurations...")
    applied: list[str] = []

    namespace_file = root / config.NAMESPACE_MANIFEST
    if namespace_file.is_file():
        runner.run(["kubectl", "apply", "-f", str(namespace_file)])
        applied.append(str(namespace_file))

    sources_dir = root / config.SOURCES_DIR
    if sources_dir.is_dir():
        runner.run(["kubectl", "apply", "-f", f"{sources_dir}/"])
        applied.append(str(sources_dir))

    releases_dir = root / config.RELEASES_DIR
    if releases_dir.is_dir():
        runner.run(["kubectl", "apply", "-k", f"{releases_dir}/"])
        applied.append(str(releases_dir))

    for path in applied:
        console.step(f"Applied {path}")
    if not applied:
        console.warning("No initial configurations found")
    else:
        console.success("Initial configurations applied")
    return applied


def show_next_steps() -> None:
    console.newline()
    console.header("Installation Complete!")
    console.next_steps(
        [
            "Create the registry secret: export GITHUB_USERNAME=... GITHUB_TOKEN=... && fluxops packages-secret",
            "Monitor FluxCD reconciliation: flux get sources git, flux get helmreleases, "
            f"kubectl get pods -n {config.DEFAULT_NAMESPACE}",
            "View FluxCD logs if needed: flux logs --follow --tail=10",
        ]
    )


def bootstrap_flux(options: BootstrapOptions, *, host: Host | None = None, cluster: Cluster | None = None) -> None:
    """Install and bootstrap FluxCD against the current cluster.

    Args:
        options: Bootstrap settings.
        host: Host helper, created when None.
        cluster: Cluster client, created when None.

    Raises:
        FluxopsError: On the first failed step.

    """
    host = host or Host()
    cluster = cluster or Cluster()

    check_dependencies(host, cluster)
    credentials = validate_github_credentials(host, options.owner)
    install_flux_cli(host, skip_install=options.skip_install, assume_yes=options.assume_yes)
    run_precheck()
    bootstrap(cluster, credentials, options)
    verify_installation(options.namespace)
    apply_initial_configs(options.root)
    show_next_steps()
