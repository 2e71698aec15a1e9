"""Read-only validation of the GitOps repository.

Every manifest under ``infrastructure/fluxcd`` is checked with
``kubectl apply --dry-run=client``, the base chart with ``helm lint`` and
``helm template``, and the FluxCD sources and releases for the fields the
deployments rely on. Nothing is applied to the cluster.
"""

import re
from pathlib import Path

from icecream import ic

from fluxops import config, console, runner
from fluxops.exceptions import ManifestError
from fluxops.host import Host
from fluxops.manifests import contains_key, contains_text, find_repo_root, get_path, load_documents
from fluxops.models import CheckResult, CheckStatus, ValidationReport

VALIDATION_TOOLS = ("kubectl", "helm", "flux")
REQUIRED_CHART_FILES = (
    "Chart.yaml",
    "values.yaml",
    "templates/deployment.yaml",
    "templates/service.yaml",
    "templates/_helpers.tpl",
)
REQUIRED_RELEASE_FIELDS = (
    "spec.chart.spec.chart",
    "spec.chart.spec.sourceRef",
    "spec.targetNamespace",
)
KUSTOMIZATION_FILE = "kustomization.yaml"
GITHUB_URL_PATTERN = re.compile(r"^https://github\.com/.+/.+\.git$")
_LINT_OUTPUT_LINES = 10


def _yaml_files(directory: Path) -> list[Path]:
    return sorted(path for path in directory.glob("*.yaml") if path.is_file())


class Validator:
    """Runs the validation checks against one repository checkout.

    Attributes:
        root: Repository root.
        report: Results collected so far.
        available: Validation tools found on PATH.

    """

    def __init__(self, root: Path, *, host: Host | None = None) -> None:
        self.root: Path = root
        self.host: Host = host or Host()
        self.report: ValidationReport = ValidationReport()
        self.available: set[str] = set()

    def _record(self, name: str, status: CheckStatus, message: str) -> CheckResult:
        result = self.report.add(name, status, message)
        console.check_result(result)
        return result

    def _relative(self, path: Path) -> str:
        try:
            return str(path.relative_to(self.root))
        except ValueError:
            return str(path)

    def check_dependencies(self) -> None:
        console.header("Checking dependencies...")
        missing = self.host.missing_binaries(VALIDATION_TOOLS)
        self.available = set(VALIDATION_TOOLS) - set(missing)

        if missing:
            console.warning(f"Missing tools: {', '.join(missing)}")
            console.warning("Some validations will be skipped")
        else:
            console.success("All validation tools available")

    def validate_yaml_syntax(self, path: Path, name: str) -> CheckResult:
        """Dry-run a manifest through kubectl."""
        if not path.is_file():
            return self._record(name, CheckStatus.FAILED, f"File not found - {self._relative(path)}")
        if "kubectl" not in self.available:
            return self._record(name, CheckStatus.SKIPPED, "kubectl not available")

        if runner.succeeds(["kubectl", "apply", "--dry-run=client", "-f", str(path)]):
            return self._record(name, CheckStatus.PASSED, "YAML syntax valid")
        return self._record(name, CheckStatus.FAILED, "YAML syntax invalid")

    def validate_flux_configs(self) -> None:
        console.header("Validating FluxCD configurations...")
        categories = (
            (config.NAMESPACES_DIR, "Namespace"),
            (config.SOURCES_DIR, "GitRepository"),
            (config.RELEASES_DIR, "HelmRelease"),
            (config.SECRETS_DIR, "Secret"),
        )

        for directory, kind in categories:
            for path in _yaml_files(self.root / directory):
                if path.name == KUSTOMIZATION_FILE:
                    continue
                self.validate_yaml_syntax(path, f"{kind} {path.name}")

            kustomization = self.root / directory / KUSTOMIZATION_FILE
            if kustomization.is_file():
                self.validate_yaml_syntax(kustomization, f"Kustomization {directory.name}")

    def validate_helm_chart(self, chart_path: Path, chart_name: str) -> None:
        """Check the chart layout, then lint and render it with helm."""
        console.header(f"Validating Helm chart: {chart_name}")

        if not chart_path.is_dir():
            self._record(chart_name, CheckStatus.FAILED, f"Chart directory not found - {self._relative(chart_path)}")
            return

        missing = [name for name in REQUIRED_CHART_FILES if not (chart_path / name).is_file()]
        if missing:
            self._record(chart_name, CheckStatus.FAILED, f"Missing required files: {', '.join(missing)}")
            return
        self._record(chart_name, CheckStatus.PASSED, "All required chart files present")

        if "helm" not in self.available:
            self._record(chart_name, CheckStatus.SKIPPED, "helm not available, lint and template skipped")
            return

        lint = runner.run(["helm", "lint", str(chart_path)], check=False)
        if lint.returncode == 0:
            self._record(chart_name, CheckStatus.PASSED, "Helm lint passed")
        else:
            self._record(chart_name, CheckStatus.WARNING, "Helm lint issues found")
            console.output_block(f"{lint.stdout or ''}{lint.stderr or ''}", limit=_LINT_OUTPUT_LINES)

        if runner.succeeds(["helm", "template", "test", str(chart_path), "--dry-run"]):
            self._record(chart_name, CheckStatus.PASSED, "Helm template validation passed")
        else:
            self._record(chart_name, CheckStatus.FAILED, "Helm template validation failed")

    def validate_github_integration(self) -> None:
        """Check that every GitRepository points at a GitHub HTTPS clone URL."""
        console.header("Validating GitHub integration...")

        for path in _yaml_files(self.root / config.SOURCES_DIR):
            name = path.stem
            try:
                docs = load_documents(path)
            except ManifestError as err:
                self._record(name, CheckStatus.WARNING, str(err))
                continue

            for doc in docs:
                url = get_path(doc, "spec.url")
                if not url:
                    continue
                ic(name, url)
                if GITHUB_URL_PATTERN.match(str(url)):
                    self._record(name, CheckStatus.PASSED, f"Repository URL format valid: {url}")
                else:
                    self._record(name, CheckStatus.WARNING, f"Repository URL format may be invalid: {url}")

    def validate_helm_releases(self) -> None:
        """Check required fields, registry and pull secrets of every HelmRelease."""
        console.header("Validating HelmRelease configurations...")

        for path in _yaml_files(self.root / config.RELEASES_DIR):
            if path.name == KUSTOMIZATION_FILE:
                continue
            name = path.stem
            try:
                docs = load_documents(path)
            except ManifestError as err:
                self._record(name, CheckStatus.FAILED, str(err))
                continue

            releases = [doc for doc in docs if doc.get("kind", "HelmRelease") == "HelmRelease"]
            if not releases:
                self._record(name, CheckStatus.WARNING, "No HelmRelease document found")
                continue

            for release in releases:
                for field in REQUIRED_RELEASE_FIELDS:
                    if get_path(release, field) in (None, ""):
                        self._record(name, CheckStatus.FAILED, f"Missing required field - {field}")

                if contains_text(release, config.DEFAULT_REGISTRY):
                    self._record(name, CheckStatus.PASSED, "GitHub Container Registry configured")
                else:
                    self._record(name, CheckStatus.WARNING, "GitHub Container Registry not configured")

                if contains_key(release, "imagePullSecrets"):
                    self._record(name, CheckStatus.PASSED, "Image pull secrets configured")
                else:
                    self._record(name, CheckStatus.WARNING, "Image pull secrets not configured")

    def run(self, chart_dir: Path) -> ValidationReport:
        """Run every check in order and return the report."""
        self.check_dependencies()
        console.newline()
        self.validate_flux_configs()
        console.newline()
        self.validate_helm_chart(chart_dir, chart_dir.name)
        console.newline()
        self.validate_github_integration()
        console.newline()
        self.validate_helm_releases()
        return self.report


def validate_repository(
    root: Path | None = None,
    chart_dir: Path | None = None,
    *,
    host: Host | None = None,
) -> ValidationReport:
    """Validate a GitOps repository checkout.

    Args:
        root: Repository root or a directory inside it; the working directory when None.
        chart_dir: Chart to validate, relative to the working directory; the
            base chart of the repository when None.
        host: Host helper, created when None.

    Returns:
        The validation report.

    Raises:
        FluxopsError: If the repository root cannot be found.

    """
    repo_root = find_repo_root(root)
    chart = Path(chart_dir).resolve() if chart_dir is not None else repo_root / config.DEFAULT_CHART_DIR
    ic(repo_root, chart)
    return Validator(repo_root, host=host).run(chart)


def show_report(report: ValidationReport, *, table: bool = False) -> None:
    """Print the closing report of a validation run."""
    console.newline()
    if table:
        console.report_table(report)
    console.report_summary(report)

    if report.ok:
        console.success("All validations passed!")
        console.info("Your GitOps configuration is ready for deployment.")
        console.next_steps(
            [
                "Push this repository to GitHub",
                "Run: fluxops bootstrap",
                "Run: fluxops packages-secret",
                "Monitor deployments with: flux get all",
            ]
        )
    else:
        console.error(f"Validation completed with {report.errors} errors")
        console.info("Please fix the errors above before deploying.")
