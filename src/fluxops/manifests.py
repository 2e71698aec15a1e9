"""Manifest file parsing and writing utilities.

This module provides functions for reading and writing the YAML files of
the GitOps repository: charts, FluxCD resources and kustomizations.
"""

from pathlib import Path
from typing import Any

import yaml

from fluxops.config import INFRASTRUCTURE_DIR
from fluxops.exceptions import FluxopsError, ManifestError


def find_repo_root(start: Path | None = None) -> Path:
    """Locate the repository root, the nearest directory holding ``infrastructure/``.

    Args:
        start: Directory to search from; the working directory when None.

    Raises:
        FluxopsError: If no such directory exists at or above start.

    """
    origin = (start or Path.cwd()).resolve()
    for candidate in (origin, *origin.parents):
        if (candidate / INFRASTRUCTURE_DIR).is_dir():
            return candidate
    raise FluxopsError(
        f"No '{INFRASTRUCTURE_DIR}' directory found at or above {origin}; "
        "run this command from the GitOps repository root"
    )


def load_documents(path: Path) -> list[dict[str, Any]]:
    """Parse every non-empty document of a YAML file.

    Args:
        path: Path to the YAML file.

    Returns:
        The documents, in file order.

    Raises:
        ManifestError: If the file does not exist, contains malformed YAML,
            or a document is not a YAML mapping.

    """
    try:
        with open(path) as stream:
            docs = [doc for doc in yaml.safe_load_all(stream) if doc is not None]
    except FileNotFoundError as err:
        raise ManifestError(f"File '{path}' does not exist") from err
    except yaml.YAMLError as err:
        raise ManifestError(f"File '{path}' contains malformed YAML: {err}") from err

    for doc in docs:
        if not isinstance(doc, dict):
            raise ManifestError(
                f"File '{path}' does not contain a valid YAML mapping. Expected a Kubernetes resource document."
            )
    return docs


def load_mapping(path: Path) -> dict[str, Any]:
    """Parse a single-document YAML file such as Chart.yaml or values.yaml.

    An empty file yields an empty mapping.

    Raises:
        ManifestError: If the file is unreadable or holds more than one document.

    """
    docs = load_documents(path)
    if len(docs) > 1:
        raise ManifestError(
            f"File '{path}' contains multiple YAML documents. Only single document files are supported."
        )
    return docs[0] if docs else {}


def dump_documents(docs: list[dict[str, Any]]) -> str:
    """Serialize documents the way they are committed: block style, key order kept."""
    return yaml.safe_dump_all(docs, default_flow_style=False, sort_keys=False, explicit_start=len(docs) > 1)


def write_documents(path: Path, docs: list[dict[str, Any]], *, overwrite: bool = False) -> None:
    """Write documents to a YAML file, creating parent directories.

    Raises:
        ManifestError: If the file exists and overwrite is False, or it cannot be written.

    """
    if path.exists() and not overwrite:
        raise ManifestError(f"File '{path}' already exists (use --force to overwrite)")

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(dump_documents(docs))
    except OSError as err:
        raise ManifestError(f"Cannot write to output path '{path}': {err.strerror}") from err


def get_path(doc: dict[str, Any], dotted: str) -> Any:
    """Return the value at a dotted path like ``spec.chart.spec.chart``, or None."""
    node: Any = doc
    for key in dotted.split("."):
        if not isinstance(node, dict) or key not in node:
            return None
        node = node[key]
    return node


def contains_key(node: Any, key: str) -> bool:
    """Return whether a key appears anywhere in a nested document."""
    if isinstance(node, dict):
        return key in node or any(contains_key(value, key) for value in node.values())
    if isinstance(node, list):
        return any(contains_key(item, key) for item in node)
    return False


def contains_text(node: Any, text: str) -> bool:
    """Return whether any string value in a nested document contains text."""
    if isinstance(node, str):
        return text in node
    if isinstance(node, dict):
        return any(contains_text(value, text) for value in node.values())
    if isinstance(node, list):
        return any(contains_text(item, text) for item in node)
    return False
