"""
Configuration loader — reads a cluster snapshot (cluster.yml) into models.

A snapshot stands in for a live cluster: the package catalog, the
existing installs, and the version facts compatibility checks use.
It reads YAML, validates against Pydantic schemas, and returns typed
domain objects.

Example::

    controller_version: 0.50.0
    kubernetes_version: 1.29.2
    packages:
      - ref_name: app.example.com
        version: 1.0.0
        dependencies:
          - name: db
            package:
              ref_name: db.example.com
              version_selection: {constraints: ">=2.0.0"}
    package_installs:
      - name: app
        package_ref:
          ref_name: app.example.com
          version_selection: {constraints: 1.0.0}
"""

from __future__ import annotations

import logging
from pathlib import Path

import yaml
from pydantic import BaseModel, Field

from pkgdeps.core.errors import InvalidVersionError
from pkgdeps.core.models import Package, PackageInstall, validate_package_dependencies
from pkgdeps.core.services.dependencies.version_constraint import parse_version

logger = logging.getLogger(__name__)

# Default snapshot filename
CLUSTER_CONFIG_FILE = "cluster.yml"


class ConfigError(Exception):
    """Raised when the cluster snapshot is invalid or missing."""


class ClusterSnapshot(BaseModel):
    """Everything the engine needs to know about one cluster."""

    controller_version: str | None = None
    kubernetes_version: str | None = None
    packages: list[Package] = Field(default_factory=list)
    package_installs: list[PackageInstall] = Field(default_factory=list)


def find_cluster_file(start_dir: Path | None = None) -> Path | None:
    """Search for cluster.yml starting from the given directory, walking up.

    Args:
        start_dir: Directory to start searching from (default: cwd).

    Returns:
        Path to cluster.yml, or None if not found.
    """
    current = (start_dir or Path.cwd()).resolve()

    for _ in range(20):  # safety limit
        candidate = current / CLUSTER_CONFIG_FILE
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            break  # filesystem root
        current = parent

    return None


def load_snapshot(path: Path | None = None) -> ClusterSnapshot:
    """Load and validate a cluster snapshot.

    Args:
        path: Explicit path to cluster.yml. If None, searches upward.

    Returns:
        Validated ClusterSnapshot.

    Raises:
        ConfigError: If the file is missing or invalid.
    """
    if path is None:
        path = find_cluster_file()

    if path is None:
        raise ConfigError(
            f"No {CLUSTER_CONFIG_FILE} found. "
            "Create one in this directory or pass --config."
        )

    if not path.is_file():
        raise ConfigError(f"Config file not found: {path}")

    logger.debug("Loading cluster snapshot from %s", path)

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")

    # The YAML may wrap everything under a "cluster" key or be flat
    if isinstance(data.get("cluster"), dict):
        data = data["cluster"]

    try:
        snapshot = ClusterSnapshot.model_validate(data)
    except Exception as e:
        raise ConfigError(f"Invalid cluster snapshot: {e}") from e

    _check_packages(snapshot.packages)

    for label, value in (
        ("controller_version", snapshot.controller_version),
        ("kubernetes_version", snapshot.kubernetes_version),
    ):
        if value:
            try:
                parse_version(value)
            except InvalidVersionError as e:
                raise ConfigError(f"Invalid {label}: {e}") from e

    logger.info(
        "Loaded cluster snapshot with %d packages and %d installs",
        len(snapshot.packages),
        len(snapshot.package_installs),
    )
    return snapshot


def _check_packages(packages: list[Package]) -> None:
    """Enforce catalog invariants: unique keys, valid dependency slots."""
    errors: list[str] = []
    seen: set[tuple[str, str, str]] = set()

    for pkg in packages:
        if pkg.key in seen:
            errors.append(f"{pkg.name}: duplicate package {pkg.ref_name}@{pkg.version} in {pkg.namespace}")
        seen.add(pkg.key)
        errors.extend(f"{pkg.name}: {e}" for e in validate_package_dependencies(pkg.dependencies))

    if errors:
        raise ConfigError("Invalid packages:\n  " + "\n  ".join(errors))
