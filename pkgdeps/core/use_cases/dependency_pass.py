"""
Dependency pass use case — one reconcile tick for one PackageInstall.

This is what the surrounding controller does for an install on each
pass: find the install's own Package, honor its dependency toggle,
resolve the dependencies, and create whatever child installs are
missing. Errors are captured into the result, never raised.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from pkgdeps.adapters.base import CatalogRepository, ClusterFacts, InstallRepository
from pkgdeps.adapters.memory import (
    InMemoryCatalog,
    InMemoryInstallRepository,
    StaticClusterFacts,
)
from pkgdeps.core.config.loader import ClusterSnapshot
from pkgdeps.core.errors import PackageDependencyError
from pkgdeps.core.models import Package, PackageInstall, VersionSelection
from pkgdeps.core.services.dependencies import DependencyHandler, NameGenerator, PackageFinder

logger = logging.getLogger(__name__)


@dataclass
class DependencyPassResult:
    """Outcome of a dependency pass."""

    install: str = ""
    namespace: str = "default"
    package: Package | None = None
    resolved: list[Package] = field(default_factory=list)
    created: list[PackageInstall] = field(default_factory=list)
    overrides: dict[str, VersionSelection] = field(default_factory=dict)
    skipped: bool = False
    dry_run: bool = False
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def status(self) -> str:
        if self.error:
            return "failed"
        if self.skipped:
            return "skipped"
        return "ok"

    def to_dict(self) -> dict:
        """Convert to a JSON-serializable dictionary."""
        result: dict = {
            "install": self.install,
            "namespace": self.namespace,
            "status": self.status,
        }
        if self.error:
            result["error"] = self.error
        if self.package is not None:
            result["package"] = {
                "ref_name": self.package.ref_name,
                "version": self.package.version,
            }
        result["overrides"] = {
            name: sel.model_dump(mode="json") for name, sel in self.overrides.items()
        }
        result["resolved"] = [
            {"ref_name": p.ref_name, "version": p.version, "name": p.name}
            for p in self.resolved
        ]
        result["created"] = [
            {
                "name": i.name,
                "ref_name": i.package_ref.ref_name,
                "constraints": i.package_ref.version_selection.constraints,
            }
            for i in self.created
        ]
        result["dry_run"] = self.dry_run
        return result


@dataclass
class Cluster:
    """The repositories and facts a pass runs against."""

    catalog: CatalogRepository
    installs: InstallRepository
    facts: ClusterFacts

    @classmethod
    def from_snapshot(cls, snapshot: ClusterSnapshot) -> Cluster:
        return cls(
            catalog=InMemoryCatalog(snapshot.packages),
            installs=InMemoryInstallRepository(snapshot.package_installs),
            facts=StaticClusterFacts(
                controller_version=snapshot.controller_version,
                kubernetes_version=snapshot.kubernetes_version,
            ),
        )


def run_dependency_pass(
    cluster: Cluster,
    install_name: str,
    namespace: str = "default",
    names: NameGenerator | None = None,
    dry_run: bool = False,
) -> DependencyPassResult:
    """Resolve and (unless *dry_run*) reconcile one install's dependencies.

    Args:
        cluster: Repositories and facts to run against.
        install_name: Name of the requesting PackageInstall.
        namespace: Its namespace.
        names: Name generator for child installs (default: unseeded).
        dry_run: Resolve only; create nothing.

    Returns:
        DependencyPassResult; ``error`` is set on any failure.
    """
    result = DependencyPassResult(install=install_name, namespace=namespace, dry_run=dry_run)

    install = next(
        (i for i in cluster.installs.list(namespace) if i.name == install_name),
        None,
    )
    if install is None:
        result.error = f"PackageInstall {namespace}/{install_name} not found"
        return result

    finder = PackageFinder(cluster.catalog, cluster.facts)
    handler = DependencyHandler(finder, cluster.installs, names)

    try:
        ref = install.package_ref
        result.package = finder.find(install, ref.ref_name, ref.version_selection)

        if not install.dependencies.install:
            logger.info("Dependency installation disabled for %s/%s", namespace, install_name)
            result.skipped = True
            return result

        result.overrides = handler.compute_overrides(install, result.package.dependencies)
        result.resolved = handler.resolve(install, result.package)

        if dry_run:
            return result

        before = {i.name for i in cluster.installs.list(namespace)}
        try:
            handler.reconcile(install, result.resolved)
        finally:
            result.created = [
                i for i in cluster.installs.list(namespace) if i.name not in before
            ]
    except PackageDependencyError as e:
        logger.warning("Dependency pass for %s/%s failed: %s", namespace, install_name, e)
        result.error = str(e)

    return result
