"""
L2 Resolver — Dependency handler.

Resolves the dependencies a Package declares into concrete Packages and
reconciles them into child PackageInstalls.

Flow (one pass for one install):
    compute_overrides → resolve (aggregate failures) → reconcile (fail fast)

Resolution is all-or-nothing: every failing dependency is reported in a
single error and no partial list is returned. Reconcile stops at the
first creation failure; the next pass picks up whatever is left, since
already-satisfied dependencies are skipped.
"""

from __future__ import annotations

import logging

from pkgdeps.adapters.base import InstallRepository
from pkgdeps.core.errors import (
    AggregateResolutionError,
    AlreadyExistsError,
    CreateFailureError,
    PackageDependencyError,
    ResolutionFailure,
)
from pkgdeps.core.models import (
    OWNER_ANNOTATION,
    OWNER_VALUE_PREFIX,
    Dependency,
    Package,
    PackageInstall,
    PackageRef,
    VersionSelection,
)
from pkgdeps.core.services.dependencies.finder import PackageFinder
from pkgdeps.core.services.dependencies.naming import NameGenerator
from pkgdeps.core.services.dependencies.overrides import compute_overrides

logger = logging.getLogger(__name__)


class DependencyHandler:
    """Resolves and installs dependency packages for a PackageInstall."""

    def __init__(
        self,
        finder: PackageFinder,
        installs: InstallRepository,
        names: NameGenerator | None = None,
    ):
        self._finder = finder
        self._installs = installs
        self._names = names or NameGenerator()

    def compute_overrides(
        self,
        install: PackageInstall,
        dependencies: list[Dependency],
    ) -> dict[str, VersionSelection]:
        """Effective overrides for *install*; see ``overrides.compute_overrides``."""
        return compute_overrides(install, dependencies)

    # ── Resolve ──────────────────────────────────────────────────────

    def resolve(self, install: PackageInstall, package: Package) -> list[Package]:
        """Resolve every bound dependency of *package*.

        Returns:
            Resolved Packages in declaration order.

        Raises:
            InvalidOverrideError: The install's overrides are invalid.
            AggregateResolutionError: One or more dependencies failed.
        """
        overrides = self.compute_overrides(install, package.dependencies)

        resolved: list[Package] = []
        failures: list[ResolutionFailure] = []

        for dep in package.bound_dependencies():
            selection = overrides.get(dep.name, dep.package.version_selection)
            try:
                found = self._finder.find(install, dep.package.ref_name, selection)
            except PackageDependencyError as e:
                logger.debug("Dependency '%s' failed to resolve: %s", dep.name, e)
                failures.append(
                    ResolutionFailure(
                        dependency=dep.name,
                        ref_name=dep.package.ref_name,
                        constraints=selection.constraints,
                        error=e,
                    )
                )
                continue
            resolved.append(found)

        if failures:
            raise AggregateResolutionError(failures)

        logger.info(
            "Resolved %d dependencies for %s/%s",
            len(resolved), install.namespace, install.name,
        )
        return resolved

    # ── Reconcile ────────────────────────────────────────────────────

    def reconcile(self, install: PackageInstall, packages: list[Package]) -> None:
        """Create a child install for every dependency not yet installed.

        A dependency counts as installed when some install in the
        namespace has the same ref name and has converged (status) to
        the resolved version.

        Raises:
            CreateFailureError: On the first creation that fails; the
                remaining dependencies are left for the next pass.
            RepositoryError: Listing installs failed.
        """
        for dep in packages:
            existing = self._installs.list(install.namespace)
            if any(i.satisfies(dep.ref_name, dep.version) for i in existing):
                logger.debug("Dependency %s@%s already installed", dep.ref_name, dep.version)
                continue

            created = self._create_child(install, dep)
            logger.info(
                "Created %s/%s for dependency %s@%s of %s",
                created.namespace, created.name, dep.ref_name, dep.version, install.name,
            )

    def child_install(self, parent: PackageInstall, dep: Package, name: str) -> PackageInstall:
        """The install created for *dep*, pinned to its exact version."""
        return PackageInstall(
            name=name,
            namespace=parent.namespace,
            annotations={OWNER_ANNOTATION: OWNER_VALUE_PREFIX + parent.name},
            package_ref=PackageRef(
                ref_name=dep.ref_name,
                version_selection=VersionSelection(constraints=dep.version),
            ),
            service_account_name=parent.service_account_name,
            default_namespace=parent.default_namespace,
        )

    def _create_child(self, parent: PackageInstall, dep: Package) -> PackageInstall:
        child = self.child_install(parent, dep, self._names.install_name())
        try:
            try:
                return self._installs.create(parent.namespace, child)
            except AlreadyExistsError:
                retry_name = self._names.install_name()
                logger.debug("Install name '%s' taken, retrying as '%s'", child.name, retry_name)
                child = child.model_copy(update={"name": retry_name})
                return self._installs.create(parent.namespace, child)
        except Exception as e:
            raise CreateFailureError(dep.name, e) from e
