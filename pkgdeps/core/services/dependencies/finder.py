"""
L2 Resolver — Package finder.

Picks the single best Package for a ref name and version selection
from the install's namespace catalog: the highest version surviving
the constraint funnel (range, prereleases, controller compatibility,
cluster compatibility).
"""

from __future__ import annotations

import logging

from pkgdeps.adapters.base import CatalogRepository, ClusterFacts
from pkgdeps.core.errors import (
    ConstraintUnsatisfiableError,
    InvalidVersionError,
    NotFoundError,
)
from pkgdeps.core.models import (
    IGNORE_CONTROLLER_VERSION_ANNOTATION,
    IGNORE_KUBERNETES_VERSION_ANNOTATION,
    Package,
    PackageInstall,
    PrereleaseSelection,
    VersionSelection,
)
from pkgdeps.core.services.dependencies.funnel import (
    Candidate,
    CandidatePredicate,
    ControllerVersionPredicate,
    KubernetesVersionPredicate,
    PrereleasePredicate,
    RangePredicate,
    run_funnel,
)
from pkgdeps.core.services.dependencies.version_constraint import (
    parse_version,
    single_version,
)

logger = logging.getLogger(__name__)


def effective_selection(selection: VersionSelection) -> VersionSelection:
    """Admit prereleases for a single pinned version when unspecified.

    Pinning ``1.0.0-rc.1`` should not also require an explicit
    prerelease selection. The input is never mutated.
    """
    if (
        selection.prereleases is None
        and selection.constraints
        and single_version(selection.constraints) is not None
    ):
        return selection.model_copy(update={"prereleases": PrereleaseSelection()})
    return selection


class PackageFinder:
    """Finds the best available Package for an install's selection."""

    def __init__(self, catalog: CatalogRepository, facts: ClusterFacts):
        self._catalog = catalog
        self._facts = facts

    def candidates(self, namespace: str, ref_name: str) -> list[Candidate]:
        """Catalog entries for *ref_name* with parseable versions."""
        found: list[Candidate] = []
        for pkg in self._catalog.list(namespace):
            if pkg.ref_name != ref_name:
                continue
            try:
                version = parse_version(pkg.version)
            except InvalidVersionError:
                logger.debug("Skipping package '%s': unparseable version '%s'", pkg.name, pkg.version)
                continue
            found.append(Candidate(version, pkg))
        return found

    def funnel(
        self,
        install: PackageInstall,
        selection: VersionSelection,
    ) -> list[CandidatePredicate]:
        """The ordered predicates applied for one find call."""
        return [
            RangePredicate(selection.constraints),
            PrereleasePredicate(selection.prereleases),
            ControllerVersionPredicate(
                self._facts,
                bypass=install.has_annotation(IGNORE_CONTROLLER_VERSION_ANNOTATION),
            ),
            KubernetesVersionPredicate(
                self._facts,
                install,
                bypass=install.has_annotation(IGNORE_KUBERNETES_VERSION_ANNOTATION),
            ),
        ]

    def find(
        self,
        install: PackageInstall,
        ref_name: str,
        selection: VersionSelection,
    ) -> Package:
        """Return the highest-versioned Package that satisfies every constraint.

        Args:
            install: The requesting install (namespace, annotations,
                service account and cluster for fact lookups).
            ref_name: The package ref name to look for.
            selection: Range expression and prerelease admission.

        Raises:
            NotFoundError: No package with *ref_name* exists.
            InvalidConstraintError: The selection does not parse.
            ConstraintUnsatisfiableError: Nothing survived the funnel.
            RepositoryError: Catalog or fact lookup failed.
        """
        candidates = self.candidates(install.namespace, ref_name)
        if not candidates:
            raise NotFoundError(ref_name)

        selection = effective_selection(selection)
        survivors, stage_counts = run_funnel(candidates, self.funnel(install, selection))

        if not survivors:
            raise ConstraintUnsatisfiableError(ref_name, stage_counts)

        best = max(survivors, key=lambda c: c.version)
        logger.debug(
            "Resolved %s '%s' to %s (%d of %d candidates eligible)",
            ref_name,
            selection.constraints,
            best.package.version,
            len(survivors),
            len(candidates),
        )
        return best.package
