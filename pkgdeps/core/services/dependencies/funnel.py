"""
L1 Domain — The constraint funnel.

Each stage is a predicate object over a single capability,
``satisfies(candidate) -> bool``. The funnel applies the stages in a
fixed order and records how many candidates survived each one, so an
empty result can say where the population ran dry.

Stages that need ambient facts (controller version, cluster version)
fetch them lazily, at most once, and only when a surviving candidate
actually declares a constraint on them.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import NamedTuple

import semver

from pkgdeps.core.errors import InvalidConstraintError
from pkgdeps.core.models import Package, PackageInstall, PrereleaseSelection, VersionSelection
from pkgdeps.core.services.dependencies.version_constraint import VersionRange

logger = logging.getLogger(__name__)


class Candidate(NamedTuple):
    """A catalog entry with its parsed version."""

    version: semver.Version
    package: Package


class CandidatePredicate(ABC):
    """One stage of the funnel."""

    #: Diagnostic label for the survivor count after this stage.
    label: str = ""

    @abstractmethod
    def satisfies(self, candidate: Candidate) -> bool:
        """Whether the candidate survives this stage."""

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} label={self.label!r}>"


class RangePredicate(CandidatePredicate):
    """The selection's range expression."""

    label = "after-constraints-filter"

    def __init__(self, constraints: str):
        self._range = VersionRange(constraints)

    def satisfies(self, candidate: Candidate) -> bool:
        return self._range(candidate.version)


class PrereleasePredicate(CandidatePredicate):
    """Prerelease admission. Release versions always pass."""

    label = "after-prereleases-filter"

    def __init__(self, prereleases: PrereleaseSelection | None):
        self._prereleases = prereleases

    def satisfies(self, candidate: Candidate) -> bool:
        pre = candidate.version.prerelease
        if not pre:
            return True
        if self._prereleases is None:
            return False
        if not self._prereleases.identifiers:
            return True
        components = pre.split(".")
        return any(ident in components for ident in self._prereleases.identifiers)


class _CompatibilityPredicate(CandidatePredicate):
    """Shared shape of the controller and cluster version checks."""

    fact_name: str = ""

    def __init__(self, bypass: bool):
        self._bypass = bypass
        self._bypass_logged = False
        self._fact: semver.Version | None = None

    @abstractmethod
    def _constrained(self, package: Package) -> bool:
        """Whether the candidate constrains this fact at all."""

    @abstractmethod
    def _selection(self, package: Package) -> VersionSelection:
        """The candidate's constraint on this fact."""

    @abstractmethod
    def _fetch(self) -> semver.Version:
        """Look the fact up. Errors propagate."""

    def _current(self) -> semver.Version:
        if self._fact is None:
            self._fact = self._fetch()
            logger.debug("Fetched %s: %s", self.fact_name, self._fact)
        return self._fact

    def satisfies(self, candidate: Candidate) -> bool:
        if not self._constrained(candidate.package):
            return True

        if self._bypass:
            if not self._bypass_logged:
                logger.info(
                    "Found %s override annotation; not applying version constraints",
                    self.fact_name,
                )
                self._bypass_logged = True
            return True

        try:
            allowed = VersionRange(self._selection(candidate.package).constraints)
        except InvalidConstraintError as e:
            logger.warning(
                "Package '%s' has an invalid %s constraint, excluding it: %s",
                candidate.package.name, self.fact_name, e,
            )
            return False

        return allowed(self._current())


class ControllerVersionPredicate(_CompatibilityPredicate):
    """The candidate's controller-version constraint vs the running controller."""

    label = "after-controller-version-check"
    fact_name = "controller version"

    def __init__(self, facts, bypass: bool = False):
        super().__init__(bypass)
        self._facts = facts

    def _constrained(self, package: Package) -> bool:
        return package.has_controller_constraint

    def _selection(self, package: Package) -> VersionSelection:
        return package.controller_version_selection

    def _fetch(self) -> semver.Version:
        version = self._facts.controller_version()
        # Development builds of the controller still satisfy release ranges
        return version.replace(prerelease=None, build=None)


class KubernetesVersionPredicate(_CompatibilityPredicate):
    """The candidate's cluster-version constraint vs the target cluster."""

    label = "after-kubernetes-version-check"
    fact_name = "kubernetes version"

    def __init__(self, facts, install: PackageInstall, bypass: bool = False):
        super().__init__(bypass)
        self._facts = facts
        self._install = install

    def _constrained(self, package: Package) -> bool:
        return package.has_kubernetes_constraint

    def _selection(self, package: Package) -> VersionSelection:
        return package.kubernetes_version_selection

    def _fetch(self) -> semver.Version:
        return self._facts.kubernetes_version(
            self._install.service_account_name,
            self._install.cluster,
            self._install,
        )


def run_funnel(
    candidates: list[Candidate],
    predicates: list[CandidatePredicate],
) -> tuple[list[Candidate], list[tuple[str, int]]]:
    """Apply *predicates* in order.

    Returns:
        ``(survivors, stage_counts)`` where ``stage_counts`` starts with
        ``("all", len(candidates))`` and has one entry per predicate.
    """
    survivors = list(candidates)
    stage_counts: list[tuple[str, int]] = [("all", len(survivors))]

    for predicate in predicates:
        survivors = [c for c in survivors if predicate.satisfies(c)]
        stage_counts.append((predicate.label, len(survivors)))

    return survivors, stage_counts
