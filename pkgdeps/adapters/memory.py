"""
In-memory adapters — a cluster held in dicts.

Used by the CLI (loaded from a cluster snapshot) and by tests. Stored
objects are copied on the way in and out so callers cannot mutate the
repository by accident.
"""

from __future__ import annotations

import logging
import threading

import semver

from pkgdeps.adapters.base import CatalogRepository, ClusterFacts, InstallRepository
from pkgdeps.core.errors import AlreadyExistsError, RepositoryError
from pkgdeps.core.models import ClusterRef, Package, PackageInstall, PackageInstallStatus
from pkgdeps.core.services.dependencies.version_constraint import parse_version

logger = logging.getLogger(__name__)


class InMemoryCatalog(CatalogRepository):
    """A fixed list of packages."""

    def __init__(self, packages: list[Package] | None = None):
        self._packages: list[Package] = list(packages or [])
        self.list_calls = 0

    def list(self, namespace: str) -> list[Package]:
        self.list_calls += 1
        return [p for p in self._packages if p.namespace == namespace]


class InMemoryInstallRepository(InstallRepository):
    """PackageInstalls keyed by (namespace, name)."""

    def __init__(self, installs: list[PackageInstall] | None = None):
        self._lock = threading.Lock()
        self._installs: dict[tuple[str, str], PackageInstall] = {}
        self.create_calls = 0
        for install in installs or []:
            self._installs[(install.namespace, install.name)] = install.model_copy(deep=True)

    def list(self, namespace: str) -> list[PackageInstall]:
        with self._lock:
            return [
                i.model_copy(deep=True)
                for (ns, _), i in self._installs.items()
                if ns == namespace
            ]

    def create(self, namespace: str, install: PackageInstall) -> PackageInstall:
        with self._lock:
            self.create_calls += 1
            key = (namespace, install.name)
            if key in self._installs:
                raise AlreadyExistsError(namespace, install.name)
            stored = install.model_copy(update={"namespace": namespace}, deep=True)
            self._installs[key] = stored
            logger.debug("Stored install %s/%s", namespace, install.name)
            return stored.model_copy(deep=True)

    def update_status(self, namespace: str, name: str, status: PackageInstallStatus) -> None:
        """Record observed state, as the controller does once an install converges."""
        with self._lock:
            key = (namespace, name)
            if key not in self._installs:
                raise RepositoryError(f"packageinstall '{name}' not found in namespace '{namespace}'")
            self._installs[key] = self._installs[key].model_copy(
                update={"status": status.model_copy(deep=True)}
            )


class StaticClusterFacts(ClusterFacts):
    """Fixed version facts. A fact left as None raises RepositoryError."""

    def __init__(
        self,
        controller_version: str | None = None,
        kubernetes_version: str | None = None,
    ):
        self._controller = parse_version(controller_version) if controller_version else None
        self._kubernetes = parse_version(kubernetes_version) if kubernetes_version else None
        self.controller_calls = 0
        self.kubernetes_calls = 0

    def controller_version(self) -> semver.Version:
        self.controller_calls += 1
        if self._controller is None:
            raise RepositoryError("controller version is not available")
        return self._controller

    def kubernetes_version(
        self,
        service_account: str,
        cluster: ClusterRef | None,
        requester: PackageInstall,
    ) -> semver.Version:
        self.kubernetes_calls += 1
        if self._kubernetes is None:
            raise RepositoryError(
                f"Unable to get kubernetes version for {requester.namespace}/{requester.name}"
            )
        return self._kubernetes
