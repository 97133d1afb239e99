"""
Adapter base — the contract between the dependency engine and the cluster.

The engine never talks to the cluster directly. It lists packages,
lists and creates installs, and asks for version facts through these
interfaces. Each call is independent and synchronous; implementations
raise ``RepositoryError`` (or ``AlreadyExistsError`` on create) and the
engine never retries them.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

import semver

from pkgdeps.core.models import ClusterRef, Package, PackageInstall


class CatalogRepository(ABC):
    """Read-only access to the Package catalog."""

    @abstractmethod
    def list(self, namespace: str) -> list[Package]:
        """All packages visible in *namespace*."""


class InstallRepository(ABC):
    """Access to PackageInstall objects."""

    @abstractmethod
    def list(self, namespace: str) -> list[PackageInstall]:
        """All installs in *namespace*."""

    @abstractmethod
    def create(self, namespace: str, install: PackageInstall) -> PackageInstall:
        """Create *install* in *namespace* and return the stored object.

        Raises:
            AlreadyExistsError: An install with the same name exists.
            RepositoryError: Any other failure.
        """


class ClusterFacts(ABC):
    """Ambient version facts used by compatibility constraints."""

    @abstractmethod
    def kubernetes_version(
        self,
        service_account: str,
        cluster: ClusterRef | None,
        requester: PackageInstall,
    ) -> semver.Version:
        """Version of the cluster the requester targets."""

    @abstractmethod
    def controller_version(self) -> semver.Version:
        """Version of the running controller."""
