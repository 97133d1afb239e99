"""Adapters — cluster bindings for the dependency engine.

Public re-exports for convenient access.
"""

from pkgdeps.adapters.base import CatalogRepository, ClusterFacts, InstallRepository
from pkgdeps.adapters.memory import InMemoryCatalog, InMemoryInstallRepository, StaticClusterFacts

__all__ = [
    "CatalogRepository",
    "ClusterFacts",
    "InMemoryCatalog",
    "InMemoryInstallRepository",
    "InstallRepository",
    "StaticClusterFacts",
]
