"""
Domain models — Pydantic types for packages and installs.

All models are re-exported here for convenient access:

    from pkgdeps.core.models import Package, PackageInstall, VersionSelection
"""

from pkgdeps.core.models.install import (
    IGNORE_CONTROLLER_VERSION_ANNOTATION,
    IGNORE_KUBERNETES_VERSION_ANNOTATION,
    OWNER_ANNOTATION,
    OWNER_VALUE_PREFIX,
    ClusterRef,
    Condition,
    DependenciesSpec,
    Override,
    PackageInstall,
    PackageInstallStatus,
)
from pkgdeps.core.models.package import (
    Dependency,
    Package,
    PackageRef,
    PrereleaseSelection,
    VersionSelection,
    validate_package_dependencies,
)

__all__ = [
    "IGNORE_CONTROLLER_VERSION_ANNOTATION",
    "IGNORE_KUBERNETES_VERSION_ANNOTATION",
    "OWNER_ANNOTATION",
    "OWNER_VALUE_PREFIX",
    # install.py
    "ClusterRef",
    "Condition",
    "DependenciesSpec",
    # package.py
    "Dependency",
    "Override",
    "Package",
    "PackageInstall",
    "PackageInstallStatus",
    "PackageRef",
    "PrereleaseSelection",
    "VersionSelection",
    "validate_package_dependencies",
]
