"""
PackageInstall model — a desired-state request to install one Package.

Operators create PackageInstalls directly; the dependency reconciler
creates them for dependencies. ``status`` is the observed state written
by the surrounding controller.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from pkgdeps.core.models.package import PackageRef

# ── Annotations ─────────────────────────────────────────────────────

# Presence-only: value is ignored
IGNORE_CONTROLLER_VERSION_ANNOTATION = (
    "packaging.pkgdeps.io/ignore-controller-version-selection"
)
IGNORE_KUBERNETES_VERSION_ANNOTATION = (
    "packaging.pkgdeps.io/ignore-kubernetes-version-selection"
)

# Set on installs created for dependencies: "PackageInstall/<parent-name>"
OWNER_ANNOTATION = "packaging.pkgdeps.io/owner"
OWNER_VALUE_PREFIX = "PackageInstall/"


class ClusterRef(BaseModel):
    """Target cluster for an install (empty means the local cluster)."""

    kubeconfig_secret_name: str = ""
    kubeconfig_secret_key: str = "value"


class Override(BaseModel):
    """Operator-supplied replacement selection for one dependency slot."""

    name: str
    package: PackageRef


class DependenciesSpec(BaseModel):
    """Dependency handling for an install."""

    install: bool = True
    override: list[Override] = Field(default_factory=list)


class Condition(BaseModel):
    """A status condition (ReconcileSucceeded, ReconcileFailed, ...)."""

    type: str
    status: str = "True"
    message: str = ""


class PackageInstallStatus(BaseModel):
    """Observed state. ``version`` is the converged installed version."""

    version: str = ""
    conditions: list[Condition] = Field(default_factory=list)


class PackageInstall(BaseModel):
    """An install request, identified by (namespace, name)."""

    name: str
    namespace: str = "default"
    annotations: dict[str, str] = Field(default_factory=dict)

    package_ref: PackageRef = Field(default_factory=PackageRef)
    service_account_name: str = ""
    cluster: ClusterRef | None = None
    default_namespace: str = ""
    dependencies: DependenciesSpec = Field(default_factory=DependenciesSpec)

    status: PackageInstallStatus = Field(default_factory=PackageInstallStatus)

    def has_annotation(self, key: str) -> bool:
        """Whether the annotation is present, whatever its value."""
        return key in self.annotations

    @property
    def owner(self) -> str | None:
        """The owning install name for dependency installs, else None."""
        value = self.annotations.get(OWNER_ANNOTATION, "")
        if value.startswith(OWNER_VALUE_PREFIX):
            return value[len(OWNER_VALUE_PREFIX):]
        return None

    def satisfies(self, ref_name: str, version: str) -> bool:
        """Whether this install has converged to ``ref_name`` at ``version``."""
        return self.package_ref.ref_name == ref_name and self.status.version == version
