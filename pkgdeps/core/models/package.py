"""
Package model — an immutable, per-version installable descriptor.

Packages live in a namespace-scoped catalog and are addressed by
(namespace, ref_name, version). A Package may declare dependencies on
other packages by ref name plus a version selection.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, model_validator


class PrereleaseSelection(BaseModel):
    """Which prerelease versions a selection admits.

    An empty ``identifiers`` list admits every prerelease. Otherwise a
    prerelease is admitted when one of its dot-separated components
    equals one of the identifiers (e.g. ``rc`` admits ``1.0.0-rc.1``).
    """

    model_config = ConfigDict(frozen=True)

    identifiers: list[str] = Field(default_factory=list)


class VersionSelection(BaseModel):
    """A semver range expression plus prerelease admission.

    ``prereleases=None`` means "not specified": prereleases are excluded
    unless ``constraints`` pins exactly one version.
    """

    model_config = ConfigDict(frozen=True)

    constraints: str = ""
    prereleases: PrereleaseSelection | None = None


class PackageRef(BaseModel):
    """A reference to a package by ref name and version selection."""

    model_config = ConfigDict(frozen=True)

    ref_name: str = ""
    version_selection: VersionSelection = Field(default_factory=VersionSelection)


class Dependency(BaseModel):
    """A named dependency slot on a Package.

    A slot without ``package`` is a placeholder and takes no part in
    resolution.
    """

    model_config = ConfigDict(frozen=True)

    name: str = ""
    package: PackageRef | None = None


class Package(BaseModel):
    """One version of a package in the cluster catalog."""

    model_config = ConfigDict(frozen=True)

    name: str = ""                # object name, defaults to <ref_name>.<version>
    namespace: str = "default"
    ref_name: str
    version: str
    dependencies: list[Dependency] = Field(default_factory=list)

    # Compatibility constraints checked against ambient facts
    controller_version_selection: VersionSelection | None = None
    kubernetes_version_selection: VersionSelection | None = None

    @model_validator(mode="before")
    @classmethod
    def _default_name(cls, data):
        if isinstance(data, dict) and not data.get("name"):
            ref_name = data.get("ref_name", "")
            version = data.get("version", "")
            if ref_name and version:
                data = {**data, "name": f"{ref_name}.{version}"}
        return data

    @property
    def key(self) -> tuple[str, str, str]:
        """The catalog address of this package."""
        return (self.namespace, self.ref_name, self.version)

    @property
    def has_controller_constraint(self) -> bool:
        sel = self.controller_version_selection
        return sel is not None and bool(sel.constraints)

    @property
    def has_kubernetes_constraint(self) -> bool:
        sel = self.kubernetes_version_selection
        return sel is not None and bool(sel.constraints)

    def bound_dependencies(self) -> list[Dependency]:
        """Dependencies that actually reference a package, in declaration order."""
        return [d for d in self.dependencies if d.package is not None]


def validate_package_dependencies(dependencies: list[Dependency]) -> list[str]:
    """Check a Package's dependency slots.

    Checks:
      - every slot has a name
      - names are unique (reported on the second and later occurrences)
      - a bound slot names a ref

    Returns:
        List of error strings, empty when valid.
    """
    errors: list[str] = []
    seen: set[str] = set()

    for i, dep in enumerate(dependencies):
        prefix = f"dependencies[{i}]"
        if not dep.name:
            errors.append(f"{prefix}.name: cannot be empty")
        elif dep.name in seen:
            errors.append(f'{prefix}.name: "{dep.name}" should be unique')
        else:
            seen.add(dep.name)

        if dep.package is not None and not dep.package.ref_name:
            errors.append(f"{prefix}.package.ref_name: cannot be empty")

    return errors
