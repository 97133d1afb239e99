"""
L1 Domain — Dependency override validation.

An install may replace the version selection of any dependency its
Package declares, provided it names the slot and the same ref name the
slot is bound to. Invalid overrides are reported together.
"""

from __future__ import annotations

from pkgdeps.core.errors import InvalidOverrideError
from pkgdeps.core.models import Dependency, PackageInstall, VersionSelection


def compute_overrides(
    install: PackageInstall,
    dependencies: list[Dependency],
) -> dict[str, VersionSelection]:
    """Validate the install's overrides against the declared dependencies.

    Args:
        install: The requesting install.
        dependencies: Dependency slots declared by the install's Package.

    Returns:
        Map of dependency name → replacement selection.

    Raises:
        InvalidOverrideError: Naming every ``name/ref_name`` that does not
            match a bound dependency slot.
    """
    declared: dict[str, str] = {
        dep.name: dep.package.ref_name
        for dep in dependencies
        if dep.package is not None
    }

    overrides: dict[str, VersionSelection] = {}
    invalid: list[str] = []

    for override in install.dependencies.override:
        ref_name = override.package.ref_name
        if override.name in declared and declared[override.name] == ref_name:
            overrides[override.name] = override.package.version_selection
        else:
            invalid.append(f"{override.name}/{ref_name}")

    if invalid:
        raise InvalidOverrideError(invalid, install.package_ref.ref_name)
    return overrides
