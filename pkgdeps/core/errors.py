"""
Error taxonomy for dependency resolution and installation.

Resolution and override failures are aggregated before they are raised.
Creation failures during reconcile are raised on the first error.
Nothing here is process-fatal: the caller records the message and retries
on its next pass.
"""

from __future__ import annotations

from dataclasses import dataclass


class PackageDependencyError(Exception):
    """Base class for every error raised by the dependency engine."""


class InvalidVersionError(ValueError):
    """Raised when a version string is not a valid semantic version."""


# ── Single-target resolution ─────────────────────────────────────────


class ResolutionError(PackageDependencyError):
    """A single ref name could not be resolved to a Package."""


class NotFoundError(ResolutionError):
    """No Package with the requested ref name exists in the namespace."""

    def __init__(self, ref_name: str):
        self.ref_name = ref_name
        super().__init__(f"Package {ref_name} not found")


class InvalidConstraintError(ResolutionError, ValueError):
    """A version constraint expression could not be parsed."""

    def __init__(self, expression: str, reason: str = ""):
        self.expression = expression
        msg = f"Invalid version constraint '{expression}'"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class ConstraintUnsatisfiableError(ResolutionError):
    """Candidates exist, but none survived the constraint funnel.

    ``stage_counts`` holds ``(stage_label, survivors)`` pairs in funnel
    order, starting with ``("all", total)``.
    """

    def __init__(self, ref_name: str, stage_counts: list[tuple[str, int]]):
        self.ref_name = ref_name
        self.stage_counts = list(stage_counts)
        details = " -> ".join(f"{label}={count}" for label, count in self.stage_counts)
        super().__init__(
            f"Expected to find at least one version, but did not (details: {details})"
        )


# ── Dependency list resolution ───────────────────────────────────────


class InvalidOverrideError(PackageDependencyError):
    """One or more overrides name an undeclared slot or a mismatched ref."""

    def __init__(self, invalid: list[str], package_ref_name: str):
        self.invalid = list(invalid)
        self.package_ref_name = package_ref_name
        super().__init__(
            f"The following dependency overrides '{', '.join(self.invalid)}' "
            f"are not defined as dependencies in the Package {package_ref_name}"
        )


@dataclass
class ResolutionFailure:
    """One failed dependency inside an aggregate resolution error."""

    dependency: str
    ref_name: str
    constraints: str
    error: Exception

    def line(self) -> str:
        return f"{self.ref_name}/{self.constraints} : {self.error}"


class AggregateResolutionError(PackageDependencyError):
    """One or more dependencies failed to resolve."""

    def __init__(self, failures: list[ResolutionFailure]):
        self.failures = list(failures)
        lines = "\n".join(f.line() for f in self.failures)
        super().__init__(f"Failed to resolve the following dependencies:\n {lines}")


# ── Reconcile / repositories ─────────────────────────────────────────


class CreateFailureError(PackageDependencyError):
    """Creating a child install failed (after the single collision retry)."""

    def __init__(self, dependency: str, cause: Exception):
        self.dependency = dependency
        super().__init__(
            f"unable to create the packageinstall for the package {dependency}: {cause}"
        )


class RepositoryError(PackageDependencyError):
    """A catalog, install or fact provider call failed."""


class AlreadyExistsError(RepositoryError):
    """An object with the same namespace and name already exists."""

    def __init__(self, namespace: str, name: str):
        self.namespace = namespace
        self.name = name
        super().__init__(f"packageinstall '{name}' already exists in namespace '{namespace}'")
