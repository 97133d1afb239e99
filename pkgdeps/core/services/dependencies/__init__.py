"""
Dependency resolution — re-exports the public surface.

    finder            highest Package surviving the constraint funnel
    overrides         install overrides → effective selections
    handler           resolve a Package's dependencies, reconcile child installs
"""

from pkgdeps.core.services.dependencies.finder import (  # noqa: F401
    PackageFinder,
    effective_selection,
)
from pkgdeps.core.services.dependencies.funnel import (  # noqa: F401
    Candidate,
    CandidatePredicate,
    ControllerVersionPredicate,
    KubernetesVersionPredicate,
    PrereleasePredicate,
    RangePredicate,
    run_funnel,
)
from pkgdeps.core.services.dependencies.handler import DependencyHandler  # noqa: F401
from pkgdeps.core.services.dependencies.naming import (  # noqa: F401
    DEPENDENCY_INSTALL_PREFIX,
    NameGenerator,
)
from pkgdeps.core.services.dependencies.overrides import compute_overrides  # noqa: F401
from pkgdeps.core.services.dependencies.version_constraint import (  # noqa: F401
    VersionRange,
    parse_version,
    single_version,
)
