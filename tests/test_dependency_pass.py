"""
Tests for the dependency pass use case — one reconcile tick end to end.
"""

from pkgdeps.adapters.memory import (
    InMemoryCatalog,
    InMemoryInstallRepository,
    StaticClusterFacts,
)
from pkgdeps.core.config.loader import ClusterSnapshot
from pkgdeps.core.models import PackageInstallStatus
from pkgdeps.core.services.dependencies import NameGenerator
from pkgdeps.core.use_cases.dependency_pass import Cluster, run_dependency_pass
from tests.builders import NAMESPACE, dep, make_install, make_package, override


def _cluster(installs, packages=None) -> Cluster:
    packages = packages if packages is not None else [
        make_package(dependencies=[dep("dep-1", "dependency-pkg", ">=1.0.0")]),
        make_package(ref_name="dependency-pkg", version="1.0.0"),
        make_package(ref_name="dependency-pkg", version="1.5.0"),
    ]
    return Cluster(
        catalog=InMemoryCatalog(packages),
        installs=InMemoryInstallRepository(installs),
        facts=StaticClusterFacts("1.0.0", "1.25.0"),
    )


class TestRunDependencyPass:
    def test_creates_missing_children(self):
        cluster = _cluster([make_install()])
        result = run_dependency_pass(cluster, "parent-pkgi", names=NameGenerator(seed=1))

        assert result.ok
        assert result.status == "ok"
        assert result.package.version == "1.0.0"
        assert [(p.ref_name, p.version) for p in result.resolved] == [("dependency-pkg", "1.5.0")]
        assert len(result.created) == 1
        assert result.created[0].package_ref.version_selection.constraints == "1.5.0"

    def test_dry_run_creates_nothing(self):
        cluster = _cluster([make_install()])
        result = run_dependency_pass(cluster, "parent-pkgi", dry_run=True)

        assert result.ok
        assert len(result.resolved) == 1
        assert result.created == []
        assert len(cluster.installs.list(NAMESPACE)) == 1

    def test_second_pass_after_convergence_is_noop(self):
        cluster = _cluster([make_install()])
        first = run_dependency_pass(cluster, "parent-pkgi", names=NameGenerator(seed=1))
        child = first.created[0]
        cluster.installs.update_status(NAMESPACE, child.name, PackageInstallStatus(version="1.5.0"))

        second = run_dependency_pass(cluster, "parent-pkgi", names=NameGenerator(seed=2))
        assert second.ok
        assert second.created == []

    def test_disabled_dependency_install(self):
        cluster = _cluster([make_install(install_dependencies=False)])
        result = run_dependency_pass(cluster, "parent-pkgi")

        assert result.skipped
        assert result.status == "skipped"
        assert result.resolved == []
        assert len(cluster.installs.list(NAMESPACE)) == 1

    def test_overrides_are_reported(self):
        install = make_install(overrides=[override("dep-1", "dependency-pkg", "1.0.0")])
        result = run_dependency_pass(_cluster([install]), "parent-pkgi", dry_run=True)

        assert result.overrides["dep-1"].constraints == "1.0.0"
        assert result.resolved[0].version == "1.0.0"

    def test_unknown_install(self):
        result = run_dependency_pass(_cluster([]), "missing")
        assert result.status == "failed"
        assert result.error == "PackageInstall default/missing not found"

    def test_parent_package_not_found(self):
        result = run_dependency_pass(_cluster([make_install()], packages=[]), "parent-pkgi")
        assert result.error == "Package parent-pkg not found"

    def test_resolution_failure_captured(self):
        packages = [make_package(dependencies=[dep("dep-1", "absent-pkg", "1.0.0")])]
        result = run_dependency_pass(_cluster([make_install()], packages), "parent-pkgi")

        assert not result.ok
        assert result.error.startswith("Failed to resolve the following dependencies:")
        assert "absent-pkg/1.0.0 : Package absent-pkg not found" in result.error

    def test_to_dict(self):
        result = run_dependency_pass(
            _cluster([make_install()]), "parent-pkgi", names=NameGenerator(seed=1)
        )
        d = result.to_dict()
        assert d["status"] == "ok"
        assert d["package"] == {"ref_name": "parent-pkg", "version": "1.0.0"}
        assert d["resolved"][0]["version"] == "1.5.0"
        assert d["created"][0]["constraints"] == "1.5.0"
        assert "error" not in d


class TestClusterFromSnapshot:
    def test_builds_repositories(self):
        snap = ClusterSnapshot(
            controller_version="0.50.0",
            packages=[make_package()],
            package_installs=[make_install()],
        )
        cluster = Cluster.from_snapshot(snap)
        assert len(cluster.catalog.list(NAMESPACE)) == 1
        assert cluster.installs.list(NAMESPACE)[0].name == "parent-pkgi"
        assert str(cluster.facts.controller_version()) == "0.50.0"
