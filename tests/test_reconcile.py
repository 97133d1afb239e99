"""
Tests for reconcile — child install creation, idempotency, collisions.
"""

import string

import pytest

from pkgdeps.adapters.memory import InMemoryInstallRepository
from pkgdeps.core.errors import AlreadyExistsError, CreateFailureError, RepositoryError
from pkgdeps.core.models import OWNER_ANNOTATION, PackageInstall, PackageInstallStatus
from pkgdeps.core.services.dependencies import DEPENDENCY_INSTALL_PREFIX, NameGenerator
from tests.builders import (
    NAMESPACE,
    SERVICE_ACCOUNT,
    Harness,
    make_install,
    make_package,
    override,
)


def _names(seed: int, count: int) -> list[str]:
    gen = NameGenerator(seed=seed)
    return [gen.install_name() for _ in range(count)]


def _placeholder(name: str) -> PackageInstall:
    return make_install(name=name, ref_name="unrelated", constraints="1.0.0")


class FailingInstallRepository(InMemoryInstallRepository):
    """Rejects every create with a non-collision error."""

    def create(self, namespace, install):
        self.create_calls += 1
        raise RepositoryError("boom")


class TestChildInstall:
    def _reconcile_one(self, **install_kwargs):
        h = Harness(seed=1)
        parent = make_install(**install_kwargs)
        h.handler.reconcile(parent, [make_package(ref_name="dependency-pkg", version="1.2.3")])
        children = h.children_of(parent.name)
        assert len(children) == 1
        return children[0]

    def test_name_prefix_and_suffix(self):
        child = self._reconcile_one()
        assert child.name.startswith(DEPENDENCY_INSTALL_PREFIX)
        suffix = child.name[len(DEPENDENCY_INSTALL_PREFIX):]
        assert len(suffix) == 6
        assert set(suffix) <= set(string.ascii_lowercase + string.digits)

    def test_owner_annotation(self):
        child = self._reconcile_one()
        assert child.annotations == {OWNER_ANNOTATION: "PackageInstall/parent-pkgi"}
        assert child.owner == "parent-pkgi"

    def test_inherits_service_account_and_default_namespace(self):
        child = self._reconcile_one(default_namespace="apps")
        assert child.service_account_name == SERVICE_ACCOUNT
        assert child.default_namespace == "apps"
        assert child.namespace == NAMESPACE

    def test_pins_exact_version(self):
        child = self._reconcile_one()
        assert child.package_ref.ref_name == "dependency-pkg"
        assert child.package_ref.version_selection.constraints == "1.2.3"
        assert child.package_ref.version_selection.prereleases is None

    def test_child_does_not_inherit_overrides(self):
        child = self._reconcile_one(overrides=[override("dep-1", "dependency-pkg", "2.0.0")])
        assert child.dependencies.override == []
        assert child.status.version == ""

    def test_child_resolves_its_pinned_prerelease(self):
        pinned = make_package(ref_name="dependency-pkg", version="2.0.0-rc.x")
        h = Harness([pinned, make_package(ref_name="dependency-pkg", version="1.0.0")])
        h.handler.reconcile(make_install(), [pinned])

        (child,) = h.children_of("parent-pkgi")
        ref = child.package_ref
        assert ref.version_selection.constraints == "2.0.0-rc.x"
        assert h.finder.find(child, ref.ref_name, ref.version_selection) == pinned


class TestReconcile:
    def test_one_child_per_dependency(self):
        h = Harness()
        deps = [
            make_package(ref_name="dependency-pkg", version="1.0.0"),
            make_package(ref_name="dependency-pkg-2", version="2.0.0"),
        ]
        h.handler.reconcile(make_install(), deps)

        children = h.children_of("parent-pkgi")
        assert sorted(c.package_ref.ref_name for c in children) == [
            "dependency-pkg",
            "dependency-pkg-2",
        ]

    def test_empty_dependency_list_is_noop(self, harness):
        harness.handler.reconcile(make_install(), [])
        assert harness.installs.create_calls == 0

    def test_existing_converged_install_is_not_duplicated(self):
        existing = make_install(
            name="dep-install", ref_name="dependency-pkg", constraints="1.0.0", status_version="1.0.0"
        )
        h = Harness(installs=[existing])
        h.handler.reconcile(make_install(), [make_package(ref_name="dependency-pkg", version="1.0.0")])

        assert h.installs.create_calls == 0
        assert len(h.installs.list(NAMESPACE)) == 1

    def test_only_missing_dependencies_are_created(self):
        existing = make_install(
            name="dep-install", ref_name="dependency-pkg", constraints="1.0.0", status_version="1.0.0"
        )
        h = Harness(installs=[existing])
        deps = [
            make_package(ref_name="dependency-pkg", version="1.0.0"),
            make_package(ref_name="dependency-pkg-2", version="1.0.0"),
        ]
        h.handler.reconcile(make_install(), deps)

        children = h.children_of("parent-pkgi")
        assert [c.package_ref.ref_name for c in children] == ["dependency-pkg-2"]

    def test_observed_version_must_match(self):
        existing = make_install(
            name="dep-install", ref_name="dependency-pkg", constraints=">=1.0.0", status_version="0.9.0"
        )
        h = Harness(installs=[existing])
        h.handler.reconcile(make_install(), [make_package(ref_name="dependency-pkg", version="1.0.0")])
        assert len(h.children_of("parent-pkgi")) == 1

    def test_desired_version_alone_does_not_satisfy(self):
        # still converging: desired 1.0.0, nothing observed yet
        existing = make_install(name="dep-install", ref_name="dependency-pkg", constraints="1.0.0")
        h = Harness(installs=[existing])
        h.handler.reconcile(make_install(), [make_package(ref_name="dependency-pkg", version="1.0.0")])
        assert len(h.children_of("parent-pkgi")) == 1

    def test_install_in_other_namespace_does_not_satisfy(self):
        existing = make_install(
            name="dep-install",
            namespace="elsewhere",
            ref_name="dependency-pkg",
            status_version="1.0.0",
        )
        h = Harness(installs=[existing])
        h.handler.reconcile(make_install(), [make_package(ref_name="dependency-pkg", version="1.0.0")])
        assert len(h.children_of("parent-pkgi")) == 1

    def test_rerun_after_convergence_is_noop(self):
        h = Harness()
        parent = make_install()
        deps = [make_package(ref_name="dependency-pkg", version="1.0.0")]

        h.handler.reconcile(parent, deps)
        (child,) = h.children_of("parent-pkgi")
        h.installs.update_status(NAMESPACE, child.name, PackageInstallStatus(version="1.0.0"))

        h.handler.reconcile(parent, deps)
        h.handler.reconcile(parent, deps)
        assert h.installs.create_calls == 1
        assert len(h.children_of("parent-pkgi")) == 1


class TestNameCollisions:
    def test_collision_retries_with_fresh_name(self):
        first, second = _names(seed=7, count=2)
        h = Harness(installs=[_placeholder(first)], seed=7)

        h.handler.reconcile(make_install(), [make_package(ref_name="dependency-pkg")])

        (child,) = h.children_of("parent-pkgi")
        assert child.name == second
        assert h.installs.create_calls == 2

    def test_second_collision_fails(self):
        first, second = _names(seed=7, count=2)
        h = Harness(installs=[_placeholder(first), _placeholder(second)], seed=7)

        with pytest.raises(CreateFailureError) as exc:
            h.handler.reconcile(make_install(), [make_package(ref_name="dependency-pkg")])

        assert str(exc.value).startswith(
            "unable to create the packageinstall for the package dependency-pkg.1.0.0:"
        )
        assert isinstance(exc.value.__cause__, AlreadyExistsError)
        assert h.installs.create_calls == 2

    def test_other_errors_are_not_retried(self):
        h = Harness(install_repo=FailingInstallRepository())

        with pytest.raises(CreateFailureError, match="boom"):
            h.handler.reconcile(make_install(), [make_package(ref_name="dependency-pkg")])
        assert h.installs.create_calls == 1

    def test_failure_aborts_remaining_dependencies(self):
        h = Harness(install_repo=FailingInstallRepository())
        deps = [
            make_package(ref_name="dependency-pkg", version="1.0.0"),
            make_package(ref_name="dependency-pkg-2", version="1.0.0"),
        ]
        with pytest.raises(CreateFailureError, match="dependency-pkg.1.0.0"):
            h.handler.reconcile(make_install(), deps)
        assert h.installs.create_calls == 1


class TestNameGenerator:
    def test_seeded_sequences_repeat(self):
        assert _names(seed=3, count=5) == _names(seed=3, count=5)

    def test_different_seeds_differ(self):
        assert _names(seed=1, count=3) != _names(seed=2, count=3)

    def test_token_alphabet_and_length(self):
        token = NameGenerator(seed=0).token()
        assert len(token) == 6
        assert token.isalnum() and token == token.lower()
