"""Tests for naming conflict detection."""
import pytest

from xlxc.core.conflicts import ConflictResolver
from xlxc.core.errors import BridgeConflict, MissingContainer, NameConflict


class TestValidateCreate:

    def test_free_names_pass(self, host):
        ConflictResolver(host).validate_create("test", 0, 2)

    def test_existing_container_conflicts(self, host, config):
        host.seed_container("test1")

        with pytest.raises(NameConflict) as exc_info:
            ConflictResolver(host).validate_create("test", 0, 2)

        assert exc_info.value.name == "test1"
        assert str(config.lxc_root) in str(exc_info.value)

    def test_other_scheme_does_not_conflict(self, host):
        host.seed_container("other1")
        ConflictResolver(host).validate_create("test", 0, 2)

    def test_index_outside_range_does_not_conflict(self, host):
        host.seed_container("test5")
        ConflictResolver(host).validate_create("test", 0, 2)

    def test_validation_does_not_mutate(self, host):
        host.seed_container("test1")
        with pytest.raises(NameConflict):
            ConflictResolver(host).validate_create("test", 0, 2)
        assert host.calls == []


class TestValidateReset:
    """Missing containers are advisory during reset."""

    def test_all_present(self, host):
        for i in range(3):
            host.seed_container(f"test{i}")

        plan = ConflictResolver(host).validate_reset("test", 0, 2)

        assert plan.existing == [0, 1, 2]
        assert plan.missing == []

    def test_missing_container_is_reported_not_raised(self, host):
        host.seed_container("test0")
        host.seed_container("test2")

        plan = ConflictResolver(host).validate_reset("test", 0, 2)

        assert plan.existing == [0, 2]
        assert len(plan.missing) == 1
        assert isinstance(plan.missing[0], MissingContainer)
        assert plan.missing[0].name == "test1"


class TestValidateBridgeNames:

    def test_free_names_pass(self, host):
        ConflictResolver(host).validate_bridge_names("test", 3, "star")
        ConflictResolver(host).validate_bridge_names("test", 3, "connected")

    def test_recorded_bridge_conflicts(self, host):
        host.seed_bridge("test1br", "10.0.0.0/29", device=False)

        with pytest.raises(BridgeConflict) as exc_info:
            ConflictResolver(host).validate_bridge_names("test", 3, "star")

        assert exc_info.value.bridge == "test1br"

    def test_host_interface_conflicts(self, host):
        host.seed_interface("testbr")

        with pytest.raises(BridgeConflict):
            ConflictResolver(host).validate_bridge_names("test", 3, "connected")

    def test_connected_ignores_star_names(self, host):
        host.seed_interface("test0br")
        ConflictResolver(host).validate_bridge_names("test", 3, "connected")
