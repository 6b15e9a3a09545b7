"""Tests for the create/reset/delete flows and their validation."""
import ipaddress
from pathlib import Path

import pytest

from xlxc.core.errors import (
    BridgeConflict,
    EnvironmentCheckError,
    NameConflict,
    PrivilegeError,
    UsageError,
)
from xlxc.core.lifecycle import LifecycleController, LifecycleState
from xlxc.services.host import MockHost


class TestPreflight:

    def test_requires_root(self, config):
        host = MockHost(config, uid=1000)
        controller = LifecycleController(host, config)

        with pytest.raises(PrivilegeError, match="must be run as root"):
            controller.create_containers("test", 0, 1)
        assert controller.state == LifecycleState.REJECTED
        assert host.calls == []

    def test_requires_xia_kernel(self, config):
        host = MockHost(config, kernel="5.15.0-generic")
        controller = LifecycleController(host, config)

        with pytest.raises(EnvironmentCheckError, match="5.15.0-generic"):
            controller.create_network("test", 2, "star", "eth0")
        assert controller.state == LifecycleState.REJECTED
        assert host.calls == []


class TestCreateContainers:

    def test_each_container_on_own_bridge(self, controller, host):
        report = controller.create_containers("test", 0, 1)

        assert report.succeeded == ["test0", "test1"]
        assert host.list_containers() == ["test0", "test1"]
        assert host.bridge_blocks() == {
            "test0br": ipaddress.ip_network("10.0.0.0/29"),
            "test1br": ipaddress.ip_network("10.0.0.8/29"),
        }
        assert controller.state == LifecycleState.DONE

    def test_bridges_have_no_nat_interface(self, controller, host):
        controller.create_containers("test", 0, 0)

        assert host.gateways["test0br"][1] is None
        assert "iface" not in host.records["test0br"]

    def test_range_not_starting_at_zero(self, controller, host, config):
        controller.create_containers("test", 2, 3)

        interfaces = host.files[config.lxc_root / "test3" / "rootfs/etc/network/interfaces"]
        assert host.list_containers() == ["test2", "test3"]
        assert "address 10.0.0.12" in interfaces

    def test_script_installs_launcher(self, controller, host, config):
        controller.create_containers("test", 0, 0, script=True)

        assert config.lxc_root / "test0" / "rootfs/run.sh" in host.executables

    def test_existing_container_rejects_batch(self, controller, host, config):
        host.seed_container("test1")

        with pytest.raises(NameConflict) as exc_info:
            controller.create_containers("test", 0, 2)

        assert str(exc_info.value) == (
            f"Naming conflict: container test1 already exists in {config.lxc_root}."
        )
        assert host.calls == []
        assert controller.state == LifecycleState.REJECTED

    def test_bridge_in_use_rejects_batch(self, controller, host):
        host.seed_interface("test0br")

        with pytest.raises(BridgeConflict):
            controller.create_containers("test", 0, 1)
        assert host.calls == []

    @pytest.mark.parametrize("name,first,last,message", [
        ("", 0, 1, "name"),
        ("test", -1, 1, "negative"),
        ("test", 3, 1, "End parameter cannot be less than start parameter."),
        ("test", 70000, 70000, "greater than 65535"),
    ])
    def test_bad_range(self, controller, host, name, first, last, message):
        with pytest.raises(UsageError, match=message):
            controller.create_containers(name, first, last)
        assert host.calls == []

    def test_single_container_range(self, controller):
        report = controller.create_containers("solo", 5, 5)
        assert report.succeeded == ["solo5"]

    def test_largest_index_accepted(self, controller, host):
        report = controller.create_containers("big", 65535, 65535)

        assert report.succeeded == ["big65535"]
        assert host.hw_addresses["big65535br"] == "00:00:00:00:ff:ff"

    def test_filesystem_before_bridge_before_configs(self, controller, host, config):
        controller.create_containers("test", 0, 0)

        ops = [c[0] for c in host.calls]
        config_write = ops.index('write_file')
        assert host.calls[config_write] == ('write_file', config.lxc_root / "test0" / "config")
        assert ops.index('bind_mount') < ops.index('chroot_exec') < ops.index('add_bridge')
        assert ops.index('assign_gateway') < config_write

    def test_failed_filesystem_takes_no_bridge(self, controller, host):
        host.fail_on('bind_mount', "/usr")

        report = controller.create_containers("test", 0, 1)

        assert set(report.failed) == {"test0", "test1"}
        assert host.list_bridges() == []
        assert "test0br" not in host.list_interfaces()
        assert 'add_bridge' not in [c[0] for c in host.calls]

    def test_failed_index_leaves_block_for_next(self, controller, host, config):
        host.fail_on('chroot_exec', str(config.lxc_root / "test0" / "rootfs"))

        report = controller.create_containers("test", 0, 1)

        assert report.succeeded == ["test1"]
        assert host.bridge_blocks() == {"test1br": ipaddress.ip_network("10.0.0.0/29")}


class TestResetContainers:
    """Reset re-attaches bridges and mounts lost on reboot."""

    def test_index_past_hardware_range_rejected(self, controller, host):
        host.seed_container("big70000")

        with pytest.raises(UsageError, match="greater than 65535"):
            controller.reset_containers("big", 70000, 70000)
        assert controller.state == LifecycleState.REJECTED
        assert host.calls == []

    def test_restores_after_reboot(self, controller, host, config):
        controller.create_containers("test", 0, 1)
        host.reboot()

        report = controller.reset_containers("test", 0, 1)

        assert report.succeeded == ["test0", "test1"]
        assert {"test0br", "test1br"} <= set(host.list_interfaces())
        assert str(host.gateways["test1br"][0]) == "10.0.0.14/29"
        assert host.mounts[config.lxc_root / "test0" / "rootfs/usr"] == (Path("/usr"), True)
        assert len(host.mounts) == 2 * len(config.system_dirs)
        assert all(readonly for _, readonly in host.mounts.values())

    def test_reset_is_idempotent(self, controller, host):
        controller.create_containers("test", 0, 1)
        host.reboot()
        controller.reset_containers("test", 0, 1)
        calls_after_first = len(host.calls)
        mounts_after_first = dict(host.mounts)

        report = controller.reset_containers("test", 0, 1)

        assert report.succeeded == ["test0", "test1"]
        assert len(host.calls) == calls_after_first
        assert host.mounts == mounts_after_first

    def test_files_untouched(self, controller, host):
        controller.create_containers("test", 0, 0)
        files_before = dict(host.files)
        host.reboot()

        controller.reset_containers("test", 0, 0)

        assert host.files == files_before

    def test_missing_container_is_skipped(self, controller, host):
        host.seed_container("test0")

        report = controller.reset_containers("test", 0, 1)

        assert report.succeeded == ["test0"]
        assert report.skipped == {"test1": "does not exist"}
        assert not report.has_failures()

    def test_bridge_from_container_config(self, controller, host):
        host.seed_container("test0", config_text="lxc.network.link=shared\n")

        controller.reset_containers("test", 0, 0)

        assert "shared" in host.list_interfaces()
        assert "test0br" not in host.list_interfaces()


class TestDeleteContainers:

    def test_removes_containers_and_bridges(self, controller, host):
        controller.create_containers("test", 0, 1)

        report = controller.delete_containers("test", 0, 1)

        assert report.succeeded == ["test0", "test1"]
        assert host.list_containers() == []
        assert host.list_bridges() == []
        assert host.mounts == {}

    def test_keeps_foreign_bridge(self, controller, host):
        host.seed_container("test0", config_text="lxc.network.link=testbr\n")
        host.seed_bridge("testbr", "10.0.0.0/29")

        controller.delete_containers("test", 0, 0)

        assert host.list_containers() == []
        assert "testbr" in host.list_bridges()

    def test_missing_container_is_skipped(self, controller):
        report = controller.delete_containers("test", 0, 0)
        assert report.skipped == {"test0": "does not exist"}


class TestNetworks:

    def test_create_and_delete_star(self, controller, host):
        topology = controller.create_network("test", 3, "star", "eth0")

        assert topology.report.succeeded == ["test0", "test1", "test2"]
        assert controller.state == LifecycleState.DONE

        report = controller.delete_network("test", 3, "star")

        assert report.succeeded == ["test0", "test1", "test2"]
        assert host.list_bridges() == []
        assert host.list_containers() == []

    def test_create_connected(self, controller, host):
        topology = controller.create_network("test", 2, "connected", "eth0")

        assert topology.bridge.name == "testbr"
        assert host.list_bridges() == ["testbr"]

    def test_iface_required(self, controller, host):
        with pytest.raises(UsageError, match="--iface"):
            controller.create_network("test", 2, "star", None)
        assert host.calls == []

    @pytest.mark.parametrize("name,size,topology,message", [
        ("", 2, "star", "--name"),
        ("test", 0, "star", "greater than zero"),
        ("test", 65535, "star", "less than 65535"),
        ("test", 2, "ring", 'either "star" or "connected"'),
    ])
    def test_bad_network_arguments(self, controller, host, name, size, topology, message):
        with pytest.raises(UsageError, match=message):
            controller.create_network(name, size, topology, "eth0")
        assert controller.state == LifecycleState.REJECTED
        assert host.calls == []

    def test_existing_container_rejects_network(self, controller, host):
        host.seed_container("test2")

        with pytest.raises(NameConflict):
            controller.create_network("test", 3, "connected", "eth0")
        assert host.calls == []

    def test_existing_bridge_rejects_network(self, controller, host):
        host.seed_bridge("testbr", "10.0.0.0/29", device=False)

        with pytest.raises(BridgeConflict, match="testbr"):
            controller.create_network("test", 3, "connected", "eth0")
        assert host.calls == []

    def test_delete_validates_topology(self, controller):
        with pytest.raises(UsageError):
            controller.delete_network("test", 3, "mesh")
        assert controller.state == LifecycleState.REJECTED
