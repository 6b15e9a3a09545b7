"""Tests for container configuration rendering."""
import ipaddress
from pathlib import Path

from xlxc.models import Bridge, Container
from xlxc.services.containers.configs import (
    ConfigEmitter,
    configured_bridge,
    render_fstab,
    render_hostname,
    render_hosts,
    render_interfaces,
    render_launcher,
    render_lxc_config,
)

LXC_ROOT = Path("/var/lib/lxc")


def make_container(index=1, base_name="test"):
    return Container(base_name=base_name, index=index, lxc_root=LXC_ROOT)


class TestLxcConfig:

    def test_container_specific_lines(self):
        config = render_lxc_config(make_container(1), "test1br")
        lines = config.splitlines()

        assert lines[-5:] == [
            "lxc.network.link=test1br",
            "lxc.network.veth.pair=veth.1test",
            "lxc.rootfs=/var/lib/lxc/test1/rootfs",
            "lxc.utsname=test1",
            "lxc.mount=/var/lib/lxc/test1/fstab",
        ]

    def test_base_template_first(self):
        config = render_lxc_config(make_container(0), "testbr")
        assert config.startswith("lxc.network.type=veth\n")

    def test_configured_bridge_roundtrip(self):
        config = render_lxc_config(make_container(2), "testbr")
        assert configured_bridge(config) == "testbr"

    def test_configured_bridge_missing(self):
        assert configured_bridge("lxc.utsname=test0\n") == ""


class TestInterfaces:
    """Static address bypasses DHCP; host suffix is index + 1."""

    def test_address_suffix_follows_index(self):
        block = ipaddress.ip_network("10.0.0.0/29")
        bridge = Bridge(name="testbr", index=0, block=block)

        addresses = [
            render_interfaces(make_container(i), bridge).split("address ")[1].split()[0]
            for i in range(3)
        ]

        assert addresses == ["10.0.0.1", "10.0.0.2", "10.0.0.3"]

    def test_netmask_and_gateway(self):
        block = ipaddress.ip_network("10.0.0.8/29")
        text = render_interfaces(make_container(1), Bridge(name="test1br", index=1, block=block))

        assert "iface eth0 inet static" in text
        assert "address 10.0.0.10" in text
        assert "netmask 255.255.255.248" in text
        assert "gateway 10.0.0.14" in text
        assert "dhcp" not in text


class TestIdentityFiles:

    def test_hostname(self):
        assert render_hostname(make_container(3)) == "test3\n"

    def test_hosts(self):
        text = render_hosts(make_container(3))
        assert "127.0.0.1   localhost" in text
        assert "127.0.1.1   test3" in text

    def test_fstab_mounts_proc_and_sys(self):
        text = render_fstab()
        assert text.startswith("proc ")
        assert "sysfs" in text


class TestLauncher:

    def test_new_hid_when_none_persisted(self):
        text = render_launcher(make_container(0), has_hid=False)
        assert text.splitlines() == [
            "# Add HID for this container.",
            "sudo xip hid new test0",
            "sudo xip hid add test0",
            "# Keep container running.",
            "cat",
        ]

    def test_existing_hid_reused(self):
        text = render_launcher(make_container(0), has_hid=True)
        assert "hid new" not in text
        assert "sudo xip hid add test0" in text


class TestConfigEmitter:

    def test_emit_writes_all_files(self, host, config):
        container = Container(base_name="test", index=0, lxc_root=config.lxc_root)
        bridge = Bridge(name="test0br", index=0, block=ipaddress.ip_network("10.0.0.0/29"))

        ConfigEmitter(host, config).emit(container, bridge)

        rootfs = container.rootfs
        assert set(host.files) == {
            container.config_path,
            container.fstab_path,
            rootfs / "etc/network/interfaces",
            rootfs / "etc/hosts",
            rootfs / "etc/hostname",
        }
        assert "lxc.network.link=test0br" in host.files[container.config_path]

    def test_launcher_checks_persisted_hid(self, host, config):
        container = Container(base_name="test", index=0, lxc_root=config.lxc_root)
        host.files[Path(config.hid_dir) / "test0"] = "key"

        script = ConfigEmitter(host, config).emit_launcher(container)

        assert script == container.rootfs / "run.sh"
        assert script in host.executables
        assert "hid new" not in host.files[script]
