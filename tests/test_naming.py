"""Tests for deterministic naming and addressing."""
import pytest

from xlxc.core import naming


class TestNames:
    """Container, bridge and veth names derive from (base_name, index)."""

    def test_container_name(self):
        assert naming.container_name("test", 0) == "test0"
        assert naming.container_name("test", 12) == "test12"

    def test_star_bridge_names(self):
        assert naming.bridge_names("test", 3, "star") == ["test0br", "test1br", "test2br"]

    def test_connected_bridge_name(self):
        assert naming.bridge_names("test", 3, "connected") == ["testbr"]

    def test_unknown_topology(self):
        with pytest.raises(ValueError):
            naming.bridge_names("test", 3, "ring")

    def test_veth_pair_puts_index_first(self):
        assert naming.veth_pair("test", 4) == "veth.4test"

    def test_host_suffix(self):
        assert [naming.host_suffix(i) for i in range(3)] == [1, 2, 3]


class TestHardwareAddress:
    """Bridge hardware address carries the index in its last octet."""

    def test_last_octet_is_index_in_hex(self):
        assert naming.hw_address(0) == "00:00:00:00:00:00"
        assert naming.hw_address(10) == "00:00:00:00:00:0a"
        assert naming.hw_address(255) == "00:00:00:00:00:ff"

    def test_large_index_carries(self):
        assert naming.hw_address(256) == "00:00:00:00:01:00"
        assert naming.hw_address(65534) == "00:00:00:00:ff:fe"

    def test_distinct_for_every_network_index(self):
        addresses = {naming.hw_address(i) for i in range(0, 65535, 257)}
        assert len(addresses) == len(range(0, 65535, 257))

    def test_out_of_range(self):
        with pytest.raises(ValueError):
            naming.hw_address(-1)
        with pytest.raises(ValueError):
            naming.hw_address(65536)
