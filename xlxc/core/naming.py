"""Deterministic naming and addressing derived from (base_name, index).

Everything here is a pure function: the same naming scheme and index always
produce the same container, bridge, veth and hardware-address names.
"""
from typing import List

STAR = "star"
CONNECTED = "connected"
BRIDGE_SUFFIX = "br"

# Two octets of the bridge hardware address encode the index
MAX_INDEX = 0xFFFF


def container_name(base_name: str, index: int) -> str:
    """Name of container ``index`` in the ``base_name`` scheme (``test0``)."""
    return f"{base_name}{index}"


def star_bridge_name(base_name: str, index: int) -> str:
    """Dedicated bridge of container ``index`` (``test0br``)."""
    return f"{base_name}{index}{BRIDGE_SUFFIX}"


def connected_bridge_name(base_name: str) -> str:
    """Single bridge shared by a connected network (``testbr``)."""
    return f"{base_name}{BRIDGE_SUFFIX}"


def bridge_names(base_name: str, size: int, topology: str) -> List[str]:
    """All bridge names a network of ``size`` containers would use."""
    if topology == CONNECTED:
        return [connected_bridge_name(base_name)]
    if topology == STAR:
        return [star_bridge_name(base_name, i) for i in range(size)]
    raise ValueError(f"Unknown topology: {topology}")


def veth_pair(base_name: str, index: int) -> str:
    """Host side name of the container's veth pair (``veth.0test``)."""
    return f"veth.{index}{base_name}"


def host_suffix(index: int) -> int:
    """Host part of the container address within its bridge's block."""
    return index + 1


def hw_address(index: int) -> str:
    """Bridge hardware address; the last octet is the index in hex.

    Indices past 255 carry into the fifth octet so every index up to the
    maximum network size keeps a distinct address.
    """
    if index < 0 or index > MAX_INDEX:
        raise ValueError(f"Index out of range for hardware address: {index}")
    return f"00:00:00:00:{index >> 8:02x}:{index & 0xFF:02x}"
