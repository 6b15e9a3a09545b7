"""Ethernet bridge setup and teardown for container networks."""
import ipaddress
from typing import Optional

from xlxc.core.logger import get_logger
from xlxc.models import Bridge

logger = get_logger(__name__)


class BridgeManager:
    """Creates, restores and deletes container bridges."""

    def __init__(self, host):
        self.host = host

    def add(self, bridge: Bridge, iface: Optional[str] = None) -> None:
        """Create a bridge and give it its gateway address.

        The block is recorded right after the device exists so that later
        address scans see it as taken.
        """
        self.host.add_bridge(bridge.name)
        if bridge.block is not None:
            self.host.record_bridge(bridge.name, bridge.block, iface)
        self._configure(bridge, iface)
        logger.info(f"Added bridge {bridge.name} ({bridge.block or 'no block'})")

    def restore(self, name: str, index: int) -> bool:
        """Re-add a bridge lost on reboot, using its recorded block.

        Returns:
            True if the bridge was re-added, False if it was already present
        """
        if name in self.host.list_interfaces():
            logger.info(f"Bridge {name} already present")
            return False

        record = self.host.bridge_record(name) or {}
        block = ipaddress.ip_network(record['cidr']) if record.get('cidr') else None
        bridge = Bridge(name=name, index=index, block=block)

        self.host.add_bridge(name)
        self._configure(bridge, record.get('iface'))
        logger.info(f"Restored bridge {name}")
        return True

    def delete(self, name: str) -> None:
        self.host.delete_bridge(name)
        logger.info(f"Deleted bridge {name}")

    def _configure(self, bridge: Bridge, iface: Optional[str]) -> None:
        self.host.set_hw_address(bridge.name, bridge.hw_address)
        self.host.set_promisc_up(bridge.name)
        if bridge.block is not None:
            gateway = ipaddress.ip_interface(f"{bridge.gateway}/{bridge.block.prefixlen}")
            self.host.assign_gateway(bridge.name, gateway, iface)
