"""Container and bridge models."""
import ipaddress
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from xlxc.core import naming


@dataclass(frozen=True)
class Bridge:
    """A virtual Ethernet bridge connecting containers to the host."""
    name: str
    index: int = 0  # Drives the hardware address
    block: Optional[ipaddress.IPv4Network] = None  # Unknown when re-added on reset

    @property
    def hw_address(self) -> str:
        return naming.hw_address(self.index)

    @property
    def gateway(self) -> Optional[ipaddress.IPv4Address]:
        """Host side address of the bridge: last usable host of the block."""
        if self.block is None:
            return None
        return self.block.broadcast_address - 1


@dataclass(frozen=True)
class Container:
    """An XIA container identified by naming scheme and index."""
    base_name: str
    index: int
    lxc_root: Path
    bridge_name: Optional[str] = None

    def __post_init__(self):
        if self.index < 0:
            raise ValueError(f"Container index must be non-negative: {self.index}")

    @property
    def full_name(self) -> str:
        return naming.container_name(self.base_name, self.index)

    @property
    def directory(self) -> Path:
        return Path(self.lxc_root) / self.full_name

    @property
    def rootfs(self) -> Path:
        return self.directory / "rootfs"

    @property
    def config_path(self) -> Path:
        return self.directory / "config"

    @property
    def fstab_path(self) -> Path:
        return self.directory / "fstab"

    @property
    def veth_pair(self) -> str:
        return naming.veth_pair(self.base_name, self.index)

    @property
    def host_suffix(self) -> int:
        return naming.host_suffix(self.index)

    def address(self, block: ipaddress.IPv4Network) -> ipaddress.IPv4Address:
        """Static address of this container inside ``block``."""
        address = block.network_address + self.host_suffix
        # Last usable host is the bridge gateway
        if address >= block.broadcast_address - 1:
            raise ValueError(
                f"Block {block} cannot address {self.full_name} (suffix {self.host_suffix})"
            )
        return address
