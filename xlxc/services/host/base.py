"""Abstract base class for host operations."""
import ipaddress
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from xlxc.core.config import XlxcConfig


class HostOperations(ABC):
    """Primitive host capability every component mutates the machine through.

    Queries re-read host state on every call; nothing is cached. Mutations
    either succeed or raise HostOperationFailure (MountFailure for mounts),
    and are not transactional.
    """

    def __init__(self, config: XlxcConfig):
        """Initialize host.

        Args:
            config: Paths of the container root, bridge records and interfaces
        """
        self.config = config

    # ==================== Queries ====================

    @abstractmethod
    def list_containers(self) -> List[str]:
        """Names of all containers under the container root."""
        pass

    def container_exists(self, name: str) -> bool:
        """Check if a container directory exists."""
        return self.path_exists(Path(self.config.lxc_root) / name)

    @abstractmethod
    def list_bridges(self) -> List[str]:
        """Names of all bridges with a record in the bridges directory."""
        pass

    @abstractmethod
    def list_interfaces(self) -> List[str]:
        """Names of all network devices currently present on the host."""
        pass

    @abstractmethod
    def bridge_record(self, name: str) -> Optional[Dict[str, str]]:
        """Recorded block and gateway interface of a bridge.

        Returns:
            Dict with 'cidr' and optional 'iface' keys, or None if unrecorded
        """
        pass

    def bridge_blocks(self) -> Dict[str, ipaddress.IPv4Network]:
        """Address blocks held by every recorded bridge."""
        blocks = {}
        for name in self.list_bridges():
            record = self.bridge_record(name)
            if record and record.get('cidr'):
                blocks[name] = ipaddress.ip_network(record['cidr'])
        return blocks

    @abstractmethod
    def path_exists(self, path: Path) -> bool:
        pass

    @abstractmethod
    def is_directory(self, path: Path) -> bool:
        pass

    @abstractmethod
    def is_mounted(self, path: Path) -> bool:
        """Check if ``path`` is currently a mount point."""
        pass

    @abstractmethod
    def read_file(self, path: Path) -> str:
        pass

    @abstractmethod
    def kernel_release(self) -> str:
        pass

    @abstractmethod
    def effective_uid(self) -> int:
        pass

    # ==================== Filesystem ====================

    @abstractmethod
    def make_dirs(self, path: Path) -> None:
        """Create a directory and its parents (no error if present)."""
        pass

    @abstractmethod
    def touch(self, path: Path) -> None:
        """Create an empty file (and its parent directories)."""
        pass

    @abstractmethod
    def write_file(self, path: Path, content: str, executable: bool = False) -> None:
        pass

    @abstractmethod
    def copy_tree(self, src: Path, dst: Path) -> None:
        """Recursively copy ``src`` to ``dst``, merging into ``dst`` if present."""
        pass

    # ==================== Mounts ====================

    @abstractmethod
    def bind_mount(self, src: Path, dst: Path, readonly: bool = False) -> None:
        pass

    @abstractmethod
    def unmount(self, path: Path) -> None:
        pass

    # ==================== Bridges ====================

    @abstractmethod
    def add_bridge(self, name: str) -> None:
        pass

    @abstractmethod
    def set_hw_address(self, name: str, hw_address: str) -> None:
        pass

    @abstractmethod
    def set_promisc_up(self, name: str) -> None:
        pass

    @abstractmethod
    def assign_gateway(self, name: str, gateway: ipaddress.IPv4Interface,
                       iface: Optional[str] = None) -> None:
        """Give the bridge its gateway address and NAT out through ``iface``."""
        pass

    @abstractmethod
    def record_bridge(self, name: str, block: ipaddress.IPv4Network,
                      iface: Optional[str] = None) -> None:
        """Persist the bridge's block so later scans see it as taken."""
        pass

    @abstractmethod
    def delete_bridge(self, name: str) -> None:
        """Remove the bridge device, its NAT rule and its record."""
        pass

    # ==================== Processes ====================

    @abstractmethod
    def chroot_exec(self, rootfs: Path, command: Sequence[str]) -> None:
        pass

    @abstractmethod
    def destroy_container(self, name: str) -> None:
        """Stop and remove a container through the external lifecycle tool."""
        pass
