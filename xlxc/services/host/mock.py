"""In-memory host for dry runs (XLXC_MOCK=1) and tests."""
import ipaddress
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Set, Tuple

from xlxc.core.config import XlxcConfig
from xlxc.core.errors import HostOperationFailure, MountFailure
from xlxc.core.logger import get_logger
from .base import HostOperations

logger = get_logger(__name__)

MOUNT_OPERATIONS = {'bind_mount', 'unmount'}


class MockHost(HostOperations):
    """Simulates the host in memory and records every mutating call.

    Nothing outside the process is touched. Existing containers, bridges and
    interfaces can be seeded to simulate conflicts, and individual operations
    can be made to fail with ``fail_on``.
    """

    def __init__(self, config: XlxcConfig, kernel: str = "4.9.0-xia", uid: int = 0):
        super().__init__(config)
        self.kernel = kernel
        self.uid = uid
        self.dirs: Set[Path] = {Path(p) for p in config.system_dirs}
        self.files: Dict[Path, str] = {}
        self.executables: Set[Path] = set()
        self.mounts: Dict[Path, Tuple[Path, bool]] = {}  # target -> (source, readonly)
        self.interfaces: Set[str] = {"lo", "eth0"}
        self.hw_addresses: Dict[str, str] = {}
        self.promisc: Set[str] = set()
        self.gateways: Dict[str, Tuple[ipaddress.IPv4Interface, Optional[str]]] = {}
        self.records: Dict[str, Dict[str, str]] = {}
        self.calls: List[tuple] = []
        self._failures: Set[Tuple[str, Optional[str]]] = set()

    # ==================== Test helpers ====================

    def seed_container(self, name: str, config_text: str = "") -> None:
        """Pretend a container was created by an earlier run."""
        directory = Path(self.config.lxc_root) / name
        self.dirs.update({directory, directory / "rootfs"})
        if config_text:
            self.files[directory / "config"] = config_text

    def seed_interface(self, name: str) -> None:
        self.interfaces.add(name)

    def seed_bridge(self, name: str, cidr: str, iface: Optional[str] = None,
                    device: bool = True) -> None:
        """Pretend a bridge record (and optionally its device) exists."""
        self.records[name] = {'cidr': str(ipaddress.ip_network(cidr))}
        if iface:
            self.records[name]['iface'] = iface
        if device:
            self.interfaces.add(name)

    def reboot(self) -> None:
        """Drop everything a reboot loses: bridge devices, mounts, NAT."""
        for name in list(self.records):
            self.interfaces.discard(name)
            self.hw_addresses.pop(name, None)
            self.promisc.discard(name)
            self.gateways.pop(name, None)
        self.mounts.clear()

    def fail_on(self, operation: str, target: Optional[str] = None) -> None:
        """Make ``operation`` fail (for ``target`` only, if given)."""
        self._failures.add((operation, target))

    def _record(self, operation: str, *args) -> None:
        target = str(args[0]) if args else None
        if (operation, None) in self._failures or (operation, target) in self._failures:
            error_cls = MountFailure if operation in MOUNT_OPERATIONS else HostOperationFailure
            raise error_cls(f"MOCK: {operation} failed for {target}")
        logger.info(f"MOCK: Would {operation} {' '.join(str(a) for a in args)}")
        self.calls.append((operation,) + args)

    # ==================== Queries ====================

    def list_containers(self) -> List[str]:
        root = Path(self.config.lxc_root)
        return sorted(d.name for d in self.dirs if d.parent == root)

    def list_bridges(self) -> List[str]:
        return sorted(self.records)

    def list_interfaces(self) -> List[str]:
        return sorted(self.interfaces)

    def bridge_record(self, name: str) -> Optional[Dict[str, str]]:
        record = self.records.get(name)
        return dict(record) if record is not None else None

    def path_exists(self, path: Path) -> bool:
        path = Path(path)
        return path in self.dirs or path in self.files

    def is_directory(self, path: Path) -> bool:
        return Path(path) in self.dirs

    def is_mounted(self, path: Path) -> bool:
        return Path(path) in self.mounts

    def read_file(self, path: Path) -> str:
        try:
            return self.files[Path(path)]
        except KeyError:
            raise FileNotFoundError(str(path)) from None

    def kernel_release(self) -> str:
        return self.kernel

    def effective_uid(self) -> int:
        return self.uid

    # ==================== Filesystem ====================

    def _add_dir(self, path: Path) -> None:
        path = Path(path)
        self.dirs.add(path)
        self.dirs.update(p for p in path.parents if p != Path(p.anchor))

    def make_dirs(self, path: Path) -> None:
        self._record('make_dirs', Path(path))
        self._add_dir(path)

    def touch(self, path: Path) -> None:
        self._record('touch', Path(path))
        self._add_dir(Path(path).parent)
        self.files.setdefault(Path(path), "")

    def write_file(self, path: Path, content: str, executable: bool = False) -> None:
        self._record('write_file', Path(path))
        self._add_dir(Path(path).parent)
        self.files[Path(path)] = content
        if executable:
            self.executables.add(Path(path))

    def copy_tree(self, src: Path, dst: Path) -> None:
        self._record('copy_tree', Path(src), Path(dst))
        self._add_dir(dst)

    # ==================== Mounts ====================

    def bind_mount(self, src: Path, dst: Path, readonly: bool = False) -> None:
        self._record('bind_mount', Path(src), Path(dst), readonly)
        self.mounts[Path(dst)] = (Path(src), readonly)

    def unmount(self, path: Path) -> None:
        self._record('unmount', Path(path))
        self.mounts.pop(Path(path), None)

    # ==================== Bridges ====================

    def add_bridge(self, name: str) -> None:
        self._record('add_bridge', name)
        if name in self.interfaces:
            raise HostOperationFailure(f"device {name} already exists")
        self.interfaces.add(name)

    def set_hw_address(self, name: str, hw_address: str) -> None:
        self._record('set_hw_address', name, hw_address)
        self.hw_addresses[name] = hw_address

    def set_promisc_up(self, name: str) -> None:
        self._record('set_promisc_up', name)
        self.promisc.add(name)

    def assign_gateway(self, name: str, gateway: ipaddress.IPv4Interface,
                       iface: Optional[str] = None) -> None:
        self._record('assign_gateway', name, gateway, iface)
        self.gateways[name] = (gateway, iface)

    def record_bridge(self, name: str, block: ipaddress.IPv4Network,
                      iface: Optional[str] = None) -> None:
        self._record('record_bridge', name, block, iface)
        self.records[name] = {'cidr': str(block)}
        if iface:
            self.records[name]['iface'] = iface

    def delete_bridge(self, name: str) -> None:
        self._record('delete_bridge', name)
        self.interfaces.discard(name)
        self.hw_addresses.pop(name, None)
        self.promisc.discard(name)
        self.gateways.pop(name, None)
        self.records.pop(name, None)

    # ==================== Processes ====================

    def chroot_exec(self, rootfs: Path, command: Sequence[str]) -> None:
        self._record('chroot_exec', Path(rootfs), tuple(command))

    def destroy_container(self, name: str) -> None:
        self._record('destroy_container', name)
        directory = Path(self.config.lxc_root) / name
        if any(target == directory or directory in target.parents for target in self.mounts):
            raise HostOperationFailure(f"MOCK: {name} still has mounts under {directory}")
        self.dirs = {d for d in self.dirs if d != directory and directory not in d.parents}
        self.files = {f: c for f, c in self.files.items() if directory not in f.parents}
        self.executables = {f for f in self.executables if directory not in f.parents}
