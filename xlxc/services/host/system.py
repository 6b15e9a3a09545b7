"""Host operations backed by the real machine (subprocess + filesystem)."""
import ipaddress
import os
import re
import shutil
import subprocess
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from xlxc.core.errors import HostOperationFailure, MountFailure
from xlxc.core.logger import get_logger
from .base import HostOperations

logger = get_logger(__name__)

MOUNTS_FILE = Path("/proc/self/mounts")
# Mount points escape space, tab, newline and backslash as \NNN octal
MOUNT_ESCAPE = re.compile(r'\\([0-7]{3})')


class SystemHost(HostOperations):
    """Runs mount, brctl, ip, iptables, chroot and lxc-* on this host."""

    def _run(self, cmd: List[str], error_cls=HostOperationFailure) -> str:
        """Run a command, raising ``error_cls`` if it fails."""
        logger.debug(f"Running: {' '.join(cmd)}")
        try:
            result = subprocess.run(cmd, capture_output=True, text=True, check=True)
        except subprocess.CalledProcessError as e:
            raise error_cls(
                f"Command failed ({e.returncode}): {' '.join(cmd)}: {e.stderr.strip()}",
                command=cmd,
                stderr=e.stderr,
            ) from e
        except FileNotFoundError as e:
            raise error_cls(f"Command not found: {cmd[0]}", command=cmd) from e
        return result.stdout

    # ==================== Queries ====================

    def list_containers(self) -> List[str]:
        root = Path(self.config.lxc_root)
        if not root.is_dir():
            return []
        return sorted(entry.name for entry in root.iterdir() if entry.is_dir())

    def list_bridges(self) -> List[str]:
        bridges_dir = Path(self.config.bridges_dir)
        if not bridges_dir.is_dir():
            return []
        return sorted(entry.name for entry in bridges_dir.iterdir())

    def list_interfaces(self) -> List[str]:
        interfaces_dir = Path(self.config.interfaces_dir)
        if not interfaces_dir.is_dir():
            return []
        return sorted(entry.name for entry in interfaces_dir.iterdir())

    def bridge_record(self, name: str) -> Optional[Dict[str, str]]:
        record_dir = Path(self.config.bridges_dir) / name
        cidr_file = record_dir / "cidr"
        if not cidr_file.exists():
            return None

        record = {'cidr': cidr_file.read_text().strip()}
        iface_file = record_dir / "iface"
        if iface_file.exists():
            record['iface'] = iface_file.read_text().strip()
        return record

    def path_exists(self, path: Path) -> bool:
        return Path(path).exists()

    def is_directory(self, path: Path) -> bool:
        return Path(path).is_dir()

    def is_mounted(self, path: Path) -> bool:
        target = os.path.realpath(path)
        try:
            with open(MOUNTS_FILE, encoding='utf-8', errors='surrogateescape') as f:
                for line in f:
                    parts = line.split()
                    if len(parts) < 2:
                        continue
                    mount_point = MOUNT_ESCAPE.sub(lambda m: chr(int(m.group(1), 8)), parts[1])
                    if mount_point == target:
                        return True
        except OSError as e:
            logger.warning(f"Could not read {MOUNTS_FILE}: {e}")
        return False

    def read_file(self, path: Path) -> str:
        return Path(path).read_text()

    def kernel_release(self) -> str:
        return os.uname().release

    def effective_uid(self) -> int:
        return os.geteuid()

    # ==================== Filesystem ====================

    def make_dirs(self, path: Path) -> None:
        try:
            Path(path).mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise HostOperationFailure(f"Failed to create directory {path}: {e}") from e

    def touch(self, path: Path) -> None:
        try:
            Path(path).parent.mkdir(parents=True, exist_ok=True)
            Path(path).touch()
        except OSError as e:
            raise HostOperationFailure(f"Failed to create file {path}: {e}") from e

    def write_file(self, path: Path, content: str, executable: bool = False) -> None:
        path = Path(path)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content)
            if executable:
                path.chmod(0o755)
        except OSError as e:
            raise HostOperationFailure(f"Failed to write {path}: {e}") from e

    def copy_tree(self, src: Path, dst: Path) -> None:
        try:
            shutil.copytree(src, dst, symlinks=True, dirs_exist_ok=True)
        except (OSError, shutil.Error) as e:
            raise HostOperationFailure(f"Failed to copy {src} to {dst}: {e}") from e

    # ==================== Mounts ====================

    def bind_mount(self, src: Path, dst: Path, readonly: bool = False) -> None:
        self._run(["mount", "--rbind", str(src), str(dst)], error_cls=MountFailure)
        if readonly:
            self._run(["mount", "-o", "remount,ro,bind", str(dst)], error_cls=MountFailure)

    def unmount(self, path: Path) -> None:
        self._run(["umount", "-R", str(path)], error_cls=MountFailure)

    # ==================== Bridges ====================

    def add_bridge(self, name: str) -> None:
        self._run(["brctl", "addbr", name])

    def set_hw_address(self, name: str, hw_address: str) -> None:
        self._run(["ip", "link", "set", "dev", name, "address", hw_address])

    def set_promisc_up(self, name: str) -> None:
        self._run(["ip", "link", "set", "dev", name, "promisc", "on", "up"])

    def assign_gateway(self, name: str, gateway: ipaddress.IPv4Interface,
                       iface: Optional[str] = None) -> None:
        self._run(["ip", "addr", "add", str(gateway), "dev", name])
        if iface:
            self._run(["iptables"] + self._nat_rule("-A", gateway.network, iface))

    def record_bridge(self, name: str, block: ipaddress.IPv4Network,
                      iface: Optional[str] = None) -> None:
        record_dir = Path(self.config.bridges_dir) / name
        self.write_file(record_dir / "cidr", f"{block}\n")
        if iface:
            self.write_file(record_dir / "iface", f"{iface}\n")

    def delete_bridge(self, name: str) -> None:
        if name in self.list_interfaces():
            self._run(["ip", "link", "set", "dev", name, "down"])
            self._run(["brctl", "delbr", name])

        record = self.bridge_record(name)
        if record and record.get('iface'):
            rule = self._nat_rule("-C", ipaddress.ip_network(record['cidr']), record['iface'])
            check = subprocess.run(["iptables"] + rule, capture_output=True, text=True)
            if check.returncode == 0:
                rule[rule.index("-C")] = "-D"
                self._run(["iptables"] + rule)

        record_dir = Path(self.config.bridges_dir) / name
        if record_dir.exists():
            try:
                shutil.rmtree(record_dir)
            except OSError as e:
                raise HostOperationFailure(f"Failed to remove bridge record {record_dir}: {e}") from e

    @staticmethod
    def _nat_rule(action: str, block: ipaddress.IPv4Network, iface: str) -> List[str]:
        return ["-t", "nat", action, "POSTROUTING", "-s", str(block),
                "-o", iface, "-j", "MASQUERADE"]

    # ==================== Processes ====================

    def chroot_exec(self, rootfs: Path, command: Sequence[str]) -> None:
        self._run(["chroot", str(rootfs)] + list(command))

    def destroy_container(self, name: str) -> None:
        self._run(["lxc-destroy", "-f", "-P", str(self.config.lxc_root), "-n", name])
