"""Container root filesystem assembly via read-only bind mounts."""
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List

from xlxc.core.logger import get_logger

logger = get_logger(__name__)

# Directories that are initially empty, but need to be created
DEV_PTS = "dev/pts"
PROC = "proc"
SYS = "sys"
ROOT = "root"


def rootfs_path(rootfs: Path, host_path: str) -> Path:
    """Location of absolute ``host_path`` inside ``rootfs``."""
    return Path(rootfs) / host_path.lstrip('/')


class FilesystemAssembler:
    """Builds a container rootfs: host binaries shared read-only, etc copied."""

    def __init__(self, host, config):
        self.host = host
        self.config = config

    @contextmanager
    def stage_local_config(self) -> Iterator[Path]:
        """Stage the etc directory every container of a batch gets a copy of.

        The local etc template is copied to a scratch directory together with
        a snapshot of the host's shared XIA configuration. The scratch copy is
        removed when the batch is done.
        """
        with tempfile.TemporaryDirectory(prefix="xlxc-etc-") as staging:
            staged_etc = Path(staging) / "etc"
            self.host.copy_tree(Path(self.config.local_etc), staged_etc)
            self.host.copy_tree(Path(self.config.shared_config), staged_etc / "xia")
            yield staged_etc

    def assemble(self, rootfs: Path, staged_etc: Path) -> None:
        """Create a container's root filesystem.

        A failure part way leaves a partial tree that must not be used; the
        error propagates to the caller.

        Raises:
            MountFailure: If a bind mount fails
            HostOperationFailure: If a directory, copy or chroot step fails
        """
        rootfs = Path(rootfs)
        self.host.make_dirs(rootfs)

        self.bind_system_dirs(rootfs)

        # Only the pts directory needs to be in dev to start
        self.host.make_dirs(rootfs / DEV_PTS)

        self.host.copy_tree(staged_etc, rootfs / "etc")

        for empty in self.empty_dirs():
            self.host.make_dirs(rootfs / empty)

        self.host.chroot_exec(rootfs, ["passwd", "-d", "root"])
        logger.info(f"Assembled root filesystem {rootfs}")

    def empty_dirs(self) -> List[str]:
        return [PROC, SYS, f"home/{self.config.container_user}", ROOT]

    def bind_system_dirs(self, rootfs: Path) -> List[Path]:
        """Bind-mount the host's system directories read-only into ``rootfs``.

        Targets that are already mounted are left alone, so repeating this
        (e.g. on reset) does not stack mounts.

        Returns:
            Targets that were newly mounted
        """
        mounted = []
        for host_dir in self.config.system_dirs:
            source = Path(host_dir)
            target = rootfs_path(rootfs, host_dir)

            if not self.host.path_exists(source):
                logger.warning(f"Host has no {source}, not mounting it into {rootfs}")
                continue
            if self.host.is_mounted(target):
                logger.debug(f"{target} already mounted")
                continue

            if self.host.is_directory(source):
                self.host.make_dirs(target)
            else:
                self.host.touch(target)

            self.host.bind_mount(source, target, readonly=True)
            mounted.append(target)
        return mounted

    def release(self, rootfs: Path) -> None:
        """Unmount the system directories from ``rootfs`` (reverse order)."""
        for host_dir in reversed(self.config.system_dirs):
            target = rootfs_path(rootfs, host_dir)
            if self.host.is_mounted(target):
                self.host.unmount(target)
