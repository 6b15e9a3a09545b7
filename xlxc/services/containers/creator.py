"""Single-container create, reset and destroy."""
from pathlib import Path
from typing import Optional

from xlxc.core.logger import get_logger
from xlxc.models import Bridge, Container
from .bridges import BridgeManager
from .configs import ConfigEmitter, configured_bridge
from .filesystem import FilesystemAssembler

logger = get_logger(__name__)


class ContainerCreator:
    """Creates one container on an existing bridge, or tears it down."""

    def __init__(self, host, config, bridges: Optional[BridgeManager] = None):
        self.host = host
        self.config = config
        self.filesystem = FilesystemAssembler(host, config)
        self.configs = ConfigEmitter(host, config)
        self.bridges = bridges or BridgeManager(host)

    def container(self, base_name: str, index: int, bridge_name: Optional[str] = None) -> Container:
        return Container(
            base_name=base_name,
            index=index,
            lxc_root=Path(self.config.lxc_root),
            bridge_name=bridge_name,
        )

    def create(self, container: Container, bridge: Bridge, staged_etc: Path,
               script: bool = False) -> None:
        """Build the container's filesystem and write its configuration.

        Args:
            container: Container to create
            bridge: Bridge the container links to (must already exist)
            staged_etc: Staged etc directory (see FilesystemAssembler.stage_local_config)
            script: Also install the run.sh launcher

        Raises:
            MountFailure, HostOperationFailure: The container is left partial
        """
        self.build_filesystem(container, staged_etc)
        self.configure(container, bridge, script=script)

    def build_filesystem(self, container: Container, staged_etc: Path) -> None:
        """First half of create: the rootfs, before any bridge is needed."""
        self.filesystem.assemble(container.rootfs, staged_etc)

    def configure(self, container: Container, bridge: Bridge, script: bool = False) -> None:
        """Second half of create: config files linking the rootfs to ``bridge``."""
        self.configs.emit(container, bridge)
        if script:
            self.configs.emit_launcher(container)
        logger.info(f"Created container {container.full_name} on {bridge.name}")

    def reset(self, container: Container) -> None:
        """Re-attach the bridge and read-only mounts of an existing container.

        The filesystem tree and config files are left untouched. Running it
        again once everything is attached changes nothing.
        """
        bridge_name = container.bridge_name
        if self.host.path_exists(container.config_path):
            bridge_name = configured_bridge(self.host.read_file(container.config_path)) or bridge_name
        if bridge_name:
            self.bridges.restore(bridge_name, container.index)
        else:
            logger.warning(f"No bridge configured for {container.full_name}")

        self.filesystem.bind_system_dirs(container.rootfs)
        logger.info(f"Reset container {container.full_name}")

    def destroy(self, container: Container) -> None:
        """Unmount the system directories, then remove the container."""
        self.filesystem.release(container.rootfs)
        self.host.destroy_container(container.full_name)
        logger.info(f"Destroyed container {container.full_name}")
