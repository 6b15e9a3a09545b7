"""XIA container management.

This package separates the steps of building a container:
- FilesystemAssembler: rootfs from read-only host bind mounts + copied etc
- ConfigEmitter: LXC config, fstab and network identity files
- BridgeManager: bridge devices, gateway addresses and bridge records
- ContainerCreator: single-container create/reset/destroy (uses all of the above)
"""
from .bridges import BridgeManager
from .configs import ConfigEmitter
from .creator import ContainerCreator
from .filesystem import FilesystemAssembler

__all__ = [
    'BridgeManager',
    'ConfigEmitter',
    'ContainerCreator',
    'FilesystemAssembler',
]
