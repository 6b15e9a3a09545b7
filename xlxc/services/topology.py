"""Star and connected container networks.

Both shapes are built in ascending index order: a bridge always exists before
any container linked to it, and address suffixes follow the index. Teardown
mirrors the build, destroying containers before the bridge they hang off.
"""
from xlxc.core import naming
from xlxc.core.addressing import AddressAllocator
from xlxc.core.errors import HostOperationFailure
from xlxc.core.logger import get_logger
from xlxc.models import (
    BatchReport,
    Bridge,
    ConnectedTopology,
    Container,
    StarTopology,
    TopologyKind,
)
from xlxc.models.topology import Topology
from xlxc.services.containers import BridgeManager, ContainerCreator

logger = get_logger(__name__)


class TopologyBuilder:
    """Builds and tears down container networks."""

    def __init__(self, host, config, allocator: AddressAllocator = None,
                 bridges: BridgeManager = None, creator: ContainerCreator = None):
        self.host = host
        self.config = config
        self.allocator = allocator or AddressAllocator(host, config.address_space)
        self.bridges = bridges or BridgeManager(host)
        self.creator = creator or ContainerCreator(host, config, bridges=self.bridges)

    def build(self, base_name: str, size: int, iface: str, kind: TopologyKind) -> Topology:
        """Create a network of ``size`` containers named ``base_name{0..size-1}``.

        Raises:
            AddressSpaceExhausted: No block left for a bridge (aborts the build)
        """
        kind = TopologyKind(kind)
        with self.creator.filesystem.stage_local_config() as staged_etc:
            if kind == TopologyKind.CONNECTED:
                return self._build_connected(base_name, size, iface, staged_etc)
            return self._build_star(base_name, size, iface, staged_etc)

    def _build_connected(self, base_name, size, iface, staged_etc) -> ConnectedTopology:
        name = naming.connected_bridge_name(base_name)
        bridge = Bridge(name=name, index=0, block=self.allocator.allocate(size))
        self.bridges.add(bridge, iface)

        topology = ConnectedTopology(containers=[], bridge=bridge)
        for index in range(size):
            container = self.creator.container(base_name, index, bridge_name=name)
            topology.containers.append(container)
            self._create(container, bridge, staged_etc, topology.report)
        return topology

    def _build_star(self, base_name, size, iface, staged_etc) -> StarTopology:
        topology = StarTopology(containers=[], bridges=[])
        for index in range(size):
            name = naming.star_bridge_name(base_name, index)
            # Sized for the whole network so suffix index + 1 fits in the block
            bridge = Bridge(name=name, index=index, block=self.allocator.allocate(size))
            container = self.creator.container(base_name, index, bridge_name=name)
            topology.bridges.append(bridge)
            topology.containers.append(container)

            try:
                self.bridges.add(bridge, iface)
            except HostOperationFailure as e:
                logger.error(f"Failed to add bridge {name}: {e}")
                topology.report.failed[container.full_name] = str(e)
                continue

            self._create(container, bridge, staged_etc, topology.report)
        return topology

    def _create(self, container: Container, bridge: Bridge, staged_etc, report: BatchReport) -> None:
        try:
            self.creator.create(container, bridge, staged_etc)
        except HostOperationFailure as e:
            logger.error(f"Failed to create container {container.full_name}: {e}")
            report.failed[container.full_name] = str(e)
        else:
            report.succeeded.append(container.full_name)

    def teardown(self, base_name: str, size: int, kind: TopologyKind) -> BatchReport:
        """Destroy a network, containers before the bridge(s) they use."""
        kind = TopologyKind(kind)
        report = BatchReport()

        if kind == TopologyKind.CONNECTED:
            destroyed = [self._destroy(base_name, index, report) for index in range(size)]
            self._delete_bridge(naming.connected_bridge_name(base_name), all(destroyed), report)
        else:
            for index in range(size):
                destroyed = self._destroy(base_name, index, report)
                self._delete_bridge(naming.star_bridge_name(base_name, index), destroyed, report)
        return report

    def _destroy(self, base_name: str, index: int, report: BatchReport) -> bool:
        container = self.creator.container(base_name, index)
        if not self.host.container_exists(container.full_name):
            logger.warning(f"Container {container.full_name} does not exist")
            report.skipped[container.full_name] = "does not exist"
            return True

        try:
            self.creator.destroy(container)
        except HostOperationFailure as e:
            logger.error(f"Failed to destroy container {container.full_name}: {e}")
            report.failed[container.full_name] = str(e)
            return False
        report.succeeded.append(container.full_name)
        return True

    def _delete_bridge(self, name: str, containers_gone: bool, report: BatchReport) -> None:
        if not containers_gone:
            logger.warning(f"Keeping bridge {name}: containers are still attached")
            report.skipped[name] = "containers still attached"
            return
        try:
            self.bridges.delete(name)
        except HostOperationFailure as e:
            logger.error(f"Failed to delete bridge {name}: {e}")
            report.failed[name] = str(e)

