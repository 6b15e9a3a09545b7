"""Top-level create/reset/delete flows for containers and networks.

Every flow validates first and only then mutates the host:

    VALIDATING -> CREATING | RESETTING | DELETING -> DONE
    VALIDATING -> REJECTED   (nothing was touched)

Validation failures reject the whole batch. Once mutation starts, a failure
abandons only the index it happened on; the rest of the batch carries on and
the outcome is returned as a BatchReport. Nothing is retried or rolled back.
"""
from contextlib import contextmanager
from enum import Enum
from typing import Optional

from xlxc.core import naming
from xlxc.core.addressing import AddressAllocator
from xlxc.core.conflicts import ConflictResolver
from xlxc.core.errors import (
    AddressSpaceExhausted,
    EnvironmentCheckError,
    HostOperationFailure,
    PrivilegeError,
    UsageError,
    XlxcError,
)
from xlxc.core.logger import get_logger
from xlxc.models import BatchReport, Bridge, TopologyKind
from xlxc.models.topology import Topology
from xlxc.services.containers import BridgeManager, ContainerCreator
from xlxc.services.containers.configs import configured_bridge
from xlxc.services.topology import TopologyBuilder

logger = get_logger(__name__)

MAX_NETWORK_SIZE = 65534


class LifecycleState(str, Enum):
    VALIDATING = "validating"
    CREATING = "creating"
    RESETTING = "resetting"
    DELETING = "deleting"
    DONE = "done"
    REJECTED = "rejected"


class LifecycleController:
    """Validates and dispatches container and network operations."""

    def __init__(self, host, config):
        self.host = host
        self.config = config
        self.resolver = ConflictResolver(host)
        self.allocator = AddressAllocator(host, config.address_space)
        self.bridges = BridgeManager(host)
        self.creator = ContainerCreator(host, config, bridges=self.bridges)
        self.topology = TopologyBuilder(
            host, config, allocator=self.allocator, bridges=self.bridges, creator=self.creator
        )
        self.state: Optional[LifecycleState] = None

    @contextmanager
    def _validating(self):
        self.state = LifecycleState.VALIDATING
        try:
            self.preflight()
            yield
        except XlxcError:
            self.state = LifecycleState.REJECTED
            raise

    def preflight(self) -> None:
        """Check privileges and kernel before anything else.

        Raises:
            PrivilegeError: Not running as root
            EnvironmentCheckError: Kernel is not the XIA variant
        """
        if self.host.effective_uid() != 0:
            raise PrivilegeError("xlxc must be run as root.")

        # TODO: ask the kernel for XIA support instead of matching the release string
        release = self.host.kernel_release()
        if self.config.kernel_tag not in release:
            raise EnvironmentCheckError(
                f"Must be running Linux XIA to create XIA containers (kernel {release})."
            )

    # ==================== Single containers ====================

    def create_containers(self, base_name: str, first: int, last: int,
                          script: bool = False) -> BatchReport:
        """Create containers ``base_name{first..last}``, each on its own bridge.

        Per index the filesystem is built first; the bridge and its address
        block are only taken once the rootfs is in place.

        Raises:
            UsageError, PrivilegeError, EnvironmentCheckError, NameConflict,
            BridgeConflict: Before anything is created
        """
        with self._validating():
            _check_range(base_name, first, last)
            self.resolver.validate_create(base_name, first, last)
            self.resolver.validate_bridges(
                naming.star_bridge_name(base_name, i) for i in range(first, last + 1)
            )

        self.state = LifecycleState.CREATING
        report = BatchReport()
        with self.creator.filesystem.stage_local_config() as staged_etc:
            for index in range(first, last + 1):
                name = naming.star_bridge_name(base_name, index)
                container = self.creator.container(base_name, index, bridge_name=name)
                try:
                    self.creator.build_filesystem(container, staged_etc)
                    # Sized so that suffix index + 1 is inside the block
                    bridge = Bridge(name=name, index=index, block=self.allocator.allocate(last + 1))
                    self.bridges.add(bridge)
                    self.creator.configure(container, bridge, script=script)
                except (HostOperationFailure, AddressSpaceExhausted) as e:
                    logger.error(f"Failed to create container {container.full_name}: {e}")
                    report.failed[container.full_name] = str(e)
                else:
                    report.succeeded.append(container.full_name)

        self.state = LifecycleState.DONE
        return report

    def reset_containers(self, base_name: str, first: int, last: int) -> BatchReport:
        """Re-attach bridges and read-only mounts after a host reboot.

        Containers that do not exist are skipped with a warning; the others
        are still reset.
        """
        with self._validating():
            _check_range(base_name, first, last)
            plan = self.resolver.validate_reset(base_name, first, last)

        self.state = LifecycleState.RESETTING
        report = BatchReport()
        for missing in plan.missing:
            report.skipped[missing.name] = "does not exist"

        for index in plan.existing:
            container = self.creator.container(
                base_name, index, bridge_name=naming.star_bridge_name(base_name, index)
            )
            try:
                self.creator.reset(container)
            except HostOperationFailure as e:
                logger.error(f"Failed to reset container {container.full_name}: {e}")
                report.failed[container.full_name] = str(e)
            else:
                report.succeeded.append(container.full_name)

        self.state = LifecycleState.DONE
        return report

    def delete_containers(self, base_name: str, first: int, last: int) -> BatchReport:
        """Destroy containers ``base_name{first..last}`` and their own bridges.

        A bridge is only deleted if it is the container's dedicated bridge
        and the container was destroyed.
        """
        with self._validating():
            _check_range(base_name, first, last)
            plan = self.resolver.validate_reset(base_name, first, last)

        self.state = LifecycleState.DELETING
        report = BatchReport()
        for missing in plan.missing:
            report.skipped[missing.name] = "does not exist"

        for index in plan.existing:
            container = self.creator.container(base_name, index)
            own_bridge = naming.star_bridge_name(base_name, index)
            try:
                linked = ""
                if self.host.path_exists(container.config_path):
                    linked = configured_bridge(self.host.read_file(container.config_path))
                self.creator.destroy(container)
                if linked in ("", own_bridge):
                    self.bridges.delete(own_bridge)
            except HostOperationFailure as e:
                logger.error(f"Failed to delete container {container.full_name}: {e}")
                report.failed[container.full_name] = str(e)
            else:
                report.succeeded.append(container.full_name)

        self.state = LifecycleState.DONE
        return report

    # ==================== Networks ====================

    def create_network(self, base_name: str, size: int, topology: str,
                       iface: Optional[str]) -> Topology:
        """Build a star or connected network of ``size`` containers.

        Raises:
            UsageError, PrivilegeError, EnvironmentCheckError, NameConflict,
            BridgeConflict: Before anything is created
            AddressSpaceExhausted: No address block left (build aborted)
        """
        with self._validating():
            kind = _check_network(base_name, size, topology)
            if not iface:
                raise UsageError("Specify host's gateway interface using -i or --iface.")
            self.resolver.validate_create(base_name, 0, size - 1)
            self.resolver.validate_bridge_names(base_name, size, kind.value)

        self.state = LifecycleState.CREATING
        try:
            result = self.topology.build(base_name, size, iface, kind)
        finally:
            self.state = LifecycleState.DONE
        return result

    def delete_network(self, base_name: str, size: int, topology: str) -> BatchReport:
        """Tear down a network created by create_network."""
        with self._validating():
            kind = _check_network(base_name, size, topology)

        self.state = LifecycleState.DELETING
        report = self.topology.teardown(base_name, size, kind)
        self.state = LifecycleState.DONE
        return report


def _check_range(base_name: str, first: int, last: int) -> None:
    if not base_name:
        raise UsageError("Specify a name for the containers.")
    if first < 0:
        raise UsageError("Start parameter cannot be negative.")
    if last < first:
        raise UsageError("End parameter cannot be less than start parameter.")
    if last > naming.MAX_INDEX:
        raise UsageError(f"End parameter cannot be greater than {naming.MAX_INDEX}.")


def _check_network(base_name: str, size: int, topology: str) -> TopologyKind:
    if not base_name:
        raise UsageError("Specify name for container using -n or --name.")
    if size <= 0:
        raise UsageError("The size of the network must be greater than zero.")
    if size > MAX_NETWORK_SIZE:
        raise UsageError(f"The size of the network must be less than {MAX_NETWORK_SIZE + 1}.")
    try:
        return TopologyKind(topology)
    except ValueError:
        raise UsageError('Must indicate topology with either "star" or "connected".') from None
