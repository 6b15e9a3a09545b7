"""Naming conflict detection against live host state."""
from dataclasses import dataclass, field
from typing import Iterable, List

from xlxc.core import naming
from xlxc.core.errors import BridgeConflict, MissingContainer, NameConflict
from xlxc.core.logger import get_logger

logger = get_logger(__name__)


@dataclass
class ResetPlan:
    """Indices a reset will act on, plus advisories for the ones it skips."""
    existing: List[int] = field(default_factory=list)
    missing: List[MissingContainer] = field(default_factory=list)


class ConflictResolver:
    """Checks a naming scheme against the host before anything is mutated.

    Every check rescans the host (containers, bridge records, interfaces);
    nothing is cached between calls.
    """

    def __init__(self, host):
        self.host = host

    def validate_create(self, base_name: str, first: int, last: int) -> None:
        """Fail if any container ``base_name{first..last}`` already exists.

        Raises:
            NameConflict: For the first index whose container exists
        """
        location = str(self.host.config.lxc_root)
        existing = set(self.host.list_containers())
        for index in range(first, last + 1):
            name = naming.container_name(base_name, index)
            if name in existing:
                raise NameConflict(name, location)

    def validate_reset(self, base_name: str, first: int, last: int) -> ResetPlan:
        """Split ``first..last`` into existing containers and missing ones.

        Missing containers are advisory: they are logged and skipped, the
        rest of the batch is still reset.
        """
        location = str(self.host.config.lxc_root)
        existing = set(self.host.list_containers())
        plan = ResetPlan()
        for index in range(first, last + 1):
            name = naming.container_name(base_name, index)
            if name in existing:
                plan.existing.append(index)
            else:
                advisory = MissingContainer(name, location)
                logger.warning(str(advisory))
                plan.missing.append(advisory)
        return plan

    def validate_bridge_names(self, base_name: str, size: int, topology: str) -> None:
        """Fail if a bridge name implied by the scheme is already in use.

        Raises:
            BridgeConflict: If the name is a recorded bridge or a host interface
        """
        self.validate_bridges(naming.bridge_names(base_name, size, topology))

    def validate_bridges(self, bridges: Iterable[str]) -> None:
        """Fail on the first of ``bridges`` already in use on the host."""
        taken = set(self.host.list_bridges()) | set(self.host.list_interfaces())
        for bridge in bridges:
            if bridge in taken:
                raise BridgeConflict(bridge)
