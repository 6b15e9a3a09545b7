"""Address block allocation for container bridges.

Blocks are cut from one global IPv4 address space. There is no allocation
table: the blocks in use are re-derived from the live bridge records on every
call, so a block becomes free again as soon as its bridge is deleted.

Two allocations with no bridge recorded in between return the same block.
Only one orchestrator process may run against a host at a time.
"""
import ipaddress
from typing import Iterable

from xlxc.core.errors import AddressSpaceExhausted, UsageError
from xlxc.core.logger import get_logger

logger = get_logger(__name__)

# Network and broadcast addresses are never handed out
RESERVED_PER_BLOCK = 2


def prefix_for(size: int) -> int:
    """Longest prefix whose block holds ``size`` containers plus the gateway."""
    if size <= 0:
        raise UsageError(f"Network size must be greater than zero, got {size}")

    hosts_needed = size + 1
    for prefix in range(30, -1, -1):
        if 2 ** (32 - prefix) - RESERVED_PER_BLOCK >= hosts_needed:
            return prefix
    raise UsageError(f"No IPv4 block can hold {size} containers")


class AddressAllocator:
    """Hands out the lowest free block of the address space."""

    def __init__(self, host, address_space: str = "10.0.0.0/8"):
        self.host = host
        self.address_space = ipaddress.ip_network(address_space)

    def allocate(self, size: int) -> ipaddress.IPv4Network:
        """Find a block for ``size`` containers disjoint from every live block.

        Args:
            size: Number of containers the block must address

        Returns:
            The lowest unused block in the address space

        Raises:
            AddressSpaceExhausted: If every chunk of that size overlaps a live block
        """
        prefix = prefix_for(size)
        if prefix < self.address_space.prefixlen:
            raise AddressSpaceExhausted(
                f"A /{prefix} block for {size} containers does not fit in {self.address_space}"
            )

        in_use = list(self.host.bridge_blocks().values())
        for candidate in self.address_space.subnets(new_prefix=prefix):
            if not self._overlaps(candidate, in_use):
                logger.debug(f"Allocated {candidate} for {size} containers")
                return candidate

        raise AddressSpaceExhausted(
            f"No free /{prefix} block left in {self.address_space} "
            f"({len(in_use)} blocks in use)"
        )

    @staticmethod
    def _overlaps(candidate: ipaddress.IPv4Network,
                  in_use: Iterable[ipaddress.IPv4Network]) -> bool:
        return any(candidate.overlaps(block) for block in in_use)
