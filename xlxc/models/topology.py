"""Network topology models."""
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Union

from xlxc.core import naming
from .container import Bridge, Container


class TopologyKind(str, Enum):
    """Shape of a container network."""
    STAR = naming.STAR
    CONNECTED = naming.CONNECTED


@dataclass
class BatchReport:
    """Per-index outcome of a batch; a batch is never atomic."""
    succeeded: List[str] = field(default_factory=list)
    failed: Dict[str, str] = field(default_factory=dict)  # name -> reason
    skipped: Dict[str, str] = field(default_factory=dict)  # name -> reason

    def has_failures(self) -> bool:
        return bool(self.failed)


@dataclass
class StarTopology:
    """Each container isolated on its own dedicated bridge."""
    containers: List[Container]
    bridges: List[Bridge]
    report: BatchReport = field(default_factory=BatchReport)

    kind = TopologyKind.STAR


@dataclass
class ConnectedTopology:
    """All containers share a single bridge."""
    containers: List[Container]
    bridge: Bridge
    report: BatchReport = field(default_factory=BatchReport)

    kind = TopologyKind.CONNECTED

    @property
    def bridges(self) -> List[Bridge]:
        return [self.bridge]


Topology = Union[StarTopology, ConnectedTopology]
