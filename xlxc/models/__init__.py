"""Data models for containers, bridges and network topologies."""
from .container import Bridge, Container
from .topology import BatchReport, ConnectedTopology, StarTopology, TopologyKind

__all__ = [
    'Bridge',
    'Container',
    'BatchReport',
    'ConnectedTopology',
    'StarTopology',
    'TopologyKind',
]
