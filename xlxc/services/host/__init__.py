"""Host operations: the only seam through which xlxc touches the machine.

- HostOperations: abstract capability (queries + mutations)
- SystemHost: real host (subprocess, mount, brctl, ip, iptables, lxc-*)
- MockHost: in-memory host for dry runs and tests
"""
from typing import Optional

from xlxc.core.config import XlxcConfig, get_config, is_mock
from .base import HostOperations
from .mock import MockHost
from .system import SystemHost


def get_host(config: Optional[XlxcConfig] = None, mock: Optional[bool] = None) -> HostOperations:
    """Return the host implementation for this run (mock via XLXC_MOCK=1)."""
    config = config or get_config()
    if mock is None:
        mock = is_mock()
    return MockHost(config) if mock else SystemHost(config)


__all__ = [
    'HostOperations',
    'MockHost',
    'SystemHost',
    'get_host',
]
