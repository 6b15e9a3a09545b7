"""Shared test fixtures for xlxc tests."""
import pytest

from xlxc.core.config import XlxcConfig
from xlxc.core.lifecycle import LifecycleController
from xlxc.services.host import MockHost


@pytest.fixture
def config(tmp_path):
    """Configuration rooted in a temporary directory."""
    return XlxcConfig(
        lxc_root=tmp_path / "lxc",
        bridges_dir=tmp_path / "bridges",
        interfaces_dir=tmp_path / "net",
        local_etc=tmp_path / "local-etc",
        shared_config=tmp_path / "xia",
        hid_dir=tmp_path / "xia" / "hid" / "prv",
    )


@pytest.fixture
def host(config):
    """In-memory host running an XIA kernel as root."""
    return MockHost(config)


@pytest.fixture
def controller(host, config):
    return LifecycleController(host, config)

