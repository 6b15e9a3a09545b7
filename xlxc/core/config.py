"""xlxc runtime configuration and settings."""
import ipaddress
import os
from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator

# Default config search paths (ordered by proximity to current run)
CONFIG_PATHS = [
    "./xlxc.yml",
    "/etc/xlxc/xlxc.yml",
]

# Environment variable -> config field
ENV_OVERRIDES = {
    "XLXC_LXC_ROOT": "lxc_root",
    "XLXC_BRIDGES_DIR": "bridges_dir",
    "XLXC_INTERFACES_DIR": "interfaces_dir",
    "XLXC_LOCAL_ETC": "local_etc",
    "XLXC_SHARED_CONFIG": "shared_config",
    "XLXC_HID_DIR": "hid_dir",
    "XLXC_KERNEL_TAG": "kernel_tag",
    "XLXC_ADDRESS_SPACE": "address_space",
}


class XlxcConfig(BaseModel):
    """Runtime configuration for xlxc operations.

    Attributes:
        lxc_root: Directory holding one directory per container
        bridges_dir: Directory holding one record directory per bridge
        interfaces_dir: Kernel view of network interfaces (one entry per device)
        local_etc: Template etc directory copied into every container
        shared_config: Host-wide XIA configuration snapshotted into containers
        hid_dir: Directory of persisted host identifiers (one file per name)
        container_user: Home directory created under /home in each rootfs
        kernel_tag: Substring the running kernel release must contain
        address_space: Global pool that bridge address blocks are cut from
        system_dirs: Host directories bind-mounted read-only into each rootfs
    """

    model_config = ConfigDict(extra='forbid')

    lxc_root: Path = Path("/var/lib/lxc")
    bridges_dir: Path = Path("/var/lib/xlxc/bridges")
    interfaces_dir: Path = Path("/sys/class/net")
    local_etc: Path = Path("/etc/xlxc/etc")
    shared_config: Path = Path("/etc/xia")
    hid_dir: Path = Path("/etc/xia/hid/prv")
    container_user: str = "ubuntu"
    kernel_tag: str = "xia"
    address_space: str = "10.0.0.0/8"
    system_dirs: List[str] = Field(
        default_factory=lambda: ["/bin", "/lib64", "/lib", "/sbin", "/usr"]
    )

    @field_validator('address_space')
    @classmethod
    def validate_address_space(cls, v):
        """Address space must be an IPv4 network in CIDR notation."""
        try:
            network = ipaddress.ip_network(v)
        except ValueError as e:
            raise ValueError(f"Invalid address space '{v}': {e}")
        if network.version != 4:
            raise ValueError(f"Address space must be IPv4, got {v}")
        return str(network)

    @field_validator('system_dirs')
    @classmethod
    def validate_system_dirs(cls, v):
        """System directories must be absolute host paths."""
        for path in v:
            if not path.startswith('/'):
                raise ValueError(f"System directory must be absolute: {path}")
        return v

    @classmethod
    def load(cls, config_path: Optional[str] = None) -> "XlxcConfig":
        """Create config from a YAML file and environment variables.

        Environment variables (XLXC_LXC_ROOT, XLXC_BRIDGES_DIR, ...) take
        precedence over the file, which takes precedence over defaults.

        Args:
            config_path: Explicit YAML file. Falls back to XLXC_CONFIG, then
                the default search paths. A missing file means defaults.
        """
        data = {}
        path = find_config(config_path)
        if path is not None:
            with open(path) as f:
                data = yaml.safe_load(f) or {}

        for env_name, field_name in ENV_OVERRIDES.items():
            value = os.getenv(env_name)
            if value:
                data[field_name] = value

        return cls(**data)


def find_config(config_path: Optional[str] = None) -> Optional[Path]:
    """Locate the active xlxc configuration file, if any."""
    if config_path:
        return Path(config_path)

    if env_config := os.environ.get("XLXC_CONFIG"):
        return Path(env_config)

    for path in CONFIG_PATHS:
        if Path(path).exists():
            return Path(path)

    return None


def is_mock() -> bool:
    """Return True when running against the in-memory host."""
    return os.environ.get("XLXC_MOCK") == "1"


# Global config instance
_config: Optional[XlxcConfig] = None


def get_config() -> XlxcConfig:
    """Get the global xlxc configuration (loaded on first use)."""
    global _config
    if _config is None:
        _config = XlxcConfig.load()
    return _config
