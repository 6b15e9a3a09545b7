"""Container configuration files rendered from templates.

The render_* functions are pure: the same container and bridge always
produce the same text. ConfigEmitter writes them into the container's tree.
"""
from pathlib import Path

from jinja2 import BaseLoader, Environment

from xlxc.core.logger import get_logger
from xlxc.models import Bridge, Container

logger = get_logger(__name__)

INTERFACES_FILE = "etc/network/interfaces"
HOSTS_FILE = "etc/hosts"
HOSTNAME_FILE = "etc/hostname"
LAUNCHER_FILE = "run.sh"

LXC_CONFIG_TEMPLATE = """\
lxc.network.type=veth
lxc.network.flags=up
lxc.network.name=eth0
lxc.devttydir=lxc
lxc.tty=4
lxc.pts=1024
lxc.arch=amd64
lxc.cap.drop=sys_module mac_admin mac_override sys_time
lxc.pivotdir=lxc_putold
lxc.cgroup.devices.deny=a
lxc.cgroup.devices.allow=c *:* m
lxc.cgroup.devices.allow=b *:* m
lxc.cgroup.devices.allow=c 1:3 rwm
lxc.cgroup.devices.allow=c 1:5 rwm
lxc.cgroup.devices.allow=c 5:0 rwm
lxc.cgroup.devices.allow=c 5:1 rwm
lxc.cgroup.devices.allow=c 1:8 rwm
lxc.cgroup.devices.allow=c 1:9 rwm
lxc.cgroup.devices.allow=c 136:* rwm
lxc.cgroup.devices.allow=c 5:2 rwm
lxc.cgroup.devices.allow=c 254:0 rm
lxc.network.link={{ bridge }}
lxc.network.veth.pair={{ veth_pair }}
lxc.rootfs={{ rootfs }}
lxc.utsname={{ name }}
lxc.mount={{ fstab }}
"""

FSTAB_TEMPLATE = """\
proc            proc         proc    nodev,noexec,nosuid 0 0
sysfs           sys          sysfs   defaults            0 0
devpts          dev/pts      devpts  defaults            0 0
"""

INTERFACES_TEMPLATE = """\
auto lo
iface lo inet loopback

auto eth0
iface eth0 inet static
    address {{ address }}
    netmask {{ netmask }}
    gateway {{ gateway }}
"""

HOSTS_TEMPLATE = """\
127.0.0.1   localhost
127.0.1.1   {{ name }}

# The following lines are desirable for IPv6 capable hosts
::1     ip6-localhost ip6-loopback
fe00::0 ip6-localnet
ff00::0 ip6-mcastprefix
ff02::1 ip6-allnodes
ff02::2 ip6-allrouters
"""

LAUNCHER_TEMPLATE = """\
# Add HID for this container.
{% if not has_hid %}
sudo xip hid new {{ name }}
{% endif %}
sudo xip hid add {{ name }}
# Keep container running.
cat
"""

_jinja_env = Environment(
    loader=BaseLoader(),
    autoescape=False,
    trim_blocks=True,
    lstrip_blocks=True,
    keep_trailing_newline=True,
)


def _render(template: str, **context) -> str:
    return _jinja_env.from_string(template).render(**context)


def render_lxc_config(container: Container, bridge_name: str) -> str:
    """Runtime descriptor: base LXC settings plus this container's identity."""
    return _render(
        LXC_CONFIG_TEMPLATE,
        bridge=bridge_name,
        veth_pair=container.veth_pair,
        rootfs=container.rootfs,
        name=container.full_name,
        fstab=container.fstab_path,
    )


def render_fstab() -> str:
    return _render(FSTAB_TEMPLATE)


def render_interfaces(container: Container, bridge: Bridge) -> str:
    """Static eth0 configuration (bypasses DHCP)."""
    if bridge.block is None:
        raise ValueError(f"Bridge {bridge.name} has no address block")
    return _render(
        INTERFACES_TEMPLATE,
        address=container.address(bridge.block),
        netmask=bridge.block.netmask,
        gateway=bridge.gateway,
    )


def render_hosts(container: Container) -> str:
    return _render(HOSTS_TEMPLATE, name=container.full_name)


def render_hostname(container: Container) -> str:
    return f"{container.full_name}\n"


def render_launcher(container: Container, has_hid: bool) -> str:
    """Script that provisions (if needed) and adds the container's HID."""
    return _render(LAUNCHER_TEMPLATE, name=container.full_name, has_hid=has_hid)


class ConfigEmitter:
    """Writes a container's config, fstab and network identity files."""

    def __init__(self, host, config):
        self.host = host
        self.config = config

    def emit(self, container: Container, bridge: Bridge) -> None:
        rootfs = container.rootfs
        self.host.write_file(container.config_path, render_lxc_config(container, bridge.name))
        self.host.write_file(container.fstab_path, render_fstab())
        self.host.write_file(rootfs / INTERFACES_FILE, render_interfaces(container, bridge))
        self.host.write_file(rootfs / HOSTS_FILE, render_hosts(container))
        self.host.write_file(rootfs / HOSTNAME_FILE, render_hostname(container))
        logger.debug(f"Wrote configuration for {container.full_name}")

    def emit_launcher(self, container: Container) -> Path:
        """Install run.sh into the container's rootfs."""
        hid_file = Path(self.config.hid_dir) / container.full_name
        has_hid = self.host.path_exists(hid_file)
        script = container.rootfs / LAUNCHER_FILE
        self.host.write_file(script, render_launcher(container, has_hid), executable=True)
        return script


def configured_bridge(config_text: str) -> str:
    """Bridge a container's runtime descriptor links it to, if any."""
    for line in config_text.splitlines():
        key, sep, value = line.partition('=')
        if sep and key.strip() == 'lxc.network.link':
            return value.strip()
    return ""
