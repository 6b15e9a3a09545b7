"""xlxc - Linux XIA containers and the bridge networks between them."""

__version__ = "0.3.0"
