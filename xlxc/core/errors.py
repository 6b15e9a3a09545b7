"""Error taxonomy for xlxc operations.

Pre-flight errors (usage, privilege, environment, naming conflicts) are raised
before the host is touched and reject a whole batch. Host errors are raised
while mutating and only abandon the container being worked on.
"""


class XlxcError(Exception):
    """Base class for all xlxc errors."""
    pass


class UsageError(XlxcError):
    """Bad arguments (index range, network size, topology, missing iface)."""
    pass


class PrivilegeError(XlxcError):
    """Raised when not running as root."""
    pass


class EnvironmentCheckError(XlxcError):
    """Raised when the running kernel is not the XIA variant."""
    pass


class NameConflict(XlxcError):
    """A container with the computed name already exists."""

    def __init__(self, name: str, location: str):
        self.name = name
        self.location = location
        super().__init__(
            f"Naming conflict: container {name} already exists in {location}."
        )


class BridgeConflict(XlxcError):
    """A bridge or interface with the implied name is already in use."""

    def __init__(self, bridge: str):
        self.bridge = bridge
        super().__init__(
            f"Bridge {bridge} is already in use, so this naming scheme cannot be used."
        )


class MissingContainer(XlxcError):
    """Reset target does not exist. Advisory: only that index is skipped."""

    def __init__(self, name: str, location: str):
        self.name = name
        self.location = location
        super().__init__(f"Container {location}/{name} does not exist.")


class AddressSpaceExhausted(XlxcError):
    """No free address block of the requested size remains."""
    pass


class HostOperationFailure(XlxcError):
    """A host command (bridge, chroot, copy, lifecycle tool) failed."""

    def __init__(self, message: str, command=None, stderr: str = ""):
        self.command = command
        self.stderr = stderr
        super().__init__(message)


class MountFailure(HostOperationFailure):
    """A bind mount, remount or unmount failed."""
    pass
