"""Core protocols for dependency injection and interface abstraction.

This package defines the interfaces that core services depend on instead
of the concrete tool adapters in update_plus.infrastructure.

Available protocols:
    VersionControl: Module working tree operations (git)
    Encryptor: Archive encryption (gpg)
    ObjectStore: Remote archive storage (rclone)
    CoreTool: The OpenClaw binary
    ConnectivityChecker: Network reachability check
    Reporter: Update run summary and JSON report

Usage:
    from update_plus.core.protocols import VersionControl

"""

from .collaborators import (
    ConnectivityChecker,
    CoreTool,
    Encryptor,
    ObjectStore,
    Reporter,
    VersionControl,
)

__all__ = [
    "ConnectivityChecker",
    "CoreTool",
    "Encryptor",
    "ObjectStore",
    "Reporter",
    "VersionControl",
]
