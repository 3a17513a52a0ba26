"""Exception classes for update-plus operations.

Every failure raised by a component derives from UpdatePlusError so the
orchestrator and the CLI can classify it without knowing the component.
"""


class UpdatePlusError(Exception):
    """Base exception for update-plus operations."""

    error_prefix: str = "Operation failed"

    def __init__(self, message: str, target: str | None = None) -> None:
        """Initialize error with message and optional target.

        Args:
            message: Error message describing the failure.
            target: Optional name of the archive, module or tool that failed.

        """
        super().__init__(message)
        self.message = message
        self.target = target

    def __str__(self) -> str:
        """Return formatted error message."""
        if self.target:
            return f"{self.error_prefix} for '{self.target}': {self.message}"
        return f"{self.error_prefix}: {self.message}"


class NotFoundError(UpdatePlusError):
    """Raised when an archive or module does not exist."""

    error_prefix = "Not found"


class ArchiveFormatError(UpdatePlusError):
    """Raised when an archive is corrupt or structured content is invalid."""

    error_prefix = "Invalid archive"


class ArchiveCreationError(ArchiveFormatError):
    """Raised when source directories cannot be packed into an archive."""

    error_prefix = "Archive creation failed"


class ToolUnavailableError(UpdatePlusError):
    """Raised when a required external tool is not installed."""

    error_prefix = "Tool unavailable"


class PermissionOrSpaceError(UpdatePlusError):
    """Raised on disk space shortage or write permission failures."""

    error_prefix = "Write failed"


class ConflictError(UpdatePlusError):
    """Raised when a module has local changes and cannot be updated."""

    error_prefix = "Conflict"


class PartialFailureError(UpdatePlusError):
    """Raised when some modules failed while the run continued."""

    error_prefix = "Partial failure"


class FatalAbortError(UpdatePlusError):
    """Raised when a fatal stage ends the update run."""

    error_prefix = "Update aborted"


class ToolError(UpdatePlusError):
    """Raised when an external tool ran but reported failure."""

    error_prefix = "Command failed"


class EncryptionError(ToolError):
    """Raised when encryption or decryption fails."""

    error_prefix = "Encryption failed"


class VersionControlError(ToolError):
    """Raised when a version-control command fails."""

    error_prefix = "Version control failed"


class RemoteStorageError(ToolError):
    """Raised when a remote object store command fails."""

    error_prefix = "Remote storage failed"


class CoreToolError(ToolError):
    """Raised when the OpenClaw binary reports failure."""

    error_prefix = "OpenClaw command failed"


class ConfigurationError(UpdatePlusError):
    """Raised when the settings file is invalid."""

    error_prefix = "Invalid configuration"


class LockError(UpdatePlusError):
    """Raised when the process lock cannot be acquired."""

    error_prefix = "Lock unavailable"

    def __init__(
        self,
        message: str,
        target: str | None = None,
        cause: BaseException | None = None,
    ) -> None:
        """Initialize lock error with the underlying OS error.

        Args:
            message: Error message describing the failure.
            target: Optional lock file path.
            cause: Original exception raised by the lock call.

        """
        super().__init__(message, target)
        self.cause = cause
