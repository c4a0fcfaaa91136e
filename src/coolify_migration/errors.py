class MigrationError(Exception):
    """Base class for every failure that aborts a migration run."""


class ConfigError(MigrationError):
    """Configuration is missing or malformed."""


class PreflightError(MigrationError):
    """A precondition checked before any mutating action failed."""


class DiscoveryError(MigrationError):
    """Docker could not be queried for containers or mounts."""


class ArchiveError(MigrationError):
    """The backup archive could not be created."""


class RemoteStepError(MigrationError):
    """A step on the destination host failed."""

    def __init__(self, step, message):
        super().__init__(message)
        self.step = step


class CleanupError(MigrationError):
    """The local backup could not be removed."""


class RemoteConnectionError(MigrationError):
    """The SSH session to the destination could not be used."""
