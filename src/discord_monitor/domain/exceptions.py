"""Domain exceptions."""


class MonitorError(Exception):
    """Base exception for discord_monitor errors."""


class CommandError(MonitorError):
    """Base exception for command execution errors."""


class InvalidCommandError(CommandError):
    """Raised when a command line is malformed."""


class UnknownCommandError(CommandError):
    """Raised when a command verb is not recognized."""


class UpstreamConnectionError(MonitorError):
    """Raised when the Discord gateway connection is unavailable."""


class StorageError(MonitorError):
    """Raised when the backing store fails during an operation."""
