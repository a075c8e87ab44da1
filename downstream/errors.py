"""Custom exceptions for downstream-check."""


class DownstreamError(Exception):
    """Base exception type for downstream-check errors."""


class ConfigError(DownstreamError):
    """Raised when configuration or a dependents feed cannot be loaded."""


class ProvisioningError(DownstreamError):
    """Raised when a workspace directory cannot be created."""


class CommandSpawnError(DownstreamError):
    """Raised when a command cannot be started or its output cannot be read."""
