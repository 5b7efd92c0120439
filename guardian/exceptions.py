"""Exceptions raised by the guardian scanner."""


class GuardianError(Exception):
    """Base class for guardian errors."""


class ConfigError(GuardianError):
    """An existing configuration file could not be read or is invalid."""


class ScanError(GuardianError):
    """The scan root cannot be accessed at all."""
