"""Exception types for pwrtest-core.

This module defines the root of the exception hierarchy used throughout the
pwrtest packages. All pwrtest exceptions inherit from PwrtestError, allowing
consumers to catch every driver-specific error with a single except clause.

Exception hierarchy:
    PwrtestError (base)
    +-- ConfigError: Invalid configuration files or values
    +-- ScpiError: Protocol errors (defined in pwrtest-scpi)
"""


class PwrtestError(Exception):
    """Base exception for all pwrtest errors.

    This is the root of the pwrtest exception hierarchy. Catch this to handle
    any driver-specific error.
    """


class ConfigError(PwrtestError):
    """Raised for invalid configuration.

    This includes unreadable or malformed configuration files, unknown keys,
    and values outside their permitted range.
    """
