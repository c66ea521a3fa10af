"""Core library for the pwrtest instrument drivers.

This package provides the error hierarchy and common data types shared by the
pwrtest protocol and instrument packages. It has no external dependencies so
that every other pwrtest package can build on it.

Example:
    >>> from pwrtest_core import InstrumentIdentity
    >>> identity = InstrumentIdentity("YOKOGAWA", "WT3000", "91234", "F1.05")
    >>> str(identity)
    'YOKOGAWA,WT3000,91234,F1.05'
"""

from pwrtest_core.errors import ConfigError, PwrtestError
from pwrtest_core.types import InstrumentIdentity

__version__ = "0.1.0"

__all__ = [
    # Version
    "__version__",
    # Types
    "InstrumentIdentity",
    # Errors
    "ConfigError",
    "PwrtestError",
]
