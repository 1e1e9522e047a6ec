# errors.py

"""Exceptions raised by NetSweeper before any probing starts."""


class NetSweeperError(Exception):
    """Base class for NetSweeper errors."""


class ConfigurationError(NetSweeperError, ValueError):
    """Raised when scan parameters are invalid. Aborts the scan before any network activity."""


class InvalidPrefix(ConfigurationError):
    """Prefix length outside of [1, 32]."""


class InvalidAddress(ConfigurationError):
    """Address is not a well-formed IPv4 dotted quad."""


class InvalidConcurrency(ConfigurationError):
    """Worker count outside of the allowed range."""


class NoActiveInterface(ConfigurationError):
    """No usable network interface could be selected."""
